"""Domain models for the library catalog tool."""

from .book import BookRecord
from .config_models import AccessConfig, AppConfig, CardSettings, DatabaseConfig, ImportSettings
from .error_record import ErrorRecord
from .field_schema import BOOK_FIELDS, FieldSpec, ValueKind
from .import_result import ImportResult
from .import_row import ImportRow, RowStatus, Violation

__all__ = [
    # Record models
    "BookRecord",
    "BOOK_FIELDS",
    "FieldSpec",
    "ValueKind",
    # Configuration models
    "AccessConfig",
    "AppConfig",
    "CardSettings",
    "DatabaseConfig",
    "ImportSettings",
    # Import models
    "ErrorRecord",
    "ImportResult",
    "ImportRow",
    "RowStatus",
    "Violation",
]
