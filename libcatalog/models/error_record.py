from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the diagnostic import error log.

Each failed or skipped row of an import run becomes one ErrorRecord,
serialized as a JSON Lines entry with a fixed key set. row=-1 marks
file-level errors where no row applies.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: spreadsheet being imported
        row: spreadsheet row number, -1 for file-level errors
        title: title of the row's record, "N/A" when absent
        error_type: UPPER_SNAKE_CASE classification
        message: the collected failure message
    """
    timestamp: str
    file: str
    row: int
    title: str
    error_type: str
    message: str

    @staticmethod
    def create(file: str, row: int, title: str, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            title=title,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # 追加キー阻止: dataclass -> dict して json.dumps
        return json.dumps(asdict(self), ensure_ascii=False)
