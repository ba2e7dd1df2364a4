from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""ImportRow model for the spreadsheet import pipeline.

One ImportRow exists per spreadsheet data row for the duration of an import
run. It carries the raw cell values, the coerced field values and the final
outcome of the row. Rows are never persisted.
"""

__all__ = [
    "RowStatus",
    "Violation",
    "ImportRow",
]


class RowStatus(Enum):
    """Outcome of one spreadsheet row.

    - CREATED: record written to the store
    - INVALID: validation failed, no write attempted
    - FAILED: validation passed but the store rejected the write
    - SKIPPED: every declared field was empty
    """
    CREATED = "created"
    INVALID = "invalid"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class Violation:
    """A single field rule violation."""
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


@dataclass(frozen=True)
class ImportRow:
    """Logical representation of one spreadsheet row after processing.

    The row_number is the spreadsheet row number (header = row 1, so the
    first data row is 2).
    """
    row_number: int
    raw_values: dict[str, Any]
    values: dict[str, Any]
    status: RowStatus
    violations: tuple[Violation, ...] = field(default_factory=tuple)
    message: str | None = None  # 失敗時のサマリ文字列
    record_id: str | None = None

    @property
    def title(self) -> str:
        return str(self.values.get("title") or "N/A")
