from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from .import_row import ImportRow, RowStatus

"""Aggregated results of one import run.

ImportResult is what the orchestrator hands to the summary renderer and the
CLI exit-code logic.
"""

__all__ = [
    "ImportResult",
]


@dataclass(frozen=True)
class ImportResult:
    """Outcome counts and collected failure messages for an import run."""
    source_name: str
    total_rows: int  # データ行数 (ヘッダ除く)
    created: int
    validation_failures: int
    creation_failures: int
    skipped_rows: int
    failures: list[str]  # 行順の失敗メッセージ (空行スキップ含む)
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    rows: list[ImportRow] = field(default_factory=list)
    error_log_path: Path | None = None

    @property
    def failed_rows(self) -> int:
        return self.validation_failures + self.creation_failures

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)

    @property
    def created_ids(self) -> list[str]:
        return [r.record_id for r in self.rows if r.status is RowStatus.CREATED and r.record_id]
