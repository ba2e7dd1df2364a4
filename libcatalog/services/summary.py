from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ..models.import_result import ImportResult

"""Import summary rendering.

Two renderings of the same ImportResult:
- render_summary_line: one machine-greppable ``SUMMARY key=value ...`` line
- render_summary_message: the human-readable result with a severity
  (success | info | error), counts and up to the first N failure messages
"""

__all__ = [
    "DEFAULT_MAX_FAILURES",
    "SummaryMessage",
    "render_summary_line",
    "render_summary_message",
]

DEFAULT_MAX_FAILURES = 15


@dataclass(frozen=True)
class SummaryMessage:
    severity: str  # success | info | error
    text: str


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # Format very small numbers to avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.2f}".rstrip("0").rstrip(".")


def render_summary_line(result: ImportResult) -> str:
    """Render the SUMMARY line.

    Format:
    SUMMARY rows={rows} created={n} validation_failed={n} creation_failed={n}
    skipped={n} elapsed_sec={elapsed}

    Examples:
        >>> from datetime import datetime, timezone
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> r = ImportResult(
        ...     source_name="books.xlsx", total_rows=3, created=1, validation_failures=1,
        ...     creation_failures=1, skipped_rows=0, failures=[], start_time=t, end_time=t,
        ...     elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(r)
        'SUMMARY rows=3 created=1 validation_failed=1 creation_failed=1 skipped=0 elapsed_sec=2'
    """
    return (
        f"SUMMARY rows={result.total_rows} "
        f"created={result.created} "
        f"validation_failed={result.validation_failures} "
        f"creation_failed={result.creation_failures} "
        f"skipped={result.skipped_rows} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )


def render_summary_message(
    result: ImportResult,
    max_failures: int = DEFAULT_MAX_FAILURES,
    log_path: Path | None = None,
) -> SummaryMessage:
    """Build the end-of-run message shown to the operator."""
    if result.total_rows == 0:
        return SummaryMessage(
            "info", "The spreadsheet is empty or has no data rows after the header."
        )

    if not result.has_failures:
        if result.created == 0:
            return SummaryMessage("info", "No books were imported.")
        return SummaryMessage("success", f"Successfully imported {result.created} books.")

    lines = [
        "Import completed with errors.",
        f"Created: {result.created}",
        f"Validation failures: {result.validation_failures}",
        f"Creation failures: {result.creation_failures}",
    ]
    if result.skipped_rows:
        lines.append(f"Skipped empty rows: {result.skipped_rows}")
    lines.append("Errors:")
    lines.extend(f"- {msg}" for msg in result.failures[:max_failures])
    remaining = len(result.failures) - max_failures
    if remaining > 0:
        log_path = log_path or result.error_log_path
        where = f"diagnostic log {log_path}" if log_path else "diagnostic output"
        lines.append(f"... and {remaining} more (see {where})")
    return SummaryMessage("error", "\n".join(lines))
