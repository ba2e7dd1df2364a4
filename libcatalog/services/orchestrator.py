from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..db.store import DuplicateAccessionError, RecordStore, StoreError
from ..excel.reader import SpreadsheetReadError, read_spreadsheet
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.config_models import ImportSettings
from ..models.field_schema import BOOK_FIELDS, FieldSpec
from ..models.import_result import ImportResult
from ..models.import_row import ImportRow, RowStatus
from .catalog import create_book
from .coercion import coerce_row
from .progress import ProgressTracker
from .validation import FieldRule, build_rules, check_rules, validate_record

"""Import orchestration: spreadsheet rows -> catalog records.

Rows are processed strictly one at a time: coerce, validate, then create
through the accession pre-check. A failing row is recorded and the run moves
on; only an unreadable spreadsheet aborts the run, and it does so before any
row is processed.
"""

__all__ = [
    "HEADER_ROW_OFFSET",
    "ImportAbortedError",
    "run_import",
    "import_spreadsheet",
]

logger = logging.getLogger(__name__)

# index 0 -> spreadsheet row 2 (row 1 is the header)
HEADER_ROW_OFFSET = 2


class ImportAbortedError(Exception):
    """The spreadsheet could not be read; no row was processed."""


def _failure_prefix(row_number: int, title: str) -> str:
    return f"Row {row_number} (Title: {title})"


def _process_row(
    raw: Mapping[str, Any],
    row_number: int,
    store: RecordStore,
    fields: tuple[FieldSpec, ...],
    rules: list[FieldRule],
    error_log: ErrorLogBuffer,
    source_name: str,
) -> ImportRow:
    raw_values = dict(raw)
    coerced = coerce_row(raw_values, fields, row_number=row_number)

    if coerced.is_empty:
        message = f"Row {row_number}: Skipped (empty row)"
        error_log.append(ErrorRecord.create(source_name, row_number, "N/A", "EMPTY_ROW", message))
        return ImportRow(row_number, raw_values, {}, RowStatus.SKIPPED, message=message)

    title = str(coerced.values.get("title") or "N/A")
    validation = validate_record(coerced.values, rules=rules)
    record = validation.record
    if record is None:
        details = "; ".join(str(v) for v in validation.violations)
        message = f"{_failure_prefix(row_number, title)}: Validation failed — {details}"
        error_log.append(ErrorRecord.create(source_name, row_number, title, "VALIDATION_FAILED", message))
        logger.debug(message)
        return ImportRow(
            row_number, raw_values, coerced.values, RowStatus.INVALID,
            violations=validation.violations, message=message,
        )

    try:
        created = create_book(store, record)
    except StoreError as e:
        error_type = "DUPLICATE_ACCESSION" if isinstance(e, DuplicateAccessionError) else "CREATION_FAILED"
        message = f"{_failure_prefix(row_number, title)}: Creation failed — {e}"
        error_log.append(ErrorRecord.create(source_name, row_number, title, error_type, message))
        logger.debug(message)
        return ImportRow(row_number, raw_values, coerced.values, RowStatus.FAILED, message=message)
    except Exception as e:
        # 想定外の例外も行単位で吸収し、実行は継続
        message = f"{_failure_prefix(row_number, title)}: Creation failed — {e}"
        error_log.append(ErrorRecord.create(source_name, row_number, title, "UNEXPECTED_ERROR", message))
        logger.error("row=%d unexpected error during create", row_number, exc_info=True)
        return ImportRow(row_number, raw_values, coerced.values, RowStatus.FAILED, message=message)

    return ImportRow(row_number, raw_values, coerced.values, RowStatus.CREATED, record_id=created.id)


def run_import(
    rows: Sequence[Mapping[str, Any]],
    store: RecordStore,
    *,
    source_name: str = "<rows>",
    fields: tuple[FieldSpec, ...] = BOOK_FIELDS,
    current_year: int | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> ImportResult:
    """Run the import pipeline over already-read spreadsheet rows.

    Args:
        rows: header -> cell mappings, in spreadsheet order
        store: record store receiving the created records
        source_name: file name used in the diagnostic error log
        fields: declared field schema used for coercion
        current_year: reference year for the copyright bound (default: now)
        error_log: diagnostic buffer; flushed once at the end of the run

    Returns:
        ImportResult with per-row outcomes and collected failure messages

    Raises:
        RecordSchemaError: validation rules are misconfigured (before any row)
    """
    start_time = datetime.now(UTC)
    if error_log is None:
        error_log = ErrorLogBuffer()
    rules = build_rules(current_year if current_year is not None else start_time.year)
    check_rules(rules)

    outcomes: list[ImportRow] = []
    counts = {status: 0 for status in RowStatus}
    logger.info("importing %d rows from %s", len(rows), source_name)

    with ProgressTracker(len(rows), description=f"Importing {source_name}") as progress:
        for index, raw in enumerate(rows):
            row = _process_row(
                raw,
                index + HEADER_ROW_OFFSET,
                store,
                fields,
                rules,
                error_log,
                source_name,
            )
            outcomes.append(row)
            counts[row.status] += 1
            progress.advance(
                created=counts[RowStatus.CREATED],
                failed=counts[RowStatus.INVALID] + counts[RowStatus.FAILED],
            )

    log_path: Path | None = None
    if len(error_log):
        try:
            log_path = error_log.flush()
        except OSError as e:
            logger.warning("could not write diagnostic error log: %s", e)

    end_time = datetime.now(UTC)
    return ImportResult(
        source_name=source_name,
        total_rows=len(rows),
        created=counts[RowStatus.CREATED],
        validation_failures=counts[RowStatus.INVALID],
        creation_failures=counts[RowStatus.FAILED],
        skipped_rows=counts[RowStatus.SKIPPED],
        failures=[r.message for r in outcomes if r.message],
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        rows=outcomes,
        error_log_path=log_path,
    )


def import_spreadsheet(
    path: Path,
    store: RecordStore,
    settings: ImportSettings | None = None,
    current_year: int | None = None,
) -> ImportResult:
    """Read ``path`` and import every data row into ``store``.

    Raises:
        ImportAbortedError: the file could not be read or parsed
    """
    settings = settings or ImportSettings()
    try:
        data = read_spreadsheet(path, sheet=settings.sheet)
    except SpreadsheetReadError as e:
        raise ImportAbortedError(f"Error processing spreadsheet: {e}") from e
    logger.debug("sheet=%s columns=%s rows=%d", data.sheet_name, data.columns, len(data.rows))
    return run_import(
        data.rows,
        store,
        source_name=path.name,
        current_year=current_year,
        error_log=ErrorLogBuffer(settings.error_log_dir),
    )
