from __future__ import annotations

import json
from pathlib import Path

import pytest

from libcatalog.db.store import InMemoryBookStore, StoreError
from libcatalog.logging.error_log import ErrorLogBuffer
from libcatalog.models.import_row import RowStatus
from libcatalog.models.config_models import ImportSettings
from libcatalog.services.orchestrator import ImportAbortedError, import_spreadsheet, run_import


def _read_log(path: Path) -> list[dict]:
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_mixed_rows_end_to_end(tmp_path: Path, valid_row):
    missing_title = dict(valid_row, **{"Accession Number": "A101", "Title": None})
    duplicate = dict(valid_row, **{"Title": "Second Copy"})
    store = InMemoryBookStore()

    result = run_import(
        [valid_row, missing_title, duplicate],
        store,
        source_name="books.xlsx",
        current_year=2024,
        error_log=ErrorLogBuffer(tmp_path),
    )

    assert result.total_rows == 3
    assert result.created == 1
    assert result.validation_failures == 1
    assert result.creation_failures == 1
    assert result.failures == [
        "Row 3 (Title: N/A): Validation failed — title: Title is required",
        "Row 4 (Title: Second Copy): Creation failed — Duplicate accession number: A100 already exists",
    ]
    assert [r.status for r in result.rows] == [RowStatus.CREATED, RowStatus.INVALID, RowStatus.FAILED]
    assert len(store) == 1
    assert store.get_one(result.created_ids[0]).title == "Intro to Databases"

    entries = _read_log(result.error_log_path)
    assert [e["row"] for e in entries] == [3, 4]
    assert [e["error_type"] for e in entries] == ["VALIDATION_FAILED", "DUPLICATE_ACCESSION"]
    assert entries[1]["title"] == "Second Copy"
    assert entries[0]["file"] == "books.xlsx"


def test_created_record_carries_coerced_values(tmp_path: Path, valid_row):
    store = InMemoryBookStore()
    result = run_import([valid_row], store, current_year=2024, error_log=ErrorLogBuffer(tmp_path))
    record = store.get_one(result.created_ids[0])
    assert record.date_added == "2024-01-15T00:00:00Z"
    assert record.copyright_year == 2020
    assert record.isbn == "978-0-13-468599-1"
    assert result.has_failures is False
    assert result.error_log_path is None
    assert list(tmp_path.iterdir()) == []


def test_every_violation_of_a_row_is_reported(tmp_path: Path, valid_row):
    row = dict(valid_row, **{"Copy": 0, "ISBN": "12345"})
    result = run_import([row], InMemoryBookStore(), current_year=2024, error_log=ErrorLogBuffer(tmp_path))
    assert result.failures == [
        "Row 2 (Title: Intro to Databases): Validation failed — "
        "copy: Copy must be at least 1; isbn: ISBN must have exactly 13 digits once hyphens are removed"
    ]


def test_empty_row_is_skipped_and_reported(tmp_path: Path, valid_row):
    blank = {key: None for key in valid_row}
    result = run_import([blank, valid_row], InMemoryBookStore(), current_year=2024, error_log=ErrorLogBuffer(tmp_path))
    assert result.skipped_rows == 1
    assert result.created == 1
    assert result.failures == ["Row 2: Skipped (empty row)"]
    assert _read_log(result.error_log_path)[0]["error_type"] == "EMPTY_ROW"


class _FailingStore(InMemoryBookStore):
    def __init__(self, exc: Exception) -> None:
        super().__init__()
        self.exc = exc

    def create_one(self, record):
        raise self.exc


def test_store_error_is_recorded_and_run_continues(tmp_path: Path, valid_row):
    second = dict(valid_row, **{"Accession Number": "A200", "Title": "Other"})
    store = _FailingStore(StoreError("connection reset"))
    result = run_import([valid_row, second], store, current_year=2024, error_log=ErrorLogBuffer(tmp_path))
    assert result.creation_failures == 2
    assert result.failures[0] == "Row 2 (Title: Intro to Databases): Creation failed — connection reset"
    assert _read_log(result.error_log_path)[0]["error_type"] == "CREATION_FAILED"


def test_unexpected_error_is_contained_per_row(tmp_path: Path, valid_row):
    store = _FailingStore(RuntimeError("boom"))
    result = run_import([valid_row], store, current_year=2024, error_log=ErrorLogBuffer(tmp_path))
    assert result.creation_failures == 1
    assert result.failures == ["Row 2 (Title: Intro to Databases): Creation failed — boom"]
    assert _read_log(result.error_log_path)[0]["error_type"] == "UNEXPECTED_ERROR"


def test_no_rows_yields_empty_result(tmp_path: Path):
    result = run_import([], InMemoryBookStore(), error_log=ErrorLogBuffer(tmp_path))
    assert result.total_rows == 0
    assert result.failures == []


def test_unreadable_spreadsheet_aborts(tmp_path: Path):
    with pytest.raises(ImportAbortedError, match="^Error processing spreadsheet: file not found"):
        import_spreadsheet(tmp_path / "missing.xlsx", InMemoryBookStore())


def test_import_spreadsheet_reads_real_workbook(tmp_path: Path, valid_row, make_excel_file):
    second = dict(valid_row, **{"Accession Number": "A200", "Title": "Other", "ISBN": None})
    path = make_excel_file(tmp_path / "books.xlsx", [valid_row, second])
    store = InMemoryBookStore()
    settings = ImportSettings(error_log_dir=str(tmp_path / "logs"))

    result = import_spreadsheet(path, store, settings, current_year=2024)

    assert result.source_name == "books.xlsx"
    assert result.created == 2
    assert result.failures == []
    titles = sorted(r.title for r in store.snapshot())
    assert titles == ["Intro to Databases", "Other"]
    other = next(r for r in store.snapshot() if r.title == "Other")
    assert other.isbn is None
    assert other.ris_number == 5501


def test_out_of_range_date_fails_only_its_row(tmp_path: Path, valid_row):
    bad_date = dict(valid_row, **{"Date Added": 99999999})
    second = dict(valid_row, **{"Accession Number": "A200", "Title": "Other"})
    store = InMemoryBookStore()

    result = run_import([bad_date, second], store, current_year=2024, error_log=ErrorLogBuffer(tmp_path))

    assert result.validation_failures == 1
    assert result.created == 1
    assert result.failures == [
        "Row 2 (Title: Intro to Databases): Validation failed — date_added: Date Added is required"
    ]
    assert [r.title for r in store.snapshot()] == ["Other"]
