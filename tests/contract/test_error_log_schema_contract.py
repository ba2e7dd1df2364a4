from __future__ import annotations

import json
import re

from libcatalog.models.error_record import ErrorRecord

"""Diagnostic error log: one JSON object per line with a fixed key set."""

EXPECTED_KEYS = {"timestamp", "file", "row", "title", "error_type", "message"}
ERROR_TYPES = {"EMPTY_ROW", "VALIDATION_FAILED", "DUPLICATE_ACCESSION", "CREATION_FAILED", "UNEXPECTED_ERROR"}


def test_error_record_keys_and_types():
    rec = ErrorRecord.create("books.xlsx", 3, "N/A", "VALIDATION_FAILED", "Row 3 (Title: N/A): x")
    obj = json.loads(rec.to_json_line())
    assert set(obj) == EXPECTED_KEYS
    assert isinstance(obj["row"], int)
    assert re.match(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z$", obj["timestamp"])
    assert obj["error_type"] in ERROR_TYPES
