from __future__ import annotations

import re
from datetime import datetime, timezone

from libcatalog.models.import_result import ImportResult
from libcatalog.services.summary import render_summary_line

"""SUMMARY 行フォーマット契約テスト"""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY\s+rows=([0-9]+)\s+created=([0-9]+)\s+validation_failed=([0-9]+)\s+"
    r"creation_failed=([0-9]+)\s+skipped=([0-9]+)\s+elapsed_sec=([0-9]+\.?[0-9]*)$"
)


def test_summary_pattern_example_line():
    line = "SUMMARY rows=4 created=3 validation_failed=1 creation_failed=0 skipped=0 elapsed_sec=0.84"
    assert SUMMARY_PATTERN.match(line)


def test_rendered_line_matches_contract():
    t = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for elapsed in (0.0, 0.000123, 1.5, 12.0):
        r = ImportResult(
            source_name="b.xlsx", total_rows=4, created=3, validation_failures=1, creation_failures=0,
            skipped_rows=0, failures=["x"], start_time=t, end_time=t, elapsed_seconds=elapsed,
        )
        m = SUMMARY_PATTERN.match(render_summary_line(r))
        assert m, render_summary_line(r)
        assert m.group(1) == "4"
