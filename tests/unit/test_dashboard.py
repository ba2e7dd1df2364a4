from __future__ import annotations

from libcatalog.models.book import BookRecord
from libcatalog.services.dashboard import books_by_ddc, books_by_year, build_dashboard


def test_dashboard_aggregates():
    records = [
        BookRecord(copyright_year=2020, ddc="005"),
        BookRecord(copyright_year=1999, ddc="100"),
        BookRecord(copyright_year=2020, ddc="005"),
        BookRecord(ddc="200"),
        BookRecord(copyright_year=1999),
    ]
    assert books_by_year(records) == [(1999, 2), (2020, 2)]
    assert books_by_ddc(records) == [("005", 2), ("100", 1), ("200", 1)]
    stats = build_dashboard(iter(records))
    assert stats.total_books == 5


def test_dashboard_of_empty_catalog():
    stats = build_dashboard([])
    assert stats.total_books == 0
    assert stats.by_year == []
    assert stats.by_ddc == []
