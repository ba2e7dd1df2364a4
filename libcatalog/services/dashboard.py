from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

from ..models.book import BookRecord

"""Dashboard aggregates over the catalog snapshot."""

__all__ = [
    "DashboardStats",
    "books_by_year",
    "books_by_ddc",
    "build_dashboard",
]


@dataclass(frozen=True)
class DashboardStats:
    total_books: int
    by_year: list[tuple[int, int]]  # (copyright_year, count) 年昇順
    by_ddc: list[tuple[str, int]]  # (ddc, count) 初出順


def books_by_year(records: Iterable[BookRecord]) -> list[tuple[int, int]]:
    counts = Counter(r.copyright_year for r in records if r.copyright_year)
    return sorted(counts.items())


def books_by_ddc(records: Iterable[BookRecord]) -> list[tuple[str, int]]:
    counts: Counter[str] = Counter()
    for r in records:
        if r.ddc:
            counts[r.ddc] += 1
    return list(counts.items())


def build_dashboard(records: Iterable[BookRecord]) -> DashboardStats:
    snapshot = list(records)
    return DashboardStats(
        total_books=len(snapshot),
        by_year=books_by_year(snapshot),
        by_ddc=books_by_ddc(snapshot),
    )
