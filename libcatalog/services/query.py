from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any

from ..models.book import BookRecord

"""Client-side catalog query: filter, sort and paginate a record snapshot.

The record store hands over its full snapshot and the grid query is applied
in process. This is the known scalability ceiling of the catalog listing.
"""

__all__ = [
    "OPERATORS",
    "FilterItem",
    "SortItem",
    "QueryResult",
    "apply_filters",
    "apply_sort",
    "paginate",
    "run_query",
    "parse_filter",
    "parse_sort",
]

OPERATORS = ("contains", "equals", "startsWith", "endsWith", ">", "<")


@dataclass(frozen=True)
class FilterItem:
    field: str
    operator: str
    value: Any


@dataclass(frozen=True)
class SortItem:
    field: str
    direction: str = "asc"  # asc | desc


@dataclass(frozen=True)
class QueryResult:
    items: list[BookRecord]
    total_count: int  # フィルタ後・ページング前の件数


def _matches(record_value: Any, item: FilterItem) -> bool:
    op = item.operator
    if op == "equals":
        return record_value == item.value
    if op in (">", "<"):
        if record_value is None:
            return False
        try:
            return record_value > item.value if op == ">" else record_value < item.value
        except TypeError:
            return False
    text = str(record_value).lower()
    needle = str(item.value).lower()
    if op == "contains":
        return needle in text
    if op == "startsWith":
        return text.startswith(needle)
    if op == "endsWith":
        return text.endswith(needle)
    return True  # 未知の演算子は絞り込まない


def apply_filters(records: Iterable[BookRecord], filters: Sequence[FilterItem]) -> list[BookRecord]:
    result = list(records)
    for item in filters:
        if not item.field or item.value is None:
            continue
        result = [r for r in result if _matches(r.get(item.field), item)]
    return result


def apply_sort(records: list[BookRecord], sort: Sequence[SortItem]) -> list[BookRecord]:
    """Stable multi-key sort comparing values as strings."""
    if not sort:
        return list(records)

    def compare(a: BookRecord, b: BookRecord) -> int:
        for s in sort:
            left, right = str(a.get(s.field)), str(b.get(s.field))
            if left == right:
                continue
            sign = 1 if left > right else -1
            return sign if s.direction == "asc" else -sign
        return 0

    return sorted(records, key=cmp_to_key(compare))


def paginate(records: list[BookRecord], page: int, page_size: int) -> list[BookRecord]:
    start = page * page_size
    return records[start:start + page_size]


def run_query(
    records: Iterable[BookRecord],
    page: int = 0,
    page_size: int = 10,
    filters: Sequence[FilterItem] = (),
    sort: Sequence[SortItem] = (),
) -> QueryResult:
    filtered = apply_filters(records, filters)
    ordered = apply_sort(filtered, sort)
    return QueryResult(items=paginate(ordered, page, page_size), total_count=len(ordered))


def parse_filter(text: str) -> FilterItem:
    """Parse ``field:operator:value`` (value may contain ':').

    Numeric values are compared as numbers for ``>``/``<``.

    Raises:
        ValueError: malformed expression or unknown operator
    """
    parts = text.split(":", 2)
    if len(parts) != 3 or not parts[0]:
        raise ValueError(f"filter must look like field:operator:value, got {text!r}")
    field_name, op, raw = parts
    if op not in OPERATORS:
        raise ValueError(f"unknown filter operator {op!r} (expected one of {', '.join(OPERATORS)})")
    value: Any = raw
    if op in (">", "<"):
        try:
            value = int(raw)
        except ValueError:
            try:
                value = float(raw)
            except ValueError:
                value = raw
    return FilterItem(field=field_name, operator=op, value=value)


def parse_sort(text: str) -> SortItem:
    """Parse ``field[:asc|desc]``; the direction defaults to ascending.

    Raises:
        ValueError: empty field or unknown direction
    """
    field_name, _, direction = text.partition(":")
    direction = direction.strip().lower() or "asc"
    if not field_name:
        raise ValueError(f"sort must look like field[:asc|desc], got {text!r}")
    if direction not in ("asc", "desc"):
        raise ValueError(f"unknown sort direction {direction!r} (expected asc or desc)")
    return SortItem(field=field_name, direction=direction)
