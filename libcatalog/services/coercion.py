from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from typing import Any

import pandas as pd

from ..models.field_schema import BOOK_FIELDS, ID_FIELD, FieldSpec, ValueKind

"""Row coercion: raw spreadsheet cells -> typed record fields.

For each declared field the matching column is found by case-insensitive
comparison with the display label, then with the internal name. Empty cells
are omitted (never stored as empty strings); cells that cannot be converted
to the field's kind are omitted with a warning.
"""

__all__ = [
    "SERIAL_EPOCH",
    "TRUE_STRINGS",
    "CoercionResult",
    "coerce_row",
    "coerce_value",
    "CoercionFailure",
]

logger = logging.getLogger(__name__)

# Spreadsheet serial of 1970-01-01; larger numbers in a date column are serials
SERIAL_EPOCH = 25569
MS_PER_DAY = 86400 * 1000
UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})


class CoercionFailure(ValueError):
    """A cell value could not be converted to its field's kind."""


@dataclass(frozen=True)
class CoercionResult:
    values: dict[str, Any]
    warnings: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.values


def _normalize_key(key: Any) -> str:
    return str(key).strip().lower()


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, float) and math.isnan(value):
        return True
    try:
        return value is pd.NaT or bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _to_number(value: Any) -> int | float:
    if _is_number(value):
        number = float(value)
    else:
        try:
            number = float(str(value).strip().replace(",", ""))
        except ValueError as e:
            raise CoercionFailure(f"could not parse {value!r} as a number") from e
    if not math.isfinite(number):
        raise CoercionFailure(f"could not parse {value!r} as a number")
    return int(number) if number.is_integer() else number


def _iso_utc(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    else:
        dt = dt.astimezone(UTC)
    return dt.isoformat().replace("+00:00", "Z")


def _to_date(value: Any) -> str:
    try:
        return _convert_date(value)
    except (OverflowError, ValueError) as e:
        if isinstance(e, CoercionFailure):
            raise
        raise CoercionFailure(f"{value!r} is out of the supported date range") from e


def _convert_date(value: Any) -> str:
    if isinstance(value, pd.Timestamp):
        return _iso_utc(value.to_pydatetime())
    if isinstance(value, datetime):
        return _iso_utc(value)
    if isinstance(value, date):
        return _iso_utc(datetime(value.year, value.month, value.day))
    if _is_number(value):
        if value <= SERIAL_EPOCH:
            raise CoercionFailure(f"{value!r} is not a spreadsheet date serial")
        offset_ms = round((value - SERIAL_EPOCH) * MS_PER_DAY)
        return _iso_utc(UNIX_EPOCH + timedelta(milliseconds=offset_ms))
    if isinstance(value, str):
        try:
            parsed = pd.to_datetime(value.strip())
        except (ValueError, TypeError, OverflowError) as e:
            raise CoercionFailure(f"could not parse {value!r} as a date") from e
        if parsed is pd.NaT:
            raise CoercionFailure(f"could not parse {value!r} as a date")
        return _iso_utc(parsed.to_pydatetime())
    raise CoercionFailure(f"unsupported date value {value!r}")


def _to_boolean(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return bool(value)


def _to_string(value: Any) -> str:
    # Excel の数値セル (ISBN, 受入番号など) は 9780134685991.0 のように読まれる
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    return str(value).strip()


def coerce_value(value: Any, kind: ValueKind) -> Any:
    """Convert one non-blank cell value to ``kind``.

    Raises:
        CoercionFailure: the value cannot be represented as ``kind``
    """
    if kind is ValueKind.NUMBER:
        return _to_number(value)
    if kind is ValueKind.DATE:
        return _to_date(value)
    if kind is ValueKind.BOOLEAN:
        return _to_boolean(value)
    return _to_string(value)


def coerce_row(
    raw: Mapping[Any, Any],
    fields: tuple[FieldSpec, ...] = BOOK_FIELDS,
    row_number: int | None = None,
) -> CoercionResult:
    """Map one raw spreadsheet row to typed record fields.

    Args:
        raw: header -> cell value mapping for one row
        fields: declared field schema
        row_number: spreadsheet row number, used only in warning text

    Returns:
        CoercionResult with the present fields and any coercion warnings.
        The identifier field never appears in the values.
    """
    normalized: dict[str, Any] = {}
    for key, value in raw.items():
        # 同名ヘッダは先勝ち
        normalized.setdefault(_normalize_key(key), value)

    values: dict[str, Any] = {}
    warnings: list[str] = []
    for spec in fields:
        if spec.name == ID_FIELD:
            continue
        label_key = _normalize_key(spec.display_label)
        name_key = _normalize_key(spec.name)
        if label_key in normalized:
            cell = normalized[label_key]
        else:
            cell = normalized.get(name_key)
        if _is_blank(cell):
            continue
        try:
            values[spec.name] = coerce_value(cell, spec.value_kind)
        except CoercionFailure as e:
            prefix = f"Row {row_number}: " if row_number is not None else ""
            msg = f"{prefix}field '{spec.name}' dropped: {e}"
            warnings.append(msg)
            logger.warning(msg)
    return CoercionResult(values=values, warnings=warnings)
