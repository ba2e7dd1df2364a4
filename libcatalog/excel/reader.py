from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

"""Spreadsheet reader for the bulk import.

The first row of the sheet is the header; every following row becomes one
mapping of header -> raw cell value. Blank cells become None. Only truly
blank cells count as missing: strings such as "NA" or "N/A" are kept as-is
(pandas would otherwise turn them into NaN).
"""

__all__ = [
    "SUPPORTED_SUFFIXES",
    "SpreadsheetReadError",
    "SpreadsheetData",
    "read_spreadsheet",
]

SUPPORTED_SUFFIXES = (".xlsx", ".xls", ".csv")


class SpreadsheetReadError(Exception):
    """Raised when a spreadsheet cannot be opened or parsed."""


@dataclass
class SpreadsheetData:
    sheet_name: str
    columns: list[str]
    rows: list[dict[str, Any]]  # ヘッダ名 -> 生セル値


def _read_frame(path: Path, sheet: str | None) -> tuple[str, pd.DataFrame]:
    # 空セルのみ NaN 扱い (既定の NA 文字列変換は無効化)
    read_opts: dict[str, Any] = {"dtype": object, "keep_default_na": False, "na_values": [""]}
    if path.suffix.lower() == ".csv":
        return path.stem, pd.read_csv(path, **read_opts)

    xls = pd.ExcelFile(path)
    names = [str(n) for n in xls.sheet_names]
    if not names:
        raise SpreadsheetReadError(f"{path.name}: workbook has no sheets")
    if sheet is None:
        name = names[0]
    elif sheet in names:
        name = sheet
    else:
        raise SpreadsheetReadError(f"{path.name}: sheet '{sheet}' not found (available: {names})")
    return name, xls.parse(name, header=0, **read_opts)


def read_spreadsheet(path: Path, sheet: str | None = None) -> SpreadsheetData:
    """Read one sheet of an .xlsx/.xls/.csv file into raw row mappings.

    Parameters
    ----------
    path: spreadsheet file
    sheet: sheet name for workbooks (None = first sheet); ignored for CSV

    Raises
    ------
    SpreadsheetReadError: missing file, unsupported format or unparsable content
    """
    if not path.exists():
        raise SpreadsheetReadError(f"file not found: {path}")
    if path.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise SpreadsheetReadError(
            f"unsupported file type '{path.suffix}' (expected one of {', '.join(SUPPORTED_SUFFIXES)})"
        )
    try:
        sheet_name, df = _read_frame(path, sheet)
    except SpreadsheetReadError:
        raise
    except Exception as e:
        raise SpreadsheetReadError(f"{path.name}: {e}") from e

    columns = [str(c).strip() for c in df.columns]
    rows: list[dict[str, Any]] = []
    for raw in df.itertuples(index=False, name=None):
        row: dict[str, Any] = {}
        for col, val in zip(columns, raw, strict=False):
            row[col] = None if _is_missing(val) else val
        rows.append(row)
    return SpreadsheetData(sheet_name=sheet_name, columns=columns, rows=rows)


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False
