# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Iterator
from pathlib import Path

import pandas as pd
import pytest

from libcatalog.logging.init import reset_logging


@pytest.fixture()
def temp_workdir(monkeypatch) -> Iterator[Path]:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    # シェル側の接続設定・利用者をテストに持ち込まない
    for var in ("PGDSN", "DATABASE_URL", "PGHOST", "PGPORT", "PGUSER", "PGPASSWORD", "PGDATABASE", "LIBCAT_USER"):
        monkeypatch.delenv(var, raising=False)
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """database:
  backend: memory
  table: books
import:
  max_reported_failures: 15
  error_log_dir: logs
access:
  allowed_identities:
    - Librarian@Example.org
    - admin@example.org
cards:
  default_type: author
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "catalog.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def valid_row() -> dict[str, object]:
    """A spreadsheet row (header -> cell) that passes every rule."""
    return {
        "Accession Number": "A100",
        "Title": "Intro to Databases",
        "Author": "Codd, Edgar F.",
        "Class Number": "QA76.9",
        "Author Notation": "C64",
        "DDC": "005.74",
        "Copyright Year": 2020,
        "Copy": 1,
        "RIS Number": 5501,
        "Date Added": 45306,
        "ISBN": "978-0-13-468599-1",
    }


def _write_excel(path: Path, rows: list[dict[str, object]], sheet_name: str = "Books") -> Path:
    df = pd.DataFrame(rows)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
    return path


@pytest.fixture()
def make_excel_file():
    """Write rows as a real .xlsx (header from the first row's keys)."""
    return _write_excel
