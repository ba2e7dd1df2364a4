from __future__ import annotations

import uuid
from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any

import psycopg2
from psycopg2.extras import Json

from ..models.book import BookRecord
from ..services.query import FilterItem, QueryResult, SortItem, run_query
from .store import NotFoundError, StoreError

"""PostgreSQL-backed document store.

Records live in a single table ``<table>(id TEXT PRIMARY KEY, data JSONB,
created_at TIMESTAMPTZ)``. get_many loads the full snapshot and applies the
query client-side. Each write runs in its own transaction (commit on
success, rollback on failure); driver errors surface as StoreError.
"""

__all__ = [
    "PostgresBookStore",
    "connect",
]


def connect(dsn: str) -> Any:
    """Open a psycopg2 connection with explicit transaction control."""
    try:
        conn = psycopg2.connect(dsn)
    except psycopg2.Error as e:
        raise StoreError(f"database connection failed: {e}") from e
    conn.autocommit = False
    return conn


class PostgresBookStore:
    def __init__(self, conn: Any, table: str = "books") -> None:
        if not table.replace("_", "").isalnum():
            raise StoreError(f"invalid table name: {table!r}")
        self.conn = conn
        self.table = table
        self._last_rowcount = 0

    def _execute(self, sql: str, params: tuple[Any, ...] = (), fetch: bool = False) -> list[tuple[Any, ...]]:
        try:
            with self.conn.cursor() as cur:
                cur.execute(sql, params)
                rows = cur.fetchall() if fetch else []
                rowcount = cur.rowcount
            self.conn.commit()
        except psycopg2.Error as e:
            self.conn.rollback()
            raise StoreError(str(e).strip()) from e
        self._last_rowcount = rowcount
        return rows

    def ensure_schema(self) -> None:
        self._execute(
            f"CREATE TABLE IF NOT EXISTS {self.table} ("
            "id TEXT PRIMARY KEY, "
            "data JSONB NOT NULL, "
            "created_at TIMESTAMPTZ NOT NULL DEFAULT now())"
        )

    def snapshot(self) -> list[BookRecord]:
        rows = self._execute(f"SELECT id, data FROM {self.table} ORDER BY created_at, id", fetch=True)
        return [BookRecord.from_document(rid, data or {}) for rid, data in rows]

    def get_many(
        self,
        page: int = 0,
        page_size: int = 10,
        filters: Sequence[FilterItem] = (),
        sort: Sequence[SortItem] = (),
    ) -> QueryResult:
        return run_query(self.snapshot(), page=page, page_size=page_size, filters=filters, sort=sort)

    def get_one(self, record_id: str) -> BookRecord:
        rows = self._execute(f"SELECT id, data FROM {self.table} WHERE id = %s", (record_id,), fetch=True)
        if not rows:
            raise NotFoundError(record_id)
        rid, data = rows[0]
        return BookRecord.from_document(rid, data or {})

    def create_one(self, record: BookRecord) -> BookRecord:
        record_id = record.id or uuid.uuid4().hex
        self._execute(
            f"INSERT INTO {self.table} (id, data) VALUES (%s, %s)",
            (record_id, Json(record.to_document())),
        )
        return record.with_id(record_id)

    def update_one(self, record_id: str, changes: Mapping[str, Any]) -> BookRecord:
        unknown = set(changes) - set(BookRecord.field_names())
        if unknown:
            raise StoreError(f"unknown fields: {sorted(unknown)}")
        updated = replace(self.get_one(record_id), **{k: v for k, v in changes.items() if k != "id"})
        self._execute(
            f"UPDATE {self.table} SET data = %s WHERE id = %s",
            (Json(updated.to_document()), record_id),
        )
        if self._last_rowcount == 0:
            raise NotFoundError(record_id)
        return updated

    def delete_one(self, record_id: str) -> None:
        self._execute(f"DELETE FROM {self.table} WHERE id = %s", (record_id,))
        if self._last_rowcount == 0:
            raise NotFoundError(record_id)
