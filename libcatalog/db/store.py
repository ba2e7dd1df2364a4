from __future__ import annotations

import uuid
from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any, Protocol

from ..models.book import BookRecord
from ..services.query import FilterItem, QueryResult, SortItem, run_query

"""Record store interface and the in-memory implementation.

Stores are document-style: a record is an id plus a document body
(``BookRecord.to_document()``). Querying is performed client-side over the
full snapshot (see services.query).
"""

__all__ = [
    "StoreError",
    "NotFoundError",
    "DuplicateAccessionError",
    "RecordStore",
    "InMemoryBookStore",
]


class StoreError(Exception):
    """Backend failure on a store operation."""


class NotFoundError(StoreError):
    """No live record with the requested id."""

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Book not found: {record_id}")
        self.record_id = record_id


class DuplicateAccessionError(StoreError):
    """A live record already uses the accession number."""

    def __init__(self, accession_number: str) -> None:
        super().__init__(f"Duplicate accession number: {accession_number} already exists")
        self.accession_number = accession_number


class RecordStore(Protocol):
    def get_many(
        self,
        page: int = 0,
        page_size: int = 10,
        filters: Sequence[FilterItem] = (),
        sort: Sequence[SortItem] = (),
    ) -> QueryResult: ...

    def get_one(self, record_id: str) -> BookRecord: ...

    def create_one(self, record: BookRecord) -> BookRecord: ...

    def update_one(self, record_id: str, changes: Mapping[str, Any]) -> BookRecord: ...

    def delete_one(self, record_id: str) -> None: ...


class InMemoryBookStore:
    """Dict-backed store, insertion ordered. Used for dry runs and tests."""

    def __init__(self, records: Sequence[BookRecord] = ()) -> None:
        self._docs: dict[str, dict[str, Any]] = {}
        for r in records:
            self.create_one(r)

    def __len__(self) -> int:
        return len(self._docs)

    def snapshot(self) -> list[BookRecord]:
        return [BookRecord.from_document(rid, doc) for rid, doc in self._docs.items()]

    def get_many(
        self,
        page: int = 0,
        page_size: int = 10,
        filters: Sequence[FilterItem] = (),
        sort: Sequence[SortItem] = (),
    ) -> QueryResult:
        return run_query(self.snapshot(), page=page, page_size=page_size, filters=filters, sort=sort)

    def get_one(self, record_id: str) -> BookRecord:
        doc = self._docs.get(record_id)
        if doc is None:
            raise NotFoundError(record_id)
        return BookRecord.from_document(record_id, doc)

    def create_one(self, record: BookRecord) -> BookRecord:
        record_id = record.id or uuid.uuid4().hex
        self._docs[record_id] = record.to_document()
        return record.with_id(record_id)

    def update_one(self, record_id: str, changes: Mapping[str, Any]) -> BookRecord:
        current = self.get_one(record_id)
        unknown = set(changes) - set(BookRecord.field_names())
        if unknown:
            raise StoreError(f"unknown fields: {sorted(unknown)}")
        updated = replace(current, **{k: v for k, v in changes.items() if k != "id"})
        self._docs[record_id] = updated.to_document()
        return updated

    def delete_one(self, record_id: str) -> None:
        if self._docs.pop(record_id, None) is None:
            raise NotFoundError(record_id)
