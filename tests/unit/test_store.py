from __future__ import annotations

import pytest

from libcatalog.db.store import InMemoryBookStore, NotFoundError, StoreError
from libcatalog.models.book import BookRecord
from libcatalog.services.query import FilterItem


def test_create_assigns_id_and_round_trips_fields():
    store = InMemoryBookStore()
    created = store.create_one(BookRecord(title="Dune", copy=2))
    assert created.id
    fetched = store.get_one(created.id)
    assert fetched == created
    assert len(store) == 1


def test_get_one_unknown_id():
    with pytest.raises(NotFoundError, match="Book not found: nope"):
        InMemoryBookStore().get_one("nope")


def test_update_one_merges_changes():
    store = InMemoryBookStore()
    created = store.create_one(BookRecord(title="Dune", author="Herbert"))
    updated = store.update_one(created.id, {"title": "Dune Messiah"})
    assert updated.title == "Dune Messiah"
    assert store.get_one(created.id).author == "Herbert"


def test_update_one_rejects_unknown_fields():
    store = InMemoryBookStore()
    created = store.create_one(BookRecord(title="Dune"))
    with pytest.raises(StoreError, match="unknown fields"):
        store.update_one(created.id, {"colour": "red"})


def test_delete_one():
    store = InMemoryBookStore()
    created = store.create_one(BookRecord(title="Dune"))
    store.delete_one(created.id)
    assert len(store) == 0
    with pytest.raises(NotFoundError):
        store.delete_one(created.id)


def test_get_many_filters_and_pages_snapshot():
    store = InMemoryBookStore([BookRecord(title=f"Book {i}", ddc="005" if i % 2 else "100") for i in range(7)])
    result = store.get_many(page=0, page_size=2, filters=[FilterItem("ddc", "equals", "005")])
    assert result.total_count == 3
    assert [r.title for r in result.items] == ["Book 1", "Book 3"]


def test_document_excludes_id_and_empty_fields():
    record = BookRecord(id="x", title="Dune", author=None)
    assert record.to_document() == {"title": "Dune"}
    assert BookRecord.from_document("x", {"title": "Dune", "legacy": 1}) == record
