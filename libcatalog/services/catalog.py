from __future__ import annotations

import logging

from ..db.store import DuplicateAccessionError, RecordStore
from ..models.book import BookRecord
from .query import FilterItem

"""Record creation with the accession-number uniqueness pre-check.

The check is a read followed by a separate write. Two sessions creating the
same accession number at the same time can both pass it; the store enforces
no uniqueness constraint of its own.
"""

__all__ = [
    "accession_exists",
    "create_book",
]

logger = logging.getLogger(__name__)


def accession_exists(store: RecordStore, accession_number: str) -> bool:
    result = store.get_many(
        page=0,
        page_size=1,
        filters=[FilterItem(field="accession_number", operator="equals", value=accession_number)],
    )
    return result.total_count > 0


def create_book(store: RecordStore, record: BookRecord) -> BookRecord:
    """Create ``record`` unless its accession number is already in use.

    Raises:
        DuplicateAccessionError: a live record has the same accession number
        StoreError: the store rejected the write
    """
    if record.accession_number and accession_exists(store, record.accession_number):
        raise DuplicateAccessionError(record.accession_number)
    created = store.create_one(record)
    logger.debug("created book id=%s accession=%s", created.id, created.accession_number)
    return created
