from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Any

"""BookRecord domain model.

A BookRecord is one catalog entry as held by the record store. Every
bibliographic field is optional at the model level; the import validator
decides which fields a newly created record must carry.
"""

__all__ = [
    "BookRecord",
    "INTEGER_FIELDS",
]

# Fields stored as integers once validated
INTEGER_FIELDS = frozenset({"copyright_year", "copy", "ris_number"})


@dataclass(frozen=True)
class BookRecord:
    """Catalog entry. ``id`` is assigned by the store on creation."""
    id: str | None = None
    # identifiers
    accession_number: str | None = None
    title_number: str | None = None
    isbn: str | None = None
    # bibliographic
    title: str | None = None
    author: str | None = None
    coauthor1_surname: str | None = None
    coauthor1_first_name: str | None = None
    coauthor2_surname: str | None = None
    coauthor2_first_name: str | None = None
    coauthor3_surname: str | None = None
    coauthor3_first_name: str | None = None
    coauthor4_surname: str | None = None
    coauthor4_first_name: str | None = None
    publisher: str | None = None
    prelim_page: str | None = None
    pages: str | None = None
    description: str | None = None
    dimension: str | None = None
    accompanying_materials: str | None = None
    # classification
    ddc: str | None = None
    class_number: str | None = None
    author_notation: str | None = None
    general_subject: str | None = None
    course_code1: str | None = None
    course_code2: str | None = None
    course_code3: str | None = None
    course_code4: str | None = None
    course_code5: str | None = None
    department: str | None = None
    location: str | None = None
    # administrative
    copyright_year: int | None = None
    copy: int | None = None
    ris_number: int | None = None
    date_added: str | None = None
    remarks: str | None = None

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def from_document(cls, record_id: str | None, data: dict[str, Any]) -> BookRecord:
        """Build a record from a stored document; unknown keys are ignored."""
        known = set(cls.field_names())
        values = {k: v for k, v in data.items() if k in known and k != "id"}
        return cls(id=record_id, **values)

    def to_document(self) -> dict[str, Any]:
        """Document body for the store: id excluded, absent fields dropped."""
        return {k: v for k, v in asdict(self).items() if k != "id" and v is not None}

    def with_id(self, record_id: str) -> BookRecord:
        return replace(self, id=record_id)

    def get(self, name: str, default: Any = None) -> Any:
        return getattr(self, name, default)
