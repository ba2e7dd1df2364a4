from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Field schema shared by the inventory grid, the import coercion and the card formatter.

Each FieldSpec declares the internal record key, the column label used in
spreadsheets and grid headers, the value kind used for coercion and the
display width (grid pixels, converted to characters by the
CLI listing).
"""

__all__ = [
    "ValueKind",
    "FieldSpec",
    "BOOK_FIELDS",
    "ID_FIELD",
    "field_by_name",
]

ID_FIELD = "id"


class ValueKind(Enum):
    """Coercion kind for a declared field."""
    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class FieldSpec:
    name: str  # BookRecord attribute / document key
    display_label: str  # スプレッドシート列見出し
    value_kind: ValueKind = ValueKind.STRING
    width: int = 150


def _coauthor_fields() -> list[FieldSpec]:
    fields: list[FieldSpec] = []
    for n in range(1, 5):
        fields.append(FieldSpec(f"coauthor{n}_surname", f"Co-Author {n} Surname", width=140))
        fields.append(FieldSpec(f"coauthor{n}_first_name", f"Co-Author {n} First Name", width=140))
    return fields


# Grid column order. Coercion walks this list; the id column is display-only.
BOOK_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec(ID_FIELD, "ID", width=250),
    FieldSpec("accession_number", "Accession Number", width=120),
    FieldSpec("title_number", "Title Number", width=100),
    FieldSpec("title", "Title", width=250),
    FieldSpec("author", "Author", width=180),
    *_coauthor_fields(),
    FieldSpec("publisher", "Publisher", width=160),
    FieldSpec("prelim_page", "Prelim Page", width=90),
    FieldSpec("pages", "Pages", width=70),
    FieldSpec("description", "Description", width=160),
    FieldSpec("dimension", "Dimension", width=80),
    FieldSpec("accompanying_materials", "Accompanying Materials", width=160),
    FieldSpec("isbn", "ISBN", width=140),
    FieldSpec("ddc", "DDC", width=100),
    FieldSpec("class_number", "Class Number", width=100),
    FieldSpec("author_notation", "Author Notation", width=100),
    FieldSpec("general_subject", "General Subject", width=180),
    FieldSpec("course_code1", "Course Code 1", width=100),
    FieldSpec("course_code2", "Course Code 2", width=100),
    FieldSpec("course_code3", "Course Code 3", width=100),
    FieldSpec("course_code4", "Course Code 4", width=100),
    FieldSpec("course_code5", "Course Code 5", width=100),
    FieldSpec("department", "Department", width=140),
    FieldSpec("location", "Location", width=100),
    FieldSpec("copyright_year", "Copyright Year", ValueKind.NUMBER, width=100),
    FieldSpec("copy", "Copy", ValueKind.NUMBER, width=50),
    FieldSpec("ris_number", "RIS Number", ValueKind.NUMBER, width=100),
    FieldSpec("date_added", "Date Added", ValueKind.DATE, width=150),
    FieldSpec("remarks", "Remarks", width=150),
)


def field_by_name(name: str, fields: tuple[FieldSpec, ...] = BOOK_FIELDS) -> FieldSpec:
    """Return the FieldSpec with the given internal name.

    Raises:
        KeyError: if no such field is declared
    """
    for f in fields:
        if f.name == name:
            return f
    raise KeyError(name)
