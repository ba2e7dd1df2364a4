from __future__ import annotations

import textwrap
from dataclasses import dataclass, field
from enum import Enum

from ..models.book import BookRecord

"""Catalog card formatting.

A card is a fixed 5 x 3 inch region rendered on a monospace character grid:
a narrow left block (call number on top, holdings at the bottom) and the
bibliographic body on the right. Body paragraphs use hanging indentation.
Missing fields are left out; formatting never raises.
"""

__all__ = [
    "CARD_WIDTH_CM",
    "CARD_HEIGHT_CM",
    "CARD_COLUMNS",
    "CARD_ROWS",
    "LEFT_COLUMN_WIDTH",
    "DEFAULT_LOCATION",
    "CardType",
    "CatalogCard",
    "build_collation_line",
    "build_tracing_line",
    "build_imprint_line",
    "build_primary_entry",
    "format_card",
    "render_card",
]

CARD_WIDTH_CM = 12.7
CARD_HEIGHT_CM = 7.62

CARD_COLUMNS = 80
CARD_ROWS = 18
LEFT_COLUMN_WIDTH = 20
BODY_WIDTH = CARD_COLUMNS - LEFT_COLUMN_WIDTH

# 所在記号なしの場合の既定値
DEFAULT_LOCATION = "CY"

# body-relative indents (characters)
ENTRY_INDENT = 0
PARAGRAPH_INDENT = 2
HANGING_INDENT = 4


class CardType(Enum):
    AUTHOR = "author"
    TITLE = "title"
    SUBJECT = "subject"

    @classmethod
    def parse(cls, value: str | CardType) -> CardType:
        """Accept ``author``, ``Author``, ``Author Card`` and the like."""
        if isinstance(value, CardType):
            return value
        key = value.strip().lower().removesuffix("card").strip()
        try:
            return cls(key)
        except ValueError:
            raise ValueError(
                f"unknown card type {value!r} (expected author, title or subject)"
            ) from None

    @property
    def label(self) -> str:
        return f"{self.value.capitalize()} Card"


def _text(record: BookRecord, name: str) -> str:
    value = record.get(name)
    if value is None:
        return ""
    return str(value).strip()


def _terminate(text: str) -> str:
    if not text:
        return ""
    return text if text.endswith(".") else f"{text}."


def build_collation_line(record: BookRecord) -> str:
    """Physical description, e.g. ``xii, 200 pages : ill. ; 24cm. + 1 CD-ROM.``"""
    prelim = _text(record, "prelim_page")
    pages = _text(record, "pages")
    description = _text(record, "description")
    dimension = _text(record, "dimension")
    materials = _text(record, "accompanying_materials")

    parts: list[str] = []
    if prelim and pages:
        parts.append(f"{prelim}, {pages} pages")
    elif pages:
        parts.append(f"{pages} pages")
    if description:
        parts.append(f": {description}")
    if dimension:
        parts.append(f"; {dimension}cm.")
    if materials:
        parts.append(f"+ {materials}.")
    return " ".join(parts).strip()


def build_tracing_line(record: BookRecord) -> str:
    # コースコードはトレーシングに含めない
    subjects = [s for s in (_text(record, "general_subject"),) if s]
    if not subjects:
        return ""
    return " ".join(f"{i}. {s}" for i, s in enumerate(subjects, start=1)) + "."


def build_imprint_line(record: BookRecord) -> str:
    """Title statement and publication, ``<title> / <author> -- <publisher>, <year>.``"""
    title = _text(record, "title")
    author = _text(record, "author")
    statement = f"{title} / {author}" if title and author else (title or author)
    publication = ", ".join(p for p in (_text(record, "publisher"), _text(record, "copyright_year")) if p)
    if statement and publication:
        return f"{statement} -- {publication}."
    if statement or publication:
        return f"{statement or publication}."
    return ""


def build_primary_entry(record: BookRecord, card_type: CardType) -> str:
    if card_type is CardType.AUTHOR:
        heading = _text(record, "author")
    elif card_type is CardType.TITLE:
        heading = _text(record, "title")
    else:
        heading = _text(record, "general_subject").upper()
    return _terminate(heading)


@dataclass(frozen=True)
class CatalogCard:
    card_type: CardType
    primary_entry: str
    secondary_entry: str  # 標目以外のカードの著者行
    imprint: str
    collation: str
    isbn: str
    notes: str
    tracing: str
    call_number: list[str] = field(default_factory=list)  # left block, top-down
    holdings: list[str] = field(default_factory=list)  # left block, bottom-left
    width_cm: float = CARD_WIDTH_CM
    height_cm: float = CARD_HEIGHT_CM


def format_card(
    record: BookRecord,
    card_type: CardType | str,
    default_location: str = DEFAULT_LOCATION,
) -> CatalogCard:
    """Assemble the text fragments of one catalog card.

    ``default_location`` heads the call number when the record has no location.
    """
    card_type = CardType.parse(card_type)
    author = _text(record, "author")

    call_number = [
        _text(record, "location") or default_location,
        " ".join(p for p in (_text(record, "ddc"), _text(record, "class_number")) if p),
        _text(record, "author_notation"),
        _text(record, "copyright_year"),
    ]
    holdings = [
        f"{label}: {value}"
        for label, value in (
            ("Acc. #", _text(record, "accession_number")),
            ("Title #", _text(record, "title_number")),
            ("RIS #", _text(record, "ris_number")),
            ("Copy", _text(record, "copy")),
        )
        if value
    ]
    isbn = _text(record, "isbn")
    remarks = _text(record, "remarks")
    return CatalogCard(
        card_type=card_type,
        primary_entry=build_primary_entry(record, card_type),
        secondary_entry=_terminate(author) if card_type is not CardType.AUTHOR else "",
        imprint=build_imprint_line(record),
        collation=build_collation_line(record),
        isbn=f"ISBN {isbn}." if isbn else "",
        notes=f"Notes: {remarks}." if remarks else "",
        tracing=build_tracing_line(record),
        call_number=[line for line in call_number if line],
        holdings=holdings,
    )


def _wrap(text: str, first: int, rest: int, width: int) -> list[str]:
    if not text:
        return []
    return textwrap.wrap(
        text,
        width=width,
        initial_indent=" " * first,
        subsequent_indent=" " * rest,
        break_long_words=True,
    )


def _body_lines(card: CatalogCard, width: int) -> list[str]:
    lines: list[str] = []
    lines += _wrap(card.primary_entry, ENTRY_INDENT, HANGING_INDENT, width)
    lines += _wrap(card.secondary_entry, ENTRY_INDENT, HANGING_INDENT, width)
    for paragraph in (card.imprint, card.collation, card.isbn, card.notes):
        lines += _wrap(paragraph, PARAGRAPH_INDENT, HANGING_INDENT, width)
    if card.tracing:
        lines.append("")
        lines += _wrap(card.tracing, PARAGRAPH_INDENT, HANGING_INDENT, width)
    return lines


def render_card(card: CatalogCard, columns: int = CARD_COLUMNS, rows: int = CARD_ROWS) -> str:
    """Render the card as exactly ``rows`` lines of ``columns`` characters.

    Body text starts on the second line; anything that does not fit the card
    is cut off, as on the printed card.
    """
    left_width = min(LEFT_COLUMN_WIDTH, columns)
    body_width = max(columns - left_width, 1)
    left = [""] * rows
    for i, line in enumerate(card.call_number[:rows]):
        left[i] = line
    for i, line in enumerate(reversed(card.holdings)):
        idx = rows - 1 - i
        if idx < 0:
            break
        left[idx] = line

    body = [""] + _body_lines(card, body_width)
    grid: list[str] = []
    for i in range(rows):
        left_cell = left[i][: left_width - 1].ljust(left_width)
        body_cell = body[i] if i < len(body) else ""
        grid.append((left_cell + body_cell)[:columns].ljust(columns))
    return "\n".join(grid)
