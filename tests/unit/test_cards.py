from __future__ import annotations

import pytest

from libcatalog.models.book import BookRecord
from libcatalog.services.cards import (
    CARD_COLUMNS,
    CARD_ROWS,
    LEFT_COLUMN_WIDTH,
    CardType,
    build_collation_line,
    build_imprint_line,
    build_primary_entry,
    build_tracing_line,
    format_card,
    render_card,
)


@pytest.fixture()
def book() -> BookRecord:
    return BookRecord(
        id="b1",
        accession_number="A100",
        title_number="T-7",
        title="Intro to Databases",
        author="Codd, Edgar F.",
        publisher="Pearson",
        copyright_year=2020,
        prelim_page="xii",
        pages="200",
        dimension="24",
        isbn="978-0-13-468599-1",
        ddc="005.74",
        class_number="QA76.9",
        author_notation="C64",
        general_subject="Databases",
        location="Filipiniana",
        copy=1,
        ris_number=5501,
    )


def test_collation_line(book):
    assert build_collation_line(book) == "xii, 200 pages ; 24cm."


def test_collation_line_with_description_and_materials():
    record = BookRecord(pages="310", description="ill.", dimension="23", accompanying_materials="1 CD-ROM")
    assert build_collation_line(record) == "310 pages : ill. ; 23cm. + 1 CD-ROM."


def test_tracing_and_imprint(book):
    assert build_tracing_line(book) == "1. Databases."
    assert build_imprint_line(book) == "Intro to Databases / Codd, Edgar F. -- Pearson, 2020."


def test_imprint_omits_missing_parts():
    assert build_imprint_line(BookRecord(title="Dune")) == "Dune."
    assert build_imprint_line(BookRecord(title="Dune", publisher="Chilton")) == "Dune -- Chilton."
    assert build_imprint_line(BookRecord()) == ""


def test_primary_entry_depends_on_card_type(book):
    assert build_primary_entry(book, CardType.AUTHOR) == "Codd, Edgar F."
    assert build_primary_entry(book, CardType.TITLE) == "Intro to Databases."
    assert build_primary_entry(book, CardType.SUBJECT) == "DATABASES."


def test_card_type_parse():
    assert CardType.parse("Author Card") is CardType.AUTHOR
    assert CardType.parse("title") is CardType.TITLE
    assert CardType.parse(CardType.SUBJECT) is CardType.SUBJECT
    assert CardType.SUBJECT.label == "Subject Card"
    with pytest.raises(ValueError):
        CardType.parse("shelf")


def test_format_card_fragments(book):
    card = format_card(book, "title")
    assert card.secondary_entry == "Codd, Edgar F."
    assert card.isbn == "ISBN 978-0-13-468599-1."
    assert card.call_number == ["Filipiniana", "005.74 QA76.9", "C64", "2020"]
    assert card.holdings == ["Acc. #: A100", "Title #: T-7", "RIS #: 5501", "Copy: 1"]
    assert card.width_cm == 12.7


def test_author_card_has_no_secondary_entry(book):
    assert format_card(book, CardType.AUTHOR).secondary_entry == ""


def test_format_card_tolerates_empty_record():
    card = format_card(BookRecord(), "subject")
    assert card.primary_entry == ""
    assert card.call_number == ["CY"]
    assert card.holdings == []


def test_default_location_is_configurable(book):
    assert format_card(BookRecord(ddc="005"), "author", default_location="MAIN").call_number == ["MAIN", "005"]
    assert format_card(BookRecord(ddc="005"), "author", default_location="").call_number == ["005"]
    assert format_card(book, "author", default_location="MAIN").call_number[0] == "Filipiniana"
    assert card.holdings == []


def test_render_card_grid(book):
    lines = render_card(format_card(book, "author")).split("\n")
    assert len(lines) == CARD_ROWS
    assert all(len(line) == CARD_COLUMNS for line in lines)
    # 左ブロック: 上に請求記号, 下に所蔵情報
    assert lines[0][:LEFT_COLUMN_WIDTH].rstrip() == "Filipiniana"
    assert lines[1][:LEFT_COLUMN_WIDTH].rstrip() == "005.74 QA76.9"
    assert lines[-1][:LEFT_COLUMN_WIDTH].rstrip() == "Copy: 1"
    assert lines[-4][:LEFT_COLUMN_WIDTH].rstrip() == "Acc. #: A100"
    # 本文は 2 行目から
    assert lines[0][LEFT_COLUMN_WIDTH:].strip() == ""
    assert lines[1][LEFT_COLUMN_WIDTH:].rstrip() == "Codd, Edgar F."
    body = "\n".join(line[LEFT_COLUMN_WIDTH:] for line in lines)
    assert "xii, 200 pages ; 24cm." in body
    assert "1. Databases." in body


def test_render_card_wraps_long_titles_with_hanging_indent():
    record = BookRecord(author="Writer", title="A " * 60, publisher="Press")
    lines = render_card(format_card(record, "author")).split("\n")
    body = [line[LEFT_COLUMN_WIDTH:] for line in lines]
    assert body[2].startswith("  A A")
    assert body[3].startswith("    A")
