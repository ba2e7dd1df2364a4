from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import jsonschema
from jsonschema.exceptions import SchemaError

from ..models.book import INTEGER_FIELDS, BookRecord
from ..models.import_row import Violation

"""Record validation for newly imported books.

Each rule is a JSON schema fragment checked with jsonschema against one
field's value. Every rule is evaluated (no short-circuit) and violations are
reported in rule order, one per field. Expected validation failures are
returned, never raised; only a broken rule schema raises RecordSchemaError.
"""

__all__ = [
    "MIN_COPYRIGHT_YEAR",
    "FUTURE_YEAR_ALLOWANCE",
    "ISBN_LENGTH",
    "FieldRule",
    "RecordSchemaError",
    "ValidationResult",
    "build_rules",
    "validate_record",
    "check_rules",
]

MIN_COPYRIGHT_YEAR = 1000
FUTURE_YEAR_ALLOWANCE = 5
ISBN_LENGTH = 13

NON_BLANK = {"type": "string", "pattern": r"\S"}


class RecordSchemaError(Exception):
    """Raised when a validation rule's schema is itself invalid."""


@dataclass(frozen=True)
class FieldRule:
    """Validation rule for one field.

    ``messages`` maps a failing jsonschema keyword (type, pattern, minimum,
    ...) to the violation text; ``"required"`` is used when the field is
    absent.
    """
    field: str
    schema: dict[str, Any]
    required: bool
    messages: dict[str, str]
    default_message: str = "is invalid"

    def message_for(self, keyword: str) -> str:
        return self.messages.get(keyword, self.default_message)


@dataclass(frozen=True)
class ValidationResult:
    record: BookRecord | None = None
    violations: tuple[Violation, ...] = field(default_factory=tuple)

    @property
    def is_valid(self) -> bool:
        return self.record is not None


def _required_text(name: str, label: str) -> FieldRule:
    return FieldRule(
        field=name,
        schema=NON_BLANK,
        required=True,
        messages={"required": f"{label} is required", "pattern": f"{label} is required",
                  "type": f"{label} must be text"},
    )


def _positive_integer(name: str, label: str) -> FieldRule:
    return FieldRule(
        field=name,
        schema={"type": "integer", "minimum": 1},
        required=True,
        messages={"required": f"{label} is required", "type": f"{label} must be a whole number",
                  "minimum": f"{label} must be at least 1"},
    )


def build_rules(current_year: int) -> list[FieldRule]:
    """Rules in reporting order; the copyright bound depends on ``current_year``."""
    max_year = current_year + FUTURE_YEAR_ALLOWANCE
    year_range = f"Copyright Year must be between {MIN_COPYRIGHT_YEAR} and {max_year}"
    return [
        _required_text("accession_number", "Accession Number"),
        _required_text("title", "Title"),
        _required_text("class_number", "Class Number"),
        _required_text("author_notation", "Author Notation"),
        _required_text("ddc", "DDC"),
        FieldRule(
            field="copyright_year",
            schema={"type": "integer", "minimum": MIN_COPYRIGHT_YEAR, "maximum": max_year},
            required=True,
            messages={"required": "Copyright Year is required",
                      "type": "Copyright Year must be a whole number",
                      "minimum": year_range, "maximum": year_range},
        ),
        _positive_integer("copy", "Copy"),
        _positive_integer("ris_number", "RIS Number"),
        _required_text("date_added", "Date Added"),
        FieldRule(
            field="isbn",
            # ハイフンを除いてちょうど13文字
            schema={"type": "string", "pattern": r"^-*(?:[^-]-*){%d}$" % ISBN_LENGTH},
            required=False,
            messages={"type": "ISBN must be text",
                      "pattern": f"ISBN must have exactly {ISBN_LENGTH} digits once hyphens are removed"},
        ),
    ]


def _compile(rule: FieldRule) -> jsonschema.Draft7Validator:
    try:
        jsonschema.Draft7Validator.check_schema(rule.schema)
    except SchemaError as e:
        raise RecordSchemaError(f"invalid rule schema for '{rule.field}': {e.message}") from e
    return jsonschema.Draft7Validator(rule.schema)


def _normalize(values: Mapping[str, Any]) -> BookRecord:
    known = set(BookRecord.field_names())
    data: dict[str, Any] = {}
    for key, value in values.items():
        if key not in known or key == "id":
            continue
        if key in INTEGER_FIELDS and isinstance(value, float):
            value = int(value)
        elif isinstance(value, str):
            value = value.strip()
        data[key] = value
    return BookRecord(**data)


def validate_record(
    values: Mapping[str, Any],
    current_year: int | None = None,
    rules: list[FieldRule] | None = None,
) -> ValidationResult:
    """Validate coerced field values.

    Args:
        values: coerced (partial) record fields
        current_year: reference year for the copyright bound (default: now, UTC)
        rules: override rule list

    Returns:
        ValidationResult with either ``record`` (normalized BookRecord) or a
        non-empty ``violations`` tuple.

    Raises:
        RecordSchemaError: a rule's schema is not a valid JSON schema
    """
    if current_year is None:
        current_year = datetime.now(UTC).year
    if rules is None:
        rules = build_rules(current_year)

    violations: list[Violation] = []
    for rule in rules:
        validator = _compile(rule)
        if rule.field not in values or values[rule.field] is None:
            if rule.required:
                violations.append(Violation(rule.field, rule.message_for("required")))
            continue
        # 最初のエラーのみ採用 (1 フィールド 1 違反)
        error = next(iter(validator.iter_errors(values[rule.field])), None)
        if error is not None:
            violations.append(Violation(rule.field, rule.message_for(str(error.validator))))

    if violations:
        return ValidationResult(violations=tuple(violations))
    return ValidationResult(record=_normalize(values))


def check_rules(rules: list[FieldRule]) -> None:
    """Compile every rule once so a broken schema fails before any row is read."""
    for rule in rules:
        _compile(rule)
