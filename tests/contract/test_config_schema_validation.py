from __future__ import annotations

import json
from pathlib import Path

import jsonschema
import yaml

from libcatalog.config.loader import SCHEMA_PATH

EXAMPLE_CONFIG = Path(__file__).resolve().parents[2] / "config" / "catalog.example.yml"


def _schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_bundled_schema_is_valid_draft7():
    schema = _schema()
    jsonschema.Draft7Validator.check_schema(schema)
    assert set(schema["required"]) == {"database", "access"}


def test_example_config_is_accepted():
    data = yaml.safe_load(EXAMPLE_CONFIG.read_text(encoding="utf-8"))
    assert list(jsonschema.Draft7Validator(_schema()).iter_errors(data)) == []
