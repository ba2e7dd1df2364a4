from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import SchemaError

from ..models.config_models import AccessConfig, AppConfig, CardSettings, DatabaseConfig, ImportSettings

"""Config loader.

Responsibilities:
- Load the YAML config file (default config/catalog.yml)
- Validate it against config_schema.json, collecting every violation
- Apply explicit environment overrides for the database connection
- Report required-field gaps as a startup failure list (validate_startup)
"""

__all__ = [
    "ConfigError",
    "SCHEMA_PATH",
    "DEFAULT_CONFIG_PATH",
    "load_config",
    "validate_startup",
]

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/catalog.yml")

# env var -> DatabaseConfig field; DATABASE_URL wins over PGDSN
ENV_OVERRIDES: tuple[tuple[str, str], ...] = (
    ("PGDSN", "dsn"),
    ("DATABASE_URL", "dsn"),
    ("PGHOST", "host"),
    ("PGPORT", "port"),
    ("PGUSER", "user"),
    ("PGPASSWORD", "password"),
    ("PGDATABASE", "database"),
)


class ConfigError(Exception):
    """Raised when the config file is missing, unparsable or schema-invalid."""

    def __init__(self, message: str, problems: list[str] | None = None) -> None:
        super().__init__(message)
        self.problems = problems or [message]


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing/invalid, or data violating it. All
            violations are reported in ``problems``.
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        validator = jsonschema.Draft7Validator(schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except SchemaError as e:
        raise ConfigError(f"invalid schema file: {e.message}") from e

    errors = sorted(validator.iter_errors(data), key=lambda err: list(err.absolute_path))
    if errors:
        problems = []
        for err in errors:
            where = ".".join(str(p) for p in err.absolute_path) or "<root>"
            problems.append(f"{where}: {err.message}")
        raise ConfigError(f"config validation failed: {'; '.join(problems)}", problems)


def _apply_env_overrides(db_raw: dict[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    merged = dict(db_raw)
    for var, key in ENV_OVERRIDES:
        value = env.get(var)
        if not value:
            continue
        if key == "port":
            try:
                merged[key] = int(value)
            except ValueError as e:
                raise ConfigError(f"{var} must be an integer, got {value!r}") from e
        else:
            merged[key] = value
    return merged


def load_config(path: Path, env: Mapping[str, str] | None = None) -> AppConfig:
    """Load and validate the YAML config at ``path``.

    ``env`` supplies connection overrides (the CLI passes os.environ after
    loading .env); None means no overrides.
    """
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    db_raw = _apply_env_overrides(data.get("database") or {}, env or {})
    database = DatabaseConfig(
        backend=db_raw.get("backend", "postgres"),
        dsn=db_raw.get("dsn"),
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        table=db_raw.get("table", "books"),
    )
    imp_raw = data.get("import") or {}
    import_settings = ImportSettings(
        sheet=imp_raw.get("sheet"),
        max_reported_failures=imp_raw.get("max_reported_failures", 15),
        error_log_dir=imp_raw.get("error_log_dir", "logs"),
    )
    access = AccessConfig(
        allowed_identities=tuple(s.strip().lower() for s in data["access"]["allowed_identities"]),
    )
    cards_raw = data.get("cards") or {}
    cards = CardSettings(
        default_type=cards_raw.get("default_type", "author"),
        default_location=cards_raw.get("default_location", "CY"),
    )
    return AppConfig(database=database, import_settings=import_settings, access=access, cards=cards)


def validate_startup(config: AppConfig) -> list[str]:
    """Return required-field failures that must stop startup (empty = OK)."""
    problems: list[str] = []
    db = config.database
    if db.backend == "postgres" and not db.dsn:
        for name in ("host", "user", "database"):
            if not getattr(db, name):
                problems.append(f"database.{name} is required when no dsn is configured")
    if not config.access.allowed_identities:
        problems.append("access.allowed_identities must list at least one identity")
    return problems
