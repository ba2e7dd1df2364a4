from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the catalog tool.

AppConfig is built once at startup by ``libcatalog.config.loader`` and passed
explicitly to every component that needs it.
"""

__all__ = [
    "DatabaseConfig",
    "ImportSettings",
    "AccessConfig",
    "CardSettings",
    "AppConfig",
]


@dataclass(frozen=True)
class DatabaseConfig:
    """Record store connection settings.

    backend="memory" keeps records in process (dry runs and tests).
    For postgres either ``dsn`` or host/user/database must be set.
    """
    backend: str = "postgres"
    dsn: str | None = None
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    table: str = "books"

    def to_dsn(self) -> str:
        if self.dsn:
            return self.dsn
        dsn = (
            f"host={self.host or 'localhost'} port={self.port or 5432} "
            f"user={self.user} dbname={self.database}"
        )
        if self.password:
            dsn += f" password={self.password}"
        return dsn


@dataclass(frozen=True)
class ImportSettings:
    sheet: str | None = None  # None = 先頭シート
    max_reported_failures: int = 15
    error_log_dir: str = "logs"


@dataclass(frozen=True)
class AccessConfig:
    allowed_identities: tuple[str, ...] = ()


@dataclass(frozen=True)
class CardSettings:
    default_type: str = "author"
    default_location: str = "CY"  # 所在記号が空のカードに使う


@dataclass(frozen=True)
class AppConfig:
    """Root configuration object."""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    import_settings: ImportSettings = field(default_factory=ImportSettings)
    access: AccessConfig = field(default_factory=AccessConfig)
    cards: CardSettings = field(default_factory=CardSettings)
