"""Primary store configuration and adapter factory."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from blobhooks.persistence.adapter import PersistenceAdapter

_SQLITE_PREFIX = "sqlite:///"


@dataclass
class DatabaseConfig:
    """Where records live: ``sqlite:///path`` or ``postgresql://...``."""

    url: str

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> DatabaseConfig:
        """Resolve the database URL.

        DATABASE_URL wins, then BLOBHOOKS_DB_PATH (a SQLite file), then
        ``<base_path>/data/blobhooks.db``, then ``./blobhooks.db``.
        """
        url = os.environ.get("DATABASE_URL")
        if url:
            return cls(url)
        db_path = os.environ.get("BLOBHOOKS_DB_PATH")
        if db_path:
            return cls(f"{_SQLITE_PREFIX}{db_path}")
        default = base_path / "data" / "blobhooks.db" if base_path else Path("blobhooks.db")
        return cls(f"{_SQLITE_PREFIX}{default}")

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def is_postgresql(self) -> bool:
        return self.url.startswith("postgresql")


def create_adapter(config: DatabaseConfig) -> PersistenceAdapter:
    """Build an unconnected adapter for the configured URL.

    Raises:
        ValueError: For unsupported URL schemes
    """
    if config.is_sqlite:
        from blobhooks.persistence.sqlite import SQLiteAdapter

        return SQLiteAdapter(config.url.removeprefix(_SQLITE_PREFIX) or ":memory:")

    if config.is_postgresql:
        from blobhooks.persistence.postgresql import PostgreSQLAdapter

        return PostgreSQLAdapter(config.url)

    raise ValueError(f"Unsupported database URL scheme: {config.url}")
