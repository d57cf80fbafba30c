"""SQLite adapter on the standard library driver; the default store."""

import sqlite3
from pathlib import Path

from blobhooks.core.types import get_storage_type
from blobhooks.metadata.loader import FieldDefinition
from blobhooks.persistence.sequences import SequenceService
from blobhooks.persistence.sql import SQLAdapterBase


class SQLiteAdapter(SQLAdapterBase):
    """Stores records in a SQLite file, or in memory for ``:memory:``."""

    placeholder = "?"
    dialect = "sqlite"

    def __init__(self, db_path: Path | str = ":memory:"):
        super().__init__()
        self.db_path = str(db_path)

    def connect(self) -> None:
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        self.conn = conn
        self._sequence_service = SequenceService(conn, dialect=self.dialect)

    def _column_type(self, field: FieldDefinition) -> str:
        return get_storage_type(field.type)
