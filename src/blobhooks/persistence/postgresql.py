"""PostgreSQL adapter on psycopg 3.

Field names are camelCase (``avatarUrl``) and entity names can collide with
reserved words (``user``), so every identifier is double-quoted; unquoted
names would be folded to lowercase.
"""

from __future__ import annotations

from blobhooks.core.types import get_pg_type
from blobhooks.metadata.loader import EntityModel, FieldDefinition
from blobhooks.persistence.sequences import SequenceService
from blobhooks.persistence.sql import SQLAdapterBase

_DRIVER_PREFIX = "postgresql+psycopg://"


class PostgreSQLAdapter(SQLAdapterBase):
    placeholder = "%s"
    dialect = "postgresql"

    def __init__(self, url: str):
        super().__init__()
        # libpq does not understand the SQLAlchemy-style driver suffix
        if url.startswith(_DRIVER_PREFIX):
            url = "postgresql://" + url[len(_DRIVER_PREFIX):]
        self.url = url

    def connect(self) -> None:
        import psycopg
        from psycopg.rows import dict_row

        self.conn = psycopg.connect(self.url, row_factory=dict_row, autocommit=False)
        self._sequence_service = SequenceService(self.conn, dialect=self.dialect)

    def _quote(self, name: str) -> str:
        return '"' + name.replace('"', '""') + '"'

    def _column_type(self, field: FieldDefinition) -> str:
        return get_pg_type(field.type)

    def _select_cols(self, entity: EntityModel) -> str:
        # dict_row keys come from the aliases, keeping camelCase intact
        return ", ".join(f"{self._quote(f.name)} AS {self._quote(f.name)}" for f in entity.fields)
