"""SQL generation shared by the SQLite and PostgreSQL adapters.

Subclasses provide the connection, the placeholder style, identifier
quoting and column types; everything else (CRUD, filters, pagination,
id generation, audit timestamps) lives here.
"""

import re
from datetime import datetime, timezone
from typing import Any

from blobhooks.metadata.loader import EntityModel, FieldDefinition
from blobhooks.persistence.sequences import SequenceService

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

_COMPARISONS = {"eq": "=", "neq": "!=", "gt": ">", "gte": ">=", "lt": "<", "lte": "<="}


def table_name(entity_name: str) -> str:
    """``ProfileImage`` -> ``profile_image``."""
    return _CAMEL_BOUNDARY.sub("_", entity_name).lower()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLAdapterBase:
    """Base class for DB-API style adapters."""

    placeholder = "?"
    dialect = "sqlite"

    def __init__(self) -> None:
        self.conn: Any = None
        self._sequence_service: SequenceService | None = None

    # ------------------------------------------------------------------
    # Dialect hooks
    # ------------------------------------------------------------------

    def _quote(self, name: str) -> str:
        return name

    def _column_type(self, field: FieldDefinition) -> str:
        raise NotImplementedError

    def _select_cols(self, entity: EntityModel) -> str:
        return "*"

    def _table(self, entity: EntityModel) -> str:
        return self._quote(table_name(entity.name))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            self._sequence_service = None

    def _require_conn(self) -> Any:
        if not self.conn:
            raise RuntimeError("Database not connected")
        return self.conn

    def _require_sequences(self) -> SequenceService:
        if self._sequence_service is None:
            raise RuntimeError("Database not connected")
        return self._sequence_service

    def rollback(self) -> None:
        """Roll back the current transaction."""
        self._require_conn().rollback()

    def _execute(self, sql: str, values: Any = (), commit: bool = True) -> Any:
        """Run one statement; a failure rolls the transaction back.

        psycopg refuses every later statement on a connection whose
        transaction failed, so errors must never leave one open.
        """
        conn = self._require_conn()
        try:
            cursor = conn.execute(sql, values)
            if commit:
                conn.commit()
        except Exception:
            self.rollback()
            raise
        return cursor

    def initialize_entity(self, entity: EntityModel) -> None:
        """Create table for entity if it doesn't exist."""
        columns = []
        for field in entity.fields:
            col_def = f"{self._quote(field.name)} {self._column_type(field)}"
            if field.primary_key:
                col_def += " PRIMARY KEY"
            columns.append(col_def)

        self._execute(f"CREATE TABLE IF NOT EXISTS {self._table(entity)} ({', '.join(columns)})")

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create(
        self,
        entity: EntityModel,
        data: dict[str, Any],
        tenant_id: str | None = None,
    ) -> dict[str, Any]:
        """Insert a record and return it as stored.

        A missing primary key is filled from the entity's sequence;
        ``tenant_id`` picks the counter for tenant-scoped entities.
        """
        self._require_conn()
        data = dict(data)

        pk = entity.primary_key
        if data.get(pk) is None:
            data[pk] = self._require_sequences().next_id(
                entity.name, entity.abbreviation, entity.scope, tenant_id
            )

        names = entity.field_names
        stamp = _now()
        for audit_field in ("createdAt", "updatedAt"):
            if audit_field in names:
                data.setdefault(audit_field, stamp)

        field_names = [n for n in names if n in data]
        columns = ", ".join(self._quote(n) for n in field_names)
        placeholders = ", ".join(self.placeholder for _ in field_names)
        values = [data[n] for n in field_names]

        self._execute(
            f"INSERT INTO {self._table(entity)} ({columns}) VALUES ({placeholders})", values
        )
        return self.get(entity, data[pk])  # type: ignore[return-value]

    def get(self, entity: EntityModel, id: str) -> dict[str, Any] | None:
        """Fetch a single record by ID."""
        pk = self._quote(entity.primary_key)
        sql = (
            f"SELECT {self._select_cols(entity)} FROM {self._table(entity)} "
            f"WHERE {pk} = {self.placeholder}"
        )
        row = self._execute(sql, [id], commit=False).fetchone()
        return dict(row) if row else None

    def update(
        self, entity: EntityModel, id: str, data: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Update an existing record. Returns None if it does not exist."""
        set_clause, values = self._set_clause(entity, data)
        pk = self._quote(entity.primary_key)
        if set_clause:
            sql = f"UPDATE {self._table(entity)} SET {set_clause} WHERE {pk} = {self.placeholder}"
            self._execute(sql, [*values, id])

        return self.get(entity, id)

    def update_where(
        self, entity: EntityModel, filter: dict | None, data: dict[str, Any]
    ) -> int:
        """Update all records matching the filter. Returns the row count."""
        set_clause, values = self._set_clause(entity, data)
        if not set_clause:
            return 0
        where_clause, where_values = self._where_clause(entity, filter)
        sql = f"UPDATE {self._table(entity)} SET {set_clause}{where_clause}"
        return self._execute(sql, [*values, *where_values]).rowcount

    def delete(self, entity: EntityModel, id: str) -> bool:
        """Delete a record."""
        pk = self._quote(entity.primary_key)
        sql = f"DELETE FROM {self._table(entity)} WHERE {pk} = {self.placeholder}"
        return self._execute(sql, [id]).rowcount > 0

    def delete_where(self, entity: EntityModel, filter: dict | None) -> int:
        """Delete all records matching the filter. Returns the row count."""
        where_clause, where_values = self._where_clause(entity, filter)
        return self._execute(f"DELETE FROM {self._table(entity)}{where_clause}", where_values).rowcount

    def query(
        self,
        entity: EntityModel,
        filter: dict | None = None,
        sort: list[dict] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> dict[str, Any]:
        """Query records with filtering, sorting, and pagination."""
        table = self._table(entity)

        where_clause, where_values = self._where_clause(entity, filter)

        order_clause = ""
        if sort:
            order_parts = []
            for s in sort:
                self._check_field(entity, s["field"])
                direction = "DESC" if s.get("direction") == "desc" else "ASC"
                order_parts.append(f"{self._quote(s['field'])} {direction}")
            order_clause = f" ORDER BY {', '.join(order_parts)}"

        limit_clause = ""
        if limit:
            limit_clause = f" LIMIT {int(limit)} OFFSET {int(offset)}"

        sql = (
            f"SELECT {self._select_cols(entity)} FROM {table}"
            f"{where_clause}{order_clause}{limit_clause}"
        )
        rows = [dict(row) for row in self._execute(sql, where_values, commit=False).fetchall()]

        count_row = self._execute(
            f"SELECT COUNT(*) AS total FROM {table}{where_clause}", where_values, commit=False
        ).fetchone()
        total = count_row["total"] if isinstance(count_row, dict) else count_row[0]

        return {
            "data": rows,
            "pagination": {
                "total": total,
                "limit": limit,
                "offset": offset,
                "hasMore": (offset + len(rows)) < total if limit else False,
            },
        }

    # ------------------------------------------------------------------
    # Clause builders
    # ------------------------------------------------------------------

    def _check_field(self, entity: EntityModel, name: str) -> None:
        if name not in entity.field_names:
            raise ValueError(f"Unknown field '{name}' on {entity.name}")

    def _set_clause(
        self, entity: EntityModel, data: dict[str, Any]
    ) -> tuple[str, list[Any]]:
        data = dict(data)
        if data and "updatedAt" in entity.field_names:
            data["updatedAt"] = _now()

        # Primary key is never updated
        updatable = [
            f.name for f in entity.fields
            if f.name in data and not f.primary_key
        ]
        set_clause = ", ".join(f"{self._quote(n)} = {self.placeholder}" for n in updatable)
        return set_clause, [data[n] for n in updatable]

    def _where_clause(
        self, entity: EntityModel, filter: dict | None
    ) -> tuple[str, list[Any]]:
        if not filter or not filter.get("conditions"):
            return "", []

        conditions = []
        values: list[Any] = []
        for cond in filter["conditions"]:
            self._check_field(entity, cond["field"])
            sql_cond, vals = self._build_condition(cond)
            conditions.append(sql_cond)
            values.extend(vals)

        op = filter.get("operator", "and").upper()
        if op not in ("AND", "OR"):
            raise ValueError(f"Unsupported filter operator '{op}'")
        return f" WHERE {f' {op} '.join(conditions)}", values

    def _build_condition(self, cond: dict) -> tuple[str, list[Any]]:
        column = self._quote(cond["field"])
        op = cond["operator"]
        value = cond.get("value")
        p = self.placeholder

        if op in _COMPARISONS:
            return f"{column} {_COMPARISONS[op]} {p}", [value]
        if op in ("in", "notIn"):
            if not value:
                # Empty IN matches nothing; empty NOT IN matches everything
                return ("1 = 0" if op == "in" else "1 = 1"), []
            negate = "NOT " if op == "notIn" else ""
            return f"{column} {negate}IN ({', '.join([p] * len(value))})", list(value)
        if op == "contains":
            return f"{column} LIKE {p}", [f"%{value}%"]
        if op == "startsWith":
            return f"{column} LIKE {p}", [f"{value}%"]
        if op in ("isNull", "isNotNull"):
            return f"{column} IS {'NOT ' if op == 'isNotNull' else ''}NULL", []

        raise ValueError(f"Unsupported filter operator '{op}'")
