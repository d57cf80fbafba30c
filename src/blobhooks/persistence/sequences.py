"""Human-readable record ids: ``{ABBREVIATION}-{NNNNN}``, e.g. ``USR-00001``.

One counter per entity, or per (entity, tenant) for tenant-scoped
entities, kept in a ``_sequences`` table next to the entity tables.
"""

from typing import Any

_CREATE_TABLE = """
    CREATE TABLE IF NOT EXISTS _sequences (
        entity TEXT NOT NULL,
        tenant_id TEXT NOT NULL DEFAULT '',
        next_value INTEGER NOT NULL DEFAULT 1,
        PRIMARY KEY (entity, tenant_id)
    )
"""

# Returns the value current before the bump, so concurrent callers never share one
_TAKE_NEXT = """
    INSERT INTO _sequences (entity, tenant_id, next_value)
    VALUES ({p}, {p}, 2)
    ON CONFLICT (entity, tenant_id) DO UPDATE
        SET next_value = _sequences.next_value + 1
    RETURNING next_value - 1
"""

_LAST_ISSUED = """
    SELECT next_value - 1 FROM _sequences WHERE entity = {p} AND tenant_id = {p}
"""


def _scalar(row: Any) -> int:
    # dict_row (psycopg) or tuple/Row (sqlite3)
    return next(iter(row.values())) if isinstance(row, dict) else row[0]


class SequenceService:
    """Issues sequential ids on a DB-API connection (sqlite3 or psycopg)."""

    def __init__(self, conn: Any, dialect: str = "sqlite"):
        self.conn = conn
        self.placeholder = "%s" if dialect == "postgresql" else "?"
        self.conn.execute(_CREATE_TABLE)
        self.conn.commit()

    def next_id(
        self,
        entity_name: str,
        abbreviation: str,
        scope: str,
        tenant_id: str | None = None,
    ) -> str:
        """Take the next id for an entity.

        Global entities share one counter regardless of ``tenant_id``.
        """
        tenant_key = (tenant_id or "") if scope == "tenant" else ""
        try:
            rows = self.conn.execute(
                _TAKE_NEXT.format(p=self.placeholder), [entity_name, tenant_key]
            ).fetchall()
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        if not rows:
            raise RuntimeError("Sequence upsert returned no rows")
        return f"{abbreviation}-{_scalar(rows[0]):05d}"

    def current_value(self, entity_name: str, tenant_id: str | None = None) -> int:
        """The last issued value, or 0 before the first id."""
        row = self.conn.execute(
            _LAST_ISSUED.format(p=self.placeholder), [entity_name, tenant_id or ""]
        ).fetchone()
        return 0 if row is None else _scalar(row)
