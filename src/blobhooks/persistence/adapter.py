"""Primary store interface implemented by the SQLite and PostgreSQL adapters."""

from typing import Any, Protocol, runtime_checkable

from blobhooks.metadata.loader import EntityModel


@runtime_checkable
class PersistenceAdapter(Protocol):
    """Record storage for metadata-defined entities.

    Adapters are synchronous. ``get``/``update`` return None for a missing
    id and ``delete`` returns False; the entity client turns those into
    NotFoundError. Filters look like::

        {"operator": "and", "conditions": [{"field": "name", "operator": "eq", "value": "a8m"}]}
    """

    conn: Any  # driver connection, None until connect()

    def connect(self) -> None: ...

    def close(self) -> None: ...

    def initialize_entity(self, entity: EntityModel) -> None:
        """Create the entity's table if it does not exist."""
        ...

    def create(
        self, entity: EntityModel, data: dict[str, Any], tenant_id: str | None = None
    ) -> dict[str, Any]:
        """Insert a record, generating its id when absent; returns the stored record."""
        ...

    def get(self, entity: EntityModel, id: str) -> dict[str, Any] | None: ...

    def update(self, entity: EntityModel, id: str, data: dict[str, Any]) -> dict[str, Any] | None: ...

    def update_where(self, entity: EntityModel, filter: dict | None, data: dict[str, Any]) -> int: ...

    def delete(self, entity: EntityModel, id: str) -> bool: ...

    def delete_where(self, entity: EntityModel, filter: dict | None) -> int: ...

    def query(
        self,
        entity: EntityModel,
        filter: dict | None = None,
        sort: list[dict] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> dict[str, Any]:
        """Return ``{"data": [...], "pagination": {total, limit, offset, hasMore}}``."""
        ...
