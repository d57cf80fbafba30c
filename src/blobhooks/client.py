"""Entity client: typed CRUD over the primary store, routed through hook chains.

A Client is built once per process from entity metadata, a persistence
adapter and a bucket. Each entity gets one HookChain, composed from the
hooks declared in its metadata followed by any client-level stages.

Example:
    client = Client(adapter, loader, bucket)
    users = client.entity("User")

    ctx = MutationContext().with_timeout(5)
    user = await users.create().set("name", "a8m").set("avatarUrl", "a8m.png").save(ctx)
    await users.delete_by_id(ctx, user["id"])
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from blobhooks.blob.bucket import Bucket
from blobhooks.blob.config import BucketConfig, open_bucket
from blobhooks.errors import MissingFieldError, MutationAppliedError, NotFoundError
from blobhooks.hooks.builtin import register_builtin_hooks
from blobhooks.hooks.chain import HookChain
from blobhooks.hooks.context import MutationContext, ensure_context
from blobhooks.hooks.mutation import Mutation
from blobhooks.hooks.registry import build_stages
from blobhooks.hooks.services import HookServices
from blobhooks.hooks.stage import HookStage
from blobhooks.hooks.types import Operation
from blobhooks.metadata.loader import EntityModel, MetadataLoader
from blobhooks.persistence.adapter import PersistenceAdapter
from blobhooks.persistence.config import DatabaseConfig, create_adapter

logger = logging.getLogger(__name__)


def equals_filter(**fields: Any) -> dict[str, Any] | None:
    """Build an AND filter of equality conditions."""
    if not fields:
        return None
    return {
        "operator": "and",
        "conditions": [
            {"field": name, "operator": "eq", "value": value}
            for name, value in fields.items()
        ],
    }


class Client:
    """Entry point for all entity operations.

    Args:
        adapter: Persistence adapter (connected on demand)
        loader: Loaded entity metadata
        bucket: Object store kept in sync by the entity hooks
        hooks: Extra stages applied to every entity, after the metadata hooks
    """

    def __init__(
        self,
        adapter: PersistenceAdapter,
        loader: MetadataLoader,
        bucket: Bucket,
        *,
        hooks: list[HookStage] | None = None,
    ):
        register_builtin_hooks()

        self.adapter = adapter
        self.loader = loader
        self.bucket = bucket
        self.services = HookServices(bucket=bucket, store=self)
        self._extra_stages: list[HookStage] = list(hooks or [])
        self._chains: dict[str, HookChain] = {}

        if adapter.conn is None:
            adapter.connect()

        for name in loader.list_entities():
            entity = self._require_entity(name)
            adapter.initialize_entity(entity)
            self._chains[name] = HookChain.build(build_stages(entity.hooks, self.services))
            logger.debug("Hook chain for %s: %s", name, self._chains[name].stage_names)

    @classmethod
    def open(
        cls,
        metadata_path: Path,
        database: DatabaseConfig | None = None,
        bucket: BucketConfig | None = None,
        *,
        hooks: list[HookStage] | None = None,
    ) -> Client:
        """Load metadata and open the database and bucket from configuration.

        Missing configs are resolved from the environment.
        """
        loader = MetadataLoader(Path(metadata_path))
        loader.load_all()
        adapter = create_adapter(database or DatabaseConfig.from_env())
        adapter.connect()
        return cls(adapter, loader, open_bucket(bucket or BucketConfig.from_env()), hooks=hooks)

    def use(self, *stages: HookStage) -> None:
        """Append stages to the chain of every entity."""
        self._extra_stages.extend(stages)

    def chain(self, entity_name: str) -> HookChain:
        """The full hook chain applied to mutations of an entity."""
        self._require_entity(entity_name)
        return self._chains[entity_name].extend(self._extra_stages)

    def entity(self, name: str) -> EntityClient:
        """Get the client for one entity.

        Raises:
            ValueError: If the entity is not defined in metadata
        """
        return EntityClient(self, self._require_entity(name))

    def _require_entity(self, name: str) -> EntityModel:
        entity = self.loader.get_entity(name)
        if entity is None:
            raise ValueError(f"Entity '{name}' is not defined in metadata")
        return entity

    async def get_record(
        self, ctx: MutationContext, entity: str, id: Any
    ) -> dict[str, Any]:
        """Fetch a record by id; used by hook stages needing prior state."""
        return await self.entity(entity).get(ctx, id)

    async def close(self) -> None:
        """Close the database connection and the bucket."""
        self.adapter.close()
        await self.bucket.close()

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


class EntityClient:
    """CRUD operations for one entity."""

    def __init__(self, client: Client, entity: EntityModel):
        self.client = client
        self.entity = entity

    @property
    def name(self) -> str:
        return self.entity.name

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, ctx: MutationContext | None, id: Any) -> dict[str, Any]:
        """Fetch a record by id.

        Raises:
            NotFoundError: If no record has that id
        """
        ensure_context(ctx).raise_if_cancelled()
        record = self.client.adapter.get(self.entity, id)
        if record is None:
            raise NotFoundError(self.name, id)
        return record

    async def query(
        self,
        ctx: MutationContext | None,
        filter: dict[str, Any] | None = None,
        sort: list[dict] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """List records matching a filter."""
        ensure_context(ctx).raise_if_cancelled()
        result = self.client.adapter.query(
            self.entity, filter=filter, sort=sort, limit=limit, offset=offset
        )
        return result["data"]

    # ------------------------------------------------------------------
    # Mutation builders
    # ------------------------------------------------------------------

    def create(self, fields: dict[str, Any] | None = None) -> CreateBuilder:
        builder = CreateBuilder(self)
        if fields:
            builder.set_many(fields)
        return builder

    def update_one_id(self, id: Any) -> UpdateOneBuilder:
        return UpdateOneBuilder(self, id)

    def update(self) -> UpdateBuilder:
        return UpdateBuilder(self)

    def delete_one_id(self, id: Any) -> DeleteOneBuilder:
        return DeleteOneBuilder(self, id)

    def delete(self) -> DeleteBuilder:
        return DeleteBuilder(self)

    async def delete_by_id(self, ctx: MutationContext | None, id: Any) -> None:
        """Delete one record by id, running the deleteOne hooks."""
        await self.delete_one_id(id).exec(ctx)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def run(self, ctx: MutationContext | None, mutation: Mutation) -> Any:
        """Run a mutation through this entity's hook chain."""
        ctx = ensure_context(ctx)
        if mutation.applied:
            raise MutationAppliedError(f"{mutation.describe()} was already applied")
        if mutation.user_context is None:
            mutation.user_context = ctx.user_context
        if mutation.op == Operation.CREATE:
            self._apply_defaults(ctx, mutation)
        return await self.client.chain(self.name).run(ctx, mutation, self._apply)

    def _apply_defaults(self, ctx: MutationContext, mutation: Mutation) -> None:
        """Fill static defaults and auto fields not set by the caller."""
        user = ctx.user_context
        for field in self.entity.fields:
            if mutation.has_field(field.name):
                continue
            value = None
            if field.auto == "now":
                value = datetime.now(timezone.utc).isoformat()
            elif field.auto == "context.userId":
                value = user.user_id if user else None
            elif field.auto == "context.tenantId":
                value = user.tenant_id if user else None
            elif field.default is not None:
                value = field.default
            if value is not None:
                mutation.set_field(field.name, value)

    def _check_required(self, mutation: Mutation) -> None:
        for field in self.entity.fields:
            if not field.validation.required or field.primary_key:
                continue
            if mutation.op == Operation.CREATE and not mutation.has_field(field.name):
                raise MissingFieldError(field.name)
            if field.name in mutation.cleared:
                raise MissingFieldError(field.name)

    async def _apply(self, ctx: MutationContext, mutation: Mutation) -> Any:
        """Terminal of every chain: write the mutation to the primary store."""
        adapter = self.client.adapter
        self._check_required(mutation)
        data = mutation.fields_snapshot()

        if mutation.op == Operation.CREATE:
            tenant_id = mutation.user_context.tenant_id if mutation.user_context else None
            record = adapter.create(self.entity, data, tenant_id=tenant_id)
            logger.debug("Created %s '%s'", self.name, record[self.entity.primary_key])
            return record

        if mutation.op == Operation.UPDATE_ONE:
            record = adapter.update(self.entity, mutation.id, data)
            if record is None:
                raise NotFoundError(self.name, mutation.id)
            return record

        if mutation.op == Operation.DELETE_ONE:
            if not adapter.delete(self.entity, mutation.id):
                raise NotFoundError(self.name, mutation.id)
            logger.debug("Deleted %s '%s'", self.name, mutation.id)
            return None

        if mutation.op == Operation.UPDATE:
            return adapter.update_where(self.entity, mutation.filter, data)

        if mutation.op == Operation.DELETE:
            return adapter.delete_where(self.entity, mutation.filter)

        raise ValueError(f"Unsupported operation {mutation.op}")


# =============================================================================
# Builders
# =============================================================================


class _MutationBuilder:
    op: Operation

    def __init__(self, entity_client: EntityClient, id: Any = None):
        self._client = entity_client
        self.mutation = Mutation(entity=entity_client.name, op=self.op, id=id)

    def set(self, field: str, value: Any):
        """Set a field to a new value."""
        self._check(field)
        self.mutation.set_field(field, value)
        return self

    def set_many(self, fields: dict[str, Any]):
        for name, value in fields.items():
            self.set(name, value)
        return self

    def _check(self, field: str) -> None:
        entity_field = self._client.entity.get_field(field)
        if entity_field is None:
            raise ValueError(f"Unknown field '{field}' on {self._client.name}")
        if entity_field.primary_key and self.op != Operation.CREATE:
            raise ValueError(f"Primary key '{field}' of {self._client.name} cannot be changed")
        if entity_field.read_only:
            raise ValueError(f"Field '{field}' of {self._client.name} is read-only")


class _FilterMixin:
    mutation: Mutation

    def where(self, filter: dict[str, Any] | None = None, **equals: Any):
        """Restrict the mutation to records matching a filter.

        Accepts a filter dict, keyword equality conditions, or both (ANDed).
        """
        filter = filter or {}
        operator = filter.get("operator", "and")
        extra = equals_filter(**equals)
        if extra and operator != "and":
            raise ValueError("Keyword conditions can only be combined with an 'and' filter")

        conditions = list(filter.get("conditions", []))
        if extra:
            conditions.extend(extra["conditions"])
        self.mutation.filter = {"operator": operator, "conditions": conditions} if conditions else None
        return self


class CreateBuilder(_MutationBuilder):
    op = Operation.CREATE

    async def save(self, ctx: MutationContext | None = None) -> dict[str, Any]:
        """Run the create through the hook chain and return the new record."""
        return await self._client.run(ctx, self.mutation)


class UpdateOneBuilder(_MutationBuilder):
    op = Operation.UPDATE_ONE

    def clear(self, field: str) -> UpdateOneBuilder:
        """Set a field to NULL."""
        self._check(field)
        self.mutation.clear_field(field)
        return self

    async def save(self, ctx: MutationContext | None = None) -> dict[str, Any]:
        """Run the update through the hook chain and return the updated record."""
        return await self._client.run(ctx, self.mutation)


class UpdateBuilder(_FilterMixin, _MutationBuilder):
    op = Operation.UPDATE

    async def exec(self, ctx: MutationContext | None = None) -> int:
        """Run the bulk update; returns the number of updated records."""
        return await self._client.run(ctx, self.mutation)


class DeleteOneBuilder(_MutationBuilder):
    op = Operation.DELETE_ONE

    async def exec(self, ctx: MutationContext | None = None) -> None:
        await self._client.run(ctx, self.mutation)


class DeleteBuilder(_FilterMixin, _MutationBuilder):
    op = Operation.DELETE

    async def exec(self, ctx: MutationContext | None = None) -> int:
        """Run the bulk delete; returns the number of deleted records."""
        return await self._client.run(ctx, self.mutation)
