"""Built-in hooks keeping entities and bucket objects in sync.

- ensureObjectExists: refuse to create a record pointing at a missing object
- deleteOrphanObject: delete the object a record points at before the record

Both take a ``field`` param naming the entity field that holds the object key.
Neither compensates for a failure on the other side: if the store write fails
after the bucket call succeeded, the two are left inconsistent.
"""

import logging
from typing import Any

from blobhooks.errors import (
    MissingFieldError,
    MutationCancelledError,
    MutationError,
    PrimaryFetchError,
    ResourceCheckError,
    ResourceMutationError,
)
from blobhooks.hooks.context import MutationContext
from blobhooks.hooks.mutation import Mutation
from blobhooks.hooks.registry import HookRegistry
from blobhooks.hooks.services import HookServices
from blobhooks.hooks.stage import Next, StageHandler
from blobhooks.hooks.types import Operation

logger = logging.getLogger(__name__)

ENSURE_OBJECT_EXISTS = "ensureObjectExists"
DELETE_ORPHAN_OBJECT = "deleteOrphanObject"


def _key_field(params: dict[str, Any], hook_name: str) -> str:
    field = params.get("field")
    if not field or not isinstance(field, str):
        raise ValueError(f"Hook '{hook_name}' requires a 'field' param")
    return field


def existence_guard(params: dict[str, Any], services: HookServices) -> StageHandler:
    """Fail the mutation unless the object named by ``field`` is in the bucket."""
    field = _key_field(params, ENSURE_OBJECT_EXISTS)
    bucket = services.bucket

    async def handler(ctx: MutationContext, mutation: Mutation, next: Next) -> Any:
        key = mutation.field(field)
        if key is None:
            raise MissingFieldError(field)

        try:
            exists = await ctx.guard(bucket.exists(key))
        except MutationError:
            raise
        except Exception as e:
            raise ResourceCheckError(key, f"could not be checked: {e}") from e

        if not exists:
            raise ResourceCheckError(key, f"does not exist in {bucket.url}")

        return await next(ctx, mutation)

    return handler


def cascade_delete(params: dict[str, Any], services: HookServices) -> StageHandler:
    """Delete the object named by ``field`` on the record before deleting the record."""
    field = _key_field(params, DELETE_ORPHAN_OBJECT)
    bucket = services.bucket
    store = services.store

    async def handler(ctx: MutationContext, mutation: Mutation, next: Next) -> Any:
        if mutation.id is None:
            raise MissingFieldError("id")

        try:
            record = await store.get_record(ctx, mutation.entity, mutation.id)
        except MutationCancelledError:
            raise
        except Exception as e:
            raise PrimaryFetchError(mutation.entity, mutation.id, str(e)) from e

        key = record.get(field)
        if key:
            try:
                await ctx.guard(bucket.delete(key))
            except MutationError:
                raise
            except Exception as e:
                raise ResourceMutationError(key, str(e)) from e
            logger.debug("Deleted object '%s' of %s", key, mutation.describe())

        return await next(ctx, mutation)

    return handler


def register_builtin_hooks() -> None:
    """Register framework-provided hooks.

    Called at application startup (the Client calls it on construction).
    """
    HookRegistry.register(
        ENSURE_OBJECT_EXISTS,
        existence_guard,
        on=[Operation.CREATE],
        description="Require the referenced object to exist in the bucket",
    )
    HookRegistry.register(
        DELETE_ORPHAN_OBJECT,
        cascade_delete,
        on=[Operation.DELETE_ONE],
        description="Delete the referenced object together with the record",
    )
