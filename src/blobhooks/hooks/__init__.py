"""blobhooks mutation hook system.

Every mutation (create, update, delete) runs through an ordered chain of
hook stages wrapped around the store write:
- a stage may check preconditions and call the bucket before the write
- a stage may act on the bucket after the write succeeded
- any failure aborts the chain; the store write never runs twice

Usage:
    from blobhooks.hooks import Operation, stage

    @stage("rejectLargeAvatars", on=[Operation.CREATE])
    async def reject_large_avatars(ctx, mutation, next):
        ...
        return await next(ctx, mutation)

    client.use(reject_large_avatars)
"""

from blobhooks.hooks.builtin import (
    DELETE_ORPHAN_OBJECT,
    ENSURE_OBJECT_EXISTS,
    cascade_delete,
    existence_guard,
    register_builtin_hooks,
)
from blobhooks.hooks.chain import HookChain, Terminal
from blobhooks.hooks.context import MutationContext
from blobhooks.hooks.mutation import Mutation
from blobhooks.hooks.registry import HookRegistry, build_stage, build_stages, hook
from blobhooks.hooks.services import HookServices, RecordStore
from blobhooks.hooks.stage import HookStage, Next, StageHandler, stage
from blobhooks.hooks.types import (
    CREATE_OPS,
    DELETE_OPS,
    UPDATE_OPS,
    Operation,
    UserContext,
)

__all__ = [
    "CREATE_OPS",
    "DELETE_OPS",
    "DELETE_ORPHAN_OBJECT",
    "ENSURE_OBJECT_EXISTS",
    "HookChain",
    "HookRegistry",
    "HookServices",
    "HookStage",
    "Mutation",
    "MutationContext",
    "Next",
    "Operation",
    "RecordStore",
    "StageHandler",
    "Terminal",
    "UPDATE_OPS",
    "UserContext",
    "build_stage",
    "build_stages",
    "cascade_delete",
    "existence_guard",
    "hook",
    "register_builtin_hooks",
    "stage",
]
