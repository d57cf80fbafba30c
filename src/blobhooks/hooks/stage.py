"""Hook stages: pre/post logic wrapped around one kind of mutation."""

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any

from blobhooks.hooks.context import MutationContext
from blobhooks.hooks.mutation import Mutation
from blobhooks.hooks.types import Operation

# Continuation signature: async (ctx, mutation) -> result
# Represents the rest of the chain, including the terminal store apply.
Next = Callable[[MutationContext, Mutation], Awaitable[Any]]

# Stage handler signature: async (ctx, mutation, next) -> result
StageHandler = Callable[[MutationContext, Mutation, Next], Awaitable[Any]]


@dataclass(frozen=True)
class HookStage:
    """A single interceptor in a hook chain.

    Attributes:
        name: Stage name, attached to errors raised while it runs
        on: Operations this stage applies to
        handler: Async function implementing the stage
        description: Human-readable description

    Example:
        async def audit(ctx, mutation, next):
            result = await next(ctx, mutation)
            logger.info("applied %s", mutation.describe())
            return result

        stage = HookStage("audit", on=frozenset(Operation), handler=audit)
    """

    name: str
    on: frozenset[Operation]
    handler: StageHandler
    description: str = ""

    def applies_to(self, op: Operation) -> bool:
        return op in self.on


def stage(
    name: str,
    on: Iterable[Operation],
    description: str = "",
) -> Callable[[StageHandler], HookStage]:
    """Decorator turning a handler function into a HookStage.

    Usage:
        @stage("stampUploader", on=[Operation.CREATE])
        async def stamp_uploader(ctx, mutation, next):
            mutation.set_field("uploadedBy", ctx.user_context.user_id)
            return await next(ctx, mutation)
    """

    def decorator(fn: StageHandler) -> HookStage:
        return HookStage(
            name=name,
            on=frozenset(on),
            handler=fn,
            description=description or (fn.__doc__ or "").strip(),
        )

    return decorator
