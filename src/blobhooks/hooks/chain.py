"""Hook chain execution for blobhooks.

Composes an ordered list of hook stages around a terminal store apply.
The first stage is the outermost; each stage receives a one-shot
continuation that runs the remaining stages and finally the terminal.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from blobhooks.errors import ContinuationReusedError, MutationError
from blobhooks.hooks.context import MutationContext
from blobhooks.hooks.mutation import Mutation
from blobhooks.hooks.stage import HookStage, Next

logger = logging.getLogger(__name__)

# Terminal signature: async (ctx, mutation) -> result
Terminal = Callable[[MutationContext, Mutation], Awaitable[Any]]


class HookChain:
    """Runs mutations through an ordered sequence of hook stages.

    Stages whose ``on`` set does not include the mutation's operation are
    skipped. Any error raised by a stage, by a collaborator it calls, or by
    the terminal aborts the chain; nothing is retried or rolled back.
    """

    def __init__(self, stages: Iterable[HookStage] = ()):
        self._stages: tuple[HookStage, ...] = tuple(stages)

    @classmethod
    def build(cls, stages: Iterable[HookStage]) -> "HookChain":
        """Compose stages into a chain, in registration order."""
        return cls(stages)

    def extend(self, stages: Iterable[HookStage]) -> "HookChain":
        """Return a new chain with ``stages`` appended (innermost)."""
        return HookChain((*self._stages, *stages))

    @property
    def stage_names(self) -> list[str]:
        return [s.name for s in self._stages]

    def __len__(self) -> int:
        return len(self._stages)

    async def run(
        self,
        ctx: MutationContext,
        mutation: Mutation,
        terminal: Terminal,
    ) -> Any:
        """Execute the chain for one mutation.

        Args:
            ctx: Cancellation/deadline context, passed to every stage
            mutation: The pending change
            terminal: Applies the mutation to the primary store

        Returns:
            Whatever the terminal returned (possibly replaced by a stage)

        Raises:
            MutationError: A stage, collaborator or the terminal failed
        """
        matching = [s for s in self._stages if s.applies_to(mutation.op)]
        logger.debug(
            "Pending %s through %d stage(s): %s",
            mutation.describe(),
            len(matching),
            [s.name for s in matching],
        )

        async def apply(ctx: MutationContext, mutation: Mutation) -> Any:
            ctx.raise_if_cancelled()
            mutation.begin_apply()
            try:
                result = await terminal(ctx, mutation)
            except BaseException:
                mutation.end_apply(succeeded=False)
                raise
            mutation.end_apply(succeeded=True)
            logger.debug("Applied %s", mutation.describe())
            return result

        entry: Next = apply
        for current in reversed(matching):
            entry = self._wrap(current, entry)

        try:
            return await entry(ctx, mutation)
        except MutationError as e:
            logger.warning("Aborted %s: %s", mutation.describe(), e)
            raise

    @staticmethod
    def _wrap(current: HookStage, inner: Next) -> Next:
        """Wrap ``inner`` with ``current``, handing it a one-shot continuation."""

        async def entry(ctx: MutationContext, mutation: Mutation) -> Any:
            ctx.raise_if_cancelled()
            called = False
            inner_failed = False

            async def next_(ctx: MutationContext, mutation: Mutation) -> Any:
                nonlocal called, inner_failed
                if called:
                    raise ContinuationReusedError(
                        "continuation called more than once", stage=current.name
                    )
                called = True
                try:
                    return await inner(ctx, mutation)
                except BaseException:
                    inner_failed = True
                    raise

            logger.debug("Checking %s at stage '%s'", mutation.describe(), current.name)
            try:
                result = await current.handler(ctx, mutation, next_)
            except MutationError as e:
                # Errors from inner stages or the terminal keep their own origin
                if e.stage is None and not inner_failed:
                    e.stage = current.name
                logger.debug("Stage '%s' failed: %s", current.name, e)
                raise
            logger.debug("Stage '%s' passed", current.name)
            return result

        return entry
