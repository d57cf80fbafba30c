"""Cancellation and deadline context for mutations.

A MutationContext travels with every mutation through the hook chain and
into every collaborator call. Cancelling a context cancels all contexts
derived from it; a derived context never outlives its parent's deadline.
"""

import asyncio
import logging
import time
import weakref
from collections.abc import Awaitable
from typing import Any, TypeVar

from blobhooks.errors import MutationCancelledError
from blobhooks.hooks.types import UserContext

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _CancelScope:
    """Shared cancellation state for a family of contexts."""

    def __init__(self, parent: "_CancelScope | None" = None):
        self.parent = parent
        # Children live only as long as the contexts holding them
        self.children: weakref.WeakSet[_CancelScope] = weakref.WeakSet()
        self.reason: str | None = None
        self.event = asyncio.Event()
        if parent is not None:
            parent.children.add(self)
            if parent.reason is not None:
                self.cancel(parent.reason)

    def cancel(self, reason: str) -> None:
        if self.reason is not None:
            return
        self.reason = reason
        self.event.set()
        for child in list(self.children):
            child.cancel(reason)


class MutationContext:
    """Carries cancellation, deadline and caller identity for a mutation.

    Example:
        ctx = MutationContext().with_timeout(5.0)
        user = await client.entity("User").create().set("name", "a8m").save(ctx)
    """

    def __init__(
        self,
        deadline: float | None = None,
        user_context: UserContext | None = None,
        _scope: _CancelScope | None = None,
    ):
        self.deadline = deadline
        self.user_context = user_context
        self._scope = _scope or _CancelScope()

    @classmethod
    def background(cls) -> "MutationContext":
        """A context that is never cancelled and has no deadline."""
        return cls()

    def with_timeout(self, seconds: float) -> "MutationContext":
        """Derive a child context that expires after ``seconds``."""
        deadline = time.monotonic() + seconds
        if self.deadline is not None:
            deadline = min(deadline, self.deadline)
        return MutationContext(
            deadline=deadline,
            user_context=self.user_context,
            _scope=_CancelScope(self._scope),
        )

    def with_cancel(self) -> "MutationContext":
        """Derive a child context that can be cancelled on its own."""
        return MutationContext(
            deadline=self.deadline,
            user_context=self.user_context,
            _scope=_CancelScope(self._scope),
        )

    def cancel(self, reason: str = "context cancelled") -> None:
        """Cancel this context and every context derived from it."""
        self._scope.cancel(reason)

    @property
    def cancelled(self) -> bool:
        return self._scope.reason is not None

    def remaining(self) -> float | None:
        """Seconds until the deadline, or None if there is none."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        """Raise MutationCancelledError if cancelled or past the deadline."""
        if self._scope.reason is not None:
            raise MutationCancelledError(self._scope.reason)
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise MutationCancelledError("deadline exceeded")

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await a collaborator call, aborting on cancellation or deadline.

        The call is cancelled when the context is cancelled or its deadline
        passes first; MutationCancelledError is raised in that case.
        """
        self.raise_if_cancelled()

        task: asyncio.Future[T] = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._scope.event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter},
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        reason = self._scope.reason or "deadline exceeded"
        logger.debug("Collaborator call aborted: %s", reason)
        raise MutationCancelledError(reason)

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "active"
        return f"MutationContext({state}, remaining={self.remaining()})"


def ensure_context(ctx: Any) -> MutationContext:
    """Return ctx, or a background context when ctx is None."""
    return ctx if ctx is not None else MutationContext.background()
