"""Hook registry for blobhooks.

Maps hook names used in entity metadata to stage factories. A factory
receives the hook's ``params`` and the injected collaborators and returns
the stage handler, so collaborators are bound when the chain is built
rather than looked up at run time.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from blobhooks.hooks.services import HookServices
from blobhooks.hooks.stage import HookStage, StageHandler
from blobhooks.hooks.types import Operation, parse_operations
from blobhooks.metadata.loader import HookConfig

# Stage factory signature: (params, services) -> handler
StageFactory = Callable[[dict[str, Any], HookServices], StageHandler]


@dataclass(frozen=True)
class RegisteredHook:
    factory: StageFactory
    on: frozenset[Operation]
    description: str = ""


class HookRegistry:
    """Process-wide table of hook names usable in entity metadata.

    Nothing is registered implicitly: call register_builtin_hooks() or
    decorate factories with @hook before loading metadata that names them.

    Example:
        @hook("ensureThumbnail", on=[Operation.CREATE])
        def ensure_thumbnail(params, services):
            async def handler(ctx, mutation, next):
                ...
            return handler
    """

    _hooks: dict[str, RegisteredHook] = {}

    @classmethod
    def register(
        cls,
        name: str,
        factory: StageFactory,
        on: Iterable[Operation] = (Operation.CREATE, Operation.UPDATE_ONE),
        description: str = "",
    ) -> None:
        """Add a factory under ``name``; the first registration wins.

        ``on`` is used for metadata entries that omit their own ``on:`` list.
        """
        if name in cls._hooks:
            return
        cls._hooks[name] = RegisteredHook(factory, frozenset(on), description)

    @classmethod
    def get(cls, name: str) -> RegisteredHook:
        """Raises ValueError for unknown names."""
        try:
            return cls._hooks[name]
        except KeyError:
            raise ValueError(
                f"Hook '{name}' is not registered; register it before loading metadata that uses it"
            ) from None

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name in cls._hooks

    @classmethod
    def list_registered(cls) -> list[str]:
        return sorted(cls._hooks)

    @classmethod
    def clear(cls) -> None:
        """Forget every registration (test isolation)."""
        cls._hooks.clear()


def hook(
    name: str,
    on: Iterable[Operation] = (Operation.CREATE, Operation.UPDATE_ONE),
    description: str = "",
) -> Callable[[StageFactory], StageFactory]:
    """Decorator to register a stage factory.

    Usage:
        @hook("ensureObjectExists", on=[Operation.CREATE])
        def ensure_object_exists(params, services):
            ...
    """

    def decorator(fn: StageFactory) -> StageFactory:
        HookRegistry.register(name, fn, on=on, description=description or (fn.__doc__ or "").strip())
        return fn

    return decorator


def build_stage(config: HookConfig, services: HookServices) -> HookStage:
    """Resolve one metadata hook entry into a HookStage.

    Raises:
        ValueError: If the hook is not registered, its ``on:`` list names an
            unknown operation, or the factory rejects its params
    """
    registered = HookRegistry.get(config.name)
    on = parse_operations(config.on) if config.on is not None else registered.on
    return HookStage(
        name=config.name,
        on=on,
        handler=registered.factory(config.params, services),
        description=config.description or registered.description,
    )


def build_stages(configs: Iterable[HookConfig], services: HookServices) -> list[HookStage]:
    """Resolve metadata hook entries into stages, in declared order."""
    return [build_stage(c, services) for c in configs]
