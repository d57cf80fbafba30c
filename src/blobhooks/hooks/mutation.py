"""Pending changes travelling through a hook chain."""

from dataclasses import dataclass, field
from typing import Any

from blobhooks.errors import MutationAppliedError
from blobhooks.hooks.types import Operation, UserContext


@dataclass
class Mutation:
    """One pending change to the primary store.

    Stages may read and modify the mutation while it travels the chain.
    Once the terminal write succeeds, ``applied`` is set and the mutation
    no longer accepts changes. A failed write leaves it pending, so the
    caller can correct it and run it again.

    Attributes:
        entity: Name of the entity being mutated
        op: The kind of mutation
        fields: Field name -> new value for fields being set
        cleared: Fields being set to NULL (updates only)
        id: Target record id (updateOne/deleteOne only)
        filter: Target filter (bulk update/delete only)
        user_context: Identity of the caller, if known
    """

    entity: str
    op: Operation
    fields: dict[str, Any] = field(default_factory=dict)
    cleared: set[str] = field(default_factory=set)
    id: Any = None
    filter: dict[str, Any] | None = None
    user_context: UserContext | None = None
    applied: bool = False
    applying: bool = field(default=False, repr=False)

    def field(self, name: str) -> Any:
        """Return the new value of a field, or None if it is not being set."""
        return self.fields.get(name)

    def has_field(self, name: str) -> bool:
        return self.fields.get(name) is not None

    def set_field(self, name: str, value: Any) -> None:
        self._ensure_pending()
        self.cleared.discard(name)
        self.fields[name] = value

    def clear_field(self, name: str) -> None:
        self._ensure_pending()
        self.fields.pop(name, None)
        self.cleared.add(name)

    def fields_snapshot(self) -> dict[str, Any]:
        """Fields to write, with cleared fields as explicit NULLs."""
        data = dict(self.fields)
        for name in self.cleared:
            data[name] = None
        return data

    def begin_apply(self) -> None:
        """Claim the single terminal write for this mutation."""
        if self.applied or self.applying:
            raise MutationAppliedError(
                f"{self.op.value} on {self.entity} was already applied"
            )
        self.applying = True

    def end_apply(self, succeeded: bool) -> None:
        """Release the claim; a failed write leaves the mutation pending."""
        self.applying = False
        if succeeded:
            self.applied = True

    def _ensure_pending(self) -> None:
        if self.applied:
            raise MutationAppliedError(
                f"{self.op.value} on {self.entity} is applied and can no longer change"
            )

    def describe(self) -> str:
        target = f" '{self.id}'" if self.id is not None else ""
        return f"{self.op.value} {self.entity}{target}"
