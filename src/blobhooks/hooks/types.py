"""Hook system types for blobhooks.

Defines the core data structures shared by the hook chain:
- Operation: the kind of mutation being applied
- UserContext: identity carried alongside a mutation
"""

from dataclasses import dataclass, field
from enum import Enum


class Operation(Enum):
    """The kind of mutation being applied to the primary store."""

    CREATE = "create"
    UPDATE = "update"  # bulk, by filter
    UPDATE_ONE = "updateOne"
    DELETE = "delete"  # bulk, by filter
    DELETE_ONE = "deleteOne"


CREATE_OPS = frozenset({Operation.CREATE})
UPDATE_OPS = frozenset({Operation.UPDATE, Operation.UPDATE_ONE})
DELETE_OPS = frozenset({Operation.DELETE, Operation.DELETE_ONE})


def parse_operations(values: list[str] | str) -> frozenset[Operation]:
    """Convert an ``on:`` value from metadata into a set of operations.

    Raises:
        ValueError: If a value is not a known operation
    """
    if isinstance(values, str):
        values = [values]
    return frozenset(Operation(v) for v in values)


@dataclass
class UserContext:
    """Identity information carried with a mutation.

    Attributes:
        tenant_id: The tenant the user belongs to
        user_id: The authenticated user's ID
        roles: List of role names the user has
    """

    tenant_id: str | None = None
    user_id: str | None = None
    roles: list[str] = field(default_factory=list)

