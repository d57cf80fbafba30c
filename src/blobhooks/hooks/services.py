"""Collaborators injected into hook stages."""

from dataclasses import dataclass
from typing import Any, Protocol

from blobhooks.blob.bucket import Bucket
from blobhooks.hooks.context import MutationContext


class RecordStore(Protocol):
    """Read access to the primary store, as needed by hook stages."""

    async def get_record(
        self, ctx: MutationContext, entity: str, id: Any
    ) -> dict[str, Any]:
        """Fetch a record by id.

        Raises:
            NotFoundError: If the record does not exist
        """
        ...


@dataclass(frozen=True)
class HookServices:
    """Collaborators handed to every stage factory when a chain is built.

    Attributes:
        bucket: The external object store kept in sync with the entities
        store: Read access to the primary store
    """

    bucket: Bucket
    store: RecordStore
