"""In-memory bucket, for tests and ephemeral setups."""

import logging

from blobhooks.blob.bucket import validate_key
from blobhooks.errors import BlobNotFoundError

logger = logging.getLogger(__name__)


class MemoryBucket:
    """Dict-backed bucket (``mem://``). Contents vanish with the process."""

    def __init__(self, url: str = "mem://"):
        self.url = url
        self._objects: dict[str, bytes] = {}

    async def exists(self, key: str) -> bool:
        return validate_key(key) in self._objects

    async def write_all(self, key: str, data: bytes) -> None:
        self._objects[validate_key(key)] = bytes(data)
        logger.debug("Wrote %d bytes to mem://%s", len(data), key)

    async def read_all(self, key: str) -> bytes:
        try:
            return self._objects[validate_key(key)]
        except KeyError:
            raise BlobNotFoundError(key) from None

    async def delete(self, key: str) -> None:
        try:
            del self._objects[validate_key(key)]
        except KeyError:
            raise BlobNotFoundError(key) from None
        logger.debug("Deleted mem://%s", key)

    async def list_keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._objects if k.startswith(prefix))

    async def close(self) -> None:
        pass
