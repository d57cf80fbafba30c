"""Bucket Protocol: shared interface for all blob storage backends."""

from typing import Protocol, runtime_checkable

from blobhooks.errors import InvalidKeyError


@runtime_checkable
class Bucket(Protocol):
    """Interface all bucket implementations must implement.

    Keys are opaque slash-separated strings such as ``"avatars/a8m.png"``.
    ``read_all`` and ``delete`` raise BlobNotFoundError for missing keys.
    """

    url: str

    async def exists(self, key: str) -> bool: ...

    async def write_all(self, key: str, data: bytes) -> None: ...

    async def read_all(self, key: str) -> bytes: ...

    async def delete(self, key: str) -> None: ...

    async def list_keys(self, prefix: str = "") -> list[str]: ...

    async def close(self) -> None: ...


def validate_key(key: str) -> str:
    """Reject keys that are empty or could escape the bucket root.

    Raises:
        InvalidKeyError: If the key is unusable
    """
    if not isinstance(key, str) or not key:
        raise InvalidKeyError("object key must be a non-empty string")
    if key.startswith("/") or "\\" in key:
        raise InvalidKeyError(f"object key '{key}' must be a relative slash-separated path")
    if any(part in ("", ".", "..") for part in key.split("/")):
        raise InvalidKeyError(f"object key '{key}' contains an invalid path segment")
    return key
