"""Local directory bucket.

Each object is a regular file under the bucket root; the key is the
file's path relative to the root. Writes go to a temporary file that is
renamed into place, so readers never observe a partial object. Blocking
filesystem calls run in a worker thread.
"""

import asyncio
import logging
import os
import tempfile
from pathlib import Path

from blobhooks.blob.bucket import validate_key
from blobhooks.errors import BlobError, BlobNotFoundError

logger = logging.getLogger(__name__)

# Suffix of in-flight temp files; never listed as objects
_TMP_SUFFIX = ".tmp-blob"


class FileBucket:
    """Bucket stored in a local directory (``file:///path/to/dir``)."""

    def __init__(self, root: Path | str, create_dir: bool = True):
        self.root = Path(root)
        self.url = f"file://{self.root.resolve().as_posix()}"
        if create_dir:
            self.root.mkdir(parents=True, exist_ok=True)
        elif not self.root.is_dir():
            raise BlobError(f"bucket directory {self.root} does not exist")

    def _path(self, key: str) -> Path:
        return self.root.joinpath(*validate_key(key).split("/"))

    async def exists(self, key: str) -> bool:
        path = self._path(key)
        return await asyncio.to_thread(path.is_file)

    async def write_all(self, key: str, data: bytes) -> None:
        path = self._path(key)
        await asyncio.to_thread(self._write, path, bytes(data))
        logger.debug("Wrote %d bytes to %s", len(data), path)

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, suffix=_TMP_SUFFIX)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def read_all(self, key: str) -> bytes:
        path = self._path(key)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except (FileNotFoundError, IsADirectoryError):
            raise BlobNotFoundError(key) from None

    async def delete(self, key: str) -> None:
        path = self._path(key)
        if not await asyncio.to_thread(path.is_file):
            raise BlobNotFoundError(key)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            raise BlobNotFoundError(key) from None
        logger.debug("Deleted %s", path)

    async def list_keys(self, prefix: str = "") -> list[str]:
        return await asyncio.to_thread(self._list, prefix)

    def _list(self, prefix: str) -> list[str]:
        keys = []
        for path in self.root.rglob("*"):
            if not path.is_file() or path.name.endswith(_TMP_SUFFIX):
                continue
            key = path.relative_to(self.root).as_posix()
            if key.startswith(prefix):
                keys.append(key)
        return sorted(keys)

    async def close(self) -> None:
        pass
