"""Bucket configuration and factory."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import unquote, urlparse

if TYPE_CHECKING:
    from blobhooks.blob.bucket import Bucket


@dataclass
class BucketConfig:
    """Bucket connection configuration.

    Supports mem://, file:///path and s3://bucket[/prefix] URL schemes.
    """

    url: str
    s3_region: str | None = None
    s3_endpoint_url: str | None = None
    s3_profile: str | None = None

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> BucketConfig:
        """Create config from environment variables.

        Resolution order:
        1. BLOBHOOKS_BUCKET_URL env var
        2. Default: file:///{base_path}/data/bucket
        3. Default without base path: mem://
        """
        url = os.environ.get("BLOBHOOKS_BUCKET_URL")
        if not url:
            if base_path:
                url = f"file://{(base_path / 'data' / 'bucket').resolve().as_posix()}"
            else:
                url = "mem://"

        return cls(
            url=url,
            s3_region=os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION"),
            s3_endpoint_url=os.environ.get("BLOBHOOKS_S3_ENDPOINT_URL"),
            s3_profile=os.environ.get("AWS_PROFILE"),
        )

    @property
    def scheme(self) -> str:
        return urlparse(self.url).scheme


def open_bucket(config: BucketConfig) -> Bucket:
    """Open a bucket based on the URL scheme.

    Args:
        config: Bucket configuration with URL.

    Returns:
        A Bucket instance.

    Raises:
        ValueError: For unsupported or malformed URLs.
    """
    parsed = urlparse(config.url)

    if parsed.scheme == "mem":
        from blobhooks.blob.memory import MemoryBucket

        return MemoryBucket(config.url)

    if parsed.scheme == "file":
        from blobhooks.blob.filesystem import FileBucket

        # file:///abs/dir or file://./relative/dir
        path = unquote(parsed.netloc + parsed.path)
        if not path:
            raise ValueError(f"Bucket URL has no directory: {config.url}")
        return FileBucket(Path(path))

    if parsed.scheme == "s3":
        from blobhooks.blob.s3 import S3Bucket, create_s3_client

        if not parsed.netloc:
            raise ValueError(f"Bucket URL has no bucket name: {config.url}")
        client = create_s3_client(
            region=config.s3_region,
            endpoint_url=config.s3_endpoint_url,
            profile=config.s3_profile,
        )
        return S3Bucket(client, parsed.netloc, parsed.path)

    raise ValueError(f"Unsupported bucket URL scheme: {config.url}")
