"""Blob storage: buckets addressed by opaque string keys."""

from blobhooks.blob.bucket import Bucket, validate_key
from blobhooks.blob.config import BucketConfig, open_bucket
from blobhooks.blob.filesystem import FileBucket
from blobhooks.blob.memory import MemoryBucket

__all__ = [
    "Bucket",
    "BucketConfig",
    "FileBucket",
    "MemoryBucket",
    "open_bucket",
    "validate_key",
]
