"""S3 bucket backed by boto3.

Keys are stored under an optional prefix inside the S3 bucket. boto3 is
synchronous, so every call runs in a worker thread.
"""

import asyncio
import logging
from typing import Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from blobhooks.blob.bucket import validate_key
from blobhooks.errors import BlobError, BlobNotFoundError

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def _is_not_found(error: ClientError) -> bool:
    return str(error.response.get("Error", {}).get("Code")) in _NOT_FOUND_CODES


def create_s3_client(
    region: str | None = None,
    endpoint_url: str | None = None,
    profile: str | None = None,
) -> Any:
    """Create a boto3 S3 client.

    Args:
        region: AWS region name
        endpoint_url: Custom endpoint (MinIO, localstack)
        profile: Named AWS profile

    Returns:
        Boto3 S3 client.
    """
    session_kwargs: dict[str, str] = {}
    if profile:
        session_kwargs["profile_name"] = profile
    if region:
        session_kwargs["region_name"] = region
    session = boto3.session.Session(**session_kwargs)
    return session.client(
        "s3",
        endpoint_url=endpoint_url,
        config=BotoConfig(retries={"max_attempts": 5, "mode": "standard"}),
    )


class S3Bucket:
    """Bucket stored in S3 (``s3://bucket/optional/prefix``)."""

    def __init__(self, client: Any, bucket: str, prefix: str = ""):
        self.client = client
        self.bucket = bucket
        self.prefix = prefix.strip("/")
        location = f"{bucket}/{self.prefix}" if self.prefix else bucket
        self.url = f"s3://{location}"

    def _object_key(self, key: str) -> str:
        validate_key(key)
        return f"{self.prefix}/{key}" if self.prefix else key

    def _bucket_key(self, object_key: str) -> str:
        if self.prefix:
            return object_key[len(self.prefix) + 1 :]
        return object_key

    async def exists(self, key: str) -> bool:
        object_key = self._object_key(key)
        try:
            await asyncio.to_thread(
                self.client.head_object, Bucket=self.bucket, Key=object_key
            )
        except ClientError as e:
            if _is_not_found(e):
                return False
            raise BlobError(f"failed to stat s3://{self.bucket}/{object_key}: {e}") from e
        except BotoCoreError as e:
            raise BlobError(f"failed to stat s3://{self.bucket}/{object_key}: {e}") from e
        return True

    async def write_all(self, key: str, data: bytes) -> None:
        object_key = self._object_key(key)
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=object_key,
                Body=bytes(data),
            )
        except (ClientError, BotoCoreError) as e:
            raise BlobError(f"failed to write s3://{self.bucket}/{object_key}: {e}") from e
        logger.debug("Wrote %d bytes to s3://%s/%s", len(data), self.bucket, object_key)

    async def read_all(self, key: str) -> bytes:
        object_key = self._object_key(key)
        try:
            return await asyncio.to_thread(self._read, object_key)
        except ClientError as e:
            if _is_not_found(e):
                raise BlobNotFoundError(key) from e
            raise BlobError(f"failed to read s3://{self.bucket}/{object_key}: {e}") from e
        except BotoCoreError as e:
            raise BlobError(f"failed to read s3://{self.bucket}/{object_key}: {e}") from e

    def _read(self, object_key: str) -> bytes:
        response = self.client.get_object(Bucket=self.bucket, Key=object_key)
        return response["Body"].read()

    async def delete(self, key: str) -> None:
        # S3 deletes are silent for missing keys; stat first to report them
        if not await self.exists(key):
            raise BlobNotFoundError(key)
        object_key = self._object_key(key)
        try:
            await asyncio.to_thread(
                self.client.delete_object, Bucket=self.bucket, Key=object_key
            )
        except (ClientError, BotoCoreError) as e:
            raise BlobError(f"failed to delete s3://{self.bucket}/{object_key}: {e}") from e
        logger.debug("Deleted s3://%s/%s", self.bucket, object_key)

    async def list_keys(self, prefix: str = "") -> list[str]:
        full_prefix = f"{self.prefix}/{prefix}" if self.prefix else prefix
        try:
            object_keys = await asyncio.to_thread(self._list, full_prefix)
        except (ClientError, BotoCoreError) as e:
            raise BlobError(f"failed to list s3://{self.bucket}/{full_prefix}: {e}") from e
        return sorted(self._bucket_key(k) for k in object_keys)

    def _list(self, full_prefix: str) -> list[str]:
        paginator = self.client.get_paginator("list_objects_v2")
        keys: list[str] = []
        for page in paginator.paginate(Bucket=self.bucket, Prefix=full_prefix):
            keys.extend(obj["Key"] for obj in page.get("Contents", []))
        return keys

    async def close(self) -> None:
        await asyncio.to_thread(self.client.close)
