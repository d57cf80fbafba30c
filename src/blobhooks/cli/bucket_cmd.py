"""Bucket CLI commands — ls, upload, rm."""

import asyncio
from pathlib import Path

import click

from blobhooks.blob.config import BucketConfig, open_bucket
from blobhooks.errors import BlobError


def bucket_config(url: str | None) -> BucketConfig:
    """Bucket config from an explicit URL, else from env with ./data/bucket as default."""
    config = BucketConfig.from_env(base_path=Path.cwd())
    if url:
        config.url = url
    return config


def _run(coro_fn, url: str | None):
    async def main():
        bucket = open_bucket(bucket_config(url))
        try:
            return await coro_fn(bucket)
        finally:
            await bucket.close()

    try:
        return asyncio.run(main())
    except (BlobError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)


bucket_url_option = click.option(
    "--bucket-url",
    default=None,
    help="Bucket URL (mem://, file:///dir, s3://bucket/prefix). Env: BLOBHOOKS_BUCKET_URL.",
)


@click.group()
def bucket():
    """Bucket commands."""
    pass


@bucket.command("ls")
@bucket_url_option
@click.option("--prefix", default="", help="Only list keys starting with this prefix.")
def ls_cmd(bucket_url: str | None, prefix: str):
    """List object keys."""
    keys = _run(lambda b: b.list_keys(prefix), bucket_url)
    for key in keys:
        click.echo(key)
    if not keys:
        click.echo("No objects found.")


@bucket.command()
@bucket_url_option
@click.argument("key")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def upload(bucket_url: str | None, key: str, file: Path):
    """Upload FILE under KEY."""
    data = file.read_bytes()
    _run(lambda b: b.write_all(key, data), bucket_url)
    click.echo(f"Uploaded {key} ({len(data)} bytes)")


@bucket.command("rm")
@bucket_url_option
@click.argument("key")
def rm_cmd(bucket_url: str | None, key: str):
    """Delete the object at KEY."""
    _run(lambda b: b.delete(key), bucket_url)
    click.echo(f"Deleted {key}")
