"""Record CLI commands — create, get, delete, list.

Every mutation goes through the entity's hook chain, so creating a record
that points at a missing object fails exactly as it would in application code.
"""

import asyncio
import json
import sqlite3
from pathlib import Path

import click
import psycopg

from blobhooks.cli.bucket_cmd import bucket_config
from blobhooks.cli.metadata_cmd import resolve_metadata_path
from blobhooks.client import Client
from blobhooks.errors import BlobhooksError
from blobhooks.hooks.context import MutationContext
from blobhooks.metadata.loader import EntityModel
from blobhooks.persistence.config import DatabaseConfig


def _coerce(entity: EntityModel, assignment: str):
    """Parse a ``field=value`` assignment, converting numbers and booleans."""
    name, sep, raw = assignment.partition("=")
    if not sep or not name:
        raise click.BadParameter(f"expected field=value, got '{assignment}'")
    field = entity.get_field(name)
    if field is None:
        return name, raw
    if field.type == "integer":
        return name, int(raw)
    if field.type == "number":
        return name, float(raw)
    if field.type == "boolean":
        return name, raw.lower() in ("1", "true", "yes", "on")
    return name, raw


def _run(obj: dict, fn):
    """Open a client from the group options, run ``fn(client)``, and close it."""

    async def main():
        database = DatabaseConfig.from_env(base_path=Path.cwd())
        if obj["database_url"]:
            database = DatabaseConfig(url=obj["database_url"])
        client = Client.open(
            resolve_metadata_path(obj["metadata"]),
            database,
            bucket_config(obj["bucket_url"]),
        )
        async with client:
            ctx = MutationContext()
            if obj["timeout"]:
                ctx = ctx.with_timeout(obj["timeout"])
            return await fn(client, ctx)

    try:
        return asyncio.run(main())
    except (BlobhooksError, ValueError, sqlite3.Error, psycopg.Error) as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


@click.group()
@click.option(
    "--metadata",
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help="Metadata directory. Env: BLOBHOOKS_METADATA_PATH (default ./metadata).",
)
@click.option("--database-url", default=None, help="Database URL. Env: DATABASE_URL.")
@click.option("--bucket-url", default=None, help="Bucket URL. Env: BLOBHOOKS_BUCKET_URL.")
@click.option("--timeout", default=None, type=float, help="Deadline in seconds for each operation.")
@click.pass_context
def record(ctx, metadata, database_url, bucket_url, timeout):
    """Entity record commands."""
    ctx.obj = {
        "metadata": metadata,
        "database_url": database_url,
        "bucket_url": bucket_url,
        "timeout": timeout,
    }


@record.command()
@click.argument("entity")
@click.option("-s", "--set", "assignments", multiple=True, help="field=value (repeatable).")
@click.pass_obj
def create(obj, entity: str, assignments: tuple[str, ...]):
    """Create a record of ENTITY."""

    async def fn(client: Client, ctx: MutationContext):
        entity_client = client.entity(entity)
        fields = dict(_coerce(entity_client.entity, a) for a in assignments)
        return await entity_client.create(fields).save(ctx)

    _echo_json(_run(obj, fn))


@record.command()
@click.argument("entity")
@click.argument("id")
@click.pass_obj
def get(obj, entity: str, id: str):
    """Show the record of ENTITY with ID."""
    _echo_json(_run(obj, lambda client, ctx: client.entity(entity).get(ctx, id)))


@record.command()
@click.argument("entity")
@click.argument("id")
@click.pass_obj
def delete(obj, entity: str, id: str):
    """Delete the record of ENTITY with ID."""
    _run(obj, lambda client, ctx: client.entity(entity).delete_by_id(ctx, id))
    click.echo(f"Deleted {entity} {id}")


@record.command("list")
@click.argument("entity")
@click.option("--limit", default=None, type=int, help="Maximum number of records.")
@click.pass_obj
def list_cmd(obj, entity: str, limit: int | None):
    """List records of ENTITY."""
    records = _run(obj, lambda client, ctx: client.entity(entity).query(ctx, limit=limit))
    _echo_json(records)
