"""blobhooks CLI entry point."""

import logging
import os

import click

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=lambda: os.environ.get("BLOBHOOKS_LOG_LEVEL", "WARNING").upper(),
    show_default="WARNING",
    help="Logging verbosity (env: BLOBHOOKS_LOG_LEVEL).",
)
def cli(log_level: str):
    """blobhooks — keep entity records and bucket objects in sync."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Register subcommand groups
from blobhooks.cli.bucket_cmd import bucket  # noqa: E402
from blobhooks.cli.metadata_cmd import metadata  # noqa: E402
from blobhooks.cli.record_cmd import record  # noqa: E402

cli.add_command(metadata)
cli.add_command(bucket)
cli.add_command(record)
