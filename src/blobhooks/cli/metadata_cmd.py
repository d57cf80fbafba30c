"""Metadata CLI commands — validate."""

import os
from pathlib import Path

import click

from blobhooks.hooks.builtin import register_builtin_hooks
from blobhooks.hooks.registry import HookRegistry
from blobhooks.hooks.types import parse_operations
from blobhooks.metadata.loader import MetadataLoader
from blobhooks.metadata.validator import validate_metadata_dir, validate_yaml_file


def resolve_metadata_path(explicit: Path | None = None) -> Path:
    """Resolve the metadata directory: option, then env, then ./metadata."""
    if explicit is not None:
        return explicit
    env_path = os.environ.get("BLOBHOOKS_METADATA_PATH")
    if env_path:
        return Path(env_path)
    return Path.cwd() / "metadata"


def hook_errors(loader: MetadataLoader) -> list[str]:
    """Check that every hook named in metadata is registered and well-formed."""
    register_builtin_hooks()
    errors = []
    for name in loader.list_entities():
        entity = loader.get_entity(name)
        for config in entity.hooks:
            if not HookRegistry.is_registered(config.name):
                errors.append(f"{name}: hook '{config.name}' is not registered")
                continue
            if config.on is not None:
                try:
                    parse_operations(config.on)
                except ValueError as e:
                    errors.append(f"{name}: hook '{config.name}': {e}")
            key_field = config.params.get("field")
            if key_field is not None and entity.get_field(key_field) is None:
                errors.append(
                    f"{name}: hook '{config.name}' refers to unknown field '{key_field}'"
                )
    return errors


@click.group()
def metadata():
    """Metadata commands."""
    pass


@metadata.command()
@click.option(
    "--path",
    "target_path",
    default=None,
    type=click.Path(exists=True, path_type=Path),
    help="Metadata directory, or a single entity YAML file.",
)
def validate(target_path: Path | None):
    """Validate metadata YAML files and their hook declarations."""
    if target_path is not None and target_path.is_file():
        schema_issues = validate_yaml_file(target_path)
        metadata_path = None
    else:
        metadata_path = resolve_metadata_path(target_path)
        if not metadata_path.exists():
            click.echo(f"Error: Metadata directory not found at {metadata_path}", err=True)
            raise SystemExit(1)
        schema_issues = validate_metadata_dir(metadata_path)

    errors = [i for i in schema_issues if i.severity == "error"]
    warnings = [i for i in schema_issues if i.severity == "warning"]

    for issue in schema_issues:
        colour = "red" if issue.severity == "error" else "yellow"
        click.echo(click.style(str(issue), fg=colour))

    if errors:
        click.echo(
            click.style(
                f"\n{len(errors)} schema error(s) found"
                + (f", {len(warnings)} warning(s)" if warnings else ""),
                fg="red",
                bold=True,
            )
        )
        raise SystemExit(1)

    # Semantic validation only makes sense for a whole directory
    if metadata_path is not None:
        try:
            loader = MetadataLoader(metadata_path)
            loader.load_all()
        except (ValueError, OSError) as e:
            click.echo(click.style(f"\nSemantic validation failed: {e}", fg="red"), err=True)
            raise SystemExit(1)

        problems = hook_errors(loader)
        for problem in problems:
            click.echo(click.style(problem, fg="red"))
        if problems:
            click.echo(click.style(f"\n{len(problems)} hook error(s) found", fg="red", bold=True))
            raise SystemExit(1)

        entities = loader.list_entities()
        click.echo(f"\nLoaded {len(entities)} entities:")
        for name in entities:
            entity = loader.get_entity(name)
            chain = ", ".join(h.name for h in entity.hooks) or "no hooks"
            click.echo(f"  ✓ {name} ({len(entity.fields)} fields, hooks: {chain})")

    click.echo(click.style("\nAll metadata is valid.", fg="green", bold=True))
