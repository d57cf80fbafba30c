"""Schema checks for entity YAML files.

Runs before the loader so that typos (an unknown field type, a misspelled
operation in a hook's ``on:`` list) are reported per file and per location
instead of surfacing later as a KeyError or an unregistered hook.

Usage:
    issues = validate_metadata_dir(Path("metadata"))
    for issue in issues:
        print(issue)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

logger = logging.getLogger(__name__)

ENTITY_SCHEMA = "entity.schema.json"
_SCHEMA_ROOT = Path(__file__).parent / "schemas"


@dataclass
class ValidationIssue:
    """One problem found in a metadata file."""

    file: Path
    message: str
    path: str = ""  # location in the document, e.g. "hooks[0]/on"
    severity: str = "error"  # or "warning"

    def __str__(self) -> str:
        where = f" at {self.path}" if self.path else ""
        return f"[{self.severity.upper()}] {self.file}{where}: {self.message}"


@lru_cache(maxsize=None)
def _validator(schema_name: str) -> Draft202012Validator:
    schema = json.loads((_SCHEMA_ROOT / schema_name).read_text())
    return Draft202012Validator(schema)


def _normalize_keys(node: Any) -> Any:
    """Turn the boolean key True back into "on" (YAML 1.1 reads `on:` as a bool)."""
    if isinstance(node, dict):
        return {("on" if k is True else k): _normalize_keys(v) for k, v in node.items()}
    if isinstance(node, list):
        return [_normalize_keys(v) for v in node]
    return node


def _location(error: ValidationError) -> str:
    location = ""
    for part in error.absolute_path:
        if isinstance(part, int):
            location += f"[{part}]"
        else:
            location += f"/{part}" if location else str(part)
    return location


def validate_yaml_file(
    yaml_path: Path,
    schema_name: str = ENTITY_SCHEMA,
) -> list[ValidationIssue]:
    """Check one YAML file against a bundled schema.

    Returns:
        Issues found, ordered by location; empty when the file is valid
    """
    try:
        document = yaml.safe_load(yaml_path.read_text())
    except yaml.YAMLError as e:
        return [ValidationIssue(yaml_path, f"YAML parse error: {e}")]

    if document is None:
        return [ValidationIssue(yaml_path, "File is empty or contains only whitespace")]

    errors = _validator(schema_name).iter_errors(_normalize_keys(document))
    return [
        ValidationIssue(yaml_path, error.message, _location(error))
        for error in sorted(errors, key=lambda e: [str(p) for p in e.absolute_path])
    ]


def validate_metadata_dir(metadata_dir: Path) -> list[ValidationIssue]:
    """Check every ``entities/*.yaml`` file under a metadata directory.

    A missing directory is an error; a directory without entity files is a
    warning.
    """
    if not metadata_dir.is_dir():
        return [ValidationIssue(metadata_dir, f"Metadata directory does not exist: {metadata_dir}")]

    entities_dir = metadata_dir / "entities"
    files = sorted(entities_dir.glob("*.yaml")) if entities_dir.is_dir() else []
    if not files:
        return [ValidationIssue(entities_dir, "No entity files found", severity="warning")]

    issues: list[ValidationIssue] = []
    for path in files:
        found = validate_yaml_file(path)
        logger.debug("Validated %s: %d issue(s)", path, len(found))
        issues.extend(found)
    return issues
