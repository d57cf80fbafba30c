"""Entity metadata: YAML files under ``<metadata>/entities`` turned into models.

Each entity file declares its fields and, optionally, the hooks that wrap
its mutations:

    entity: User
    abbreviation: USR
    fields:
      - name: avatarUrl
        type: blobKey
    hooks:
      - name: ensureObjectExists
        on: [create]
        params: { field: avatarUrl }
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

_ABBREVIATION = re.compile(r"^[A-Z0-9]{2,5}$")


@dataclass
class ValidationRules:
    required: bool = False


@dataclass
class FieldDefinition:
    name: str
    type: str
    display_name: str
    primary_key: bool = False
    read_only: bool = False
    default: Any = None
    auto: str | None = None  # "now", "context.userId", "context.tenantId"
    validation: ValidationRules = field(default_factory=ValidationRules)

    @classmethod
    def from_dict(cls, data: dict) -> "FieldDefinition":
        name = data["name"]
        rules = data.get("validation") or {}
        return cls(
            name=name,
            type=data.get("type", "string"),
            display_name=data.get("displayName") or _humanize(name),
            primary_key=bool(data.get("primaryKey", False)),
            read_only=bool(data.get("readOnly", False)),
            default=data.get("default"),
            auto=data.get("auto"),
            validation=ValidationRules(required=bool(rules.get("required", False))),
        )


@dataclass
class HookConfig:
    """A hook reference from entity metadata.

    ``on`` is None when the YAML omits it; the hook's registered default
    operations apply in that case.
    """

    name: str
    on: list[str] | None = None
    params: dict[str, Any] = field(default_factory=dict)
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "HookConfig":
        # PyYAML reads a bare `on:` key as the boolean True
        on = data["on"] if "on" in data else data.get(True)
        if isinstance(on, str):
            on = [on]
        return cls(
            name=data["name"],
            on=on,
            params=dict(data.get("params") or {}),
            description=data.get("description", ""),
        )


@dataclass
class EntityModel:
    name: str
    display_name: str
    plural_name: str
    primary_key: str
    fields: list[FieldDefinition]
    abbreviation: str = ""  # 2-5 chars, uppercase, globally unique
    scope: str = "global"  # "tenant" or "global"
    hooks: list[HookConfig] = field(default_factory=list)  # declared order = chain order

    @classmethod
    def from_dict(cls, data: dict) -> "EntityModel":
        name = data["entity"]
        fields = [FieldDefinition.from_dict(f) for f in data.get("fields") or []]
        primary_key = next((f.name for f in fields if f.primary_key), "id")
        return cls(
            name=name,
            display_name=data.get("displayName", name),
            plural_name=data.get("pluralName", f"{name}s"),
            primary_key=primary_key,
            fields=fields,
            abbreviation=str(data.get("abbreviation") or name[:3]).upper(),
            scope=data.get("scope", "global"),
            hooks=[HookConfig.from_dict(h) for h in data.get("hooks") or []],
        )

    def get_field(self, name: str) -> FieldDefinition | None:
        return next((f for f in self.fields if f.name == name), None)

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]


def _humanize(name: str) -> str:
    """avatarUrl -> Avatar Url"""
    return re.sub(r"(?<!^)(?=[A-Z])", " ", name).title()


class MetadataLoader:
    """Loads entity definitions from YAML files under ``<path>/entities``."""

    def __init__(self, metadata_path: Path):
        self.metadata_path = Path(metadata_path)
        self.entities: dict[str, EntityModel] = {}

    def load_all(self) -> None:
        """Load every entity file, then check abbreviations across entities.

        Raises:
            ValueError: If an abbreviation is malformed or used twice
        """
        entities_path = self.metadata_path / "entities"
        if entities_path.is_dir():
            for yaml_file in sorted(entities_path.glob("*.yaml")):
                data = yaml.safe_load(yaml_file.read_text())
                if data and "entity" in data:
                    entity = EntityModel.from_dict(data)
                    self.entities[entity.name] = entity
        self._check_abbreviations()

    def _check_abbreviations(self) -> None:
        owners: dict[str, str] = {}
        for entity in self.entities.values():
            abbrev = entity.abbreviation
            if not 2 <= len(abbrev) <= 5:
                raise ValueError(
                    f"Entity '{entity.name}' abbreviation '{abbrev}' must be 2-5 characters"
                )
            if not _ABBREVIATION.match(abbrev):
                raise ValueError(
                    f"Entity '{entity.name}' abbreviation '{abbrev}' must be alphanumeric"
                )
            if abbrev in owners:
                raise ValueError(
                    f"Duplicate abbreviation '{abbrev}' used by both "
                    f"'{owners[abbrev]}' and '{entity.name}'"
                )
            owners[abbrev] = entity.name

    def get_entity(self, name: str) -> EntityModel | None:
        """Get a resolved entity by name."""
        return self.entities.get(name)

    def list_entities(self) -> list[str]:
        """List all entity names."""
        return list(self.entities)
