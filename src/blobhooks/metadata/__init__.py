"""Entity metadata - YAML loading and schema validation."""

from blobhooks.metadata.loader import (
    EntityModel,
    FieldDefinition,
    HookConfig,
    MetadataLoader,
    ValidationRules,
)

__all__ = [
    "EntityModel",
    "FieldDefinition",
    "HookConfig",
    "MetadataLoader",
    "ValidationRules",
]
