"""Field types usable in entity metadata and their column types."""

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldType:
    name: str
    storage_type: str  # SQLite
    pg_type: str  # PostgreSQL


def _text(name: str) -> FieldType:
    return FieldType(name, "TEXT", "TEXT")


FIELD_TYPES: dict[str, FieldType] = {
    t.name: t
    for t in [
        _text("id"),  # sequence ids like "USR-00001"
        _text("uuid"),
        _text("string"),
        _text("name"),
        _text("text"),
        _text("email"),
        _text("url"),
        _text("blobKey"),  # key of an object in the configured bucket
        _text("date"),  # ISO 8601
        _text("datetime"),  # ISO 8601
        FieldType("integer", "INTEGER", "BIGINT"),
        FieldType("number", "REAL", "DOUBLE PRECISION"),
        FieldType("boolean", "INTEGER", "BOOLEAN"),
    ]
}


def get_field_type(type_name: str) -> FieldType:
    """Get field type definition, defaulting to string if unknown."""
    return FIELD_TYPES.get(type_name, FIELD_TYPES["string"])


def get_storage_type(type_name: str) -> str:
    return get_field_type(type_name).storage_type


def get_pg_type(type_name: str) -> str:
    return get_field_type(type_name).pg_type
