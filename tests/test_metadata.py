"""Tests for entity metadata loading and schema validation."""

from pathlib import Path

import pytest

from blobhooks.core.types import get_field_type, get_pg_type, get_storage_type
from blobhooks.metadata.loader import MetadataLoader
from blobhooks.metadata.validator import validate_metadata_dir, validate_yaml_file


def write_entity(metadata_dir: Path, filename: str, content: str) -> Path:
    path = metadata_dir / "entities" / filename
    path.write_text(content)
    return path


# =============================================================================
# Loader
# =============================================================================


class TestMetadataLoader:
    def test_loads_all_entities(self, loader):
        assert sorted(loader.list_entities()) == ["Note", "User"]

    def test_resolves_fields(self, user_entity):
        assert user_entity.primary_key == "id"
        assert user_entity.abbreviation == "USR"
        assert user_entity.field_names == ["id", "name", "avatarUrl", "createdAt", "updatedAt"]
        avatar = user_entity.get_field("avatarUrl")
        assert avatar.type == "blobKey"
        assert avatar.display_name == "Avatar Url"
        assert avatar.validation.required is True

    def test_resolves_hooks_in_declared_order(self, user_entity):
        assert [h.name for h in user_entity.hooks] == ["ensureObjectExists", "deleteOrphanObject"]
        guard = user_entity.hooks[0]
        assert guard.on == ["create"]
        assert guard.params == {"field": "avatarUrl"}

    def test_bare_on_key_parsed_as_true(self, metadata_dir):
        # PyYAML turns an unquoted `on:` into the boolean True
        write_entity(
            metadata_dir,
            "photo.yaml",
            "entity: Photo\nabbreviation: PHO\nfields:\n  - name: id\n    primaryKey: true\n"
            "hooks:\n  - name: ensureObjectExists\n    on: deleteOne\n",
        )
        loader = MetadataLoader(metadata_dir)
        loader.load_all()
        assert loader.get_entity("Photo").hooks[0].on == ["deleteOne"]

    def test_missing_on_is_none(self, metadata_dir):
        write_entity(
            metadata_dir,
            "photo.yaml",
            "entity: Photo\nabbreviation: PHO\nfields:\n  - name: id\n    primaryKey: true\n"
            "hooks:\n  - name: ensureObjectExists\n",
        )
        loader = MetadataLoader(metadata_dir)
        loader.load_all()
        assert loader.get_entity("Photo").hooks[0].on is None

    def test_defaults_and_auto(self, loader):
        note = loader.get_entity("Note")
        assert note.get_field("pinned").default is False
        assert note.get_field("authorId").auto == "context.userId"
        assert note.hooks == []

    def test_generated_abbreviation(self, metadata_dir):
        write_entity(metadata_dir, "photo.yaml", "entity: Photo\nfields:\n  - name: id\n")
        loader = MetadataLoader(metadata_dir)
        loader.load_all()
        assert loader.get_entity("Photo").abbreviation == "PHO"

    def test_duplicate_abbreviation(self, metadata_dir):
        write_entity(metadata_dir, "other.yaml", "entity: Other\nabbreviation: USR\nfields:\n  - name: id\n")
        with pytest.raises(ValueError, match="Duplicate abbreviation 'USR'"):
            MetadataLoader(metadata_dir).load_all()

    def test_abbreviation_too_long(self, metadata_dir):
        write_entity(metadata_dir, "other.yaml", "entity: Other\nabbreviation: TOOLONG\nfields:\n  - name: id\n")
        with pytest.raises(ValueError, match="must be 2-5 characters"):
            MetadataLoader(metadata_dir).load_all()

    def test_unknown_entity(self, loader):
        assert loader.get_entity("Nope") is None

    def test_missing_entities_dir(self, tmp_path):
        loader = MetadataLoader(tmp_path)
        loader.load_all()
        assert loader.list_entities() == []


# =============================================================================
# Validator
# =============================================================================


class TestValidator:
    def test_valid_directory(self, metadata_dir):
        assert validate_metadata_dir(metadata_dir) == []

    def test_bundled_example_is_valid(self):
        example = Path(__file__).parent.parent / "metadata"
        assert validate_metadata_dir(example) == []

    def test_missing_directory(self, tmp_path):
        issues = validate_metadata_dir(tmp_path / "nope")
        assert len(issues) == 1
        assert issues[0].severity == "error"

    def test_empty_directory_warns(self, tmp_path):
        issues = validate_metadata_dir(tmp_path)
        assert [i.severity for i in issues] == ["warning"]

    def test_unknown_operation(self, metadata_dir):
        path = write_entity(
            metadata_dir,
            "photo.yaml",
            "entity: Photo\nfields:\n  - name: id\nhooks:\n  - name: x\n    on: [upsert]\n",
        )
        issues = validate_yaml_file(path)
        assert issues
        assert issues[0].path.startswith("hooks[0]")

    def test_unknown_field_type(self, metadata_dir):
        path = write_entity(
            metadata_dir, "photo.yaml", "entity: Photo\nfields:\n  - name: id\n    type: blob\n"
        )
        issues = validate_yaml_file(path)
        assert [i.path for i in issues] == ["fields[0]/type"]

    def test_unknown_top_level_key(self, metadata_dir):
        path = write_entity(metadata_dir, "photo.yaml", "entity: Photo\nbucket: x\nfields:\n  - name: id\n")
        issues = validate_yaml_file(path)
        assert any("bucket" in i.message for i in issues)

    def test_yaml_parse_error(self, metadata_dir):
        path = write_entity(metadata_dir, "broken.yaml", "entity: [unclosed\n")
        issues = validate_yaml_file(path)
        assert "YAML parse error" in issues[0].message

    def test_empty_file(self, metadata_dir):
        path = write_entity(metadata_dir, "empty.yaml", "")
        issues = validate_yaml_file(path)
        assert "empty" in issues[0].message

    def test_issue_str(self, metadata_dir):
        path = write_entity(
            metadata_dir, "photo.yaml", "entity: Photo\nfields:\n  - name: id\n    type: blob\n"
        )
        text = str(validate_yaml_file(path)[0])
        assert text.startswith("[ERROR]")
        assert "fields[0]/type" in text


# =============================================================================
# Field types
# =============================================================================


class TestFieldTypes:
    def test_blob_key_is_text(self):
        assert get_storage_type("blobKey") == "TEXT"
        assert get_pg_type("blobKey") == "TEXT"

    def test_unknown_type_falls_back_to_string(self):
        assert get_field_type("mystery").name == "string"
