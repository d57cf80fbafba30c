"""Shared fixtures: a User entity whose avatar lives in a bucket."""

from pathlib import Path

import pytest

from blobhooks.hooks.registry import HookRegistry
from blobhooks.metadata.loader import MetadataLoader

USER_YAML = """\
entity: User
abbreviation: USR
fields:
  - name: id
    type: id
    primaryKey: true
  - name: name
    type: name
    validation:
      required: true
  - name: avatarUrl
    type: blobKey
    validation:
      required: true
  - name: createdAt
    type: datetime
    auto: now
  - name: updatedAt
    type: datetime
    auto: now
hooks:
  - name: ensureObjectExists
    on: [create]
    params:
      field: avatarUrl
  - name: deleteOrphanObject
    on: [deleteOne]
    params:
      field: avatarUrl
"""

NOTE_YAML = """\
entity: Note
abbreviation: NOTE
fields:
  - name: id
    type: id
    primaryKey: true
  - name: title
    type: string
  - name: pinned
    type: boolean
    default: false
  - name: authorId
    type: string
    auto: context.userId
  - name: createdAt
    type: datetime
    auto: now
    readOnly: true
"""


@pytest.fixture(autouse=True)
def clear_hook_registry():
    """Clear hook registry before and after each test."""
    HookRegistry.clear()
    yield
    HookRegistry.clear()


@pytest.fixture
def metadata_dir(tmp_path) -> Path:
    entities = tmp_path / "metadata" / "entities"
    entities.mkdir(parents=True)
    (entities / "user.yaml").write_text(USER_YAML)
    (entities / "note.yaml").write_text(NOTE_YAML)
    return tmp_path / "metadata"


@pytest.fixture
def loader(metadata_dir) -> MetadataLoader:
    loader = MetadataLoader(metadata_dir)
    loader.load_all()
    return loader


@pytest.fixture
def user_entity(loader):
    return loader.get_entity("User")
