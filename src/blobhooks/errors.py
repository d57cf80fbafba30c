"""Error taxonomy for blobhooks.

Mutation errors abort a hook chain and are surfaced to the caller with the
name of the stage that raised them. Blob errors come from bucket
implementations and are usually wrapped by a stage into a mutation error.
"""

from typing import Any


class BlobhooksError(Exception):
    """Root of all blobhooks errors."""


# =============================================================================
# Mutation errors
# =============================================================================


class MutationError(BlobhooksError):
    """A mutation could not be applied.

    Attributes:
        message: Human-readable description
        stage: Name of the hook stage that failed (None for the terminal apply)
    """

    def __init__(self, message: str, stage: str | None = None):
        super().__init__(message)
        self.message = message
        self.stage = stage

    def __str__(self) -> str:
        if self.stage:
            return f"{self.stage}: {self.message}"
        return self.message


class MissingFieldError(MutationError):
    """A field required by a stage or by the entity is absent from the mutation."""

    def __init__(self, field: str, stage: str | None = None):
        super().__init__(f"missing required field '{field}'", stage)
        self.field = field


class ResourceCheckError(MutationError):
    """The existence check against the bucket failed or found nothing."""

    def __init__(self, key: str, reason: str, stage: str | None = None):
        super().__init__(f"object '{key}' {reason}", stage)
        self.key = key


class PrimaryFetchError(MutationError):
    """The prior record could not be fetched from the primary store."""

    def __init__(self, entity: str, id: Any, reason: str, stage: str | None = None):
        super().__init__(f"failed to fetch {entity} '{id}': {reason}", stage)
        self.entity = entity
        self.id = id


class ResourceMutationError(MutationError):
    """A write or delete against the bucket failed."""

    def __init__(self, key: str, reason: str, stage: str | None = None):
        super().__init__(f"failed to mutate object '{key}': {reason}", stage)
        self.key = key


class MutationCancelledError(MutationError):
    """The mutation context was cancelled or its deadline passed."""


class ContinuationReusedError(MutationError):
    """A stage called its continuation more than once."""


class MutationAppliedError(MutationError):
    """A mutation was changed or re-applied after reaching the store."""


class NotFoundError(MutationError):
    """A record does not exist in the primary store."""

    def __init__(self, entity: str, id: Any, stage: str | None = None):
        super().__init__(f"{entity} '{id}' not found", stage)
        self.entity = entity
        self.id = id


# =============================================================================
# Blob errors
# =============================================================================


class BlobError(BlobhooksError):
    """A bucket operation failed."""


class BlobNotFoundError(BlobError):
    """The requested key does not exist in the bucket."""

    def __init__(self, key: str):
        super().__init__(f"object '{key}' not found")
        self.key = key


class InvalidKeyError(BlobError):
    """The key is empty or escapes the bucket root."""
