"""Exceptions for review engine operations.

Review actions and read paths never raise for malformed input; these are
reserved for seams where the caller has to decide what to do.
"""


class EditReviewError(Exception):
    """Base exception for all review engine operations."""


class ConfigError(EditReviewError):
    """Raised when an environment setting cannot be parsed."""


class StateError(EditReviewError):
    """Base exception for state registry operations."""


class FileRecordNotFoundError(StateError):
    """Raised when a file record is requested without an initial snapshot."""


class PersistenceError(EditReviewError):
    """Base exception for state snapshot operations."""


class SnapshotTooLargeError(PersistenceError):
    """Raised when a serialized snapshot exceeds the size ceiling."""


class SchemaVersionError(PersistenceError):
    """Raised when a stored snapshot was written by another schema version."""


class SnapshotDecodeError(PersistenceError):
    """Raised when a stored snapshot is not a readable envelope."""


class BlobStoreError(PersistenceError):
    """Raised when the blob store cannot read or write a payload."""
