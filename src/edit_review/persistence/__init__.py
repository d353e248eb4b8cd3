"""Persistence of registry snapshots."""

from edit_review.persistence.blob_store import BlobStore, FileBlobStore, InMemoryBlobStore
from edit_review.persistence.codec import (
    STATE_VERSION,
    build_envelope,
    decode_state,
    describe_snapshot,
    encode_state,
    restore_registry,
)

__all__ = [
    "STATE_VERSION",
    "BlobStore",
    "FileBlobStore",
    "InMemoryBlobStore",
    "build_envelope",
    "decode_state",
    "describe_snapshot",
    "encode_state",
    "restore_registry",
]
