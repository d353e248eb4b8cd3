"""Versioned serialization of the whole state registry.

The envelope is ``{"version", "timestamp", "fileStates": [...]}`` with one
entry per file record and each record's blocks in review order. Only an
exact version match is restored; there is no migration.
"""

import json
import time

from pydantic import ValidationError

from edit_review.config import DEFAULT_MAX_STATE_BYTES
from edit_review.exceptions import (
    SchemaVersionError,
    SnapshotDecodeError,
    SnapshotTooLargeError,
)
from edit_review.models import FileRecord, FileStateSnapshot, SnapshotInfo, StateEnvelope
from edit_review.state.registry import StateRegistry

STATE_VERSION = "1.0"


def snapshot_record(record: FileRecord) -> FileStateSnapshot:
    return FileStateSnapshot(
        file_path=record.file_path,
        original_content=record.original_content,
        current_disk_content=record.current_disk_content,
        blocks=record.ordered_blocks(),
        block_order=list(record.block_order),
        is_marked_for_ai_edit=record.is_marked_for_ai_edit,
        marked_channel_id=record.marked_channel_id,
        armed_at=record.armed.armed_at if record.armed else None,
        last_ai_edit_time=record.last_ai_edit_time,
        total_blocks_created=record.total_blocks_created,
        total_blocks_accepted=record.total_blocks_accepted,
        total_blocks_rejected=record.total_blocks_rejected,
        content_hash=record.content_hash,
        last_sync_time=record.last_sync_time,
    )


def build_envelope(registry: StateRegistry, timestamp_ms: int | None = None) -> StateEnvelope:
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return StateEnvelope(
        version=STATE_VERSION,
        timestamp=timestamp_ms,
        file_states=[snapshot_record(record) for record in registry.export_records()],
    )


def encode_state(
    registry: StateRegistry,
    max_bytes: int = DEFAULT_MAX_STATE_BYTES,
    timestamp_ms: int | None = None,
) -> str:
    """Serialize every record in the registry to a JSON blob.

    Raises:
        SnapshotTooLargeError: If the encoded blob exceeds ``max_bytes``.
            Nothing is truncated; the caller should skip the save.
    """
    envelope = build_envelope(registry, timestamp_ms)
    blob = envelope.model_dump_json(by_alias=True)
    size = len(blob.encode("utf-8"))
    if size > max_bytes:
        raise SnapshotTooLargeError(
            f"Snapshot of {size} bytes exceeds the {max_bytes} byte ceiling"
        )
    return blob


def _load_json(blob: str) -> dict:
    try:
        data = json.loads(blob)
    except (TypeError, ValueError) as exc:
        raise SnapshotDecodeError(f"Snapshot is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise SnapshotDecodeError("Snapshot is not a JSON object")
    return data


def decode_state(blob: str) -> StateEnvelope:
    """Parse and version-check a stored blob.

    Raises:
        SchemaVersionError: If the blob's version is not STATE_VERSION.
        SnapshotDecodeError: If the blob is not a well-formed envelope.
    """
    data = _load_json(blob)
    version = data.get("version")
    if version != STATE_VERSION:
        raise SchemaVersionError(
            f"Snapshot version {version!r} does not match {STATE_VERSION!r}"
        )
    try:
        return StateEnvelope.model_validate(data)
    except ValidationError as exc:
        raise SnapshotDecodeError(f"Snapshot envelope is malformed: {exc}") from exc


def restore_registry(registry: StateRegistry, envelope: StateEnvelope) -> None:
    """Replace the registry's contents with the envelope's records."""
    registry.clear()
    for file_state in envelope.file_states:
        registry.load_snapshot(file_state)


def describe_snapshot(blob: str | None) -> SnapshotInfo:
    """Summarize a stored blob without restoring it."""
    if not blob:
        return SnapshotInfo(exists=False)
    try:
        data = _load_json(blob)
    except SnapshotDecodeError:
        return SnapshotInfo(exists=False)
    file_states = data.get("fileStates") or []
    return SnapshotInfo(
        exists=True,
        version=data.get("version"),
        timestamp=data.get("timestamp"),
        file_count=len(file_states),
        total_blocks=sum(
            len(state.get("blocks") or [])
            for state in file_states
            if isinstance(state, dict)
        ),
        size=len(blob.encode("utf-8")),
    )
