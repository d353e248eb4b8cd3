"""Tests for state snapshots and blob stores."""

import json

import pytest

from edit_review.exceptions import (
    SchemaVersionError,
    SnapshotDecodeError,
    SnapshotTooLargeError,
)
from edit_review.persistence import (
    STATE_VERSION,
    FileBlobStore,
    InMemoryBlobStore,
    decode_state,
    describe_snapshot,
    encode_state,
    restore_registry,
)
from edit_review.state import StateRegistry

FILE_PATH = "/workspace/src/app.py"


@pytest.fixture
def populated(registry):
    first = registry.record_edit_result(FILE_PATH, "a\nb\nc\n", "a\nB\nc\n", channel_id="ch-1")
    registry.accept(first.id)
    registry.record_edit_result(FILE_PATH, "a\nB\nc\n", "a\nB\nc\nd\n", channel_id="ch-2")
    return registry


class TestEncodeDecode:
    """Tests for encode_state/decode_state."""

    def test_wire_format_is_camel_case(self, populated):
        data = json.loads(encode_state(populated, timestamp_ms=123))
        assert data["version"] == STATE_VERSION == "1.0"
        assert data["timestamp"] == 123
        state = data["fileStates"][0]
        assert state["totalBlocksCreated"] == 2
        assert state["blocks"][0]["separatorLine"] == 1
        assert state["blocks"][0]["status"] == "accepted"

    def test_restore_reproduces_registry(self, populated, clock):
        envelope = decode_state(encode_state(populated))
        restored = StateRegistry(clock=clock)
        restore_registry(restored, envelope)

        assert [b.model_dump() for b in restored.blocks_of(FILE_PATH)] == [
            b.model_dump() for b in populated.blocks_of(FILE_PATH)
        ]
        assert restored.file_stats(FILE_PATH) == populated.file_stats(FILE_PATH)
        assert restored.current_snapshot(FILE_PATH) == "a\nB\nc\nd\n"
        pending = restored.pending_blocks_of(FILE_PATH)[0]
        assert restored.reject(pending.id) is not None

    def test_armed_state_survives(self, registry, clock):
        registry.mark_file_for_incoming_edit(FILE_PATH, "ch-9", "a\n")
        restored = StateRegistry(clock=clock)
        restore_registry(restored, decode_state(encode_state(registry)))
        assert restored.armed_channel_id(FILE_PATH) == "ch-9"

    def test_size_ceiling(self, populated):
        with pytest.raises(SnapshotTooLargeError):
            encode_state(populated, max_bytes=10)

    def test_version_mismatch(self):
        with pytest.raises(SchemaVersionError):
            decode_state('{"version": "0.9", "timestamp": 0, "fileStates": []}')

    def test_malformed_blobs(self):
        with pytest.raises(SnapshotDecodeError):
            decode_state("not json")
        with pytest.raises(SnapshotDecodeError):
            decode_state("[]")
        with pytest.raises(SnapshotDecodeError):
            decode_state('{"version": "1.0", "fileStates": "nope"}')


def test_describe_snapshot(populated):
    blob = encode_state(populated, timestamp_ms=42)
    info = describe_snapshot(blob)
    assert info.exists
    assert info.version == "1.0"
    assert info.timestamp == 42
    assert info.file_count == 1
    assert info.total_blocks == 2
    assert info.size == len(blob.encode("utf-8"))

    assert not describe_snapshot(None).exists
    assert not describe_snapshot("{broken").exists


class TestBlobStores:
    """Tests for the blob store implementations."""

    def test_in_memory(self):
        store = InMemoryBlobStore()
        assert store.get("k") is None
        store.put("k", "v")
        assert store.get("k") == "v"
        store.delete("k")
        store.delete("k")
        assert store.get("k") is None

    def test_file_store_round_trip(self, tmp_path):
        store = FileBlobStore(tmp_path / "state")
        store.put("edit_review.state", '{"a": 1}')

        path = store.path_for("edit_review.state")
        assert path == tmp_path / "state" / "edit_review.state.json"
        assert store.get("edit_review.state") == '{"a": 1}'
        assert list((tmp_path / "state").iterdir()) == [path]

        store.put("edit_review.state", '{"a": 2}')
        assert store.get("edit_review.state") == '{"a": 2}'

        store.delete("edit_review.state")
        assert store.get("edit_review.state") is None
        store.delete("edit_review.state")

    def test_file_store_sanitizes_keys(self, tmp_path):
        store = FileBlobStore(tmp_path)
        assert store.path_for("a/b:c").name == "a_b_c.json"
