"""Tests for block and state models."""

import pytest
from pydantic import ValidationError

from edit_review.models import (
    ArmedState,
    BaseType,
    Block,
    BlockStatus,
    ChangeType,
    FileRecord,
    content_hash,
    derive_change_type,
)


def make_block(**overrides) -> Block:
    """Helper to create a Block with sensible defaults."""
    fields = dict(
        id="block-a1b2c3d4-L1-T1000",
        file_path="/workspace/app.py",
        start_line=1,
        separator_line=1,
        end_line=2,
        base_content="b\n",
        current_content="B\n",
        created_at=1000,
        last_modified=1000,
        change_type=ChangeType.MODIFY,
        lines_added=1,
        lines_deleted=1,
    )
    fields.update(overrides)
    return Block(**fields)


class TestBlock:
    """Tests for the Block model."""

    def test_defaults(self):
        block = make_block()
        assert block.status == BlockStatus.PENDING
        assert block.base_type == BaseType.ORIGINAL
        assert block.base_block_id is None
        assert block.is_pending

    def test_line_order_enforced(self):
        with pytest.raises(ValidationError):
            make_block(start_line=3, separator_line=2, end_line=4)
        with pytest.raises(ValidationError):
            make_block(separator_line=5, end_line=4)

    def test_negative_lines_rejected(self):
        with pytest.raises(ValidationError):
            make_block(start_line=-1)

    def test_frozen(self):
        block = make_block()
        with pytest.raises(ValidationError):
            block.status = BlockStatus.ACCEPTED

    def test_status_properties(self):
        assert make_block(status=BlockStatus.ACCEPTED).is_accepted
        assert make_block(status=BlockStatus.REJECTED).is_rejected
        assert make_block(status=BlockStatus.INVALIDATED).is_invalidated

    def test_new_content_is_empty_base(self):
        assert make_block(base_content="", change_type=ChangeType.ADD).is_new_content
        assert not make_block(base_content="\n").is_new_content

    def test_summary(self):
        assert make_block(change_type=ChangeType.ADD, lines_added=3).summary() == "+3 lines"
        assert make_block(change_type=ChangeType.DELETE, lines_deleted=2).summary() == "-2 lines"
        assert make_block(lines_added=4, lines_deleted=1).summary() == "+4/-1"

    def test_camel_case_aliases(self):
        block = make_block()
        dumped = block.model_dump(by_alias=True)
        assert dumped["filePath"] == "/workspace/app.py"
        assert dumped["separatorLine"] == 1
        assert Block.model_validate(dumped).model_dump() == block.model_dump()


def test_derive_change_type():
    assert derive_change_type("", "x\n") == ChangeType.ADD
    assert derive_change_type("x\n", "") == ChangeType.DELETE
    assert derive_change_type("x\n", "y\n") == ChangeType.MODIFY


def test_armed_state_expiry():
    armed = ArmedState(channel_id="ch-1", armed_at=100.0)
    assert not armed.is_expired(129.9, 30.0)
    assert armed.is_expired(130.0, 30.0)


def test_file_record_ordering():
    record = FileRecord(
        file_path="/workspace/app.py",
        original_content="",
        current_disk_content="",
    )
    late = make_block(id="block-a1b2c3d4-L9-T1", start_line=9, separator_line=9, end_line=10)
    early = make_block(id="block-a1b2c3d4-L2-T1", start_line=2, separator_line=2, end_line=3)
    record.blocks = {late.id: late, early.id: early}
    record.resort()

    assert record.block_order == [early.id, late.id]
    assert record.blocks_with_status(BlockStatus.PENDING) == [early, late]
    assert not record.is_marked_for_ai_edit

    record.armed = ArmedState(channel_id="ch-1", armed_at=0.0)
    assert record.marked_channel_id == "ch-1"


def test_content_hash_is_md5_hex():
    assert content_hash("") == "d41d8cd98f00b204e9800998ecf8427e"
