"""Models for per-file review state and statistics."""

import hashlib

from pydantic import BaseModel, ConfigDict, Field

from edit_review.models.block_models import Block, BlockStatus


def content_hash(content: str) -> str:
    """md5 hex digest of a snapshot, used to detect external modification."""
    return hashlib.md5(content.encode("utf-8")).hexdigest()


class ArmedState(BaseModel):
    """A file marked as about to receive an AI edit."""

    model_config = ConfigDict(frozen=True)

    channel_id: str
    armed_at: float  # epoch seconds from the registry clock

    def is_expired(self, now: float, timeout_seconds: float) -> bool:
        return now - self.armed_at >= timeout_seconds


class FileRecord(BaseModel):
    """All review state for one file.

    Owned and mutated only by the StateRegistry; everything handed out to
    callers is a deep copy.
    """

    model_config = ConfigDict(frozen=False)

    file_path: str  # Normalized lookup key
    original_content: str
    current_disk_content: str
    blocks: dict[str, Block] = Field(default_factory=dict)
    block_order: list[str] = Field(default_factory=list)
    armed: ArmedState | None = None
    last_ai_edit_time: int = 0
    total_blocks_created: int = 0
    total_blocks_accepted: int = 0
    total_blocks_rejected: int = 0
    content_hash: str = ""
    last_sync_time: int = 0

    @property
    def is_marked_for_ai_edit(self) -> bool:
        return self.armed is not None

    @property
    def marked_channel_id(self) -> str | None:
        return self.armed.channel_id if self.armed else None

    def ordered_blocks(self) -> list[Block]:
        return [self.blocks[block_id] for block_id in self.block_order]

    def blocks_with_status(self, status: BlockStatus) -> list[Block]:
        return [block for block in self.ordered_blocks() if block.status == status]

    def resort(self) -> None:
        """Rebuild ``block_order`` by ascending start line."""
        ordered = sorted(self.blocks.values(), key=lambda block: block.start_line)
        self.block_order = [block.id for block in ordered]


class RevertInstruction(BaseModel):
    """What the host must write back to undo a rejected block.

    Replace document lines ``[separator_line, end_line)`` with the lines of
    ``base_content``.
    """

    model_config = ConfigDict(frozen=True)

    block_id: str
    file_path: str
    base_content: str
    separator_line: int
    end_line: int


class FileStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_blocks: int = 0
    pending_blocks: int = 0
    accepted_blocks: int = 0
    rejected_blocks: int = 0
    invalidated_blocks: int = 0
    total_lines_added: int = 0
    total_lines_deleted: int = 0
    total_blocks_created: int = 0   # Lifetime counters from the record
    total_blocks_accepted: int = 0
    total_blocks_rejected: int = 0


class ReviewStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_files: int = 0  # Files that currently hold at least one block
    total_blocks: int = 0
    pending_blocks: int = 0
    accepted_blocks: int = 0
    rejected_blocks: int = 0
    invalidated_blocks: int = 0
    total_lines_added: int = 0
    total_lines_deleted: int = 0
