"""Wire models for persisted registry snapshots.

Keys are camelCase on the wire; construct by field name in Python.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from edit_review.models.block_models import Block

_WIRE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FileStateSnapshot(BaseModel):
    model_config = _WIRE_CONFIG

    file_path: str
    original_content: str
    current_disk_content: str
    blocks: list[Block] = Field(default_factory=list)  # In block_order
    block_order: list[str] = Field(default_factory=list)
    is_marked_for_ai_edit: bool = False
    marked_channel_id: str | None = None
    armed_at: float | None = None
    last_ai_edit_time: int = 0
    total_blocks_created: int = 0
    total_blocks_accepted: int = 0
    total_blocks_rejected: int = 0
    content_hash: str = ""
    last_sync_time: int = 0


class StateEnvelope(BaseModel):
    model_config = _WIRE_CONFIG

    version: str
    timestamp: int  # epoch millis when the snapshot was taken
    file_states: list[FileStateSnapshot] = Field(default_factory=list)


class SnapshotInfo(BaseModel):
    """Summary of a stored snapshot without restoring it."""

    model_config = ConfigDict(frozen=True)

    exists: bool
    version: str | None = None
    timestamp: int | None = None
    file_count: int | None = None
    total_blocks: int | None = None
    size: int | None = None
