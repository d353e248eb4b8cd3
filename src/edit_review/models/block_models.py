"""Models for reviewable AI edit blocks."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class BlockStatus(str, Enum):
    """Review status of a block."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    INVALIDATED = "invalidated"


class ChangeType(str, Enum):
    """Shape of a change, derived from which side has content."""

    ADD = "add"
    DELETE = "delete"
    MODIFY = "modify"


class BaseType(str, Enum):
    """Where a block's pre-image came from."""

    ORIGINAL = "original"
    ACCEPTED = "accepted"


def derive_change_type(base_content: str, current_content: str) -> ChangeType:
    """Classify a pre-image/post-image pair.

    An empty pre-image is new content, an empty post-image is a deletion and
    anything else is a modification.
    """
    if not base_content:
        return ChangeType.ADD
    if not current_content:
        return ChangeType.DELETE
    return ChangeType.MODIFY


class Block(BaseModel):
    """One independently reviewable AI edit.

    Blocks are immutable values. The registry replaces a block with an
    updated copy on every transition, so holders of an old value must
    re-fetch by id to see the current status.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    file_path: str  # Display form, not the lookup key
    start_line: int = Field(ge=0)
    separator_line: int = Field(ge=0)
    end_line: int = Field(ge=0)
    # Contents are newline-terminated lines; empty base means new content
    base_content: str
    current_content: str
    base_type: BaseType = BaseType.ORIGINAL
    base_block_id: str | None = None
    status: BlockStatus = BlockStatus.PENDING
    created_at: int  # epoch millis
    last_modified: int
    processed_at: int | None = None
    change_type: ChangeType
    lines_added: int = Field(default=0, ge=0)
    lines_deleted: int = Field(default=0, ge=0)
    ai_channel_id: str | None = None
    ai_tool_name: str | None = None

    @model_validator(mode="after")
    def _check_line_order(self) -> "Block":
        if not self.start_line <= self.separator_line <= self.end_line:
            raise ValueError(
                "expected start_line <= separator_line <= end_line, got "
                f"{self.start_line}, {self.separator_line}, {self.end_line}"
            )
        return self

    @property
    def is_pending(self) -> bool:
        return self.status == BlockStatus.PENDING

    @property
    def is_accepted(self) -> bool:
        return self.status == BlockStatus.ACCEPTED

    @property
    def is_rejected(self) -> bool:
        return self.status == BlockStatus.REJECTED

    @property
    def is_invalidated(self) -> bool:
        return self.status == BlockStatus.INVALIDATED

    @property
    def is_new_content(self) -> bool:
        """True when there was no prior text, so nothing was deleted."""
        return self.base_content == ""

    def summary(self) -> str:
        """Short line-count label for list views."""
        if self.change_type == ChangeType.ADD:
            return f"+{self.lines_added} lines"
        if self.change_type == ChangeType.DELETE:
            return f"-{self.lines_deleted} lines"
        return f"+{self.lines_added}/-{self.lines_deleted}"
