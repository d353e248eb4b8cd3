"""Models for line-based diff results."""

from pydantic import BaseModel, ConfigDict, Field

from edit_review.models.block_models import ChangeType


class ChangeSpan(BaseModel):
    """A contiguous run of changed lines.

    ``start_line``/``end_line`` are 0-based and half-open in the old text's
    numbering, so a pure insertion has ``start_line == end_line``.
    """

    model_config = ConfigDict(frozen=True)

    start_line: int = Field(ge=0)
    end_line: int = Field(ge=0)
    deleted_lines: list[str] = Field(default_factory=list)
    added_lines: list[str] = Field(default_factory=list)
    change_type: ChangeType


class DiffStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_lines: int = 0      # Lines in the old text
    added_lines: int = 0
    deleted_lines: int = 0
    modified_lines: int = 0   # max(deleted, added) summed over two-sided spans


class DiffResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    spans: list[ChangeSpan] = Field(default_factory=list)
    stats: DiffStats = Field(default_factory=DiffStats)
    duration_ms: float = 0.0
    degraded: bool = False    # True when the line ceiling forced a whole-file span
