"""Data models for the review engine."""

from edit_review.models.block_models import (
    BaseType,
    Block,
    BlockStatus,
    ChangeType,
    derive_change_type,
)
from edit_review.models.diff_models import ChangeSpan, DiffResult, DiffStats
from edit_review.models.marker_models import (
    FindingSeverity,
    FindingType,
    InsertResult,
    MarkerConfig,
    MarkerLines,
    ParsedMarkerBlock,
    ParseResult,
    ValidationFinding,
    ValidationResult,
    ValidationStats,
)
from edit_review.models.persistence_models import (
    FileStateSnapshot,
    SnapshotInfo,
    StateEnvelope,
)
from edit_review.models.state_models import (
    ArmedState,
    FileRecord,
    FileStats,
    ReviewStats,
    RevertInstruction,
    content_hash,
)

__all__ = [
    "ArmedState",
    "BaseType",
    "Block",
    "BlockStatus",
    "ChangeSpan",
    "ChangeType",
    "DiffResult",
    "DiffStats",
    "FileRecord",
    "FileStateSnapshot",
    "FileStats",
    "FindingSeverity",
    "FindingType",
    "InsertResult",
    "MarkerConfig",
    "MarkerLines",
    "ParseResult",
    "ParsedMarkerBlock",
    "ReviewStats",
    "RevertInstruction",
    "SnapshotInfo",
    "StateEnvelope",
    "ValidationFinding",
    "ValidationResult",
    "ValidationStats",
    "content_hash",
    "derive_change_type",
]
