"""Conflict-marker codec and validator."""

from edit_review.markers.codec import (
    count_markers,
    extract_clean_content,
    find_marker_block,
    has_markers,
    insert_markers,
    insert_markers_multiple,
    parse_markers,
)
from edit_review.markers.validator import (
    generate_report,
    quick_check,
    validate,
    validate_block,
    validate_blocks,
)

__all__ = [
    "count_markers",
    "extract_clean_content",
    "find_marker_block",
    "generate_report",
    "has_markers",
    "insert_markers",
    "insert_markers_multiple",
    "parse_markers",
    "quick_check",
    "validate",
    "validate_block",
    "validate_blocks",
]
