"""Line-based diff engine."""

from edit_review.diff.diff_engine import (
    compute_diff,
    diff,
    join_lines,
    merge_adjacent_spans,
    split_lines,
    split_span,
)

__all__ = [
    "compute_diff",
    "diff",
    "join_lines",
    "merge_adjacent_spans",
    "split_lines",
    "split_span",
]
