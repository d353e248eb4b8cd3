"""State registry for review blocks."""

from edit_review.state.registry import StateRegistry
from edit_review.state.revert import apply_revert, apply_reverts

__all__ = [
    "StateRegistry",
    "apply_revert",
    "apply_reverts",
]
