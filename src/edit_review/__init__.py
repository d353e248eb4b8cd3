"""Review engine for AI-proposed file edits."""

from edit_review.config import EngineSettings, load_settings
from edit_review.service import ReviewService, create_review_service
from edit_review.state import StateRegistry

__all__ = [
    "EngineSettings",
    "ReviewService",
    "StateRegistry",
    "create_review_service",
    "load_settings",
]
