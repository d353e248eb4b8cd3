"""Review service facade."""

from edit_review.service.review_service import (
    ReviewService,
    block_to_span,
    create_review_service,
)

__all__ = [
    "ReviewService",
    "block_to_span",
    "create_review_service",
]
