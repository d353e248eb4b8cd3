"""Utilities for the review engine."""

from edit_review.utils.block_ids import (
    BlockIdInfo,
    generate_block_id,
    hash_file_path,
    is_placeholder_block_id,
    is_same_file,
    is_same_position,
    is_valid_block_id,
    parse_block_id,
    placeholder_block_id,
)
from edit_review.utils.path_key import normalize_path, same_file

__all__ = [
    "BlockIdInfo",
    "generate_block_id",
    "hash_file_path",
    "is_placeholder_block_id",
    "is_same_file",
    "is_same_position",
    "is_valid_block_id",
    "normalize_path",
    "parse_block_id",
    "placeholder_block_id",
    "same_file",
]
