"""Block identifier generation and parsing.

Format: ``block-<8 hex of md5(path)>-L<start line>-T<epoch millis>``.
"""

import hashlib
import re
import time
from typing import NamedTuple

BLOCK_ID_PATTERN = r"block-[a-f0-9]{8}-L\d+-T\d+"
PLACEHOLDER_PREFIX = "block-unknown-"

_BLOCK_ID_RE = re.compile(r"^block-([a-f0-9]{8})-L(\d+)-T(\d+)$")


class BlockIdInfo(NamedTuple):
    file_hash: str
    start_line: int
    timestamp: int


def hash_file_path(file_path: str) -> str:
    """First 8 hex chars of the md5 of the path with forward slashes."""
    normalized = file_path.replace("\\", "/")
    return hashlib.md5(normalized.encode("utf-8")).hexdigest()[:8]


def generate_block_id(
    file_path: str,
    start_line: int,
    timestamp_ms: int | None = None,
) -> str:
    """Build a block id for a region of a file.

    Args:
        file_path: Absolute path of the file the block belongs to.
        start_line: Anchor line of the block.
        timestamp_ms: Creation time in epoch millis. Defaults to now.

    Returns:
        Block id string, e.g. ``block-a1b2c3d4-L15-T1700123456789``.
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"block-{hash_file_path(file_path)}-L{start_line}-T{timestamp_ms}"


def parse_block_id(block_id: str) -> BlockIdInfo | None:
    """Split a block id into its parts, or None if the format is wrong."""
    match = _BLOCK_ID_RE.match(block_id)
    if not match:
        return None
    return BlockIdInfo(
        file_hash=match.group(1),
        start_line=int(match.group(2)),
        timestamp=int(match.group(3)),
    )


def is_valid_block_id(block_id: str) -> bool:
    return _BLOCK_ID_RE.match(block_id) is not None


def is_same_file(first: str, second: str) -> bool:
    """True if both ids are well-formed and carry the same path hash."""
    info1 = parse_block_id(first)
    info2 = parse_block_id(second)
    if info1 is None or info2 is None:
        return False
    return info1.file_hash == info2.file_hash


def is_same_position(first: str, second: str) -> bool:
    """True if both ids point at the same line of the same file."""
    info1 = parse_block_id(first)
    info2 = parse_block_id(second)
    if info1 is None or info2 is None:
        return False
    return info1.file_hash == info2.file_hash and info1.start_line == info2.start_line


def placeholder_block_id(line_number: int) -> str:
    """Id given to a marker region whose start line carried no id."""
    return f"{PLACEHOLDER_PREFIX}{line_number}"


def is_placeholder_block_id(block_id: str) -> bool:
    return block_id.startswith(PLACEHOLDER_PREFIX)
