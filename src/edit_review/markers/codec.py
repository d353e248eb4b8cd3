"""Conflict-marker encoding and parsing.

A marker region looks like::

    <<<<<<< Original [block-a1b2c3d4-L15-T1700123456789]
    ...base lines...
    =======
    ...current lines...
    >>>>>>> Claude's Change

The parser is a line scanner: each start-marker line opens one candidate
region, which then seeks its separator and its end marker in turn.
"""

import re
from collections.abc import Iterable

from edit_review.models import (
    ChangeSpan,
    InsertResult,
    MarkerConfig,
    MarkerLines,
    ParsedMarkerBlock,
    ParseResult,
)
from edit_review.models.marker_models import (
    DEFAULT_END_MARKER,
    DEFAULT_SEPARATOR_MARKER,
    DEFAULT_START_MARKER,
)
from edit_review.utils.block_ids import placeholder_block_id

START_MARKER_RE = re.compile(r"^" + re.escape(DEFAULT_START_MARKER) + r"(?: \[([^\]]*)\])?$")

MISSING_SEPARATOR_ERROR = f"Missing separator marker ({DEFAULT_SEPARATOR_MARKER})"
MISSING_END_MARKER_ERROR = f"Missing end marker ({DEFAULT_END_MARKER})"


def _build_region(
    span: ChangeSpan,
    block_id: str,
    config: MarkerConfig,
) -> tuple[list[str], int]:
    """Return the region's lines and the separator's offset within them."""
    lines = []
    if config.include_block_id:
        lines.append(f"{config.start_marker} [{block_id}]")
    else:
        lines.append(config.start_marker)
    if config.add_spacing:
        lines.append("")

    lines.extend(span.deleted_lines)
    if config.add_spacing and span.deleted_lines:
        lines.append("")

    separator_offset = len(lines)
    lines.append(config.separator_marker)
    if config.add_spacing:
        lines.append("")

    lines.extend(span.added_lines)
    if config.add_spacing and span.added_lines:
        lines.append("")

    lines.append(config.end_marker)
    return lines, separator_offset


def insert_markers(
    original_text: str,
    spans: Iterable[tuple[ChangeSpan, str]],
    config: MarkerConfig | None = None,
) -> InsertResult:
    """Splice marker regions into a text.

    Each span replaces old-text lines ``[start_line, end_line)`` with a
    region holding its deleted and added lines. Untouched lines are copied
    verbatim, including a trailing newline.

    Args:
        original_text: Full text the spans were computed against.
        spans: ``(span, block_id)`` pairs; sorted by start line here.
        config: Delimiters to write. Defaults to the standard markers.

    Returns:
        InsertResult with the encoded text and, per block id, the absolute
        line numbers of its start, separator and end markers.
    """
    config = config or MarkerConfig()
    ordered = sorted(spans, key=lambda pair: pair[0].start_line)
    if not ordered:
        return InsertResult(content=original_text)

    original_lines = original_text.split("\n")
    result_lines: list[str] = []
    line_mapping: dict[str, MarkerLines] = {}
    last_line = 0

    for span, block_id in ordered:
        result_lines.extend(original_lines[last_line:span.start_line])

        start = len(result_lines)
        region, separator_offset = _build_region(span, block_id, config)
        result_lines.extend(region)
        line_mapping[block_id] = MarkerLines(
            start_line=start,
            separator_line=start + separator_offset,
            end_line=start + len(region) - 1,
        )
        last_line = max(last_line, span.end_line)

    result_lines.extend(original_lines[last_line:])

    return InsertResult(
        content="\n".join(result_lines),
        block_count=len(ordered),
        line_mapping=line_mapping,
    )


def insert_markers_multiple(
    files: Iterable[tuple[str, str, list[tuple[ChangeSpan, str]]]],
    config: MarkerConfig | None = None,
) -> dict[str, InsertResult]:
    """Encode several files at once, keyed by the given file path."""
    return {
        file_path: insert_markers(original_text, spans, config)
        for file_path, original_text, spans in files
    }


def _strip_blank_edges(lines: list[str]) -> list[str]:
    start = 0
    while start < len(lines) and lines[start].strip() == "":
        start += 1
    end = len(lines)
    while end > start and lines[end - 1].strip() == "":
        end -= 1
    return lines[start:end]


def _index_of(lines: list[str], target: str, begin: int) -> int | None:
    for index in range(begin, len(lines)):
        if lines[index] == target:
            return index
    return None


def _parse_region(lines: list[str], start: int, raw_id: str | None) -> ParsedMarkerBlock:
    has_placeholder = not raw_id
    block_id = placeholder_block_id(start) if has_placeholder else raw_id

    separator = _index_of(lines, DEFAULT_SEPARATOR_MARKER, start + 1)
    if separator is None:
        return ParsedMarkerBlock(
            id=block_id,
            start_line=start,
            is_valid=False,
            error=MISSING_SEPARATOR_ERROR,
            has_placeholder_id=has_placeholder,
        )

    end = _index_of(lines, DEFAULT_END_MARKER, separator + 1)
    if end is None:
        return ParsedMarkerBlock(
            id=block_id,
            start_line=start,
            separator_line=separator,
            is_valid=False,
            error=MISSING_END_MARKER_ERROR,
            has_placeholder_id=has_placeholder,
        )

    return ParsedMarkerBlock(
        id=block_id,
        start_line=start,
        separator_line=separator,
        end_line=end,
        deleted_lines=_strip_blank_edges(lines[start + 1:separator]),
        added_lines=_strip_blank_edges(lines[separator + 1:end]),
        is_valid=True,
        has_placeholder_id=has_placeholder,
    )


def parse_markers(text: str, extract_clean_content: bool = False) -> ParseResult:
    """Find every marker region in a text.

    Never raises. Regions with a missing separator or end marker are
    returned with ``is_valid=False`` and an error message.

    Args:
        text: Buffer that may contain marker regions.
        extract_clean_content: Also resolve every valid region to its
            current lines and return the result as ``clean_content``.

    Returns:
        ParseResult with regions in buffer order.
    """
    lines = text.split("\n")
    blocks = []
    for index, line in enumerate(lines):
        match = START_MARKER_RE.match(line)
        if match:
            blocks.append(_parse_region(lines, index, match.group(1)))

    valid_count = sum(1 for block in blocks if block.is_valid)
    clean = extract_clean_content_from(lines, blocks) if extract_clean_content else None
    return ParseResult(
        blocks=blocks,
        valid_block_count=valid_count,
        invalid_block_count=len(blocks) - valid_count,
        clean_content=clean,
    )


def extract_clean_content_from(lines: list[str], blocks: list[ParsedMarkerBlock]) -> str:
    resolved: list[str] = []
    last_line = 0
    for block in sorted(blocks, key=lambda b: b.start_line):
        # Regions starting inside an already-resolved one are skipped
        if not block.is_valid or block.start_line < last_line:
            continue
        resolved.extend(lines[last_line:block.start_line])
        resolved.extend(block.added_lines)
        last_line = block.end_line + 1
    resolved.extend(lines[last_line:])
    return "\n".join(resolved)


def extract_clean_content(text: str, blocks: list[ParsedMarkerBlock] | None = None) -> str:
    """Resolve every valid region by taking its current (added) lines.

    Marker lines and base lines are dropped; untouched lines are kept.
    """
    if blocks is None:
        blocks = parse_markers(text).blocks
    if not blocks:
        return text
    return extract_clean_content_from(text.split("\n"), blocks)


def has_markers(text: str) -> bool:
    return any(START_MARKER_RE.match(line) for line in text.split("\n"))


def find_marker_block(text: str, block_id: str) -> ParsedMarkerBlock | None:
    for block in parse_markers(text).blocks:
        if block.id == block_id:
            return block
    return None


def count_markers(text: str) -> int:
    return len(parse_markers(text).blocks)
