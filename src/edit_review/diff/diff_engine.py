"""Line-based diff computation between two text snapshots."""

import difflib
import logging
import math
import time

from edit_review.config import DEFAULT_MAX_DIFF_LINES
from edit_review.models import ChangeSpan, ChangeType, DiffResult, DiffStats

logger = logging.getLogger(__name__)


def split_lines(text: str) -> list[str]:
    """Split text into lines on ``\\n``.

    The empty element produced by a final newline (or by an empty string) is
    dropped; interior blank lines are kept. ``\\r`` stays part of the line.
    """
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def _span_type(deleted_lines: list[str], added_lines: list[str]) -> ChangeType:
    if deleted_lines and added_lines:
        return ChangeType.MODIFY
    if deleted_lines:
        return ChangeType.DELETE
    return ChangeType.ADD


def _spans_from_opcodes(old_lines: list[str], new_lines: list[str]) -> list[ChangeSpan]:
    matcher = difflib.SequenceMatcher(None, old_lines, new_lines, autojunk=False)
    spans = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            continue
        deleted = old_lines[i1:i2]
        added = new_lines[j1:j2]
        spans.append(ChangeSpan(
            start_line=i1,
            end_line=i2,
            deleted_lines=deleted,
            added_lines=added,
            change_type=_span_type(deleted, added),
        ))
    return spans


def merge_adjacent_spans(spans: list[ChangeSpan]) -> list[ChangeSpan]:
    """Merge spans whose old-text boundaries touch into one modify span."""
    if len(spans) <= 1:
        return list(spans)

    merged = []
    current = spans[0]
    for nxt in spans[1:]:
        if current.end_line == nxt.start_line:
            current = ChangeSpan(
                start_line=current.start_line,
                end_line=nxt.end_line,
                deleted_lines=[*current.deleted_lines, *nxt.deleted_lines],
                added_lines=[*current.added_lines, *nxt.added_lines],
                change_type=ChangeType.MODIFY,
            )
        else:
            merged.append(current)
            current = nxt
    merged.append(current)
    return merged


def _chunk_counts(deleted: int, added: int, max_size: int) -> tuple[int, int] | None:
    """Find per-chunk (deleted, added) step sizes whose sum fits max_size.

    Returns None when no proportional split fits, which only happens for
    ``max_size == 1`` with both sides non-empty.
    """
    total = deleted + added
    for chunks in range(max(1, math.ceil(total / max_size)), total + 1):
        deleted_step = math.ceil(deleted / chunks)
        added_step = math.ceil(added / chunks)
        if deleted_step + added_step <= max_size:
            return deleted_step, added_step
    return None


def split_span(span: ChangeSpan, max_size: int) -> list[ChangeSpan]:
    """Split one span into pieces of at most ``max_size`` lines each.

    Deleted and added lines are divided proportionally across the pieces,
    in their original order.
    """
    deleted = span.deleted_lines
    added = span.added_lines
    if len(deleted) + len(added) <= max_size:
        return [span]

    steps = _chunk_counts(len(deleted), len(added), max_size)
    if steps is None:
        # One line per piece: all deletions first, then the insertions
        pieces = [([line], []) for line in deleted] + [([], [line]) for line in added]
    else:
        deleted_step, added_step = steps
        pieces = []
        d_index = a_index = 0
        while d_index < len(deleted) or a_index < len(added):
            pieces.append((
                deleted[d_index:d_index + deleted_step],
                added[a_index:a_index + added_step],
            ))
            d_index += deleted_step
            a_index += added_step

    result = []
    line = span.start_line
    for deleted_chunk, added_chunk in pieces:
        result.append(ChangeSpan(
            start_line=line,
            end_line=line + len(deleted_chunk),
            deleted_lines=deleted_chunk,
            added_lines=added_chunk,
            change_type=_span_type(deleted_chunk, added_chunk),
        ))
        line += len(deleted_chunk)
    return result


def _calculate_stats(spans: list[ChangeSpan], old_lines: list[str]) -> DiffStats:
    return DiffStats(
        total_lines=len(old_lines),
        added_lines=sum(len(span.added_lines) for span in spans),
        deleted_lines=sum(len(span.deleted_lines) for span in spans),
        modified_lines=sum(
            max(len(span.deleted_lines), len(span.added_lines))
            for span in spans
            if span.deleted_lines and span.added_lines
        ),
    )


def compute_diff(
    old_text: str,
    new_text: str,
    max_block_size: int | None = None,
    max_lines: int | None = DEFAULT_MAX_DIFF_LINES,
) -> DiffResult:
    """Compute the line-level changes between two snapshots.

    Never raises for any pair of strings. Identical line sequences yield no
    spans.

    Args:
        old_text: Text before the edit.
        new_text: Text after the edit.
        max_block_size: If set, split any span with more lines than this.
        max_lines: Combined old+new line count above which the texts are
            not diffed and the whole file becomes a single span.

    Returns:
        DiffResult with spans ordered by old-text start line.
    """
    started = time.perf_counter()
    old_lines = split_lines(old_text)
    new_lines = split_lines(new_text)
    degraded = False

    if old_lines == new_lines:
        spans = []
    elif max_lines is not None and len(old_lines) + len(new_lines) > max_lines:
        logger.warning(
            "Diff input of %d lines exceeds ceiling of %d; using a whole-file span",
            len(old_lines) + len(new_lines),
            max_lines,
        )
        degraded = True
        spans = [ChangeSpan(
            start_line=0,
            end_line=len(old_lines),
            deleted_lines=old_lines,
            added_lines=new_lines,
            change_type=_span_type(old_lines, new_lines),
        )]
    else:
        spans = merge_adjacent_spans(_spans_from_opcodes(old_lines, new_lines))

    if max_block_size:
        spans = [piece for span in spans for piece in split_span(span, max_block_size)]

    return DiffResult(
        spans=spans,
        stats=_calculate_stats(spans, old_lines),
        duration_ms=(time.perf_counter() - started) * 1000,
        degraded=degraded,
    )


def diff(
    old_text: str,
    new_text: str,
    max_block_size: int | None = None,
) -> list[ChangeSpan]:
    """Return just the change spans between two snapshots."""
    return compute_diff(old_text, new_text, max_block_size=max_block_size).spans


def join_lines(lines: list[str]) -> str:
    """Inverse of ``split_lines``: every line newline-terminated."""
    return "".join(f"{line}\n" for line in lines)
