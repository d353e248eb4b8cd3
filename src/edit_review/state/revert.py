"""Pure helpers for applying revert instructions to document text.

The registry never writes files; hosts use these to compute the text they
write back after a reject.
"""

from collections.abc import Iterable

from edit_review.diff.diff_engine import split_lines
from edit_review.models import RevertInstruction


def apply_revert(text: str, instruction: RevertInstruction) -> str:
    """Replace lines ``[separator_line, end_line)`` with the base content.

    A trailing newline on ``text`` is preserved.
    """
    lines = split_lines(text)
    lines[instruction.separator_line:instruction.end_line] = split_lines(
        instruction.base_content
    )
    if not lines:
        return ""
    result = "\n".join(lines)
    if text.endswith("\n") or not text:
        result += "\n"
    return result


def apply_reverts(text: str, instructions: Iterable[RevertInstruction]) -> str:
    """Apply instructions in the given order, as returned by ``reject_all``."""
    for instruction in instructions:
        text = apply_revert(text, instruction)
    return text
