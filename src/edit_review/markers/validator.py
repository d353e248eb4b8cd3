"""Structural checks for marker-annotated buffers."""

from collections import Counter

from edit_review.markers.codec import parse_markers
from edit_review.models import (
    FindingSeverity,
    FindingType,
    ParsedMarkerBlock,
    ValidationFinding,
    ValidationResult,
    ValidationStats,
)
from edit_review.utils.block_ids import is_placeholder_block_id, is_valid_block_id


def _error(type_: FindingType, message: str, block_id: str | None = None,
           line_number: int | None = None) -> ValidationFinding:
    return ValidationFinding(
        type=type_,
        message=message,
        severity=FindingSeverity.ERROR,
        block_id=block_id,
        line_number=line_number,
    )


def _warning(type_: FindingType, message: str, block_id: str | None = None,
             line_number: int | None = None) -> ValidationFinding:
    return ValidationFinding(
        type=type_,
        message=message,
        severity=FindingSeverity.WARNING,
        block_id=block_id,
        line_number=line_number,
    )


def _is_placeholder(block: ParsedMarkerBlock) -> bool:
    return block.has_placeholder_id or is_placeholder_block_id(block.id)


def _check_structure(blocks: list[ParsedMarkerBlock]) -> list[ValidationFinding]:
    errors = []
    for block in blocks:
        if block.is_valid:
            continue
        if block.separator_line is None:
            errors.append(_error(
                FindingType.MISSING_SEPARATOR,
                f"Block {block.id} is missing its separator marker",
                block.id,
                block.start_line,
            ))
        elif block.end_line is None:
            errors.append(_error(
                FindingType.MISSING_END_MARKER,
                f"Block {block.id} is missing its end marker",
                block.id,
                block.separator_line,
            ))
    return errors


def _check_ids(
    blocks: list[ParsedMarkerBlock],
) -> tuple[list[ValidationFinding], list[ValidationFinding]]:
    errors, warnings = [], []
    for block in blocks:
        if _is_placeholder(block):
            warnings.append(_warning(
                FindingType.MISSING_BLOCK_ID,
                f"Block at line {block.start_line} has no block id ({block.id})",
                block.id,
                block.start_line,
            ))
        elif not is_valid_block_id(block.id):
            errors.append(_error(
                FindingType.INVALID_BLOCK_ID,
                f"Block id has an invalid format: {block.id}",
                block.id,
                block.start_line,
            ))

    for block_id, count in Counter(block.id for block in blocks).items():
        if count > 1:
            errors.append(_error(
                FindingType.DUPLICATE_BLOCK_ID,
                f"Block id {block_id} appears {count} times",
                block_id,
            ))
    return errors, warnings


def _check_nesting(blocks: list[ParsedMarkerBlock]) -> list[ValidationFinding]:
    """Flag any region strictly contained in another region."""
    closed = [block for block in blocks if block.end_line is not None]
    errors = []
    for outer in closed:
        for inner in closed:
            if inner is outer:
                continue
            if outer.start_line < inner.start_line and inner.end_line < outer.end_line:
                errors.append(_error(
                    FindingType.NESTED_MARKERS,
                    f"Block {inner.id} is nested inside block {outer.id}",
                    inner.id,
                    inner.start_line,
                ))
    return errors


def _check_overlap(blocks: list[ParsedMarkerBlock]) -> list[ValidationFinding]:
    ordered = sorted(blocks, key=lambda block: block.start_line)
    errors = []
    for current, nxt in zip(ordered, ordered[1:]):
        if current.end_line >= nxt.start_line:
            errors.append(_error(
                FindingType.OVERLAPPING_BLOCKS,
                f"Block {current.id} overlaps block {nxt.id}",
                current.id,
                current.end_line,
            ))
    return errors


def validate_blocks(blocks: list[ParsedMarkerBlock]) -> ValidationResult:
    """Run every document-level check over already-parsed regions.

    Args:
        blocks: Regions as produced by ``parse_markers``.

    Returns:
        ValidationResult; ``is_valid`` is True iff there are no errors.
    """
    valid_blocks = [block for block in blocks if block.is_valid]
    invalid_blocks = [block for block in blocks if not block.is_valid]

    errors = _check_structure(blocks)
    id_errors, warnings = _check_ids(blocks)
    errors.extend(id_errors)
    errors.extend(_check_nesting(blocks))

    for block in valid_blocks:
        if not block.deleted_lines and not block.added_lines:
            warnings.append(_warning(
                FindingType.EMPTY_BLOCK,
                f"Block {block.id} is empty",
                block.id,
                block.start_line,
            ))

    errors.extend(_check_overlap(valid_blocks))

    return ValidationResult(
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
        valid_blocks=valid_blocks,
        invalid_blocks=invalid_blocks,
        stats=ValidationStats(
            total_blocks=len(blocks),
            valid_blocks=len(valid_blocks),
            invalid_blocks=len(invalid_blocks),
            error_count=len(errors),
            warning_count=len(warnings),
        ),
    )


def validate(text: str) -> ValidationResult:
    """Parse a buffer and check its marker regions."""
    return validate_blocks(parse_markers(text).blocks)


def quick_check(text: str) -> bool:
    """True only for a valid buffer that holds at least one region."""
    result = validate(text)
    return result.is_valid and len(result.valid_blocks) > 0


def validate_block(block: ParsedMarkerBlock) -> ValidationResult:
    """Check one region in isolation. An empty region is an error here."""
    errors = []
    if not block.is_valid:
        type_ = (
            FindingType.MISSING_SEPARATOR
            if block.separator_line is None
            else FindingType.MISSING_END_MARKER
        )
        errors.append(_error(
            type_,
            block.error or f"Block {block.id} is malformed",
            block.id,
            block.start_line,
        ))

    if not _is_placeholder(block) and not is_valid_block_id(block.id):
        errors.append(_error(
            FindingType.INVALID_BLOCK_ID,
            f"Block id has an invalid format: {block.id}",
            block.id,
        ))

    if not block.deleted_lines and not block.added_lines:
        errors.append(_error(FindingType.EMPTY_BLOCK, "Block is empty", block.id))

    return ValidationResult(
        is_valid=not errors,
        errors=errors,
        valid_blocks=[block] if block.is_valid else [],
        invalid_blocks=[] if block.is_valid else [block],
        stats=ValidationStats(
            total_blocks=1,
            valid_blocks=1 if block.is_valid else 0,
            invalid_blocks=0 if block.is_valid else 1,
            error_count=len(errors),
        ),
    )


def _format_finding(finding: ValidationFinding) -> str:
    line = finding.line_number if finding.line_number is not None else "N/A"
    return f"[{finding.type.value}] {finding.message} (line {line})"


def generate_report(text: str) -> str:
    """Plain-text validation report for debugging."""
    result = validate(text)
    stats = result.stats
    lines = [
        "=== Conflict marker validation report ===",
        "",
        f"Total blocks: {stats.total_blocks}",
        f"Valid blocks: {stats.valid_blocks}",
        f"Invalid blocks: {stats.invalid_blocks}",
        f"Errors: {stats.error_count}",
        f"Warnings: {stats.warning_count}",
        f"Status: {'PASS' if result.is_valid else 'FAIL'}",
        "",
    ]

    if result.errors:
        lines.append("--- Errors ---")
        lines.extend(_format_finding(finding) for finding in result.errors)
        lines.append("")

    if result.warnings:
        lines.append("--- Warnings ---")
        lines.extend(_format_finding(finding) for finding in result.warnings)
        lines.append("")

    if result.valid_blocks:
        lines.append("--- Valid blocks ---")
        for block in result.valid_blocks:
            lines.append(
                f"{block.id}: lines {block.start_line}-{block.end_line} "
                f"(-{len(block.deleted_lines)}/+{len(block.added_lines)})"
            )

    return "\n".join(lines)
