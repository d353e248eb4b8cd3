"""Tests for marker validation."""

from edit_review.markers import generate_report, quick_check, validate, validate_block
from edit_review.markers.validator import validate_blocks
from edit_review.models import FindingSeverity, FindingType, ParsedMarkerBlock

ID_A = "block-a1b2c3d4-L0-T1700000000000"
ID_B = "block-a1b2c3d4-L4-T1700000000000"

VALID_TEXT = (
    f"<<<<<<< Original [{ID_A}]\n"
    "old\n"
    "=======\n"
    "new\n"
    ">>>>>>> Claude's Change\n"
)


def region(block_id, start, separator, end, deleted=("x",), added=("y",)):
    return ParsedMarkerBlock(
        id=block_id,
        start_line=start,
        separator_line=separator,
        end_line=end,
        deleted_lines=list(deleted),
        added_lines=list(added),
        is_valid=True,
    )


def finding_types(findings):
    return [finding.type for finding in findings]


class TestValidate:
    """Tests for document-level validation."""

    def test_valid_document(self):
        result = validate(VALID_TEXT)
        assert result.is_valid
        assert result.errors == []
        assert result.stats.total_blocks == 1
        assert result.stats.valid_blocks == 1

    def test_overlapping_regions(self):
        result = validate_blocks([region(ID_A, 0, 2, 5), region(ID_B, 4, 6, 8)])
        assert not result.is_valid
        assert finding_types(result.errors) == [FindingType.OVERLAPPING_BLOCKS]

    def test_start_marker_inside_region_overlaps(self):
        text = (
            f"<<<<<<< Original [{ID_A}]\n"
            f"<<<<<<< Original [{ID_B}]\n"
            "x\n"
            "=======\n"
            "y\n"
            ">>>>>>> Claude's Change\n"
        )
        result = validate(text)
        assert not result.is_valid
        assert FindingType.OVERLAPPING_BLOCKS in finding_types(result.errors)

    def test_nested_regions(self):
        result = validate_blocks([region(ID_A, 0, 6, 10), region(ID_B, 2, 3, 5)])
        assert FindingType.NESTED_MARKERS in finding_types(result.errors)
        assert not result.is_valid

    def test_duplicate_ids(self):
        result = validate(VALID_TEXT + VALID_TEXT)
        assert FindingType.DUPLICATE_BLOCK_ID in finding_types(result.errors)

    def test_invalid_id_is_error(self):
        result = validate(VALID_TEXT.replace(ID_A, "not-an-id"))
        assert not result.is_valid
        assert finding_types(result.errors) == [FindingType.INVALID_BLOCK_ID]

    def test_missing_id_is_warning(self):
        result = validate(VALID_TEXT.replace(f" [{ID_A}]", ""))
        assert result.is_valid
        assert finding_types(result.warnings) == [FindingType.MISSING_BLOCK_ID]
        assert result.warnings[0].severity == FindingSeverity.WARNING

    def test_empty_region_is_warning(self):
        text = f"<<<<<<< Original [{ID_A}]\n=======\n>>>>>>> Claude's Change\n"
        result = validate(text)
        assert result.is_valid
        assert finding_types(result.warnings) == [FindingType.EMPTY_BLOCK]

    def test_missing_separator_is_error(self):
        result = validate(f"<<<<<<< Original [{ID_A}]\nold\n")
        assert not result.is_valid
        assert finding_types(result.errors) == [FindingType.MISSING_SEPARATOR]
        assert result.stats.invalid_blocks == 1

    def test_missing_end_is_error(self):
        result = validate(f"<<<<<<< Original [{ID_A}]\nold\n=======\nnew\n")
        assert finding_types(result.errors) == [FindingType.MISSING_END_MARKER]


class TestValidateBlock:
    """Tests for single-region validation."""

    def test_valid_region(self):
        assert validate_block(region(ID_A, 0, 2, 4)).is_valid

    def test_empty_region_is_error(self):
        result = validate_block(region(ID_A, 0, 1, 2, deleted=(), added=()))
        assert not result.is_valid
        assert finding_types(result.errors) == [FindingType.EMPTY_BLOCK]

    def test_bad_id_is_error(self):
        result = validate_block(region("nope", 0, 2, 4))
        assert finding_types(result.errors) == [FindingType.INVALID_BLOCK_ID]


def test_quick_check():
    assert quick_check(VALID_TEXT)
    assert not quick_check("no markers\n")
    assert not quick_check(f"<<<<<<< Original [{ID_A}]\nold\n")


def test_generate_report():
    report = generate_report(VALID_TEXT)
    assert "Status: PASS" in report
    assert ID_A in report

    failing = generate_report(f"<<<<<<< Original [{ID_A}]\nold\n")
    assert "Status: FAIL" in failing
    assert "--- Errors ---" in failing
