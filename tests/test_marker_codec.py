"""Tests for conflict-marker encoding and parsing."""

from edit_review.markers import (
    count_markers,
    extract_clean_content,
    find_marker_block,
    has_markers,
    insert_markers,
    parse_markers,
)
from edit_review.markers.codec import (
    MISSING_END_MARKER_ERROR,
    MISSING_SEPARATOR_ERROR,
    insert_markers_multiple,
)
from edit_review.models import ChangeSpan, ChangeType, MarkerConfig

BLOCK_ID = "block-a1b2c3d4-L1-T1700000000000"
SECOND_ID = "block-a1b2c3d4-L2-T1700000000000"

ENCODED = (
    "a\n"
    f"<<<<<<< Original [{BLOCK_ID}]\n"
    "b\n"
    "=======\n"
    "X\n"
    ">>>>>>> Claude's Change\n"
    "c\n"
)


def modify_span(start, end, deleted, added):
    return ChangeSpan(
        start_line=start,
        end_line=end,
        deleted_lines=deleted,
        added_lines=added,
        change_type=ChangeType.MODIFY,
    )


class TestInsertMarkers:
    """Tests for insert_markers."""

    def test_single_region(self):
        result = insert_markers("a\nb\nc\n", [(modify_span(1, 2, ["b"], ["X"]), BLOCK_ID)])
        assert result.content == ENCODED
        assert result.block_count == 1
        lines = result.line_mapping[BLOCK_ID]
        assert (lines.start_line, lines.separator_line, lines.end_line) == (1, 3, 5)

    def test_no_spans_returns_text_unchanged(self):
        result = insert_markers("a\nb\n", [])
        assert result.content == "a\nb\n"
        assert result.block_count == 0

    def test_multiple_regions_map_to_encoded_lines(self):
        spans = [
            (modify_span(2, 3, ["c"], []), SECOND_ID),
            (modify_span(0, 1, ["a"], ["A"]), BLOCK_ID),
        ]
        result = insert_markers("a\nb\nc\nd\n", spans)

        first = result.line_mapping[BLOCK_ID]
        second = result.line_mapping[SECOND_ID]
        assert (first.start_line, first.separator_line, first.end_line) == (0, 2, 4)
        assert (second.start_line, second.separator_line, second.end_line) == (6, 8, 9)
        assert extract_clean_content(result.content) == "A\nb\nd\n"

    def test_without_block_id(self):
        config = MarkerConfig(include_block_id=False)
        result = insert_markers("a\nb\nc\n", [(modify_span(1, 2, ["b"], ["X"]), BLOCK_ID)], config)
        assert "<<<<<<< Original\n" in result.content

        block = parse_markers(result.content).blocks[0]
        assert block.id == "block-unknown-1"
        assert block.has_placeholder_id

    def test_spacing_is_trimmed_on_parse(self):
        config = MarkerConfig(add_spacing=True)
        result = insert_markers("a\nb\nc\n", [(modify_span(1, 2, ["b"], ["X"]), BLOCK_ID)], config)
        block = parse_markers(result.content).blocks[0]
        assert block.deleted_lines == ["b"]
        assert block.added_lines == ["X"]

    def test_multiple_files(self):
        results = insert_markers_multiple([
            ("one.py", "a\nb\nc\n", [(modify_span(1, 2, ["b"], ["X"]), BLOCK_ID)]),
            ("two.py", "z\n", []),
        ])
        assert results["one.py"].content == ENCODED
        assert results["two.py"].content == "z\n"


class TestParseMarkers:
    """Tests for parse_markers and helpers."""

    def test_valid_region(self):
        result = parse_markers(ENCODED)
        assert result.valid_block_count == 1
        assert result.invalid_block_count == 0
        block = result.blocks[0]
        assert block.id == BLOCK_ID
        assert (block.start_line, block.separator_line, block.end_line) == (1, 3, 5)
        assert block.base_content == "b\n"
        assert block.current_content == "X\n"
        assert block.is_valid

    def test_clean_content_on_request(self):
        assert parse_markers(ENCODED).clean_content is None
        assert parse_markers(ENCODED, extract_clean_content=True).clean_content == "a\nX\nc\n"

    def test_missing_separator(self):
        block = parse_markers(f"<<<<<<< Original [{BLOCK_ID}]\nfoo\n").blocks[0]
        assert not block.is_valid
        assert block.separator_line is None
        assert block.error == MISSING_SEPARATOR_ERROR

    def test_missing_end_marker(self):
        block = parse_markers(f"<<<<<<< Original [{BLOCK_ID}]\nfoo\n=======\nbar\n").blocks[0]
        assert not block.is_valid
        assert block.separator_line == 2
        assert block.end_line is None
        assert block.error == MISSING_END_MARKER_ERROR

    def test_invalid_id_kept_verbatim(self):
        block = parse_markers(ENCODED.replace(BLOCK_ID, "not-an-id")).blocks[0]
        assert block.id == "not-an-id"
        assert not block.has_placeholder_id

    def test_empty_brackets_get_placeholder(self):
        block = parse_markers(ENCODED.replace(BLOCK_ID, "")).blocks[0]
        assert block.id == "block-unknown-1"
        assert block.has_placeholder_id

    def test_invalid_regions_left_in_clean_content(self):
        text = "keep\n<<<<<<< Original\nfoo\n"
        assert extract_clean_content(text) == text

    def test_no_markers(self):
        assert not has_markers("plain\ntext\n")
        assert count_markers("plain\ntext\n") == 0
        assert extract_clean_content("plain\n") == "plain\n"
        assert not parse_markers("plain\n").has_markers

    def test_find_and_count(self):
        assert has_markers(ENCODED)
        assert count_markers(ENCODED) == 1
        assert find_marker_block(ENCODED, BLOCK_ID).start_line == 1
        assert find_marker_block(ENCODED, SECOND_ID) is None
