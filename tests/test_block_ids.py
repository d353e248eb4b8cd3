"""Tests for block id helpers."""

from edit_review.utils import (
    generate_block_id,
    hash_file_path,
    is_placeholder_block_id,
    is_same_file,
    is_same_position,
    is_valid_block_id,
    parse_block_id,
    placeholder_block_id,
)


def test_hash_is_first_eight_hex_of_md5():
    """md5('') starts with d41d8cd9."""
    assert hash_file_path("") == "d41d8cd9"


def test_hash_ignores_separator_style():
    assert hash_file_path("C:\\repo\\app.py") == hash_file_path("C:/repo/app.py")


def test_generate_block_id_format():
    block_id = generate_block_id("/repo/app.py", 15, 1700123456789)
    assert block_id == f"block-{hash_file_path('/repo/app.py')}-L15-T1700123456789"
    assert is_valid_block_id(block_id)


def test_generate_block_id_defaults_to_now():
    info = parse_block_id(generate_block_id("/repo/app.py", 3))
    assert info is not None
    assert info.start_line == 3
    assert info.timestamp > 0


def test_parse_block_id_parts():
    info = parse_block_id("block-a1b2c3d4-L15-T1700123456789")
    assert info.file_hash == "a1b2c3d4"
    assert info.start_line == 15
    assert info.timestamp == 1700123456789


def test_parse_block_id_rejects_bad_formats():
    assert parse_block_id("block-xyz-L1-T2") is None
    assert parse_block_id("block-A1B2C3D4-L1-T2") is None
    assert parse_block_id("block-a1b2c3d4-L1") is None
    assert not is_valid_block_id("not-a-block")


def test_same_file_and_position():
    first = generate_block_id("/repo/app.py", 4, 1)
    second = generate_block_id("/repo/app.py", 4, 2)
    third = generate_block_id("/repo/app.py", 9, 3)
    other = generate_block_id("/repo/other.py", 4, 1)

    assert is_same_file(first, third)
    assert not is_same_file(first, other)
    assert is_same_position(first, second)
    assert not is_same_position(first, third)
    assert not is_same_file(first, "garbage")


def test_placeholder_ids():
    block_id = placeholder_block_id(7)
    assert block_id == "block-unknown-7"
    assert is_placeholder_block_id(block_id)
    assert not is_valid_block_id(block_id)
