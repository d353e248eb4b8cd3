"""Models for conflict-marker encoding, parsing and validation."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_START_MARKER = "<<<<<<< Original"
DEFAULT_SEPARATOR_MARKER = "======="
DEFAULT_END_MARKER = ">>>>>>> Claude's Change"


class MarkerConfig(BaseModel):
    """Delimiter lines used when writing marker regions."""

    model_config = ConfigDict(frozen=True)

    start_marker: str = DEFAULT_START_MARKER
    separator_marker: str = DEFAULT_SEPARATOR_MARKER
    end_marker: str = DEFAULT_END_MARKER
    include_block_id: bool = True
    add_spacing: bool = False


class MarkerLines(BaseModel):
    """Absolute line numbers of one region's delimiters in an encoded buffer."""

    model_config = ConfigDict(frozen=True)

    start_line: int
    separator_line: int
    end_line: int


class InsertResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str
    block_count: int = 0
    line_mapping: dict[str, MarkerLines] = Field(default_factory=dict)


class ParsedMarkerBlock(BaseModel):
    """A region found by the parser, valid or not.

    ``separator_line``/``end_line`` are None when the parser could not find
    the corresponding delimiter.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    start_line: int
    separator_line: int | None = None
    end_line: int | None = None
    deleted_lines: list[str] = Field(default_factory=list)
    added_lines: list[str] = Field(default_factory=list)
    is_valid: bool = False
    error: str | None = None
    has_placeholder_id: bool = False

    # Same newline-terminated form as Block contents
    @property
    def base_content(self) -> str:
        return "".join(f"{line}\n" for line in self.deleted_lines)

    @property
    def current_content(self) -> str:
        return "".join(f"{line}\n" for line in self.added_lines)


class ParseResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    blocks: list[ParsedMarkerBlock] = Field(default_factory=list)
    valid_block_count: int = 0
    invalid_block_count: int = 0
    clean_content: str | None = None

    @property
    def has_markers(self) -> bool:
        return len(self.blocks) > 0

    @property
    def valid_blocks(self) -> list[ParsedMarkerBlock]:
        return [block for block in self.blocks if block.is_valid]


class FindingSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class FindingType(str, Enum):
    MISSING_SEPARATOR = "missing_separator"
    MISSING_END_MARKER = "missing_end_marker"
    INVALID_BLOCK_ID = "invalid_block_id"
    MISSING_BLOCK_ID = "missing_block_id"
    DUPLICATE_BLOCK_ID = "duplicate_block_id"
    NESTED_MARKERS = "nested_markers"
    EMPTY_BLOCK = "empty_block"
    OVERLAPPING_BLOCKS = "overlapping_blocks"


class ValidationFinding(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: FindingType
    message: str
    severity: FindingSeverity
    block_id: str | None = None
    line_number: int | None = None


class ValidationStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_blocks: int = 0
    valid_blocks: int = 0
    invalid_blocks: int = 0
    error_count: int = 0
    warning_count: int = 0


class ValidationResult(BaseModel):
    """Outcome of a structural check. Warnings never affect ``is_valid``."""

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    errors: list[ValidationFinding] = Field(default_factory=list)
    warnings: list[ValidationFinding] = Field(default_factory=list)
    valid_blocks: list[ParsedMarkerBlock] = Field(default_factory=list)
    invalid_blocks: list[ParsedMarkerBlock] = Field(default_factory=list)
    stats: ValidationStats = Field(default_factory=ValidationStats)
