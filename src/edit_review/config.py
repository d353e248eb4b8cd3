"""Settings for the review engine, loaded from the environment."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

from edit_review.exceptions import ConfigError

# Defaults
DEFAULT_ARMING_TIMEOUT = 30.0
DEFAULT_MAX_DIFF_LINES = 20_000
DEFAULT_MAX_STATE_BYTES = 10 * 1024 * 1024
DEFAULT_STORAGE_KEY = "edit_review.state"
DEFAULT_STATE_DIR = "./data/edit_review"

ENV_PREFIX = "EDIT_REVIEW_"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


class EngineSettings(BaseModel):
    """Tunables shared by the registry, diff engine and persistence layer."""

    model_config = ConfigDict(frozen=True)

    arming_timeout_seconds: float = DEFAULT_ARMING_TIMEOUT
    max_block_size: int | None = None
    max_diff_lines: int = DEFAULT_MAX_DIFF_LINES
    max_state_bytes: int = DEFAULT_MAX_STATE_BYTES
    storage_key: str = DEFAULT_STORAGE_KEY
    state_dir: str = DEFAULT_STATE_DIR
    workspace_root: str | None = None
    auto_accept: bool = False


def _env(name: str) -> str | None:
    return os.getenv(f"{ENV_PREFIX}{name}")


def _parse_int(name: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from exc
    if value < 1:
        raise ConfigError(f"{ENV_PREFIX}{name} must be positive, got {value}")
    return value


def _parse_float(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{ENV_PREFIX}{name} must be positive, got {value}")
    return value


def _parse_bool(name: str, raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"{ENV_PREFIX}{name} must be a boolean, got {raw!r}")


def load_settings(env_file: str | None = None) -> EngineSettings:
    """Build settings from ``EDIT_REVIEW_*`` environment variables.

    Args:
        env_file: Optional path to a dotenv file. Defaults to the nearest
            ``.env`` found by python-dotenv.

    Returns:
        EngineSettings with every unset variable left at its default.

    Raises:
        ConfigError: If a variable is set to an unparseable value.
    """
    load_dotenv(env_file)

    overrides: dict = {}

    raw = _env("ARMING_TIMEOUT")
    if raw:
        overrides["arming_timeout_seconds"] = _parse_float("ARMING_TIMEOUT", raw)

    raw = _env("MAX_BLOCK_SIZE")
    if raw:
        overrides["max_block_size"] = _parse_int("MAX_BLOCK_SIZE", raw)

    raw = _env("MAX_DIFF_LINES")
    if raw:
        overrides["max_diff_lines"] = _parse_int("MAX_DIFF_LINES", raw)

    raw = _env("MAX_STATE_BYTES")
    if raw:
        overrides["max_state_bytes"] = _parse_int("MAX_STATE_BYTES", raw)

    raw = _env("STORAGE_KEY")
    if raw:
        overrides["storage_key"] = raw

    raw = _env("STATE_DIR")
    if raw:
        overrides["state_dir"] = raw

    raw = _env("WORKSPACE_ROOT")
    if raw:
        overrides["workspace_root"] = raw

    raw = _env("AUTO_ACCEPT")
    if raw is not None:
        overrides["auto_accept"] = _parse_bool("AUTO_ACCEPT", raw)

    return EngineSettings(**overrides)
