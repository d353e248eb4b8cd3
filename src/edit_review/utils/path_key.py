"""Canonical lookup keys for file paths."""

import os


def normalize_path(file_path: str, workspace_root: str | None = None) -> str:
    """Normalize a file path into the key used by every registry map.

    Forward slashes become the platform separator, relative paths are
    resolved against ``workspace_root`` (or the working directory), ``.``
    and ``..`` segments are collapsed, and case is folded on platforms whose
    filesystems are case-insensitive.

    Args:
        file_path: Path as reported by the host, absolute or relative.
        workspace_root: Base directory for relative paths.

    Returns:
        Absolute, normalized path string.
    """
    normalized = file_path.replace("/", os.sep)
    if not os.path.isabs(normalized) and workspace_root:
        normalized = os.path.join(workspace_root, normalized)
    normalized = os.path.abspath(normalized)
    return os.path.normcase(normalized)


def same_file(first: str, second: str, workspace_root: str | None = None) -> bool:
    return normalize_path(first, workspace_root) == normalize_path(second, workspace_root)
