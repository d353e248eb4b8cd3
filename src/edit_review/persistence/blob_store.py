"""Durable key-value stores for snapshot payloads."""

import os
import re
import tempfile
from pathlib import Path
from typing import Protocol

from edit_review.exceptions import BlobStoreError

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class BlobStore(Protocol):
    """Byte storage under logical keys. No schema beyond that."""

    def get(self, key: str) -> str | None: ...

    def put(self, key: str, data: str) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryBlobStore:
    """Process-local store, for tests and hosts without durable storage."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def put(self, key: str, data: str) -> None:
        self._data[key] = data

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileBlobStore:
    """One JSON file per key in a directory, written atomically."""

    def __init__(self, directory: str | Path):
        self._directory = Path(directory).expanduser()

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        return self._directory / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise BlobStoreError(f"Failed to read {path}: {exc}") from exc

    def put(self, key: str, data: str) -> None:
        path = self.path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=f".{path.stem}.", dir=path.parent, text=True)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(data)
                os.replace(tmp_path, path)
            finally:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
        except OSError as exc:
            raise BlobStoreError(f"Failed to write {path}: {exc}") from exc

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise BlobStoreError(f"Failed to delete {path}: {exc}") from exc
