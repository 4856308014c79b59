"""Backing stores for the snapshot cache.

Stores move opaque text payloads by key. Parsing, expiry and error
recovery belong to SnapshotCache.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Protocol


class SnapshotStore(Protocol):
    """Keyed text storage. Implementations may raise OSError."""

    def read(self, key: str) -> str | None:
        """Payload for key, or None if there is none."""
        ...

    def write(self, key: str, payload: str) -> None:
        """Store payload under key, replacing any previous value."""
        ...

    def clear(self) -> int:
        """Remove every entry. Returns the number removed."""
        ...


class FileSnapshotStore:
    """One JSON file per key under a directory."""

    SUFFIX = ".json"

    def __init__(self, directory: Path | str) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        return self._directory / f"{key}{self.SUFFIX}"

    def read(self, key: str) -> str | None:
        try:
            return self.path_for(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def write(self, key: str, payload: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        # Readers never observe a partially written entry
        fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=f".{key}.", suffix=".tmp")
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_path, self.path_for(key))
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise

    def clear(self) -> int:
        if not self._directory.is_dir():
            return 0
        removed = 0
        for entry in self._directory.glob(f"*{self.SUFFIX}"):
            entry.unlink(missing_ok=True)
            removed += 1
        return removed


class MemorySnapshotStore:
    """In-process store for tests and ephemeral servers."""

    def __init__(self) -> None:
        self.entries: dict[str, str] = {}

    def read(self, key: str) -> str | None:
        return self.entries.get(key)

    def write(self, key: str, payload: str) -> None:
        self.entries[key] = payload

    def clear(self) -> int:
        removed = len(self.entries)
        self.entries.clear()
        return removed
