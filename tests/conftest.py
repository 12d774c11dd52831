from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import pytest


class MemoryFileSystem:
    """In-memory stand-in for LocalFileSystem with failure injection."""

    def __init__(self) -> None:
        self.files: Dict[Path, bytes] = {}
        self.writes: List[Path] = []
        self.read_error: Optional[BaseException] = None
        self.write_error: Optional[BaseException] = None

    def read_bytes(self, path: Path) -> bytes:
        if self.read_error is not None:
            raise self.read_error
        try:
            return self.files[Path(path)]
        except KeyError:
            raise FileNotFoundError(str(path)) from None

    def write_bytes(self, path: Path, data: bytes) -> None:
        if self.write_error is not None:
            raise self.write_error
        self.files[Path(path)] = bytes(data)
        self.writes.append(Path(path))


@pytest.fixture
def memfs() -> MemoryFileSystem:
    return MemoryFileSystem()
