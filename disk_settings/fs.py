"""Filesystem access used by the settings store.

Any object with ``read_bytes(path)`` and ``write_bytes(path, data)`` can stand
in for :class:`LocalFileSystem` (tests use an in-memory double). Both methods
raise ``OSError`` on failure; a missing file on read is ``FileNotFoundError``.
"""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Protocol


logger = logging.getLogger(__name__)


class FileSystem(Protocol):
    def read_bytes(self, path: Path) -> bytes: ...

    def write_bytes(self, path: Path, data: bytes) -> None: ...


class LocalFileSystem:
    """Direct OS file access.

    With ``atomic=True`` (default) writes go to a temp file in the same
    directory which then replaces the target, so readers see either the old
    or the new content, never a partial file. ``atomic=False`` truncates and
    rewrites the target in place.
    """

    def __init__(self, atomic: bool = True, fsync: bool = True, create_parents: bool = True) -> None:
        self.atomic = atomic
        self.fsync = fsync
        self.create_parents = create_parents

    def read_bytes(self, path: Path) -> bytes:
        return Path(path).read_bytes()

    def write_bytes(self, path: Path, data: bytes) -> None:
        path = Path(path)
        if self.create_parents:
            path.parent.mkdir(parents=True, exist_ok=True)
        if self.atomic:
            self._write_atomic(path, data)
        else:
            with open(path, "wb") as f:
                f.write(data)
                self._sync(f)

    def _write_atomic(self, path: Path, data: bytes) -> None:
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                # mkstemp creates 0600; keep the mode the target has (or would get).
                os.chmod(tmp_path, _target_mode(path))
                f.write(data)
                self._sync(f)
            os.replace(tmp_path, path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                logger.debug("Could not remove temp file %s", tmp_path)
            raise

    def _sync(self, f) -> None:
        if self.fsync:
            f.flush()
            os.fsync(f.fileno())


def _target_mode(path: Path) -> int:
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        pass
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


__all__ = ["FileSystem", "LocalFileSystem"]
