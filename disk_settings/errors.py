"""Exception hierarchy for settings persistence.

Loading failures never produce a store; saving failures leave the in-memory
value intact and put the store into a degraded state until a flush succeeds.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class SettingsError(Exception):
    """Base class for every error raised by this package."""


# ---------------------------------------------------------------- load


class LoadError(SettingsError):
    """Raised when a store cannot be constructed from disk."""


class SettingsNotFoundError(LoadError):
    """No file exists at the requested path."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Settings file not found: {path}")
        self.path = path


class SettingsReadError(LoadError):
    """The file exists but could not be read (permissions, not a regular file)."""

    def __init__(self, path: Path, cause: BaseException) -> None:
        super().__init__(f"Failed to read settings file {path}: {cause}")
        self.path = path
        self.cause = cause


class SettingsDecodeError(LoadError):
    """The file exists but its content could not be decoded."""

    def __init__(self, path: Path, cause: BaseException) -> None:
        super().__init__(f"Failed to decode settings file {path}: {cause}")
        self.path = path
        self.cause = cause


# ---------------------------------------------------------------- save


class SaveError(SettingsError):
    """Raised when the current value could not be flushed to disk."""


class SettingsEncodeError(SaveError):
    """The value could not be serialized by the codec."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Failed to encode settings: {cause}")
        self.cause = cause


class SettingsWriteError(SaveError):
    """Writing the encoded bytes to disk failed."""

    def __init__(self, path: Path, cause: BaseException) -> None:
        super().__init__(f"Failed to write settings file {path}: {cause}")
        self.path = path
        self.cause = cause


# ---------------------------------------------------------------- state


class DegradedStoreError(SettingsError):
    """An edit was requested while the last flush is still outstanding."""

    def __init__(self, path: Path, last_error: Optional[SaveError] = None) -> None:
        msg = f"Settings store for {path} has unflushed changes; call save() first"
        if last_error is not None:
            msg += f" (last error: {last_error})"
        super().__init__(msg)
        self.path = path
        self.last_error = last_error


class StoreBusyError(SettingsError):
    """The store was accessed while a mutation guard is live."""


class GuardClosedError(SettingsError):
    """The mutation guard was used after it finished."""


__all__ = [
    "SettingsError",
    "LoadError",
    "SettingsNotFoundError",
    "SettingsReadError",
    "SettingsDecodeError",
    "SaveError",
    "SettingsEncodeError",
    "SettingsWriteError",
    "DegradedStoreError",
    "StoreBusyError",
    "GuardClosedError",
]
