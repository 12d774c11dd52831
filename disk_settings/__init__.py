"""Disk-backed settings whose edits are saved automatically.

A :class:`SettingsStore` binds one value to one file. Reads are plain
attribute access; edits go through a :class:`MutationGuard` which writes the
file when the edit finishes, so callers never need to remember to save.
"""

from .codecs import Codec, DataclassJsonCodec, JsonCodec
from .errors import (
    DegradedStoreError,
    GuardClosedError,
    LoadError,
    SaveError,
    SettingsDecodeError,
    SettingsEncodeError,
    SettingsError,
    SettingsNotFoundError,
    SettingsReadError,
    SettingsWriteError,
    StoreBusyError,
)
from .fs import FileSystem, LocalFileSystem
from .paths import default_settings_dir, default_settings_path
from .store import MutationGuard, SettingsStore, StoreState

__version__ = "0.1.0"

__all__ = [
    "Codec",
    "DataclassJsonCodec",
    "JsonCodec",
    "FileSystem",
    "LocalFileSystem",
    "MutationGuard",
    "SettingsStore",
    "StoreState",
    "default_settings_dir",
    "default_settings_path",
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
