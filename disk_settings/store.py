"""File-backed settings store with guarded, auto-flushing edits.

Typical use::

    store = SettingsStore.load(path)
    print(store.read()["theme"])

    with store.edit() as guard:
        guard.value["theme"] = "dark"
    # the file now holds the edited value

Each edit flushes once, when the guard finishes. A failed flush keeps the
edited value in memory and puts the store into ``DIRTY_UNFLUSHED``: new edits
are refused until :meth:`SettingsStore.save` succeeds.

A store is not thread-safe. Share it across threads only behind a lock that
covers the whole store.
"""

from __future__ import annotations

import copy
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Generic, Optional, TypeVar, Union

from .codecs import Codec, JsonCodec
from .errors import (
    DegradedStoreError,
    GuardClosedError,
    SaveError,
    SettingsDecodeError,
    SettingsEncodeError,
    SettingsNotFoundError,
    SettingsReadError,
    SettingsWriteError,
    StoreBusyError,
)
from .fs import FileSystem, LocalFileSystem


logger = logging.getLogger(__name__)

T = TypeVar("T")

# Only the classmethod constructors hold this.
_CONSTRUCT = object()


class StoreState(str, Enum):
    CLEAN = "clean"
    EDITING = "editing"
    DIRTY_UNFLUSHED = "dirty_unflushed"


class SettingsStore(Generic[T]):
    """Owns one settings value and the file it is persisted to.

    Obtain instances through :meth:`load`, :meth:`create` or :meth:`open`.
    """

    def __init__(self, path: Path, value: T, codec: Codec[T], fs: FileSystem, *, _token: object = None) -> None:
        if _token is not _CONSTRUCT:
            raise TypeError("SettingsStore instances are created by load(), create() or open()")
        self._path = Path(path)
        self._value = value
        self._codec = codec
        self._fs = fs
        self._state = StoreState.CLEAN
        self._last_error: Optional[SaveError] = None

    # Construction --------------------------------------------------------
    @classmethod
    def load(
        cls,
        path: Union[str, Path],
        codec: Optional[Codec[T]] = None,
        fs: Optional[FileSystem] = None,
    ) -> "SettingsStore[T]":
        """Read and decode ``path``. Nothing is written."""

        path = Path(path)
        codec = codec if codec is not None else JsonCodec()
        fs = fs if fs is not None else LocalFileSystem()

        try:
            data = fs.read_bytes(path)
        except FileNotFoundError as e:
            raise SettingsNotFoundError(path) from e
        except OSError as e:
            raise SettingsReadError(path, e) from e

        try:
            value = codec.decode(data)
        except Exception as e:
            # Codecs are pluggable; any failure while decoding means bad content.
            raise SettingsDecodeError(path, e) from e

        logger.debug("Loaded settings from %s (%d bytes)", path, len(data))
        return cls(path, value, codec, fs, _token=_CONSTRUCT)

    @classmethod
    def create(
        cls,
        path: Union[str, Path],
        value: T,
        codec: Optional[Codec[T]] = None,
        fs: Optional[FileSystem] = None,
    ) -> "SettingsStore[T]":
        """Build a store around ``value`` and write it to ``path`` right away.

        An existing file is overwritten. Raises :class:`SaveError` if the
        initial write fails, in which case no store is returned.
        """

        codec = codec if codec is not None else JsonCodec()
        fs = fs if fs is not None else LocalFileSystem()
        store = cls(Path(path), value, codec, fs, _token=_CONSTRUCT)
        store._flush()
        return store

    @classmethod
    def open(
        cls,
        path: Union[str, Path],
        default: Union[T, Callable[[], T]],
        codec: Optional[Codec[T]] = None,
        fs: Optional[FileSystem] = None,
    ) -> "SettingsStore[T]":
        """Load ``path``, or create it from ``default`` when it does not exist.

        ``default`` may be a value or a zero-argument factory. Corrupt files
        are not replaced: they still raise :class:`SettingsDecodeError`.
        """

        try:
            return cls.load(path, codec=codec, fs=fs)
        except SettingsNotFoundError:
            value = default() if callable(default) else default
            logger.info("No settings at %s, creating it with defaults", path)
            return cls.create(path, value, codec=codec, fs=fs)

    # Introspection -------------------------------------------------------
    @property
    def path(self) -> Path:
        return self._path

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def is_degraded(self) -> bool:
        return self._state is StoreState.DIRTY_UNFLUSHED

    @property
    def last_error(self) -> Optional[SaveError]:
        """The error of the failed flush that degraded the store, if any."""
        return self._last_error

    def __repr__(self) -> str:
        return f"{type(self).__name__}(path={str(self._path)!r}, state={self._state.value})"

    # Access --------------------------------------------------------------
    def read(self) -> T:
        """Return the current value.

        The live object is returned; changes made to it directly are not
        persisted. Use :meth:`edit` to change settings.
        """

        self._ensure_not_editing("read")
        return self._value

    def snapshot(self) -> T:
        """Return a deep copy of the current value."""

        return copy.deepcopy(self.read())

    def edit(self) -> "MutationGuard[T]":
        """Start an edit. The returned guard flushes once when it finishes."""

        self._ensure_not_editing("edit")
        if self._state is StoreState.DIRTY_UNFLUSHED:
            raise DegradedStoreError(self._path, self._last_error)
        self._state = StoreState.EDITING
        return MutationGuard(self)

    def save(self) -> None:
        """Flush the current value now.

        This is how a degraded store recovers: on success the store is clean
        again and accepts edits.
        """

        self._ensure_not_editing("save")
        self._flush()

    # Internals -----------------------------------------------------------
    def _ensure_not_editing(self, op: str) -> None:
        if self._state is StoreState.EDITING:
            raise StoreBusyError(f"Cannot {op} settings for {self._path}: an edit is in progress")

    def _finish_edit(self) -> None:
        try:
            self._flush()
        finally:
            # Anything _flush did not classify still leaves disk stale.
            if self._state is StoreState.EDITING:
                self._state = StoreState.DIRTY_UNFLUSHED

    def _flush(self) -> None:
        try:
            data = self._codec.encode(self._value)
        except Exception as e:
            err = SettingsEncodeError(e)
            self._mark_dirty(err)
            raise err from e

        try:
            self._fs.write_bytes(self._path, data)
        except OSError as e:
            err = SettingsWriteError(self._path, e)
            self._mark_dirty(err)
            raise err from e

        if self._state is StoreState.DIRTY_UNFLUSHED:
            logger.info("Settings for %s flushed; store recovered", self._path)
        self._state = StoreState.CLEAN
        self._last_error = None
        logger.debug("Flushed settings to %s (%d bytes)", self._path, len(data))

    def _mark_dirty(self, err: SaveError) -> None:
        self._state = StoreState.DIRTY_UNFLUSHED
        self._last_error = err
        logger.warning("Settings for %s not persisted: %s", self._path, err)


class MutationGuard(Generic[T]):
    """Exclusive mutable access to a store's value for one edit.

    ``value`` is the store's own object, so in-place changes land in the
    store; assigning ``value`` replaces it. :meth:`finish` flushes exactly
    once and reports the outcome. Used as a context manager, leaving the
    block calls :meth:`finish`.
    """

    def __init__(self, store: SettingsStore[T]) -> None:
        self._store = store
        self._finished = False

    @property
    def value(self) -> T:
        self._ensure_open()
        return self._store._value

    @value.setter
    def value(self, new_value: T) -> None:
        self._ensure_open()
        self._store._value = new_value

    @property
    def finished(self) -> bool:
        return self._finished

    def finish(self) -> None:
        """Flush the edited value and release the store.

        Raises :class:`SaveError` if the flush fails; the store is then
        degraded but keeps the edited value.
        """

        self._ensure_open()
        self._finished = True
        self._store._finish_edit()

    def _ensure_open(self) -> None:
        if self._finished:
            raise GuardClosedError(f"Edit of {self._store.path} already finished")

    def __enter__(self) -> "MutationGuard[T]":
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if self._finished:
            return None
        if exc_type is None:
            self.finish()
            return None
        # The block failed; still persist what was changed, but let the
        # original exception win.
        try:
            self.finish()
        except Exception:
            logger.exception(
                "Failed to flush settings for %s while handling %s",
                self._store.path,
                exc_type.__name__,
            )
        return None

    def __del__(self) -> None:
        if getattr(self, "_finished", True):
            return
        store = self._store
        logger.warning("Edit of %s dropped without finish(); flushing now", store.path)
        try:
            self.finish()
        except Exception:
            logger.critical("Settings edit for %s was lost: flush failed", store.path, exc_info=True)


__all__ = ["StoreState", "SettingsStore", "MutationGuard"]
