"""Codecs converting settings values to and from their on-disk bytes.

A codec is any object with ``encode(value) -> bytes`` and
``decode(data) -> value``. Codecs signal failure by raising ``ValueError`` or
``TypeError``; the store translates those into its own error types.

Contract: ``decode(encode(v)) == v`` for every value the codec accepts.
"""

from __future__ import annotations

import collections.abc
import dataclasses
import json
import types
import typing
from enum import Enum
from pathlib import PurePath
from typing import Any, Dict, Generic, Optional, Protocol, Type, TypeVar, Union


T = TypeVar("T")

# ``X | Y`` annotations (3.10+) have their own origin type.
_UNION_TYPES = tuple(t for t in (Union, getattr(types, "UnionType", None)) if t is not None)


class Codec(Protocol[T]):
    """Encode/decode pair used by :class:`~disk_settings.store.SettingsStore`."""

    def encode(self, value: T) -> bytes: ...

    def decode(self, data: bytes) -> T: ...


def _json_default(obj: Any) -> Any:
    if isinstance(obj, PurePath):
        return str(obj)
    if isinstance(obj, Enum):
        return obj.value
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


class JsonCodec:
    """UTF-8 JSON, pretty-printed with sorted keys.

    ``root_type`` optionally restricts the decoded top-level value (for example
    ``dict`` to insist on a JSON object). Paths are written as strings, so they
    come back as ``str``.
    """

    def __init__(self, root_type: Optional[type] = None, indent: Optional[int] = 2, sort_keys: bool = True) -> None:
        self.root_type = root_type
        self.indent = indent
        self.sort_keys = sort_keys

    def encode(self, value: Any) -> bytes:
        if self.root_type is not None and not isinstance(value, self.root_type):
            raise TypeError(f"settings root must be {self.root_type.__name__}, got {type(value).__name__}")
        txt = json.dumps(value, indent=self.indent, sort_keys=self.sort_keys, default=_json_default)
        return (txt + "\n").encode("utf-8")

    def decode(self, data: bytes) -> Any:
        value = json.loads(data.decode("utf-8"))
        if self.root_type is not None and not isinstance(value, self.root_type):
            raise ValueError(f"settings root is not a {self.root_type.__name__}")
        return value


# Dataclass <-> JSON ------------------------------------------------------


def _field_types(cls: type) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except NameError:
        # Forward references we cannot resolve; fall back to the raw annotations.
        return {f.name: f.type for f in dataclasses.fields(cls)}


def _to_jsonable(value: Any) -> Any:
    # Like dataclasses.asdict, but init=False fields are derived state and stay
    # out of the file; __post_init__ recomputes them on decode.
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value) if f.init}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {_to_jsonable(k): _to_jsonable(v) for k, v in value.items()}
    return value


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or repr(tp)


def _mismatch(tp: Any, raw: Any, where: str) -> TypeError:
    return TypeError(f"{where}: expected {_type_name(tp)}, got {type(raw).__name__}")


def _convert(tp: Any, raw: Any, where: str) -> Any:
    """Rebuild ``raw`` (decoded JSON) as a value of annotation ``tp``."""

    if tp is Any or isinstance(tp, (str, TypeVar)):
        return raw
    if tp is None or tp is type(None):
        if raw is not None:
            raise _mismatch(type(None), raw, where)
        return None

    origin = typing.get_origin(tp)
    args = typing.get_args(tp)

    if origin in _UNION_TYPES:
        if raw is None and type(None) in args:
            return None
        errors = []
        for arg in args:
            if arg is type(None):
                continue
            try:
                return _convert(arg, raw, where)
            except (TypeError, ValueError) as e:
                errors.append(str(e))
        raise TypeError(f"{where}: no member of {tp} accepts {type(raw).__name__} ({'; '.join(errors)})")

    if origin is typing.Literal:
        if raw not in args:
            raise TypeError(f"{where}: {raw!r} is not one of {args!r}")
        return raw

    if isinstance(origin, type):
        if issubclass(origin, tuple):
            if not isinstance(raw, list):
                raise _mismatch(tuple, raw, where)
            if len(args) == 2 and args[1] is Ellipsis:
                return tuple(_convert(args[0], v, f"{where}[{i}]") for i, v in enumerate(raw))
            if args:
                if len(args) != len(raw):
                    raise TypeError(f"{where}: expected {len(args)} items, got {len(raw)}")
                return tuple(_convert(a, v, f"{where}[{i}]") for i, (a, v) in enumerate(zip(args, raw)))
            return tuple(raw)
        if issubclass(origin, collections.abc.Mapping):
            if not isinstance(raw, dict):
                raise _mismatch(dict, raw, where)
            ktype, vtype = args if args else (Any, Any)
            return {
                _convert_key(ktype, k, where): _convert(vtype, v, f"{where}[{k!r}]")
                for k, v in raw.items()
            }
        if issubclass(origin, collections.abc.Sequence):
            if not isinstance(raw, list):
                raise _mismatch(list, raw, where)
            item = args[0] if args else Any
            return [_convert(item, v, f"{where}[{i}]") for i, v in enumerate(raw)]
        # Other generics (sets etc.) cannot come out of JSON unchanged.
        raise TypeError(f"{where}: unsupported annotation {tp!r}")

    if not isinstance(tp, type):
        return raw
    if dataclasses.is_dataclass(tp):
        return _from_dict(tp, raw, where)
    if issubclass(tp, PurePath):
        if not isinstance(raw, str):
            raise _mismatch(tp, raw, where)
        return tp(raw)
    if issubclass(tp, Enum):
        try:
            return tp(raw)
        except ValueError as e:
            raise TypeError(f"{where}: {e}") from e
    if tp is bool:
        if not isinstance(raw, bool):
            raise _mismatch(tp, raw, where)
        return raw
    if tp is int:
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise _mismatch(tp, raw, where)
        return raw
    if tp is float:
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise _mismatch(tp, raw, where)
        return float(raw)
    if tp is tuple:
        if not isinstance(raw, list):
            raise _mismatch(tp, raw, where)
        return tuple(raw)
    if not isinstance(raw, tp):
        raise _mismatch(tp, raw, where)
    return raw


def _convert_key(tp: Any, key: str, where: str) -> Any:
    if tp is int:
        try:
            return int(key)
        except ValueError as e:
            raise TypeError(f"{where}: key {key!r} is not an int") from e
    return _convert(tp, key, f"{where} key")


def _from_dict(cls: Type[T], data: Any, where: Optional[str] = None) -> T:
    where = where or cls.__name__
    if not isinstance(data, dict):
        raise TypeError(f"{where}: expected an object for {cls.__name__}, got {type(data).__name__}")

    names = {f.name for f in dataclasses.fields(cls) if f.init}
    unknown = sorted(set(data) - names)
    if unknown:
        raise TypeError(f"{where}: unexpected keys for {cls.__name__}: {', '.join(unknown)}")

    hints = _field_types(cls)
    kwargs: Dict[str, Any] = {}
    for key, raw in data.items():
        kwargs[key] = _convert(hints.get(key, Any), raw, f"{where}.{key}")
    # Missing required fields surface as TypeError from the constructor.
    return cls(**kwargs)


class DataclassJsonCodec(Generic[T]):
    """JSON codec for a dataclass type.

    Values are rebuilt from the field annotations: nested dataclasses (also
    inside ``List``/``Dict``/``Tuple``/``Optional``), paths, enums and
    scalars. A value that does not match its annotation, an unknown key or a
    missing required key is a decode error. ``init=False`` fields are not
    written; the dataclass recomputes them.
    """

    def __init__(self, cls: Type[T], indent: Optional[int] = 2) -> None:
        if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
            raise TypeError(f"{cls!r} is not a dataclass type")
        self.cls = cls
        self._json = JsonCodec(root_type=dict, indent=indent, sort_keys=True)

    def encode(self, value: T) -> bytes:
        if not isinstance(value, self.cls):
            raise TypeError(f"expected {self.cls.__name__}, got {type(value).__name__}")
        return self._json.encode(_to_jsonable(value))

    def decode(self, data: bytes) -> T:
        return _from_dict(self.cls, self._json.decode(data))


__all__ = ["Codec", "JsonCodec", "DataclassJsonCodec"]
