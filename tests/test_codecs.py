from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import pytest

from disk_settings import DataclassJsonCodec, JsonCodec, SettingsDecodeError, SettingsStore


@dataclass
class RemoteHost:
    id: str
    host: str
    user: str = "root"


@dataclass
class Display:
    theme: str = "dark"
    zoom: float = 1.0


@dataclass
class AppSettings:
    schema_version: int = 1
    display: Display = field(default_factory=Display)
    remote_hosts: List[dict] = field(default_factory=list)
    remote_selected_host_id: Optional[str] = None


def test_json_codec_roundtrip() -> None:
    codec = JsonCodec()
    value = {
        "schema_version": 1,
        "tk_vars": {"var_x": "hello", "var_y": 123, "flag": True},
        "remote_hosts": [{"id": "nx", "label": "Jetson NX"}],
        "last_opened_at": None,
    }

    assert codec.decode(codec.encode(value)) == value


def test_json_codec_output_is_stable_text() -> None:
    data = JsonCodec().encode({"b": 1, "a": 2})

    txt = data.decode("utf-8")
    assert txt.endswith("\n")
    assert txt.index('"a"') < txt.index('"b"')
    assert json.loads(txt) == {"a": 2, "b": 1}


def test_json_codec_writes_paths_as_strings() -> None:
    data = JsonCodec().encode({"output_dir": Path("/tmp/work")})

    assert JsonCodec().decode(data) == {"output_dir": str(Path("/tmp/work"))}


def test_json_codec_rejects_unserializable_value() -> None:
    with pytest.raises(TypeError):
        JsonCodec().encode({"x": object()})


def test_json_codec_root_type() -> None:
    codec = JsonCodec(root_type=dict)

    with pytest.raises(ValueError):
        codec.decode(b"[1, 2]")
    with pytest.raises(TypeError):
        codec.encode([1, 2])


def test_json_codec_rejects_invalid_utf8() -> None:
    with pytest.raises(ValueError):
        JsonCodec().decode(b"\xff\xfe{")


def test_dataclass_codec_roundtrip_with_nested_dataclass() -> None:
    codec = DataclassJsonCodec(AppSettings)
    value = AppSettings(
        display=Display(theme="gruvbox", zoom=1.25),
        remote_hosts=[{"id": "nx", "host": "10.0.0.2"}],
        remote_selected_host_id="nx",
    )

    decoded = codec.decode(codec.encode(value))

    assert decoded == value
    assert isinstance(decoded.display, Display)


def test_dataclass_codec_fills_defaults_for_missing_optional_keys() -> None:
    codec = DataclassJsonCodec(AppSettings)

    decoded = codec.decode(b'{"schema_version": 2}')

    assert decoded == AppSettings(schema_version=2)


def test_dataclass_codec_rejects_unknown_keys() -> None:
    with pytest.raises(TypeError, match="unexpected keys"):
        DataclassJsonCodec(Display).decode(b'{"theme": "dark", "font": "mono"}')


def test_dataclass_codec_rejects_missing_required_keys() -> None:
    with pytest.raises(TypeError):
        DataclassJsonCodec(RemoteHost).decode(b'{"id": "nx"}')


def test_dataclass_codec_rejects_non_object_root() -> None:
    with pytest.raises(ValueError):
        DataclassJsonCodec(Display).decode(b'"dark"')


def test_dataclass_codec_rejects_wrong_value_type() -> None:
    with pytest.raises(TypeError):
        DataclassJsonCodec(Display).encode(RemoteHost(id="nx", host="h"))


def test_dataclass_codec_requires_dataclass_type() -> None:
    with pytest.raises(TypeError):
        DataclassJsonCodec(dict)


class Backend(Enum):
    CPU = "cpu"
    CUDA = "cuda"


@dataclass
class Workspace:
    hosts: List[RemoteHost] = field(default_factory=list)
    selected: Optional[RemoteHost] = None
    by_name: Dict[str, RemoteHost] = field(default_factory=dict)
    window: Tuple[int, int] = (800, 600)
    recent: Tuple[Path, ...] = ()
    working_dir: Path = Path(".")
    output_dir: Optional[Path] = None
    backend: Backend = Backend.CPU
    port: Union[int, str] = 22


@dataclass
class Cache:
    entries: List[str] = field(default_factory=list)
    count: int = field(init=False)

    def __post_init__(self) -> None:
        self.count = len(self.entries)


def test_dataclass_codec_rebuilds_nested_containers() -> None:
    codec = DataclassJsonCodec(Workspace)
    nx = RemoteHost(id="nx", host="10.0.0.2")
    value = Workspace(
        hosts=[nx, RemoteHost(id="agx", host="10.0.0.3", user="nvidia")],
        selected=nx,
        by_name={"nx": nx},
        window=(1280, 720),
        recent=(Path("/tmp/a.onnx"), Path("/tmp/b.onnx")),
        working_dir=Path("/tmp/work"),
        output_dir=Path("/tmp/out"),
        backend=Backend.CUDA,
        port="ssh",
    )

    decoded = codec.decode(codec.encode(value))

    assert decoded == value
    assert isinstance(decoded.hosts[0], RemoteHost)
    assert isinstance(decoded.selected, RemoteHost)
    assert isinstance(decoded.by_name["nx"], RemoteHost)
    assert isinstance(decoded.working_dir, Path)
    assert isinstance(decoded.recent[0], Path)
    assert decoded.backend is Backend.CUDA


def test_dataclass_codec_roundtrips_defaults() -> None:
    codec = DataclassJsonCodec(Workspace)

    assert codec.decode(codec.encode(Workspace())) == Workspace()


def test_dataclass_codec_skips_init_false_fields() -> None:
    codec = DataclassJsonCodec(Cache)
    value = Cache(entries=["a", "b"])

    data = codec.encode(value)

    assert "count" not in json.loads(data)
    assert codec.decode(data) == value
    assert codec.decode(data).count == 2


def test_store_reloads_dataclass_with_init_false_field(tmp_path: Path) -> None:
    p = tmp_path / "cache.json"
    codec = DataclassJsonCodec(Cache)
    SettingsStore.create(p, Cache(entries=["x"]), codec=codec)

    store = SettingsStore.load(p, codec=codec)

    assert store.read() == Cache(entries=["x"])


@pytest.mark.parametrize(
    "payload",
    [
        b'{"zoom": "big"}',
        b'{"zoom": true}',
        b'{"theme": 3}',
        b'{"theme": null}',
    ],
)
def test_dataclass_codec_rejects_mismatched_scalars(payload: bytes) -> None:
    with pytest.raises(TypeError):
        DataclassJsonCodec(Display).decode(payload)


def test_dataclass_codec_accepts_int_for_float_field() -> None:
    decoded = DataclassJsonCodec(Display).decode(b'{"zoom": 2}')

    assert decoded.zoom == 2.0
    assert isinstance(decoded.zoom, float)


def test_dataclass_codec_rejects_mismatched_nested_values() -> None:
    codec = DataclassJsonCodec(Workspace)

    with pytest.raises(TypeError):
        codec.decode(b'{"hosts": [{"id": "nx", "host": 5}]}')
    with pytest.raises(TypeError):
        codec.decode(b'{"hosts": {"id": "nx"}}')
    with pytest.raises(TypeError):
        codec.decode(b'{"window": [1, 2, 3]}')
    with pytest.raises(TypeError):
        codec.decode(b'{"backend": "tpu"}')
    with pytest.raises(TypeError):
        codec.decode(b'{"port": 1.5}')


def test_type_mismatch_fails_store_load(tmp_path: Path) -> None:
    p = tmp_path / "display.json"
    p.write_text('{"zoom": "big"}', encoding="utf-8")

    with pytest.raises(SettingsDecodeError) as ei:
        SettingsStore.load(p, codec=DataclassJsonCodec(Display))

    assert isinstance(ei.value.cause, TypeError)
