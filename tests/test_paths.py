from __future__ import annotations

import os
from pathlib import Path

import pytest

from disk_settings import default_settings_dir, default_settings_path


pytestmark = pytest.mark.skipif(os.name == "nt", reason="POSIX config locations")


def test_xdg_config_home_is_honoured(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

    assert default_settings_dir("my-tool") == tmp_path / "my-tool"
    assert default_settings_path("my-tool") == tmp_path / "my-tool" / "settings.json"


def test_falls_back_to_dot_config(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))

    assert default_settings_path("my-tool", "prefs.json") == tmp_path / ".config" / "my-tool" / "prefs.json"


def test_empty_app_name_is_rejected() -> None:
    with pytest.raises(ValueError):
        default_settings_dir("")
