"""Per-user locations for settings files.

The store itself takes explicit paths; these helpers are for embedding code
that wants a conventional default.
"""

from __future__ import annotations

import os
from pathlib import Path


def default_settings_dir(app_name: str) -> Path:
    """Return the per-user configuration directory for ``app_name``.

    Windows: ``%APPDATA%`` (or ``%LOCALAPPDATA%``) / app_name.
    Elsewhere: ``$XDG_CONFIG_HOME`` (default ``~/.config``) / app_name.
    """

    if not app_name:
        raise ValueError("app_name must not be empty")

    if os.name == "nt":
        for var in ("APPDATA", "LOCALAPPDATA"):
            base = os.environ.get(var)
            if base:
                return Path(base) / app_name

    config_home = os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")
    return Path(config_home) / app_name


def default_settings_path(app_name: str, filename: str = "settings.json") -> Path:
    return default_settings_dir(app_name) / filename


__all__ = ["default_settings_dir", "default_settings_path"]
