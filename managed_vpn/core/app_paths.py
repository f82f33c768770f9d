"""Utility helpers for computing on-disk paths used by the managed VPN profile
service."""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_DIR_NAME = "managed-vpn"
CONFIG_DIR = Path(
    os.environ.get("MANAGED_VPN_HOME")
    or Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / CONFIG_DIR_NAME
)
PROFILES_PATH = CONFIG_DIR / "profiles.json"
PREFERENCES_PATH = CONFIG_DIR / "preferences.json"
RESTRICTIONS_PATH = CONFIG_DIR / "restrictions.yaml"
SETTINGS_PATH = CONFIG_DIR / "settings.yaml"


def expand_path(path: str) -> Path:
    """Expand environment variables and user references in ``path``."""
    return Path(os.path.expandvars(os.path.expanduser(path))).resolve()
