"""User configuration for the managed VPN profile service."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .app_paths import RESTRICTIONS_PATH, SETTINGS_PATH, expand_path
from .matching import ProfileMatcher, get_matcher

ENV_PREFIX = "MANAGED_VPN_"
_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class Settings:
    restrictions_path: Path = RESTRICTIONS_PATH
    match_strategy: str = "name"
    clear_when_unmanaged: bool = False
    service_command: List[str] = field(default_factory=list)
    service_process_name: Optional[str] = None
    poll_interval: float = 2.0

    def matcher(self) -> ProfileMatcher:
        return get_matcher(self.match_strategy)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Settings":
        command = data.get("service_command") or []
        if isinstance(command, str):
            command = shlex.split(command)
        restrictions = data.get("restrictions_path")
        settings = cls(
            restrictions_path=expand_path(str(restrictions)) if restrictions else RESTRICTIONS_PATH,
            match_strategy=str(data.get("match_strategy", "name")),
            clear_when_unmanaged=_as_bool(data.get("clear_when_unmanaged", False)),
            service_command=[str(part) for part in command],
            service_process_name=data.get("service_process_name"),
            poll_interval=float(data.get("poll_interval", 2.0)),
        )
        get_matcher(settings.match_strategy)
        return settings


def load_settings(path: Path = SETTINGS_PATH, environ: Mapping[str, str] | None = None) -> Settings:
    """Load settings from ``path`` and apply ``MANAGED_VPN_*`` environment overrides."""
    environ = os.environ if environ is None else environ
    data: Dict[str, Any] = {}
    if path.exists():
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path} must contain a mapping")
    for name in Settings.__dataclass_fields__:
        value = environ.get(ENV_PREFIX + name.upper())
        if value is not None:
            data[name] = value
    return Settings.from_dict(data)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_VALUES
    return bool(value)
