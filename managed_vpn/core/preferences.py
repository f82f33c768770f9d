"""Durable key-value preferences holding the default profile pointer."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

from ..utils.logging import get_logger
from .app_paths import PREFERENCES_PATH
from .errors import StoreUnavailable

logger = get_logger("preferences")

PREF_DEFAULT_VPN_PROFILE = "pref_default_vpn_profile"


class PreferenceStore(Protocol):
    def get_default_profile_id(self) -> Optional[str]:
        raise NotImplementedError

    def set_default_profile_id(self, profile_id: str) -> None:
        raise NotImplementedError

    def clear_default_profile_id(self) -> None:
        raise NotImplementedError


class JsonPreferenceStore:
    """Preferences persisted as a flat JSON object, rewritten atomically on every change."""

    name = "preference store"

    def __init__(self, path: Path = PREFERENCES_PATH) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def get_default_profile_id(self) -> Optional[str]:
        with self._lock:
            value = self._load().get(PREF_DEFAULT_VPN_PROFILE)
        return str(value) if value else None

    def set_default_profile_id(self, profile_id: str) -> None:
        with self._lock:
            data = self._load()
            data[PREF_DEFAULT_VPN_PROFILE] = profile_id
            self._save(data)
        logger.debug("Default profile pointer set to %s", profile_id)

    def clear_default_profile_id(self) -> None:
        with self._lock:
            data = self._load()
            if data.pop(PREF_DEFAULT_VPN_PROFILE, None) is None:
                return
            self._save(data)
        logger.debug("Default profile pointer cleared")

    def _load(self) -> Dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            raise StoreUnavailable(self.name, f"cannot read {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StoreUnavailable(self.name, f"{self.path} does not contain an object")
        return data

    def _save(self, data: Dict[str, object]) -> None:
        tmp_path = self.path.with_suffix(".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
            tmp_path.replace(self.path)
        except OSError as exc:
            raise StoreUnavailable(self.name, f"cannot write {self.path}: {exc}") from exc
