"""Persistence of VPN profile records.

The store owns identifier assignment and record lifetime: callers hand it a
profile without an ``id`` and receive the assigned identifier back.
"""

from __future__ import annotations

import json
import threading
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from ..utils.logging import get_logger
from .app_paths import PROFILES_PATH
from .errors import StoreUnavailable
from .profile import VpnProfile
from .secrets import SecretManager

logger = get_logger("profile_store")


class ProfileStore(Protocol):
    """Keyed storage of profile records used by the reconciler."""

    def get(self, profile_id: str) -> Optional[VpnProfile]:
        """Return the record for ``profile_id`` or ``None`` when it does not exist."""
        raise NotImplementedError

    def insert(self, profile: VpnProfile) -> Optional[str]:
        """Persist ``profile`` and return its new identifier, ``None`` if rejected."""
        raise NotImplementedError

    def delete(self, profile: VpnProfile) -> None:
        """Remove ``profile``; deleting an unknown record is a no-op."""
        raise NotImplementedError


class JsonProfileStore:
    """Profile store persisted as a JSON document with encrypted passwords."""

    name = "profile store"

    def __init__(self, path: Path = PROFILES_PATH, secret_manager: SecretManager | None = None) -> None:
        self.path = Path(path)
        self._secret_manager = secret_manager
        self._lock = threading.Lock()
        self._profiles: Dict[str, VpnProfile] | None = None

    def __enter__(self) -> "JsonProfileStore":
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def secret_manager(self) -> SecretManager:
        if self._secret_manager is None:
            self._secret_manager = SecretManager(self.path.parent)
        return self._secret_manager

    @property
    def is_open(self) -> bool:
        return self._profiles is not None

    def open(self) -> None:
        with self._lock:
            self._profiles = self._load()

    def close(self) -> None:
        with self._lock:
            self._profiles = None

    def list_profiles(self) -> List[VpnProfile]:
        with self._lock:
            return list(self._require_open().values())

    def get(self, profile_id: str) -> Optional[VpnProfile]:
        with self._lock:
            return self._require_open().get(profile_id)

    def insert(self, profile: VpnProfile) -> Optional[str]:
        with self._lock:
            profiles = self._require_open()
            profile_id = str(uuid.uuid4())
            stored = VpnProfile.from_dict({**profile.to_dict(), "id": profile_id})
            try:
                self._save([*profiles.values(), stored])
            except OSError as exc:
                logger.error("Failed to insert profile %s: %s", profile.name, exc)
                return None
            profiles[profile_id] = stored
            profile.id = profile_id
            logger.info("Inserted profile %s as %s", profile.name, profile_id)
            return profile_id

    def delete(self, profile: VpnProfile) -> None:
        with self._lock:
            profiles = self._require_open()
            if profile.id not in profiles:
                return
            remaining = [p for key, p in profiles.items() if key != profile.id]
            try:
                self._save(remaining)
            except OSError as exc:
                raise StoreUnavailable(self.name, f"cannot delete {profile.id}: {exc}") from exc
            del profiles[profile.id]
            logger.info("Deleted profile %s (%s)", profile.name, profile.id)

    def _require_open(self) -> Dict[str, VpnProfile]:
        if self._profiles is None:
            raise StoreUnavailable(self.name, "store is not open")
        return self._profiles

    def _load(self) -> Dict[str, VpnProfile]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            raise StoreUnavailable(self.name, f"cannot read {self.path}: {exc}") from exc
        if not isinstance(data, dict) or not isinstance(data.get("profiles", []), list):
            raise StoreUnavailable(self.name, f"{self.path} does not contain a profile list")
        profiles: Dict[str, VpnProfile] = {}
        for raw in data.get("profiles", []):
            if not isinstance(raw, dict):
                raise StoreUnavailable(self.name, f"malformed record in {self.path}: {raw!r}")
            try:
                profile = VpnProfile.from_dict(raw)
            except ValueError as exc:
                raise StoreUnavailable(self.name, f"malformed record in {self.path}: {exc}") from exc
            if not profile.id:
                logger.warning("Skipping stored profile %s without identifier", profile.name)
                continue
            if profile.password:
                profile.password = self.secret_manager.decrypt(profile.password)
            profiles[profile.id] = profile
        return profiles

    def _save(self, profiles: List[VpnProfile]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".tmp")
        data = {"profiles": [self._serialize_profile(profile) for profile in profiles]}
        with tmp_path.open("w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2)
        tmp_path.replace(self.path)

    def _serialize_profile(self, profile: VpnProfile) -> Dict[str, object]:
        payload = profile.to_dict()
        if profile.password:
            payload["password"] = self.secret_manager.encrypt(profile.password)
        return payload
