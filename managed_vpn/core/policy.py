"""Managed restrictions payload and the profile it describes."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol

import yaml

from ..utils.logging import get_logger
from .app_paths import RESTRICTIONS_PATH
from .errors import StoreUnavailable
from .profile import VpnProfile, VpnType

logger = get_logger("policy")

# restriction key -> VpnProfile attribute
RESTRICTION_KEYS: Dict[str, str] = {
    "vpn_name": "name",
    "vpn_server": "gateway",
    "vpn_login": "username",
    "vpn_password": "password",
}
MANAGED_VPN_TYPE = VpnType.IKEV2_EAP

Snapshot = Mapping[str, str]


class PolicySource(Protocol):
    def get_snapshot(self) -> Optional[Snapshot]:
        """Return the current restrictions, or ``None`` when no policy is installed."""
        raise NotImplementedError


def profile_from_restrictions(snapshot: Snapshot) -> VpnProfile:
    """Build the managed profile from recognized restriction keys.

    Missing keys leave the attribute unset; nothing is defaulted or validated.
    """
    values = {attr: snapshot.get(key) for key, attr in RESTRICTION_KEYS.items()}
    return VpnProfile(vpn_type=MANAGED_VPN_TYPE, **values)


class StaticPolicySource:
    """Policy source backed by an in-memory mapping."""

    def __init__(self, snapshot: Optional[Mapping[str, Any]] = None) -> None:
        self.snapshot = dict(snapshot) if snapshot is not None else None

    def get_snapshot(self) -> Optional[Snapshot]:
        if self.snapshot is None:
            return None
        return _normalize(self.snapshot)


class FilePolicySource:
    """Reads the restrictions payload from a YAML or JSON file pushed by device management."""

    name = "policy source"

    def __init__(self, path: Path = RESTRICTIONS_PATH) -> None:
        self.path = Path(path)

    def get_snapshot(self) -> Optional[Snapshot]:
        if not self.path.exists():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                if self.path.suffix in {".yaml", ".yml"}:
                    data = yaml.safe_load(fh)
                else:
                    text = fh.read()
                    data = json.loads(text) if text.strip() else None
        except (OSError, ValueError, yaml.YAMLError) as exc:
            raise StoreUnavailable(self.name, f"cannot read {self.path}: {exc}") from exc
        if data is None:
            return None
        if not isinstance(data, dict):
            raise StoreUnavailable(self.name, f"{self.path} does not contain a mapping")
        return _normalize(data)

    def stamp(self) -> Optional[float]:
        """Modification time of the restrictions file, ``None`` when it is missing."""
        try:
            return self.path.stat().st_mtime
        except FileNotFoundError:
            return None


def _normalize(data: Mapping[str, Any]) -> Dict[str, str]:
    snapshot: Dict[str, str] = {}
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, (dict, list)):
            logger.warning("Ignoring non-scalar restriction %s", key)
            continue
        snapshot[str(key)] = str(value)
    return snapshot
