"""Data structures describing VPN profiles."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional


class VpnType(str, Enum):
    IKEV2_EAP = "ikev2-eap"
    IKEV2_CERT = "ikev2-cert"
    IKEV2_CERT_EAP = "ikev2-cert-eap"
    IKEV2_EAP_TLS = "ikev2-eap-tls"
    IKEV2_BYOD_EAP = "ikev2-byod-eap"


@dataclass
class VpnProfile:
    """Represents configuration for a single VPN connection.

    ``id`` is left unset until the profile store persists the record.
    """

    name: Optional[str] = None
    gateway: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None  # plaintext in memory, encrypted at rest by the profile store
    vpn_type: VpnType = VpnType.IKEV2_EAP
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["vpn_type"] = self.vpn_type.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VpnProfile":
        return cls(
            name=data.get("name"),
            gateway=data.get("gateway"),
            username=data.get("username"),
            password=data.get("password"),
            vpn_type=VpnType(data.get("vpn_type", VpnType.IKEV2_EAP.value)),
            id=data.get("id"),
        )

    def display_name(self) -> str:
        return f"{self.name or 'Unnamed'} ({self.gateway or '-'})"
