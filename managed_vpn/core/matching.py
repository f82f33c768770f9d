"""Strategies deciding whether the managed profile differs from the saved default."""

from __future__ import annotations

from typing import Callable, Dict

from .profile import VpnProfile

ProfileMatcher = Callable[[VpnProfile, VpnProfile], bool]


def match_by_name(saved: VpnProfile, managed: VpnProfile) -> bool:
    """Profiles match when their names agree; ``None`` and ``""`` are the same missing name.

    Gateway or credential changes under an unchanged name are not detected.
    """
    return (saved.name or None) == (managed.name or None)


def match_by_attributes(saved: VpnProfile, managed: VpnProfile) -> bool:
    """Profiles match when every connection attribute agrees."""
    return match_by_name(saved, managed) and (
        saved.gateway,
        saved.username,
        saved.password,
        saved.vpn_type,
    ) == (
        managed.gateway,
        managed.username,
        managed.password,
        managed.vpn_type,
    )


MATCHERS: Dict[str, ProfileMatcher] = {
    "name": match_by_name,
    "attributes": match_by_attributes,
}


def get_matcher(strategy: str) -> ProfileMatcher:
    try:
        return MATCHERS[strategy]
    except KeyError:
        raise ValueError(f"Unknown match strategy {strategy!r}, expected one of {', '.join(MATCHERS)}") from None
