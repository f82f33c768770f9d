"""Exceptions raised while reconciling the default VPN profile."""

from __future__ import annotations


class ManagedVpnError(Exception):
    """Base class for all managed VPN profile errors."""


class StoreUnavailable(ManagedVpnError):
    """A backing store could not be opened or queried."""

    def __init__(self, store: str, message: str) -> None:
        super().__init__(f"{store}: {message}")
        self.store = store


class CommitFailure(ManagedVpnError):
    """A replacement default profile could not be committed."""
