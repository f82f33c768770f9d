"""Reconcile the saved default VPN profile with the managed restrictions."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..utils.logging import get_logger
from .errors import CommitFailure, ManagedVpnError
from .lookup import Lookup
from .matching import ProfileMatcher, match_by_name
from .policy import PolicySource, profile_from_restrictions
from .preferences import PreferenceStore
from .profile import VpnProfile
from .profile_store import ProfileStore

logger = get_logger("reconciler")


class ReconcileAction(str, Enum):
    NO_CHANGE = "no-change"
    INSTALLED = "installed"
    REPLACED = "replaced"
    UNMANAGED = "unmanaged"
    CLEARED = "cleared"
    FAILED = "failed"


@dataclass
class ReconcileOutcome:
    action: ReconcileAction
    profile: Optional[VpnProfile] = None
    previous: Optional[VpnProfile] = None
    error: Optional[CommitFailure] = None
    writes: int = 0

    @property
    def committed(self) -> bool:
        return self.error is None


@dataclass
class Inspection:
    """Read-only view of both sides of a reconciliation."""

    saved: Lookup[VpnProfile]
    managed: Lookup[VpnProfile]
    in_sync: Optional[bool]


class Reconciler:
    """Decides what the default profile should be and applies the minimal writes.

    Calls are serialized; a replacement is committed as insert, then pointer
    update, then deletion of the previous default so that a failure at any step
    leaves a valid default in place.
    """

    def __init__(
        self,
        profile_store: ProfileStore,
        preferences: PreferenceStore,
        policy_source: PolicySource,
        matcher: ProfileMatcher = match_by_name,
        clear_when_unmanaged: bool = False,
    ) -> None:
        self.profile_store = profile_store
        self.preferences = preferences
        self.policy_source = policy_source
        self.matcher = matcher
        self.clear_when_unmanaged = clear_when_unmanaged
        self._lock = threading.Lock()

    def reconcile(self) -> Optional[VpnProfile]:
        return self.run().profile

    def run(self) -> ReconcileOutcome:
        with self._lock:
            saved = self.load_saved_profile().unwrap()
            managed = self.load_managed_profile().unwrap()

            if managed is None:
                return self._handle_unmanaged(saved)
            if saved is not None and self.matcher(saved, managed):
                logger.debug("Managed profile %s matches saved default, nothing to do", managed.name)
                return ReconcileOutcome(ReconcileAction.NO_CHANGE, profile=saved, previous=saved)
            return self._replace(saved, managed)

    def inspect(self) -> Inspection:
        with self._lock:
            saved = self.load_saved_profile()
            managed = self.load_managed_profile()
        in_sync = None
        if not saved.is_failed and not managed.is_failed:
            if saved.is_found and managed.is_found:
                in_sync = self.matcher(saved.value, managed.value)
            else:
                in_sync = not managed.is_found
        return Inspection(saved=saved, managed=managed, in_sync=in_sync)

    def load_saved_profile(self) -> Lookup[VpnProfile]:
        def _load() -> Optional[VpnProfile]:
            profile_id = self.preferences.get_default_profile_id()
            if profile_id is None:
                return None
            profile = self.profile_store.get(profile_id)
            if profile is None:
                logger.warning("Default profile pointer %s references a missing record", profile_id)
            return profile

        return Lookup.attempt(_load)

    def load_managed_profile(self) -> Lookup[VpnProfile]:
        def _load() -> Optional[VpnProfile]:
            snapshot = self.policy_source.get_snapshot()
            if snapshot is None:
                return None
            return profile_from_restrictions(snapshot)

        return Lookup.attempt(_load)

    def _handle_unmanaged(self, saved: Optional[VpnProfile]) -> ReconcileOutcome:
        if saved is None or not self.clear_when_unmanaged:
            return ReconcileOutcome(ReconcileAction.UNMANAGED, profile=saved, previous=saved)
        self.preferences.clear_default_profile_id()
        writes = 1
        try:
            self.profile_store.delete(saved)
            writes += 1
        except ManagedVpnError as exc:
            logger.warning("Default cleared but profile %s was not removed: %s", saved.id, exc)
        logger.info("Managed restrictions removed, cleared default profile %s", saved.name)
        return ReconcileOutcome(ReconcileAction.CLEARED, previous=saved, writes=writes)

    def _replace(self, saved: Optional[VpnProfile], managed: VpnProfile) -> ReconcileOutcome:
        action = ReconcileAction.REPLACED if saved is not None else ReconcileAction.INSTALLED
        writes = 0

        profile_id = self.profile_store.insert(managed)
        if profile_id is None:
            return self._failed(saved, managed, CommitFailure(f"profile store rejected {managed.name}"), writes)
        managed.id = profile_id
        writes += 1

        try:
            self.preferences.set_default_profile_id(profile_id)
        except ManagedVpnError as exc:
            if self._discard(managed):
                writes += 1
            error = CommitFailure(f"cannot point default at {managed.name}: {exc}")
            error.__cause__ = exc
            return self._failed(saved, managed, error, writes)
        writes += 1
        logger.info("Default VPN profile updated to %s", managed.name)

        if saved is not None:
            try:
                self.profile_store.delete(saved)
                writes += 1
            except ManagedVpnError as exc:
                logger.warning("New default is active but stale profile %s was not removed: %s", saved.id, exc)
        return ReconcileOutcome(action, profile=managed, previous=saved, writes=writes)

    def _discard(self, profile: VpnProfile) -> bool:
        try:
            self.profile_store.delete(profile)
        except ManagedVpnError as exc:
            logger.error("Could not roll back inserted profile %s: %s", profile.id, exc)
            return False
        return True

    def _failed(
        self, saved: Optional[VpnProfile], managed: VpnProfile, error: CommitFailure, writes: int
    ) -> ReconcileOutcome:
        if saved is not None:
            logger.error("%s; keeping previous default %s", error, saved.name)
        else:
            logger.error("%s; no default VPN profile is configured", error)
        return ReconcileOutcome(ReconcileAction.FAILED, profile=managed, previous=saved, error=error, writes=writes)
