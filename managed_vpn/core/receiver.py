"""Entry points reacting to changes of the managed restrictions."""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from ..utils.logging import get_logger
from ..utils.processes import ensure_service
from .errors import StoreUnavailable
from .policy import FilePolicySource
from .preferences import JsonPreferenceStore
from .profile_store import JsonProfileStore
from .reconciler import ReconcileOutcome, Reconciler
from .settings import Settings

logger = get_logger("receiver")

ServiceStarter = Callable[[], object]


class RestrictionsReceiver:
    """Reconciles on every restrictions change and then ensures the connection service runs."""

    def __init__(
        self,
        profile_store: JsonProfileStore,
        reconciler: Reconciler,
        service_starter: ServiceStarter,
    ) -> None:
        self.profile_store = profile_store
        self.reconciler = reconciler
        self.service_starter = service_starter

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        profile_store: JsonProfileStore | None = None,
        preferences: JsonPreferenceStore | None = None,
    ) -> "RestrictionsReceiver":
        profile_store = profile_store or JsonProfileStore()
        reconciler = Reconciler(
            profile_store,
            preferences or JsonPreferenceStore(),
            FilePolicySource(settings.restrictions_path),
            matcher=settings.matcher(),
            clear_when_unmanaged=settings.clear_when_unmanaged,
        )
        return cls(
            profile_store,
            reconciler,
            lambda: ensure_service(settings.service_command, settings.service_process_name),
        )

    def on_receive(self) -> ReconcileOutcome:
        try:
            with self.profile_store:
                outcome = self.reconciler.run()
        except StoreUnavailable as exc:
            logger.error("Reconciliation aborted: %s", exc)
            raise
        finally:
            self.service_starter()
        logger.info("Profile updated from restrictions receiver (%s)", outcome.action.value)
        return outcome


class RestrictionsWatcher:
    """Polls the restrictions file and fires the receiver whenever it changes."""

    def __init__(
        self,
        receiver: RestrictionsReceiver,
        policy_source: FilePolicySource,
        interval: float = 2.0,
        on_outcome: Optional[Callable[[ReconcileOutcome], None]] = None,
    ) -> None:
        self.receiver = receiver
        self.policy_source = policy_source
        self.interval = interval
        self.on_outcome = on_outcome
        self._last_stamp: Optional[float] = None
        self._started = False

    def poll(self) -> Optional[ReconcileOutcome]:
        """Trigger the receiver if the restrictions changed since the last poll."""
        stamp = self.policy_source.stamp()
        if self._started and stamp == self._last_stamp:
            return None
        self._started = True
        self._last_stamp = stamp
        try:
            outcome = self.receiver.on_receive()
        except StoreUnavailable:
            # retried on the next change
            return None
        if self.on_outcome:
            self.on_outcome(outcome)
        return outcome

    async def run(self, stop: Optional[asyncio.Event] = None) -> None:
        stop = stop or asyncio.Event()
        logger.info("Watching %s for restriction changes", self.policy_source.path)
        while not stop.is_set():
            self.poll()
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                continue
