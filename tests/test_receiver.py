"""Tests for the restrictions receiver and watcher."""

from __future__ import annotations

import os

import pytest

pytest.importorskip("yaml")
pytest.importorskip("cryptography")

from managed_vpn.core.errors import StoreUnavailable
from managed_vpn.core.policy import FilePolicySource
from managed_vpn.core.preferences import JsonPreferenceStore
from managed_vpn.core.profile_store import JsonProfileStore
from managed_vpn.core.receiver import RestrictionsReceiver, RestrictionsWatcher
from managed_vpn.core.reconciler import ReconcileAction
from managed_vpn.core.settings import Settings


@pytest.fixture()
def environment(tmp_path):
    """Build a receiver wired to file stores in the pytest sandbox."""

    restrictions = tmp_path / "restrictions.yaml"
    store = JsonProfileStore(tmp_path / "profiles.json")
    preferences = JsonPreferenceStore(tmp_path / "preferences.json")
    started = []
    receiver = RestrictionsReceiver.from_settings(Settings(restrictions_path=restrictions), store, preferences)
    receiver.service_starter = lambda: started.append(True)
    return receiver, restrictions, store, preferences, started


def test_receiver_installs_profile_and_starts_service(environment):
    receiver, restrictions, store, preferences, started = environment
    restrictions.write_text("vpn_name: Corp\nvpn_server: vpn.example.com\n", encoding="utf-8")

    outcome = receiver.on_receive()

    assert outcome.action is ReconcileAction.INSTALLED
    assert started == [True]
    assert not store.is_open
    with store:
        assert store.get(preferences.get_default_profile_id()).gateway == "vpn.example.com"


def test_receiver_starts_service_when_reconciliation_fails(environment):
    """The connection service is ensured even if the stores cannot be read."""

    receiver, restrictions, store, _, started = environment
    store.path.write_text("{broken", encoding="utf-8")
    restrictions.write_text("vpn_name: Corp\n", encoding="utf-8")

    with pytest.raises(StoreUnavailable):
        receiver.on_receive()
    assert started == [True]


def test_watcher_only_fires_on_change(environment):
    receiver, restrictions, *_ = environment
    restrictions.write_text("vpn_name: Corp\n", encoding="utf-8")
    seen = []
    watcher = RestrictionsWatcher(receiver, FilePolicySource(restrictions), on_outcome=seen.append)

    first = watcher.poll()
    second = watcher.poll()

    restrictions.write_text("vpn_name: Branch\n", encoding="utf-8")
    stamp = os.stat(restrictions).st_mtime + 10
    os.utime(restrictions, (stamp, stamp))
    third = watcher.poll()

    assert first.action is ReconcileAction.INSTALLED
    assert second is None
    assert third.action is ReconcileAction.REPLACED
    assert [outcome.profile.name for outcome in seen] == ["Corp", "Branch"]


def test_watcher_survives_wrongly_shaped_store(environment):
    """A parseable but corrupt profile file aborts the poll without stopping the watcher."""

    receiver, restrictions, store, _, started = environment
    store.path.write_text("[1, 2]", encoding="utf-8")
    restrictions.write_text("vpn_name: Corp\n", encoding="utf-8")
    watcher = RestrictionsWatcher(receiver, FilePolicySource(restrictions))

    assert watcher.poll() is None
    assert started == [True]
