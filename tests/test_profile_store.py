"""Tests for the JSON backed profile and preference stores."""

from __future__ import annotations

import json

import pytest

pytest.importorskip("cryptography")

from managed_vpn.core.errors import StoreUnavailable
from managed_vpn.core.preferences import PREF_DEFAULT_VPN_PROFILE, JsonPreferenceStore
from managed_vpn.core.profile import VpnProfile, VpnType
from managed_vpn.core.profile_store import JsonProfileStore


@pytest.fixture()
def profile_store(tmp_path):
    """Provide an open profile store rooted in the pytest sandbox."""

    store = JsonProfileStore(tmp_path / "profiles.json")
    store.open()
    yield store
    store.close()


def test_insert_assigns_identifier_and_encrypts_password(profile_store, tmp_path):
    profile = VpnProfile(name="Corp", gateway="vpn.example.com", username="alice", password="s3cret")

    profile_id = profile_store.insert(profile)

    assert profile_id
    assert profile.id == profile_id
    on_disk = json.loads((tmp_path / "profiles.json").read_text(encoding="utf-8"))
    assert on_disk["profiles"][0]["id"] == profile_id
    assert on_disk["profiles"][0]["password"] != "s3cret"
    assert (tmp_path / "key.bin").exists()


def test_records_survive_reopen(profile_store, tmp_path):
    """Passwords are decrypted again when a fresh store loads the file."""

    profile_id = profile_store.insert(VpnProfile(name="Corp", password="s3cret", vpn_type=VpnType.IKEV2_CERT))
    profile_store.close()

    with JsonProfileStore(tmp_path / "profiles.json") as reopened:
        profile = reopened.get(profile_id)

    assert profile is not None
    assert profile.name == "Corp"
    assert profile.password == "s3cret"
    assert profile.vpn_type is VpnType.IKEV2_CERT


def test_get_unknown_identifier_returns_none(profile_store):
    assert profile_store.get("does-not-exist") is None


def test_delete_removes_record_and_ignores_unknown(profile_store):
    profile = VpnProfile(name="Corp")
    profile_store.insert(profile)

    profile_store.delete(profile)
    profile_store.delete(profile)
    profile_store.delete(VpnProfile(name="never stored"))

    assert profile_store.list_profiles() == []


def test_insert_returns_none_when_write_fails(profile_store, monkeypatch):
    def fail_save(*_):
        raise OSError("read-only file system")

    monkeypatch.setattr(profile_store, "_save", fail_save)

    profile = VpnProfile(name="Corp")
    assert profile_store.insert(profile) is None
    assert profile.id is None
    assert profile_store.list_profiles() == []


def test_corrupt_file_raises_store_unavailable(tmp_path):
    path = tmp_path / "profiles.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(StoreUnavailable):
        JsonProfileStore(path).open()


def test_closed_store_raises_store_unavailable(tmp_path):
    store = JsonProfileStore(tmp_path / "profiles.json")

    with pytest.raises(StoreUnavailable):
        store.get("anything")


def test_preferences_round_trip_default_pointer(tmp_path):
    path = tmp_path / "preferences.json"
    preferences = JsonPreferenceStore(path)

    assert preferences.get_default_profile_id() is None

    preferences.set_default_profile_id("abc")
    assert JsonPreferenceStore(path).get_default_profile_id() == "abc"
    assert json.loads(path.read_text(encoding="utf-8")) == {PREF_DEFAULT_VPN_PROFILE: "abc"}

    preferences.clear_default_profile_id()
    assert preferences.get_default_profile_id() is None


def test_preferences_keep_unrelated_keys(tmp_path):
    path = tmp_path / "preferences.json"
    path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")

    JsonPreferenceStore(path).set_default_profile_id("abc")

    assert json.loads(path.read_text(encoding="utf-8")) == {"theme": "dark", PREF_DEFAULT_VPN_PROFILE: "abc"}


def test_unreadable_preferences_raise_store_unavailable(tmp_path):
    path = tmp_path / "preferences.json"
    path.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(StoreUnavailable):
        JsonPreferenceStore(path).get_default_profile_id()


@pytest.mark.parametrize("content", ["[1, 2]", '{"profiles": ["x"]}', '{"profiles": {"id": "a"}}'])
def test_wrongly_shaped_file_raises_store_unavailable(tmp_path, content):
    """Valid JSON that is not a profile list is reported as an unusable store."""

    path = tmp_path / "profiles.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(StoreUnavailable):
        JsonProfileStore(path).open()


def test_corrupt_key_file_raises_store_unavailable(profile_store, tmp_path):
    profile_store.insert(VpnProfile(name="Corp", password="s3cret"))
    profile_store.close()
    (tmp_path / "key.bin").write_bytes(b"not a fernet key")

    with pytest.raises(StoreUnavailable):
        JsonProfileStore(tmp_path / "profiles.json").open()
