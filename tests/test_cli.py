"""Tests for the command line interface."""

from __future__ import annotations

import pytest

pytest.importorskip("typer")
pytest.importorskip("cryptography")

from typer.testing import CliRunner

from managed_vpn import cli
from managed_vpn.__main__ import main
from managed_vpn.core.preferences import JsonPreferenceStore
from managed_vpn.core.profile_store import JsonProfileStore
from managed_vpn.core.settings import Settings

runner = CliRunner()


@pytest.fixture()
def sandbox(tmp_path, monkeypatch):
    """Point the CLI at stores and restrictions inside the pytest sandbox."""

    restrictions = tmp_path / "restrictions.yaml"
    monkeypatch.setattr(cli, "load_settings", lambda: Settings(restrictions_path=restrictions))
    monkeypatch.setattr(
        cli,
        "_stores",
        lambda: (JsonProfileStore(tmp_path / "profiles.json"), JsonPreferenceStore(tmp_path / "preferences.json")),
    )
    return restrictions


def test_reconcile_then_status_and_list(sandbox):
    sandbox.write_text("vpn_name: Corp\nvpn_server: vpn.example.com\n", encoding="utf-8")

    result = runner.invoke(cli.app, ["reconcile"])
    assert result.exit_code == 0, result.output
    assert "installed" in result.output

    result = runner.invoke(cli.app, ["status"])
    assert result.exit_code == 0, result.output
    assert "In sync" in result.output

    result = runner.invoke(cli.app, ["list"])
    assert result.exit_code == 0, result.output
    assert "Corp" in result.output


def test_status_reports_pending_change(sandbox):
    sandbox.write_text("vpn_name: Corp\n", encoding="utf-8")

    result = runner.invoke(cli.app, ["status"])

    assert result.exit_code == 0, result.output
    assert "Reconciliation pending" in result.output


def test_reconcile_fails_on_unreadable_restrictions(sandbox):
    sandbox.write_text("- not\n- a mapping\n", encoding="utf-8")

    result = runner.invoke(cli.app, ["reconcile"])

    assert result.exit_code == 1


def test_main_prints_version(capsys):
    assert main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == "1.0.0"
