"""Command line interface for the managed VPN profile service."""

from __future__ import annotations

import asyncio
from typing import List, Optional, Tuple

import typer
from rich.console import Console
from rich.table import Table

from .core.errors import StoreUnavailable
from .core.lookup import Lookup
from .core.policy import FilePolicySource
from .core.preferences import JsonPreferenceStore
from .core.profile import VpnProfile
from .core.profile_store import JsonProfileStore
from .core.receiver import RestrictionsReceiver, RestrictionsWatcher
from .core.reconciler import ReconcileOutcome, Reconciler
from .core.settings import load_settings

console = Console()
app = typer.Typer(add_completion=False, help="Keep the default VPN profile in step with managed restrictions")


def _stores() -> Tuple[JsonProfileStore, JsonPreferenceStore]:
    return JsonProfileStore(), JsonPreferenceStore()


def _profile_row(table: Table, label: str, lookup: Lookup[VpnProfile]) -> None:
    if lookup.is_failed:
        table.add_row(label, f"[red]unavailable: {lookup.error}[/red]", "-", "-", "-")
    elif not lookup.is_found:
        table.add_row(label, "[dim]not configured[/dim]", "-", "-", "-")
    else:
        profile = lookup.value
        table.add_row(label, profile.name or "-", profile.gateway or "-", profile.username or "-", profile.id or "-")


def _print_outcome(outcome: ReconcileOutcome) -> None:
    table = Table(title="Reconciliation")
    table.add_column("Action", no_wrap=True)
    table.add_column("Default profile")
    table.add_column("Previous")
    table.add_column("Writes")
    table.add_row(
        outcome.action.value,
        outcome.profile.display_name() if outcome.profile else "-",
        outcome.previous.display_name() if outcome.previous else "-",
        str(outcome.writes),
    )
    console.print(table)
    if outcome.error:
        console.print(f"[red]Update did not take effect: {outcome.error}[/red]")


@app.command()
def reconcile() -> None:
    """Apply the managed restrictions once and ensure the connection service runs."""

    receiver = RestrictionsReceiver.from_settings(load_settings(), *_stores())
    try:
        outcome = receiver.on_receive()
    except StoreUnavailable as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    _print_outcome(outcome)
    if not outcome.committed:
        raise typer.Exit(code=1)


@app.command()
def status() -> None:
    """Compare the saved default with the managed restrictions without writing."""

    settings = load_settings()
    store, preferences = _stores()
    reconciler = Reconciler(
        store,
        preferences,
        FilePolicySource(settings.restrictions_path),
        matcher=settings.matcher(),
    )
    try:
        store.open()
    except StoreUnavailable as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    try:
        inspection = reconciler.inspect()
    finally:
        store.close()
    table = Table(title="Default VPN profile")
    table.add_column("Source")
    table.add_column("Name", no_wrap=True)
    table.add_column("Gateway")
    table.add_column("Username")
    table.add_column("ID")
    _profile_row(table, "Saved default", inspection.saved)
    _profile_row(table, "Managed policy", inspection.managed)
    console.print(table)
    if inspection.in_sync is None:
        console.print("[red]State could not be determined[/red]")
        raise typer.Exit(code=1)
    console.print("In sync" if inspection.in_sync else "[yellow]Reconciliation pending[/yellow]")


@app.command(name="list")
def list_profiles() -> None:
    """List stored VPN profiles."""

    store, preferences = _stores()
    try:
        default_id = preferences.get_default_profile_id()
        with store:
            profiles = store.list_profiles()
    except StoreUnavailable as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    table = Table(title="VPN Profiles")
    table.add_column("Default")
    table.add_column("Name", no_wrap=True)
    table.add_column("Gateway")
    table.add_column("Type")
    table.add_column("ID")
    for profile in profiles:
        table.add_row(
            "*" if profile.id == default_id else "",
            profile.name or "-",
            profile.gateway or "-",
            profile.vpn_type.value,
            profile.id or "-",
        )
    console.print(table)


@app.command()
def watch(interval: Optional[float] = typer.Option(None, help="Polling interval in seconds")) -> None:
    """Reconcile every time the restrictions file changes. Press Ctrl+C to stop."""

    settings = load_settings()
    receiver = RestrictionsReceiver.from_settings(settings, *_stores())
    watcher = RestrictionsWatcher(
        receiver,
        FilePolicySource(settings.restrictions_path),
        interval=interval or settings.poll_interval,
        on_outcome=_print_outcome,
    )
    console.print(f"[green]Watching {settings.restrictions_path}. Press Ctrl+C to stop[/green]")
    try:
        asyncio.run(watcher.run())
    except KeyboardInterrupt:
        console.print("Stopped")


def run_cli(argv: List[str] | None = None) -> int:
    try:
        result = app(args=argv, prog_name="managed-vpn", standalone_mode=False)
    except typer.Exit as exc:
        return exc.exit_code
    return result if isinstance(result, int) else 0
