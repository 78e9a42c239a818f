"""CLI entry point for the wager tracker."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable

import click

from .core.config import Settings, load_settings
from .core.errors import TrackerError
from .core.models import Wager, to_decimal
from .observability.logger import get_logger, setup_logging
from .session import TrackerSession
from .storage.local_store import LocalStore
from .storage.remote_mirror import CREATE_TABLE_SQL
from .storage.repository import SyncConfig, build_repository, save_sync_config

logger = get_logger(__name__)


def _run(settings: Settings, action: Callable[[TrackerSession], Awaitable[Any]]) -> Any:
    """Load a session, run *action*, surface mirror notices."""

    async def _go() -> Any:
        session = TrackerSession(build_repository(settings), settings=settings)
        await session.load()
        result = await action(session)
        for notice in session.notices:
            click.echo(f"warning: {notice}", err=True)
        return result

    try:
        return asyncio.run(_go())
    except TrackerError as exc:
        logger.warning("command_failed", error_type=type(exc).__name__, error=str(exc))
        raise click.ClickException(str(exc)) from exc


def _fmt_wager(w: Wager) -> str:
    observed = "" if w.observed_outcome is None else f" observed={w.observed_outcome:g}"
    return (
        f"{w.wager_id}  {w.placed_at:%Y-%m-%d %H:%M}  {w.fixture}  "
        f"{w.side.value} {w.bookie_line:g} @ {w.odd}  stake={w.stake}  "
        f"{w.status.value} profit={w.profit}{observed}"
    )


def _localize(settings: Settings, value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return value.replace(tzinfo=settings.tz)


@click.group()
@click.option("--config", default=None, help="TOML config file path")
@click.option("--data-dir", default=None, help="Override storage.data_dir")
@click.pass_context
def main(ctx: click.Context, config: str | None, data_dir: str | None) -> None:
    """Personal wager tracker."""
    overrides: dict = {}
    if data_dir:
        overrides["storage"] = {"data_dir": data_dir}
    try:
        settings = load_settings(config, overrides)
    except TrackerError as exc:
        raise click.ClickException(str(exc)) from exc
    setup_logging(settings.observability.log_level, settings.observability.log_format)
    ctx.obj = settings


# ---------------------------------------------------------------------------
# Bankroll
# ---------------------------------------------------------------------------

@main.command()
@click.argument("amount")
@click.option("--description", default="Manual deposit")
@click.pass_obj
def deposit(settings: Settings, amount: str, description: str) -> None:
    """Add funds to the bankroll."""
    tx = _run(settings, lambda s: s.deposit(amount, description))
    click.echo(f"Deposited {tx.amount} ({tx.movement_id})")


@main.command()
@click.argument("amount")
@click.option("--description", default="Withdrawal")
@click.pass_obj
def withdraw(settings: Settings, amount: str, description: str) -> None:
    """Take funds out of the bankroll."""
    tx = _run(settings, lambda s: s.withdraw(amount, description))
    click.echo(f"Withdrew {tx.amount} ({tx.movement_id})")


@main.command()
@click.argument("movement_id")
@click.pass_obj
def reverse(settings: Settings, movement_id: str) -> None:
    """Cancel a deposit or withdrawal with a reversing entry."""
    tx = _run(settings, lambda s: s.reverse_movement(movement_id))
    click.echo(f"Reversed {movement_id} with {tx.kind.value.lower()} {tx.movement_id}")


@main.command()
@click.pass_obj
def balance(settings: Settings) -> None:
    """Show the current balance against the start of today."""

    async def _action(s: TrackerSession):
        return s.balance()

    snap = _run(settings, _action)
    click.echo(
        f"Balance {settings.currency} {snap.balance:.2f}  "
        f"({snap.trend.value} {abs(snap.delta_pct):.1f}% vs {snap.previous_balance:.2f})  "
        f"open exposure {snap.open_exposure:.2f}"
    )


# ---------------------------------------------------------------------------
# Wagers
# ---------------------------------------------------------------------------

@main.command("import")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--stake", required=True, help="Stake per selected match")
@click.option("--csv", "as_csv", is_flag=True, help="Source is a fixture CSV export")
@click.option("--select", "selected", multiple=True, type=click.IntRange(min=1),
              help="1-based line numbers of the matches to place (default: all)")
@click.pass_obj
def import_(
    settings: Settings, source: Path, stake: str, as_csv: bool, selected: tuple[int, ...]
) -> None:
    """Parse projections and place wagers on them."""
    from .ingest.parser import parse_csv, parse_free_text

    text = source.read_text(encoding="utf-8")
    try:
        matches = parse_csv(text) if as_csv else parse_free_text(text)
    except TrackerError as exc:
        raise click.ClickException(str(exc)) from exc
    if selected:
        try:
            matches = [matches[i - 1] for i in selected]
        except IndexError as exc:
            raise click.ClickException("Selection out of range") from exc

    placed = _run(settings, lambda s: s.place_wagers(matches, stake))
    for w in placed:
        click.echo(_fmt_wager(w))


@main.command()
@click.argument("wager_id")
@click.argument("observed")
@click.pass_obj
def settle(settings: Settings, wager_id: str, observed: str) -> None:
    """Settle an open wager with the observed outcome."""
    w = _run(settings, lambda s: s.settle_wager(wager_id, observed))
    click.echo(_fmt_wager(w))


@main.command()
@click.argument("wager_id")
@click.pass_obj
def reset(settings: Settings, wager_id: str) -> None:
    """Undo a settlement (same-day wagers only)."""
    w = _run(settings, lambda s: s.reset_wager(wager_id))
    click.echo(_fmt_wager(w))


@main.command()
@click.argument("wager_id")
@click.argument("odd")
@click.pass_obj
def reprice(settings: Settings, wager_id: str, odd: str) -> None:
    """Correct the odd of a wager (same-day wagers only)."""
    w = _run(settings, lambda s: s.reprice_wager(wager_id, odd))
    click.echo(_fmt_wager(w))


@main.command()
@click.argument("wager_id")
@click.pass_obj
def delete(settings: Settings, wager_id: str) -> None:
    """Delete a wager placed today; its stake returns to the balance."""
    w = _run(settings, lambda s: s.delete_wager(wager_id))
    click.echo(f"Deleted {w.wager_id}")


@main.command("list")
@click.option("--settled", is_flag=True, help="Show settled history instead of open wagers")
@click.pass_obj
def list_(settings: Settings, settled: bool) -> None:
    """List open wagers (or settled history)."""

    async def _action(s: TrackerSession):
        return s.settled_wagers if settled else s.open_wagers

    for w in _run(settings, _action):
        click.echo(_fmt_wager(w))


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

@main.command()
@click.option("--start", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@click.option("--end", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help="Exclusive end date")
@click.option("--min-edge", type=float, default=None)
@click.option("--min-stake", type=float, default=None)
@click.option("--json", "as_json", is_flag=True, help="Emit the full dashboard as JSON")
@click.pass_obj
def stats(
    settings: Settings,
    start: datetime | None,
    end: datetime | None,
    min_edge: float | None,
    min_stake: float | None,
    as_json: bool,
) -> None:
    """Show performance KPIs."""

    async def _action(s: TrackerSession):
        return s.dashboard(
            start=_localize(settings, start),
            end=_localize(settings, end),
            min_edge=min_edge,
            min_stake=to_decimal(min_stake) if min_stake is not None else None,
        )

    snap = _run(settings, _action)
    if as_json:
        click.echo(json.dumps(snap.to_dict(), indent=2))
        return

    summary = snap.summary
    click.echo(f"Balance         {snap.balance.balance:.2f} ({snap.balance.delta_pct:+.1f}% today)")
    click.echo(f"Net profit      {summary.total_profit:.2f}")
    click.echo(f"ROI             {summary.roi:.2f}%")
    click.echo(f"Win rate        {summary.win_rate:.1f}% ({summary.settled_count} settled)")
    click.echo(f"Max drawdown    {summary.max_drawdown:.2f}")
    click.echo(f"Open exposure   {summary.open_stake:.2f} ({summary.open_count} open)")
    acc = snap.accuracy
    if acc.sample_count:
        click.echo(
            f"MAE model/line  {acc.model_mae:.2f} / {acc.market_mae:.2f} "
            f"(n={acc.sample_count})"
        )


@main.command()
@click.pass_obj
def segments(settings: Settings) -> None:
    """Show profit by odds band, referee and side."""

    async def _action(s: TrackerSession):
        return s.dashboard()

    snap = _run(settings, _action)
    min_samples = settings.stats.min_band_samples
    click.echo("Odds bands:")
    for band in snap.odds_bands:
        flag = " (low sample)" if band.low_confidence(min_samples) else ""
        click.echo(
            f"  {band.label:<10} n={band.count:<4} roi={band.roi:7.2f}%  "
            f"win={band.win_rate:5.1f}%  avg odd={band.avg_odd:.2f}{flag}"
        )
    click.echo("Referees:")
    for group in snap.contexts.visible:
        click.echo(f"  {group.label:<24} n={group.count:<4} profit={group.profit:.2f}")
    click.echo("Sides:")
    for side, group in snap.sides.items():
        click.echo(f"  {side.value:<6} n={group.count:<4} profit={group.profit:.2f}")


# ---------------------------------------------------------------------------
# Sync
# ---------------------------------------------------------------------------

@main.group()
def sync() -> None:
    """Remote mirror credentials."""


@sync.command()
@click.option("--url", required=True, help="Project URL, e.g. https://xyz.supabase.co")
@click.option("--key", required=True, help="Project API key")
@click.pass_obj
def configure(settings: Settings, url: str, key: str) -> None:
    """Store mirror credentials locally."""
    save_sync_config(LocalStore(settings.data_path), SyncConfig(url=url, key=key))
    click.echo("Mirror configured")


@sync.command()
@click.pass_obj
def clear(settings: Settings) -> None:
    """Forget stored mirror credentials."""
    save_sync_config(LocalStore(settings.data_path), None)
    click.echo("Mirror credentials cleared")


@sync.command()
def schema() -> None:
    """Print the SQL for the mirror table."""
    click.echo(CREATE_TABLE_SQL)
