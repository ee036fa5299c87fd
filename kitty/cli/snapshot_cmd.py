"""Snapshot CLI commands: snapshot, summary."""

from __future__ import annotations

import json
from typing import Any

import click
import yaml


def _fmt_money(amount: float) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def _fmt_pct(pct: float) -> str:
    return f"{'+' if pct >= 0 else ''}{pct:.2f}%"


def _load(ctx: click.Context, positions_path: str | None) -> tuple[Any, Any]:
    """Load config and build a snapshot.

    Individual records are not validated here; a bad record shows up as
    a degraded row instead of aborting the run.
    """
    from kitty.config.loader import load_config, resolve_path
    from kitty.data.position_file import read_position_records
    from kitty.portfolio.aggregator import PortfolioService

    config = load_config(ctx.obj.get("config_path"))
    path = resolve_path(positions_path or config.portfolio.positions_file)
    if not path.exists():
        raise click.ClickException(f"Positions file not found: {path}")

    try:
        records = read_position_records(path)
    except (ValueError, yaml.YAMLError) as e:
        raise click.ClickException(f"Invalid positions file {path}: {e}") from e

    snapshot = PortfolioService(config).get_snapshot(records)
    return config, snapshot


@click.command("snapshot")
@click.option("--positions", "positions_path", type=click.Path(), default=None,
              help="Positions file (defaults to portfolio.positions_file)")
@click.option("--json", "as_json", is_flag=True, help="Print the snapshot as JSON")
@click.pass_context
def snapshot_cmd(ctx: click.Context, positions_path: str | None, as_json: bool) -> None:
    """Value every position and print the snapshot."""
    _, snapshot = _load(ctx, positions_path)

    if as_json:
        click.echo(json.dumps(snapshot.to_dict(), indent=2))
        return

    click.echo(f"Portfolio as of {snapshot.last_updated}")
    click.echo(f"{'ID':>3}  {'Person':<10} {'Type':<12} {'Price':>9} "
               f"{'Value':>11} {'Basis':>11} {'Return':>9}  Position")
    for p in snapshot.positions:
        flag = " (stale)" if p.is_degraded or (p.market_data and p.market_data.is_fallback) else ""
        click.echo(
            f"{p.id:>3}  {(p.person_name or '-'):<10} {p.type:<12} {p.current_price:>9.4f} "
            f"{_fmt_money(p.current_value):>11} {_fmt_money(p.original_value):>11} "
            f"{_fmt_pct(p.total_return):>9}  {p.position_name}{flag}"
        )
    click.echo(f"\nTotal: {_fmt_money(snapshot.total_value)}")


@click.command("summary")
@click.option("--positions", "positions_path", type=click.Path(), default=None,
              help="Positions file (defaults to portfolio.positions_file)")
@click.pass_context
def summary_cmd(ctx: click.Context, positions_path: str | None) -> None:
    """Print portfolio totals, per-person values, and the payout split."""
    from kitty.portfolio.summary import summarize_portfolio

    config, snapshot = _load(ctx, positions_path)
    summary = summarize_portfolio(
        snapshot,
        original_total=config.portfolio.original_total,
        payout_split=config.portfolio.payout_split,
    )

    click.echo(f"Total value:  {_fmt_money(summary.total_value)}")
    click.echo(f"Contributed:  {_fmt_money(summary.original_total)}")
    click.echo(f"Return:       {_fmt_pct(summary.total_return)}")
    if summary.degraded_count:
        click.echo(f"Degraded:     {summary.degraded_count} position(s) valued without market data")

    click.echo("\nBy person:")
    for person, value in sorted(summary.by_person.items(), key=lambda kv: -kv[1]):
        click.echo(f"  {person:<12} {_fmt_money(value):>11}")

    click.echo("\nPayouts:")
    for place, (share, amount) in enumerate(
        zip(config.portfolio.payout_split, summary.payouts), start=1,
    ):
        click.echo(f"  #{place}  {share:>6.1%}  {_fmt_money(amount):>11}")
