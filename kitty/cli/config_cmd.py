"""Config CLI commands: show, validate."""

from __future__ import annotations

import json

import click


@click.group("config")
def config_group() -> None:
    """Manage configuration."""
    pass


@config_group.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Print the resolved configuration."""
    from kitty.config.loader import load_config

    config = load_config(ctx.obj.get("config_path"))
    click.echo(json.dumps(config.model_dump(), indent=2, default=str))


@config_group.command("validate")
@click.pass_context
def config_validate(ctx: click.Context) -> None:
    """Validate the config file, and the positions file if it exists."""
    import yaml
    from pydantic import ValidationError

    from kitty.config.loader import load_config, resolve_path
    from kitty.data.position_file import load_positions

    try:
        config = load_config(ctx.obj.get("config_path"))
    except (ValidationError, ValueError) as e:
        click.echo(f"Config is INVALID:\n{e}", err=True)
        raise SystemExit(1)

    sources = config.data_sources
    click.echo("Config is valid.")
    click.echo(f"  Version: {config.version}")
    click.echo(f"  Data sources: yfinance={sources.yfinance.enabled}, "
               f"kalshi={sources.kalshi.enabled}")
    click.echo(f"  Positions file: {config.portfolio.positions_file}")
    click.echo(f"  Payout split: {config.portfolio.payout_split}")

    positions_path = resolve_path(config.portfolio.positions_file)
    if not positions_path.exists():
        click.echo("  Positions file not found, skipped.")
        return
    try:
        positions = load_positions(positions_path)
    except (ValidationError, ValueError, yaml.YAMLError) as e:
        click.echo(f"Positions file is INVALID:\n{e}", err=True)
        raise SystemExit(1)
    click.echo(f"  Positions: {len(positions)} valid")
