"""Top-level CLI entry point for Kitty."""

from __future__ import annotations

import logging

import click

from kitty import __version__


@click.group()
@click.version_option(version=__version__, prog_name="kitty")
@click.option(
    "--config",
    type=click.Path(),
    default=None,
    envvar="KITTY_CONFIG",
    help="Path to config.yaml",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, config: str | None, verbose: bool) -> None:
    """Kitty -- live valuation for a shared portfolio."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


# Register sub-commands
from kitty.cli.config_cmd import config_group  # noqa: E402
from kitty.cli.snapshot_cmd import snapshot_cmd, summary_cmd  # noqa: E402

cli.add_command(config_group, "config")
cli.add_command(snapshot_cmd, "snapshot")
cli.add_command(summary_cmd, "summary")
