"""CLI: mayu run"""

from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from mayu.client import MayuBot
from mayu.config import load_settings
from mayu.errors import ConfigError, ReconnectCeilingExceeded

console = Console(stderr=True)


def _setup_logging(level: str) -> None:
    from mayu.cli.main import _setup_logging
    _setup_logging(level)


def _run(coro):
    from mayu.cli.main import _run
    return _run(coro)


@click.command("run")
@click.option("--env-file", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Read environment variables from this file instead of ./.env")
@click.option("--log-level", default="INFO", show_default=True,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
@click.option("-v", "--verbose", is_flag=True, help="Shortcut for --log-level DEBUG")
def run_cmd(env_file: Optional[Path], log_level: str, verbose: bool):
    """Connect to the gateway and welcome new members."""
    _setup_logging("DEBUG" if verbose else log_level)

    try:
        settings = load_settings(env_file=env_file)
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)

    bot = MayuBot(settings)
    try:
        _run(bot.run())
    except ReconnectCeilingExceeded as e:
        console.print(f"[red]{e} Exiting.[/red]")
        raise SystemExit(1)
    except KeyboardInterrupt:
        console.print("[dim]Shutting down.[/dim]")
