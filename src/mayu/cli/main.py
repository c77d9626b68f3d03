"""
Mayu CLI — `mayu` command.

Commands:
  mayu run        Connect to the gateway and post welcome embeds
  mayu preview    Print the embed that would be posted for a member
"""

import asyncio
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from mayu import __version__


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
    )


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option(__version__)
def main():
    """Mayu — welcomes new guild members from the Discord gateway."""


# Register subcommands from separate modules
from mayu.cli.run import run_cmd
from mayu.cli.preview import preview_cmd

main.add_command(run_cmd)
main.add_command(preview_cmd)


if __name__ == "__main__":
    main()
