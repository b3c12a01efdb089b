"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from runbox.cli_commands.languages import languages
    from runbox.cli_commands.run import run
    from runbox.cli_commands.serve import serve

    cli.add_command(run)
    cli.add_command(serve)
    cli.add_command(languages)
