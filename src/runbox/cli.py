"""runbox CLI entrypoint."""

from __future__ import annotations

import click

from runbox import __version__


@click.group()
@click.version_option(version=__version__, prog_name="runbox")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Settings YAML (defaults to $RUNBOX_CONFIG).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """runbox — run untrusted JavaScript and Java snippets in containers."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


# Register subcommands
from runbox.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
