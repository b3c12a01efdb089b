"""``runbox languages`` — list the configured language profiles."""

from __future__ import annotations

import json

import click

from runbox.cli_commands._output import console, print_profiles_table, settings_from_context


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def languages(ctx: click.Context, as_json: bool) -> None:
    """Show images, limits and timeouts per language."""
    settings = settings_from_context(ctx)
    profiles = settings.language_profiles()

    if as_json:
        console.print_json(json.dumps({k: p.model_dump() for k, p in profiles.items()}))
        return

    print_profiles_table(profiles)
