"""Shared CLI helpers: settings bootstrap and output formatters."""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.table import Table

from runbox.config import RunboxSettings, load_settings
from runbox.runtime.errors import ConfigValidationError
from runbox.runtime.sandbox.models import ExecutionResult  # noqa: TC001
from runbox.utils.log import configure_logging

if TYPE_CHECKING:
    from runbox.runtime.sandbox.models import LanguageProfile

console = Console()


def settings_from_context(ctx: click.Context) -> RunboxSettings:
    """Load settings named by the group options and set up logging."""
    obj = ctx.find_root().obj or {}
    try:
        settings = load_settings(obj.get("config_path"))
    except ConfigValidationError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)

    configure_logging("DEBUG" if obj.get("verbose") else settings.log_level)
    return settings


def print_result(result: ExecutionResult, *, as_json: bool = False) -> None:
    """Pretty-print an execution result."""
    if as_json:
        console.print_json(json.dumps(result.to_response()))
        return

    if result.output:
        end = "" if result.output.endswith("\n") else "\n"
        console.print(result.output, end=end, markup=False, highlight=False)

    if result.error:
        style = "yellow" if result.success else "red"
        label = "stderr" if result.success else "error"
        console.print(f"[{style}]{label}:[/{style}]", end=" ")
        console.print(result.error, markup=False, highlight=False)

    status = "[green]success[/green]" if result.success else "[red]failed[/red]"
    timing = f" in {result.execution_time}ms" if result.execution_time is not None else ""
    console.print(f"\n{status}{timing}")


def print_profiles_table(profiles: dict[str, LanguageProfile]) -> None:
    """Pretty-print language profiles as a table."""
    table = Table(title="Language Profiles")
    table.add_column("Language", style="cyan")
    table.add_column("Image")
    table.add_column("Memory")
    table.add_column("Timeout")
    table.add_column("Scratch")

    for profile in profiles.values():
        table.add_row(
            profile.language,
            profile.image,
            profile.memory_limit,
            f"{profile.timeout}s",
            profile.scratch_mount,
        )

    console.print(table)
