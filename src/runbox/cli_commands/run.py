"""``runbox run`` — execute a source file locally or on a runbox server."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click
import httpx

from runbox.cli_commands._output import console, print_result, settings_from_context
from runbox.runtime.errors import RequestValidationError, SandboxError
from runbox.runtime.sandbox.models import ExecutionRequest, ExecutionResult

if TYPE_CHECKING:
    from runbox.config import RunboxSettings

_EXTENSIONS = {".java": "java", ".js": "javascript", ".mjs": "javascript", ".cjs": "javascript"}


def _guess_language(path: Path) -> str:
    return _EXTENSIONS.get(path.suffix.lower(), "javascript")


@click.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--language",
    "-l",
    default=None,
    help="Language of SOURCE (guessed from the file extension by default).",
)
@click.option("--input", "-i", "stdin_text", default=None, help="Stdin for the program.")
@click.option(
    "--input-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Read the program's stdin from a file.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the raw JSON result.")
@click.option(
    "--remote",
    default=None,
    metavar="URL",
    help="Send the request to a running runbox server instead of executing locally.",
)
@click.pass_context
def run(
    ctx: click.Context,
    source: str,
    language: str | None,
    stdin_text: str | None,
    input_file: str | None,
    as_json: bool,
    remote: str | None,
) -> None:
    """Execute the program in SOURCE inside a sandbox."""
    settings = settings_from_context(ctx)

    source_path = Path(source)
    if stdin_text is not None and input_file is not None:
        raise click.UsageError("--input and --input-file are mutually exclusive")
    if input_file is not None:
        stdin_text = Path(input_file).read_text(encoding="utf-8")

    request = ExecutionRequest(
        code=source_path.read_text(encoding="utf-8"),
        language=language or _guess_language(source_path),
        input=stdin_text,
    )

    if remote:
        result = _run_remote(remote, request, settings.api.prefix)
    else:
        result = _run_local(request, settings)

    print_result(result, as_json=as_json)
    if not result.success:
        sys.exit(1)


def _run_local(request: ExecutionRequest, settings: RunboxSettings) -> ExecutionResult:
    from runbox.runtime.service import ExecutionService

    service = ExecutionService(settings)
    try:
        return asyncio.run(service.execute(request))
    except RequestValidationError as exc:
        console.print(f"[red]Invalid request:[/red] {exc.message}")
        sys.exit(2)
    except SandboxError as exc:
        console.print(f"[red]Sandbox error:[/red] {exc.detail or exc}")
        sys.exit(3)


def _run_remote(base_url: str, request: ExecutionRequest, prefix: str) -> ExecutionResult:
    url = base_url.rstrip("/") + prefix + "/execute"
    try:
        response = httpx.post(url, json=request.model_dump(exclude_none=True), timeout=60.0)
    except httpx.HTTPError as exc:
        console.print(f"[red]Cannot reach {url}:[/red] {exc}")
        sys.exit(3)

    if response.status_code == 400:
        console.print(f"[red]Invalid request:[/red] {response.json().get('error', '')}")
        sys.exit(2)
    if response.status_code >= 500:
        console.print(f"[red]Server error:[/red] {response.json().get('error', response.text)}")
        sys.exit(3)

    return ExecutionResult.model_validate(response.json())
