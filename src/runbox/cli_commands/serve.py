"""``runbox serve`` — run the HTTP API under uvicorn."""

from __future__ import annotations

import click
import uvicorn

from runbox.cli_commands._output import console, settings_from_context


@click.command()
@click.option("--host", default=None, help="Bind address (overrides settings).")
@click.option("--port", "-p", type=int, default=None, help="Port (overrides settings).")
@click.option("--telemetry", is_flag=True, help="Export traces to the console.")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None, telemetry: bool) -> None:
    """Serve the execution API."""
    from runbox.api.app import create_app

    settings = settings_from_context(ctx)

    if telemetry or settings.telemetry.enabled:
        from runbox.utils.telemetry import configure_telemetry

        try:
            configure_telemetry(
                export_to_console=telemetry,
                otlp_endpoint=settings.telemetry.otlp_endpoint,
            )
        except ImportError as exc:
            console.print(f"[yellow]Telemetry disabled:[/yellow] {exc}")

    bind_host = host or settings.api.host
    bind_port = port or settings.api.port
    console.print(f"Serving runbox on http://{bind_host}:{bind_port}{settings.api.prefix}")
    uvicorn.run(create_app(settings), host=bind_host, port=bind_port, log_config=None)
