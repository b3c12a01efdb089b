"""OpenTelemetry tracing for executions.

Every execution runs inside one ``runbox.execute`` span carrying the
``runbox.*`` attributes below.  Without a configured SDK the API hands out
no-op tracers, so instrumented code never checks whether tracing is on.
"""

from __future__ import annotations

from opentelemetry import trace

SPAN_EXECUTE = "runbox.execute"

ATTR_LANGUAGE = "runbox.language"
ATTR_WORKSPACE_ID = "runbox.workspace.id"
ATTR_EXIT_CODE = "runbox.exit_code"
ATTR_TIMED_OUT = "runbox.timed_out"
ATTR_DURATION_MS = "runbox.duration_ms"
ATTR_SUCCESS = "runbox.success"

_INSTRUMENTATION_NAME = "runbox"
_INSTALL_HINT = "Install it with: pip install runbox[otel]"


def get_tracer(name: str | None = None) -> trace.Tracer:
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(
    *,
    service_name: str = "runbox",
    export_to_console: bool = True,
    otlp_endpoint: str | None = None,
) -> None:
    """Install an SDK tracer provider for ``runbox serve``.

    Spans go to stdout when *export_to_console* is set, and are batched to
    *otlp_endpoint* (OTLP/gRPC) when one is given.

    Raises:
        ImportError: If ``opentelemetry-sdk``, or the OTLP exporter when an
            endpoint is given, is not installed.
    """
    try:
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import (
            BatchSpanProcessor,
            ConsoleSpanExporter,
            SimpleSpanProcessor,
        )
    except ImportError as exc:
        raise ImportError(f"opentelemetry-sdk is required for tracing. {_INSTALL_HINT}") from exc

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))

    if export_to_console:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    if otlp_endpoint:
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        except ImportError as exc:
            raise ImportError(
                f"opentelemetry-exporter-otlp is required for OTLP export. {_INSTALL_HINT}"
            ) from exc
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))

    trace.set_tracer_provider(provider)
