"""Tracing for the relay, selected by the ``OBSERVABILITY`` setting.

- ``"logfire"``: Pydantic Logfire traces the HTTP routes and the OpenAI
  calls, and receives the loguru records (with their ``cid``).  Spans are
  only shipped when ``LOGFIRE_TOKEN`` is set.
- ``"otel"``: plain OpenTelemetry, HTTP routes exported over OTLP/HTTP.
- ``"off"``: nothing is instrumented (default).

The ``/health`` liveness check is never traced.  The backing libraries
ship in the ``telemetry`` extra and are imported only by the mode that
needs them.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import FastAPI
from loguru import logger

from chat_relay import __version__
from chat_relay.config import Settings

UNTRACED_PATHS = ("/health",)


def setup_telemetry(app: FastAPI, settings: Settings) -> str:
    """Instrument *app* and return the mode actually applied.

    Unknown modes are logged and treated as ``"off"``.
    """
    mode = settings.observability.lower()
    if mode == "off":
        logger.info("Observability disabled (OBSERVABILITY=off)")
        return "off"

    backend = _BACKENDS.get(mode)
    if backend is None:
        logger.warning("Unknown observability mode '{}', disabling", mode)
        return "off"

    backend(app, settings)
    return mode


def resource_attributes(settings: Settings) -> dict[str, str]:
    return {
        "service.name": settings.otel_service_name,
        "service.version": __version__,
        "relay.model": settings.openai_model,
    }


def _setup_logfire(app: FastAPI, settings: Settings) -> None:
    import logfire

    logfire.configure(
        service_name=settings.otel_service_name,
        service_version=__version__,
        send_to_logfire="if-token-present",
    )
    logfire.instrument_fastapi(app, excluded_urls=",".join(UNTRACED_PATHS))
    logfire.instrument_openai()
    logger.add(**logfire.loguru_handler())

    logger.info("Logfire enabled | service={}", settings.otel_service_name)


def _setup_otel(app: FastAPI, settings: Settings) -> None:
    from opentelemetry import trace
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
    from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import (
        BatchSpanProcessor,
        ConsoleSpanExporter,
        SimpleSpanProcessor,
    )

    endpoint = f"{settings.otel_exporter_otlp_endpoint.rstrip('/')}/v1/traces"
    provider = TracerProvider(resource=Resource.create(resource_attributes(settings)))
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
    if settings.otel_console_exporter:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    FastAPIInstrumentor.instrument_app(app, excluded_urls=",".join(UNTRACED_PATHS))

    logger.info(
        "OpenTelemetry enabled | service={} | endpoint={}", settings.otel_service_name, endpoint
    )


_BACKENDS: dict[str, Callable[[FastAPI, Settings], None]] = {
    "logfire": _setup_logfire,
    "otel": _setup_otel,
}
