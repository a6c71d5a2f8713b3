"""Tracing for the proxy backend.

The ``OBSERVABILITY`` setting picks the provider:

- ``"logfire"``: Pydantic Logfire (set ``LOGFIRE_TOKEN``)
- ``"otel"``: OpenTelemetry SDK exporting over OTLP/HTTP
- ``"off"``: nothing is instrumented (default)

Besides the incoming FastAPI requests, both providers trace the outbound side
of every proxy: httpx calls to n8n, Cloudinary, WhatsApp and the LLM gateway,
and SQLAlchemy statements against the catalog database.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import FastAPI
from loguru import logger

from salesdesk import __version__
from salesdesk.config import Settings


def setup_telemetry(app: FastAPI, settings: Settings) -> str:
    """Instrument *app* and the outbound clients; returns the active mode.

    Call once while building the app.  Unknown modes are logged and treated
    as ``"off"``.
    """
    mode = settings.observability.strip().lower()
    if mode == "off":
        logger.info("Tracing disabled (OBSERVABILITY=off)")
        return mode

    setup = _PROVIDERS.get(mode)
    if setup is None:
        logger.warning("Unknown observability mode '{}', tracing disabled", mode)
        return "off"

    setup(app, settings)
    return mode


def _setup_logfire(app: FastAPI, settings: Settings) -> None:
    import logfire

    logfire.configure(service_name=settings.otel_service_name, service_version=__version__)
    logfire.instrument_fastapi(app)
    logfire.instrument_httpx()
    logfire.instrument_sqlalchemy()
    logger.info("Logfire tracing enabled | service={}", settings.otel_service_name)


def _setup_otel(app: FastAPI, settings: Settings) -> None:
    from opentelemetry import trace
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
    from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
    from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
    from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import (
        BatchSpanProcessor,
        ConsoleSpanExporter,
        SimpleSpanProcessor,
    )

    provider = TracerProvider(
        resource=Resource.create(
            {"service.name": settings.otel_service_name, "service.version": __version__}
        )
    )
    endpoint = f"{settings.otel_exporter_otlp_endpoint.rstrip('/')}/v1/traces"
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
    if settings.otel_console_exporter:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app)
    HTTPXClientInstrumentor().instrument()
    SQLAlchemyInstrumentor().instrument()
    logger.info("OpenTelemetry tracing enabled | endpoint={}", endpoint)


_PROVIDERS: dict[str, Callable[[FastAPI, Settings], None]] = {
    "logfire": _setup_logfire,
    "otel": _setup_otel,
}
