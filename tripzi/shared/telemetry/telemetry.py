"""OpenTelemetry tracing for the API process.

Enabled with TELEMETRY_ENABLED. Incoming requests are traced by the FastAPI
instrumentation and outbound Firestore / Storage calls by the httpx one, so a
wipe shows up as one trace with its discovery queries, storage deletes and
batchWrite requests nested under the request span.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

if TYPE_CHECKING:
    from fastapi import FastAPI

    from tripzi.core.config import Settings

logger = logging.getLogger(__name__)

# Probes would otherwise dominate the trace volume.
_UNTRACED_URLS = "/api/v1/health,/api/v1/health/ready"

_provider: TracerProvider | None = None
_provider_lock = threading.Lock()


def build_exporter(kind: str, otlp_endpoint: str | None = None) -> SpanExporter | None:
    """Span exporter for TELEMETRY_EXPORTER: "console", "otlp" or "none"."""
    if kind == "none":
        return None
    if kind == "otlp":
        if not otlp_endpoint:
            raise ValueError("TELEMETRY_OTLP_ENDPOINT is required for the otlp exporter")
        return OTLPSpanExporter(
            endpoint=otlp_endpoint, insecure=otlp_endpoint.startswith("http://")
        )
    if kind != "console":
        logger.warning("Unknown telemetry exporter %r, using console", kind)
    return ConsoleSpanExporter()


def build_provider(settings: Settings) -> TracerProvider:
    """TracerProvider tagged with this service and sampled per TELEMETRY_SAMPLE_RATE."""
    provider = TracerProvider(
        resource=Resource.create(
            {
                SERVICE_NAME: settings.app_name,
                SERVICE_VERSION: settings.app_version,
                "deployment.environment": settings.telemetry_environment,
            }
        ),
        sampler=TraceIdRatioBased(settings.telemetry_sample_rate),
    )
    exporter = build_exporter(settings.telemetry_exporter, settings.telemetry_otlp_endpoint)
    if exporter is not None:
        provider.add_span_processor(BatchSpanProcessor(exporter))
    return provider


def start_telemetry(settings: Settings, app: FastAPI) -> bool:
    """Install the global provider and instrument FastAPI and httpx.

    A bad exporter config is logged and leaves tracing off instead of
    stopping startup. Returns whether tracing is now active.
    """
    global _provider
    with _provider_lock:
        if _provider is not None:
            return True
        try:
            provider = build_provider(settings)
        except ValueError:
            logger.exception("Tracing disabled: exporter misconfigured")
            return False
        trace.set_tracer_provider(provider)
        FastAPIInstrumentor.instrument_app(
            app, tracer_provider=provider, excluded_urls=_UNTRACED_URLS
        )
        HTTPXClientInstrumentor().instrument(tracer_provider=provider)
        _provider = provider
    logger.info(
        "Tracing on (exporter=%s, sample_rate=%s)",
        settings.telemetry_exporter,
        settings.telemetry_sample_rate,
    )
    return True


def stop_telemetry() -> None:
    """Flush buffered spans and drop the provider. No-op when tracing is off."""
    global _provider
    with _provider_lock:
        provider, _provider = _provider, None
    if provider is None:
        return
    HTTPXClientInstrumentor().uninstrument()
    provider.shutdown()
