"""OpenTelemetry bootstrap for the MCP server process."""

import logging
from typing import Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

logger = logging.getLogger(__name__)


def setup_telemetry(service_name: str, otlp_endpoint: Optional[str] = None) -> TracerProvider:
    """Install a TracerProvider, exporting over OTLP/gRPC when an endpoint is set.

    Without an endpoint spans are still created (so span-aware code paths run)
    but nothing leaves the process.
    """
    resource = Resource.create({SERVICE_NAME: service_name})
    provider = TracerProvider(resource=resource)
    trace.set_tracer_provider(provider)

    if not otlp_endpoint:
        logger.info("OTEL initialized without exporter (OTEL_EXPORTER_OTLP_ENDPOINT unset)")
        return provider

    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))
        logger.info("OTEL initialized for %s exporting to %s", service_name, otlp_endpoint)
    except Exception as exc:
        logger.exception("Failed to initialize OTEL exporter; continuing without it: %s", exc)
    return provider
