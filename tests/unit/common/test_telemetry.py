from unittest.mock import patch

from opentelemetry.sdk.trace import TracerProvider

from common.observability import setup_telemetry


def test_setup_without_endpoint_installs_provider_only():
    with patch("common.observability.telemetry.trace.set_tracer_provider") as set_provider:
        provider = setup_telemetry("mysql-schema-mcp")

    assert isinstance(provider, TracerProvider)
    set_provider.assert_called_once_with(provider)
    assert provider.resource.attributes["service.name"] == "mysql-schema-mcp"


def test_setup_with_endpoint_adds_exporter():
    with (
        patch("common.observability.telemetry.trace.set_tracer_provider"),
        patch(
            "opentelemetry.exporter.otlp.proto.grpc.trace_exporter.OTLPSpanExporter"
        ) as exporter_cls,
        patch.object(TracerProvider, "add_span_processor") as add_processor,
    ):
        setup_telemetry("mysql-schema-mcp", "http://collector:4317")

    exporter_cls.assert_called_once_with(endpoint="http://collector:4317")
    add_processor.assert_called_once()
