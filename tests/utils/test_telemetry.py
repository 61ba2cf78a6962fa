"""Tests for OpenTelemetry tracing helpers."""

from __future__ import annotations

import sys
from unittest.mock import patch

import pytest
from opentelemetry import trace

from rmcli.utils.telemetry import (
    _INSTRUMENTATION_NAME,
    ATTR_MCP_ERROR_CODE,
    ATTR_MCP_METHOD,
    ATTR_MCP_REQUEST_ID,
    ATTR_MCP_RESOURCE_URI,
    ATTR_MCP_TOOL,
    configure_telemetry,
    get_tracer,
)


class TestGetTracer:
    def test_returns_tracer(self) -> None:
        tracer = get_tracer("test.module")
        assert isinstance(tracer, trace.Tracer)

    def test_default_name(self) -> None:
        tracer = get_tracer()
        assert isinstance(tracer, trace.Tracer)

    def test_noop_span(self) -> None:
        """Without SDK configured, spans should be no-ops."""
        tracer = get_tracer("test.noop")
        with tracer.start_as_current_span("mcp.request") as span:
            span.set_attribute(ATTR_MCP_METHOD, "ping")


class TestConfigureTelemetry:
    def test_raises_without_sdk(self) -> None:
        with patch.dict("sys.modules", {"opentelemetry.sdk.resources": None}):
            with pytest.raises(ImportError, match="rmcli\\[otel\\]"):
                configure_telemetry()

    def test_otlp_raises_without_exporter(self) -> None:
        try:
            import opentelemetry.sdk.trace  # noqa: F401
        except ImportError:
            pytest.skip("opentelemetry-sdk not installed")

        with patch.dict(
            "sys.modules",
            {"opentelemetry.exporter.otlp.proto.grpc.trace_exporter": None},
        ):
            with pytest.raises(ImportError, match="opentelemetry-exporter-otlp"):
                configure_telemetry(
                    export_to_console=False,
                    otlp_endpoint="http://localhost:4317",
                )

    def test_console_exporter_writes_to_stderr(self) -> None:
        try:
            from opentelemetry.sdk.trace import TracerProvider
        except ImportError:
            pytest.skip("opentelemetry-sdk not installed")

        with (
            patch("opentelemetry.trace.set_tracer_provider") as set_provider,
            patch("opentelemetry.sdk.trace.export.ConsoleSpanExporter") as exporter_cls,
        ):
            configure_telemetry(service_name="test-svc", export_to_console=True)

        provider = set_provider.call_args.args[0]
        assert isinstance(provider, TracerProvider)
        assert provider.resource.attributes["service.name"] == "test-svc"
        exporter_cls.assert_called_once_with(out=sys.stderr)


class TestAttributeConstants:
    @pytest.mark.parametrize(
        "attr",
        [ATTR_MCP_METHOD, ATTR_MCP_REQUEST_ID, ATTR_MCP_TOOL, ATTR_MCP_RESOURCE_URI, ATTR_MCP_ERROR_CODE],
    )
    def test_constants_are_namespaced(self, attr: str) -> None:
        assert attr.startswith("rmcli.mcp.")

    def test_instrumentation_name(self) -> None:
        assert _INSTRUMENTATION_NAME == "rmcli"
