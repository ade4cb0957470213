"""Tests for OpenTelemetry tracing helpers."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from opentelemetry import trace

from hostmcp.utils.telemetry import (
    _INSTRUMENTATION_NAME,
    ATTR_RPC_ERROR_CODE,
    ATTR_RPC_ID,
    ATTR_RPC_METHOD,
    ATTR_TOOL_NAME,
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
        with tracer.start_as_current_span("hostmcp.rpc") as span:
            span.set_attribute(ATTR_RPC_METHOD, "ping")


class TestConfigureTelemetry:
    def test_raises_without_sdk(self) -> None:
        with patch.dict("sys.modules", {"opentelemetry.sdk.resources": None}):
            with pytest.raises(ImportError, match="hostmcp\\[otel\\]"):
                configure_telemetry()

    def test_otlp_raises_without_exporter(self) -> None:
        pytest.importorskip("opentelemetry.sdk.trace")

        with patch.dict(
            "sys.modules",
            {"opentelemetry.exporter.otlp.proto.grpc.trace_exporter": None},
        ), patch("hostmcp.utils.telemetry.trace.set_tracer_provider") as mock_set:
            with pytest.raises(ImportError, match="opentelemetry-exporter-otlp"):
                configure_telemetry(
                    export_to_console=False,
                    otlp_endpoint="http://localhost:4317",
                )
        mock_set.assert_not_called()

    def test_installs_provider(self) -> None:
        sdk_trace = pytest.importorskip("opentelemetry.sdk.trace")

        with patch("hostmcp.utils.telemetry.trace.set_tracer_provider") as mock_set:
            configure_telemetry(service_name="test-svc", export_to_console=True)

        provider = mock_set.call_args[0][0]
        assert isinstance(provider, sdk_trace.TracerProvider)
        assert provider.resource.attributes["service.name"] == "test-svc"


class TestAttributeConstants:
    @pytest.mark.parametrize("attr", [ATTR_RPC_METHOD, ATTR_RPC_ID, ATTR_RPC_ERROR_CODE, ATTR_TOOL_NAME])
    def test_constants_are_namespaced(self, attr: str) -> None:
        assert attr.startswith("hostmcp.")

    def test_instrumentation_name(self) -> None:
        assert _INSTRUMENTATION_NAME == "hostmcp"
