"""
FlowBoard OpenTelemetry Setup

Production observability:
- Traces for chat exchanges (one span per relayed stream)
- Child spans for server-side tool execution
- OTLP export when OTEL_EXPORTER_OTLP_ENDPOINT is set
"""
from __future__ import annotations
from typing import Optional
import os

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

SERVICE_NAME = "flowboard"


def setup_otel(
    service_name: str = SERVICE_NAME,
    endpoint: Optional[str] = None,
) -> trace.Tracer:
    """Install a tracer provider, exporting over OTLP if configured."""
    resource = Resource.create({"service.name": service_name})
    provider = TracerProvider(resource=resource)

    otlp_endpoint = endpoint or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if otlp_endpoint:
        # Requires the "otlp" extra
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        exporter = OTLPSpanExporter(endpoint=otlp_endpoint)
        provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(provider)
    return trace.get_tracer(service_name)


def get_tracer(name: str = SERVICE_NAME) -> trace.Tracer:
    """Tracer from the installed provider (no-op until setup_otel runs)."""
    return trace.get_tracer(name)
