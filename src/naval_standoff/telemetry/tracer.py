"""Tracing helpers built on OpenTelemetry."""

from __future__ import annotations

from typing import TYPE_CHECKING

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from opentelemetry.trace import Tracer

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .config import TelemetryConfig


_TRACERS: dict[str, Tracer] = {}
_TRACER_PROVIDER: TracerProvider | None = None


def get_tracer(name: str = "naval_standoff") -> Tracer:
    """Return the tracer for ``name``, created on first use.

    Engine modules fetch their tracer at import time; those proxies forward to
    whatever provider :func:`init_tracing` installs later.
    """
    tracer = _TRACERS.get(name)
    if tracer is None:
        tracer = trace.get_tracer(name)
        _TRACERS[name] = tracer
    return tracer


def init_tracing(config: TelemetryConfig) -> Tracer:
    """Install a sampled TracerProvider exporting over OTLP, or to the console."""
    global _TRACER_PROVIDER

    provider = TracerProvider(
        resource=Resource.create(config.resource()),
        sampler=ParentBased(TraceIdRatioBased(config.trace_sample_ratio)),
    )
    if config.otlp_traces_endpoint:
        exporter = OTLPSpanExporter(endpoint=config.otlp_traces_endpoint, insecure=True)
        provider.add_span_processor(BatchSpanProcessor(exporter))
    else:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _TRACER_PROVIDER = provider
    tracer = provider.get_tracer(config.service_name)
    _TRACERS[config.service_name] = tracer
    return tracer


def shutdown_tracing() -> None:
    """Flush spans still queued for export and stop the provider.

    Called when a game session ends so batched spans from the final turns are
    not lost on interpreter exit.
    """
    global _TRACER_PROVIDER
    if _TRACER_PROVIDER is None:
        return
    _TRACER_PROVIDER.force_flush()
    _TRACER_PROVIDER.shutdown()
    _TRACER_PROVIDER = None
