"""
HERALD - Tracing with OpenTelemetry

One span per multicast call lets a slow or failing bootstrap be read as a
flame graph: each lifecycle phase shows which listeners ran and which raised.

Usage:
    from observability.tracing import setup_tracing, get_tracer

    setup_tracing(TracingConfig(service_name="my-app", console_export=True))
    tracer = get_tracer(__name__)
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME, SERVICE_VERSION
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor
from opentelemetry.sdk.trace.sampling import (
    ALWAYS_OFF,
    ALWAYS_ON,
    ParentBased,
    TraceIdRatioBased,
)

# Global state
_tracer_provider: Optional[TracerProvider] = None
_initialized: bool = False


@dataclass
class TracingConfig:
    """Configuration for OpenTelemetry tracing."""

    service_name: str = "herald"
    service_version: str = "1.0.0"
    enabled: bool = field(
        default_factory=lambda: os.getenv("OTEL_TRACING_ENABLED", "true").lower() == "true"
    )
    sample_rate: float = field(
        default_factory=lambda: float(os.getenv("OTEL_SAMPLE_RATE", "1.0"))
    )
    environment: str = field(
        default_factory=lambda: os.getenv("ENVIRONMENT", "development")
    )
    console_export: bool = field(
        default_factory=lambda: os.getenv("OTEL_CONSOLE_EXPORT", "false").lower() == "true"
    )
    extra_attributes: Dict[str, str] = field(default_factory=dict)


def setup_tracing(config: Optional[TracingConfig] = None) -> trace.TracerProvider:
    """
    Install a global SDK tracer provider.

    Returns the already-installed provider on repeated calls.
    """
    global _tracer_provider, _initialized

    if _initialized:
        return _tracer_provider or trace.get_tracer_provider()

    config = config or TracingConfig()

    if not config.enabled:
        trace.set_tracer_provider(trace.NoOpTracerProvider())
        _initialized = True
        return trace.get_tracer_provider()

    resource = Resource.create({
        SERVICE_NAME: config.service_name,
        SERVICE_VERSION: config.service_version,
        "deployment.environment": config.environment,
        **config.extra_attributes,
    })

    if config.sample_rate <= 0.0:
        sampler = ALWAYS_OFF
    elif config.sample_rate >= 1.0:
        sampler = ALWAYS_ON
    else:
        sampler = ParentBased(root=TraceIdRatioBased(config.sample_rate))

    _tracer_provider = TracerProvider(resource=resource, sampler=sampler)

    if config.console_export:
        _tracer_provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(_tracer_provider)
    _initialized = True

    return _tracer_provider


def get_tracer(name: str, version: str = "1.0.0") -> trace.Tracer:
    """
    Get a tracer for manual instrumentation.

    Uses the global provider, so spans become real once ``setup_tracing``
    has run and are no-ops before that.
    """
    return trace.get_tracer(name, version)


def shutdown_tracing() -> None:
    """Flush and shut down the SDK provider installed by ``setup_tracing``."""
    global _tracer_provider, _initialized

    if _tracer_provider is not None:
        _tracer_provider.shutdown()
    _tracer_provider = None
    _initialized = False
