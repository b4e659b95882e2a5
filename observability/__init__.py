"""
HERALD - Observability Package

Structured logging, tracing and dispatch metrics for the lifecycle
multicaster.

Components:
- logging: structlog configuration with trace context propagation
- tracing: OpenTelemetry tracer provider setup
- metrics: dispatch counters and durations

Usage:
    from observability import setup_logging, setup_tracing, get_logger

    setup_logging()
    setup_tracing()
    logger = get_logger("herald.app")
"""
from .logging import (
    LogContext,
    LoggingConfig,
    bind_context,
    clear_context,
    get_logger,
    setup_logging,
    shutdown_logging,
)
from .metrics import DispatchMetrics, get_dispatch_metrics, get_meter
from .tracing import TracingConfig, get_tracer, setup_tracing, shutdown_tracing

__all__ = [
    # Logging
    "LogContext",
    "LoggingConfig",
    "bind_context",
    "clear_context",
    "get_logger",
    "setup_logging",
    "shutdown_logging",
    # Metrics
    "DispatchMetrics",
    "get_dispatch_metrics",
    "get_meter",
    # Tracing
    "TracingConfig",
    "get_tracer",
    "setup_tracing",
    "shutdown_tracing",
]
