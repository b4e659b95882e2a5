"""
HERALD - OpenTelemetry Metrics

Dispatch counters for the lifecycle multicaster.

Key Metrics:
- herald_listener_invocations_total: listener calls, by event type
- herald_listener_failures_total: listener calls that raised, by event type
- herald_multicast_duration_seconds: wall time of one multicast call

Instruments come from the global meter provider, so they record nothing
until the host application installs an SDK provider.
"""
from __future__ import annotations

from typing import Optional

from opentelemetry import metrics
from opentelemetry.metrics import Meter

_dispatch_metrics: Optional["DispatchMetrics"] = None


class DispatchMetrics:
    """Counters and histograms recorded by every multicaster."""

    def __init__(self, meter: Meter):
        self.meter = meter

        self.invocations = meter.create_counter(
            name="herald_listener_invocations_total",
            description="Listener invocations",
            unit="1",
        )
        self.failures = meter.create_counter(
            name="herald_listener_failures_total",
            description="Listener invocations that raised",
            unit="1",
        )
        self.duration = meter.create_histogram(
            name="herald_multicast_duration_seconds",
            description="Duration of one multicast call",
            unit="s",
        )

    def record_invocation(self, event_type: str) -> None:
        self.invocations.add(1, {"event_type": event_type})

    def record_failure(self, event_type: str, listener: str) -> None:
        self.failures.add(1, {"event_type": event_type, "listener": listener})

    def record_duration(self, event_type: str, seconds: float, listener_count: int) -> None:
        self.duration.record(seconds, {"event_type": event_type, "listeners": listener_count})


def get_meter(name: str, version: str = "1.0.0") -> Meter:
    """Get a meter from the global provider."""
    return metrics.get_meter(name, version)


def get_dispatch_metrics() -> DispatchMetrics:
    """Shared dispatch instruments, created on first use."""
    global _dispatch_metrics
    if _dispatch_metrics is None:
        _dispatch_metrics = DispatchMetrics(get_meter("herald.multicast"))
    return _dispatch_metrics
