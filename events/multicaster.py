"""
HERALD - Synchronous Event Multicaster

Delivers one event to every interested listener, in priority order, on the
calling thread.

Dispatch steps:
    1. Take a point-in-time snapshot of the registry
    2. Keep listeners the matcher accepts for this event
    3. Call ``on_event`` on each in order
    4. Hand any failure to the error handler; stop only if it raises

A listener registered while a multicast is running is not part of that
multicast but will be seen by the next one.
"""
from __future__ import annotations

import time
from typing import Any, List, Optional, Tuple

from opentelemetry import trace

from config import get_config
from core.errors import ListenerDispatchError, describe_listener
from events.handlers import ErrorHandler, LoggingErrorHandler
from events.matcher import EventTypeMatcher
from events.registry import ListenerRegistry
from observability.logging import get_logger
from observability.metrics import DispatchMetrics, get_dispatch_metrics
from observability.tracing import get_tracer

logger = get_logger("herald.multicast")


class Multicaster:
    """
    Fan-out of events to registered listeners.

    Usage:
        multicaster = Multicaster()
        multicaster.add_listener(AuditListener())
        multicaster.multicast(ApplicationStartingEvent(app, args))

        # Opt into fail-fast
        multicaster.error_handler = PropagatingErrorHandler()
    """

    def __init__(
        self,
        registry: Optional[ListenerRegistry] = None,
        matcher: Optional[EventTypeMatcher] = None,
        error_handler: Optional[ErrorHandler] = None,
        tracer: Optional[trace.Tracer] = None,
        metrics: Optional[DispatchMetrics] = None,
    ):
        self._registry = registry if registry is not None else ListenerRegistry()
        self._matcher = matcher or EventTypeMatcher()
        self._error_handler: ErrorHandler = error_handler or LoggingErrorHandler()
        if tracer is None:
            tracer = (
                get_tracer("herald.multicast")
                if get_config().multicast.trace_dispatch
                else trace.NoOpTracer()
            )
        self._tracer = tracer
        self._metrics = metrics or get_dispatch_metrics()

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def registry(self) -> ListenerRegistry:
        return self._registry

    @property
    def error_handler(self) -> ErrorHandler:
        return self._error_handler

    @error_handler.setter
    def error_handler(self, handler: Optional[ErrorHandler]) -> None:
        self._error_handler = handler or LoggingErrorHandler()

    @property
    def listeners(self) -> Tuple[Any, ...]:
        """All registered listeners in dispatch order."""
        return self._registry.snapshot()

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def add_listener(self, listener: Any) -> None:
        self._registry.add(listener)

    def remove_listener(self, listener: Any) -> bool:
        return self._registry.remove(listener)

    def remove_all_listeners(self) -> None:
        self._registry.clear()

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def matching_listeners(self, event: Any) -> List[Any]:
        """Listeners that would receive ``event``, in dispatch order."""
        return [
            listener
            for listener in self._registry.snapshot()
            if self._matcher.matches(listener, event)
        ]

    def multicast(self, event: Any, error_handler: Optional[ErrorHandler] = None) -> None:
        """
        Deliver ``event`` to every matching listener.

        ``error_handler`` replaces the configured handler for this call only.
        Raises only what the error handler raises.
        """
        handler = error_handler or self._error_handler
        event_type = type(event).__name__
        start = time.perf_counter()
        targets: List[Any] = []

        try:
            with self._tracer.start_as_current_span("herald.multicast") as span:
                span.set_attribute("herald.event_type", event_type)
                targets = self.matching_listeners(event)
                span.set_attribute("herald.listener_count", len(targets))

                logger.debug(
                    "Multicasting event",
                    event_type=event_type,
                    listeners=[describe_listener(t) for t in targets],
                )

                for listener in targets:
                    self._invoke(listener, event, event_type, handler)
        finally:
            self._metrics.record_duration(event_type, time.perf_counter() - start, len(targets))

    def _invoke(self, listener: Any, event: Any, event_type: str, handler: ErrorHandler) -> None:
        self._metrics.record_invocation(event_type)
        try:
            listener.on_event(event)
        except Exception as exc:
            self._metrics.record_failure(event_type, describe_listener(listener))
            handler.handle_error(ListenerDispatchError.wrap(listener, event, exc))

    def __repr__(self) -> str:
        return (
            f"<Multicaster listeners={len(self._registry)} "
            f"error_handler={type(self._error_handler).__name__}>"
        )
