"""
HERALD - Unified Error Handling

Error hierarchy for lifecycle event dispatch.

Features:
- Hierarchical exception classes with context preservation
- Error severity levels for prioritized handling
- Structured error context for debugging
- OpenTelemetry integration for error tracing
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode


class ErrorSeverity(Enum):
    """Error severity levels for prioritized handling."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"      # Degraded, dispatch continues
    ERROR = "error"          # Dispatch or phase aborted
    CRITICAL = "critical"    # Bootstrap cannot continue


@dataclass
class ErrorContext:
    """Structured context for error debugging and tracing."""

    operation: str
    component: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    trace_id: Optional[str] = None
    span_id: Optional[str] = None
    phase_name: Optional[str] = None
    event_type: Optional[str] = None
    listener_name: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    stack_trace: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary for serialization."""
        return {
            "operation": self.operation,
            "component": self.component,
            "timestamp": self.timestamp.isoformat(),
            "trace_id": self.trace_id,
            "span_id": self.span_id,
            "phase_name": self.phase_name,
            "event_type": self.event_type,
            "listener_name": self.listener_name,
            "metadata": self.metadata,
            "stack_trace": self.stack_trace,
        }

    @classmethod
    def from_current_span(
        cls,
        operation: str,
        component: str,
        **kwargs: Any
    ) -> "ErrorContext":
        """Create context from current OpenTelemetry span."""
        span = trace.get_current_span()
        trace_id = None
        span_id = None

        if span and span.is_recording():
            ctx = span.get_span_context()
            if ctx.is_valid:
                trace_id = format(ctx.trace_id, "032x")
                span_id = format(ctx.span_id, "016x")

        return cls(
            operation=operation,
            component=component,
            trace_id=trace_id,
            span_id=span_id,
            stack_trace=traceback.format_exc(),
            **kwargs
        )


class HeraldError(Exception):
    """
    Base exception for all HERALD errors.

    Provides:
    - Structured error context
    - Severity level
    - Chained exception support
    - OpenTelemetry span recording
    """

    default_severity: ErrorSeverity = ErrorSeverity.ERROR
    error_code: str = "HERALD_ERROR"

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
        severity: Optional[ErrorSeverity] = None,
        cause: Optional[BaseException] = None,
        recoverable: bool = False,
        suggestions: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context
        self.severity = severity or self.default_severity
        self.cause = cause
        self.recoverable = recoverable
        self.suggestions = suggestions or []
        self.timestamp = datetime.now(timezone.utc)

        self._record_to_span()

    def _record_to_span(self) -> None:
        """Record exception to current OpenTelemetry span."""
        span = trace.get_current_span()
        if span and span.is_recording():
            span.set_status(Status(StatusCode.ERROR, self.message))
            span.record_exception(self)
            span.set_attribute("error.code", self.error_code)
            span.set_attribute("error.severity", self.severity.value)
            span.set_attribute("error.recoverable", self.recoverable)
            if self.context:
                span.set_attribute("error.component", self.context.component)
                span.set_attribute("error.operation", self.context.operation)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "severity": self.severity.value,
            "recoverable": self.recoverable,
            "suggestions": self.suggestions,
            "timestamp": self.timestamp.isoformat(),
            "context": self.context.to_dict() if self.context else None,
            "cause": str(self.cause) if self.cause else None,
        }

    def __str__(self) -> str:
        parts = [f"[{self.error_code}] {self.message}"]
        if self.context:
            parts.append(f" (component: {self.context.component})")
        if self.cause:
            parts.append(f" [caused by: {self.cause!r}]")
        return "".join(parts)

    def with_context(self, **kwargs: Any) -> "HeraldError":
        """Add additional context to the error."""
        if self.context:
            self.context.metadata.update(kwargs)
        else:
            self.context = ErrorContext(
                operation="unknown",
                component="unknown",
                metadata=kwargs
            )
        return self


class HeraldConfigError(HeraldError):
    """Configuration-related errors."""

    error_code = "CONFIG_ERROR"
    default_severity = ErrorSeverity.CRITICAL

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        actual_value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.config_key = config_key
        self.actual_value = actual_value


class ListenerDispatchError(HeraldError):
    """A listener raised while handling an event."""

    error_code = "LISTENER_DISPATCH_ERROR"
    default_severity = ErrorSeverity.WARNING

    def __init__(
        self,
        message: str,
        listener: Any = None,
        event: Any = None,
        **kwargs: Any,
    ):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)
        self.listener = listener
        self.event = event

    @classmethod
    def wrap(cls, listener: Any, event: Any, cause: BaseException) -> "ListenerDispatchError":
        """Build a dispatch error for ``listener`` failing on ``event``."""
        listener_name = describe_listener(listener)
        event_type = type(event).__name__
        return cls(
            f"Listener {listener_name} failed on {event_type}",
            listener=listener,
            event=event,
            cause=cause,
            context=ErrorContext.from_current_span(
                operation="on_event",
                component="multicaster",
                event_type=event_type,
                listener_name=listener_name,
            ),
        )


class PropagatedDispatchError(HeraldError):
    """An error handler chose to abort the multicast."""

    error_code = "PROPAGATED_DISPATCH_ERROR"
    default_severity = ErrorSeverity.ERROR

    def __init__(
        self,
        message: str,
        dispatch_error: Optional[ListenerDispatchError] = None,
        **kwargs: Any,
    ):
        if dispatch_error is not None:
            kwargs.setdefault("cause", dispatch_error.cause)
            kwargs.setdefault("context", dispatch_error.context)
        super().__init__(message, **kwargs)
        self.dispatch_error = dispatch_error

    @property
    def listener(self) -> Any:
        return self.dispatch_error.listener if self.dispatch_error else None

    @property
    def event(self) -> Any:
        return self.dispatch_error.event if self.dispatch_error else None


class FailurePhaseError(HeraldError):
    """Raised (and always swallowed) while delivering the failure event."""

    error_code = "FAILURE_PHASE_ERROR"
    default_severity = ErrorSeverity.WARNING

    def __init__(
        self,
        message: str,
        original_cause: Optional[BaseException] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.original_cause = original_cause


class LifecycleStateError(HeraldError):
    """A lifecycle phase was requested out of order."""

    error_code = "LIFECYCLE_STATE_ERROR"
    default_severity = ErrorSeverity.CRITICAL

    def __init__(
        self,
        message: str,
        current_phase: Optional[str] = None,
        requested_phase: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.current_phase = current_phase
        self.requested_phase = requested_phase


def describe_listener(listener: Any) -> str:
    """Human-readable name for a listener in logs and errors."""
    name = getattr(listener, "name", None)
    if isinstance(name, str) and name:
        return name
    return type(listener).__name__
