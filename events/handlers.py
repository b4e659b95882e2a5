"""
HERALD - Dispatch Error Handlers

Strategies deciding what happens when a listener raises. Returning from
``handle_error`` lets the multicast continue with the next listener;
raising aborts the rest of that multicast and surfaces to the caller.
"""
from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from core.errors import (
    FailurePhaseError,
    ListenerDispatchError,
    PropagatedDispatchError,
    describe_listener,
)
from observability.logging import get_logger, log_fields

logger = get_logger("herald.multicast")


@runtime_checkable
class ErrorHandler(Protocol):
    """Single-method strategy invoked with every listener failure."""

    def handle_error(self, error: ListenerDispatchError) -> None:
        ...


class LoggingErrorHandler:
    """Default strategy: log the failure and keep dispatching."""

    def handle_error(self, error: ListenerDispatchError) -> None:
        logger.warning(
            "Error calling application listener",
            listener=describe_listener(error.listener),
            event_type=type(error.event).__name__,
            exc_info=error.cause,
            **log_fields(error),
        )


class PropagatingErrorHandler:
    """Fail-fast strategy: abort the multicast on the first listener failure."""

    def handle_error(self, error: ListenerDispatchError) -> None:
        raise PropagatedDispatchError(
            f"Dispatch aborted: {error.message}",
            dispatch_error=error,
        ) from error.cause


class FailurePhaseErrorHandler:
    """
    Strategy installed while delivering the failure event.

    Never raises, so a listener cannot mask the failure that is being
    reported.
    """

    def __init__(self, original_cause: Optional[BaseException] = None):
        self._original_cause = original_cause

    @property
    def original_cause(self) -> Optional[BaseException]:
        return self._original_cause

    def handle_error(self, error: ListenerDispatchError) -> None:
        failure = FailurePhaseError(
            error.message,
            original_cause=self._original_cause,
            cause=error.cause,
            context=error.context,
        )
        logger.warning(
            "Error calling application listener during failure delivery",
            listener=describe_listener(error.listener),
            event_type=type(error.event).__name__,
            original_cause=repr(self._original_cause),
            exc_info=error.cause,
            **log_fields(failure),
        )
