"""
HERALD - Lifecycle Publisher

Turns the bootstrap sequencer's phase calls into lifecycle events.

Until the context has its own event system, events go through an internal
multicaster filled once, at construction, from the application's listeners.
At ``context_loaded`` the application's current listeners are handed to the
context, and from ``started`` onward events are published by the context
itself. ``failed`` falls back to the internal multicaster whenever the
context cannot publish.

Usage:
    publisher = LifecyclePublisher(application, args)
    publisher.starting()
    publisher.environment_prepared(environment)
    publisher.context_initialized(context)
    publisher.context_loaded(context)
    context.refresh()
    publisher.started(context)
    publisher.ready(context)
"""
from __future__ import annotations

from typing import Any, Iterable, Optional, Tuple

from core.errors import FailurePhaseError, LifecycleStateError
from core.types import HostApplication, PublishingContext
from events.handlers import ErrorHandler, FailurePhaseErrorHandler
from events.listeners import ContextAware
from events.model import (
    ApplicationFailedEvent,
    ApplicationPreparedEvent,
    ApplicationReadyEvent,
    ApplicationStartedEvent,
    ApplicationStartingEvent,
    ContextInitializedEvent,
    EnvironmentPreparedEvent,
    LifecycleEvent,
    LifecyclePhase,
)
from events.multicaster import Multicaster
from observability.logging import LogContext, get_logger, log_fields

logger = get_logger("herald.lifecycle")


class FrozenListenerSource:
    """Listeners read once from the application and never re-read."""

    def __init__(self, application: HostApplication):
        self._listeners: Tuple[Any, ...] = tuple(application.get_listeners())

    def listeners(self) -> Tuple[Any, ...]:
        return self._listeners


class LiveListenerSource:
    """Listeners re-read from the application on every call."""

    def __init__(self, application: HostApplication):
        self._application = application

    def listeners(self) -> Tuple[Any, ...]:
        return tuple(self._application.get_listeners())


class LifecyclePublisher:
    """
    Publishes one lifecycle event per bootstrap phase.

    Phases must be called in order; a phase out of order raises
    ``LifecycleStateError`` before anything is published. ``failed`` is the
    exception: it never raises.
    """

    order = 0

    def __init__(
        self,
        application: HostApplication,
        args: Iterable[str] = (),
        error_handler: Optional[ErrorHandler] = None,
        multicaster: Optional[Multicaster] = None,
    ):
        self._application = application
        self._args: Tuple[str, ...] = tuple(args)
        self._initial_listeners = FrozenListenerSource(application)
        self._current_listeners = LiveListenerSource(application)
        self._initial_multicaster = multicaster or Multicaster()
        if error_handler is not None:
            self._initial_multicaster.error_handler = error_handler
        for listener in self._initial_listeners.listeners():
            self._initial_multicaster.add_listener(listener)
        self._phase = LifecyclePhase.CREATED

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def application(self) -> HostApplication:
        return self._application

    @property
    def args(self) -> Tuple[str, ...]:
        return self._args

    @property
    def phase(self) -> LifecyclePhase:
        """Last phase entered."""
        return self._phase

    @property
    def initial_multicaster(self) -> Multicaster:
        """Multicaster used before the context takes over dispatch."""
        return self._initial_multicaster

    # -------------------------------------------------------------------------
    # Phases
    # -------------------------------------------------------------------------

    def starting(self) -> None:
        self._advance(LifecyclePhase.STARTING)
        self._multicast_initial(ApplicationStartingEvent(self._application, self._args))

    def environment_prepared(self, environment: Any) -> None:
        self._advance(LifecyclePhase.ENVIRONMENT_PREPARED)
        self._multicast_initial(
            EnvironmentPreparedEvent(self._application, self._args, environment)
        )

    def context_initialized(self, context: PublishingContext) -> None:
        self._advance(LifecyclePhase.CONTEXT_INITIALIZED)
        self._multicast_initial(
            ContextInitializedEvent(self._application, self._args, context)
        )

    def context_loaded(self, context: PublishingContext) -> None:
        self._advance(LifecyclePhase.CONTEXT_LOADED)
        transferred = 0
        for listener in self._current_listeners.listeners():
            if isinstance(listener, ContextAware):
                listener.bind_context(context)
            context.add_listener(listener)
            transferred += 1
        logger.debug("Listeners transferred to context", count=transferred)
        self._multicast_initial(
            ApplicationPreparedEvent(self._application, self._args, context)
        )

    def started(self, context: PublishingContext) -> None:
        self._advance(LifecyclePhase.STARTED)
        self._publish_to_context(
            context, ApplicationStartedEvent(self._application, self._args, context)
        )

    def ready(self, context: PublishingContext) -> None:
        self._advance(LifecyclePhase.READY)
        self._publish_to_context(
            context, ApplicationReadyEvent(self._application, self._args, context)
        )

    def failed(self, context: Optional[PublishingContext], exception: BaseException) -> None:
        """
        Report a bootstrap failure. Never raises.

        An active context publishes the event itself. Otherwise the context's
        listeners (if readable) join the internal multicaster. Either way each
        listener failure is only logged.
        """
        if self._phase in (LifecyclePhase.CREATED, LifecyclePhase.FAILED):
            logger.warning(
                "Failure reported out of lifecycle order",
                current_phase=self._phase.value,
            )
        self._phase = LifecyclePhase.FAILED

        event = ApplicationFailedEvent(self._application, self._args, context, exception)
        handler = FailurePhaseErrorHandler(exception)
        with LogContext(phase=LifecyclePhase.FAILED.value):
            try:
                if self._is_active(context):
                    context.publish(event, error_handler=handler)
                else:
                    self._deliver_failure_internally(context, event, handler)
            except Exception as exc:
                error = FailurePhaseError(
                    "Failure event delivery raised",
                    original_cause=exception,
                    cause=exc,
                )
                logger.warning(
                    "Error delivering application failure event",
                    original_cause=repr(exception),
                    exc_info=exc,
                    **log_fields(error),
                )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _advance(self, phase: LifecyclePhase) -> None:
        if self._phase.next_phase is not phase:
            raise LifecycleStateError(
                f"Cannot enter phase '{phase.value}' after '{self._phase.value}'",
                current_phase=self._phase.value,
                requested_phase=phase.value,
            )
        self._phase = phase

    def _multicast_initial(self, event: LifecycleEvent) -> None:
        with LogContext(phase=event.phase.value):
            logger.debug("Publishing lifecycle event", event_type=type(event).__name__)
            self._initial_multicaster.multicast(event)

    def _publish_to_context(self, context: PublishingContext, event: LifecycleEvent) -> None:
        with LogContext(phase=event.phase.value):
            logger.debug(
                "Publishing lifecycle event through context",
                event_type=type(event).__name__,
            )
            context.publish(event)

    def _deliver_failure_internally(
        self,
        context: Optional[PublishingContext],
        event: ApplicationFailedEvent,
        handler: FailurePhaseErrorHandler,
    ) -> None:
        registry = self._initial_multicaster.registry
        for listener in self._context_listeners(context):
            if listener not in registry:
                registry.add(listener)
        self._initial_multicaster.multicast(event, error_handler=handler)

    @staticmethod
    def _is_active(context: Optional[PublishingContext]) -> bool:
        if context is None:
            return False
        try:
            return bool(context.is_active)
        except Exception:
            logger.debug("Context state unreadable, treating as inactive", exc_info=True)
            return False

    @staticmethod
    def _context_listeners(context: Optional[PublishingContext]) -> Tuple[Any, ...]:
        """Listeners registered on ``context``; empty if absent or unreadable."""
        if context is None:
            return ()
        try:
            return tuple(context.listeners)
        except Exception:
            logger.debug("Context listeners unreadable, treating as empty", exc_info=True)
            return ()
