"""
HERALD - Application Context

A running context with its own event system. Listeners can be registered
at any time; the context's multicaster only exists after ``refresh()``.
Events published before then are held and replayed, in order, as soon as
the multicaster is available.
"""
from __future__ import annotations

from typing import Any, List, Optional, Tuple
from uuid import uuid4

from core.errors import LifecycleStateError
from events.handlers import ErrorHandler
from events.model import ContextClosedEvent, ContextRefreshedEvent
from events.multicaster import Multicaster
from observability.logging import get_logger

logger = get_logger("herald.context")


class ApplicationContext:
    """
    Usage:
        context = ApplicationContext(environment, name="orders")
        context.add_listener(AuditListener())
        context.refresh()          # multicaster created, ContextRefreshedEvent
        context.publish(event)
        context.close()            # ContextClosedEvent, inactive
    """

    def __init__(
        self,
        environment: Any = None,
        name: str = "application",
        error_handler: Optional[ErrorHandler] = None,
    ):
        self._environment = environment
        self._id = f"{name}-{uuid4().hex[:8]}"
        self._error_handler = error_handler
        self._listeners: List[Any] = []
        self._multicaster: Optional[Multicaster] = None
        self._early_events: Optional[List[Tuple[Any, Optional[ErrorHandler]]]] = []
        self._active = False
        self._closed = False

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    @property
    def environment(self) -> Any:
        return self._environment

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def listeners(self) -> Tuple[Any, ...]:
        """Registered listeners in registration order; readable in any state."""
        return tuple(self._listeners)

    @property
    def multicaster(self) -> Optional[Multicaster]:
        return self._multicaster

    # -------------------------------------------------------------------------
    # Event system
    # -------------------------------------------------------------------------

    def add_listener(self, listener: Any) -> None:
        if self._multicaster is not None:
            self._multicaster.add_listener(listener)
        self._listeners.append(listener)

    def publish(self, event: Any, error_handler: Optional[ErrorHandler] = None) -> None:
        """Multicast ``event``, or hold it until ``refresh()``.

        ``error_handler`` overrides the context's handler for this event only.
        """
        if self._multicaster is None:
            if self._early_events is None:
                raise LifecycleStateError(
                    "Context event system was never initialized",
                    current_phase="closed",
                )
            self._early_events.append((event, error_handler))
            return
        self._multicaster.multicast(event, error_handler=error_handler)

    def refresh(self) -> None:
        """
        Bring the context's event system online.

        Refreshing is allowed once; a failed refresh leaves the context inactive.
        """
        if self._active or self._closed or self._multicaster is not None:
            raise LifecycleStateError(
                f"Context {self._id} cannot be refreshed again",
                current_phase="active" if self._active else "closed",
                requested_phase="refresh",
            )

        multicaster = Multicaster(error_handler=self._error_handler)
        for listener in self._listeners:
            multicaster.add_listener(listener)
        self._multicaster = multicaster

        early_events, self._early_events = self._early_events or [], None
        try:
            for event, handler in early_events:
                multicaster.multicast(event, error_handler=handler)
            self._active = True
            multicaster.multicast(ContextRefreshedEvent(context=self))
        except Exception:
            self._active = False
            raise

        logger.info("Context refreshed", context_id=self._id, listeners=len(self._listeners))

    def close(self) -> None:
        """Publish ``ContextClosedEvent`` and deactivate. Idempotent."""
        if not self._active:
            return
        try:
            self.publish(ContextClosedEvent(context=self))
        finally:
            self._active = False
            self._closed = True
            logger.info("Context closed", context_id=self._id)

    def __enter__(self) -> "ApplicationContext":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "active" if self._active else ("closed" if self._closed else "inactive")
        return f"<ApplicationContext id={self._id} {state}>"
