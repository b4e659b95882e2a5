"""
HERALD - Centralized Type Definitions

Type aliases and the Protocol contracts of the collaborators that sit
outside the multicaster: the hosting application and the context that
takes over event dispatch once listeners are transferred to it.

Usage:
    from core.types import HostApplication, PublishingContext

    def transfer(app: HostApplication, context: PublishingContext) -> None:
        for listener in app.get_listeners():
            context.add_listener(listener)
"""
from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence, Tuple, runtime_checkable

# =============================================================================
# TYPE ALIASES
# =============================================================================

ProcessArgs = Tuple[str, ...]  # Original command-line arguments, as passed to run()
Priority = int  # Lower dispatches first


# =============================================================================
# COLLABORATOR PROTOCOLS
# =============================================================================


@runtime_checkable
class HostApplication(Protocol):
    """The application that is bootstrapping and owns the listener list."""

    def get_listeners(self) -> Sequence[Any]:
        """Listeners known to the application, in registration order."""
        ...


@runtime_checkable
class PublishingContext(Protocol):
    """
    A running context with its own event system.

    From ``context_loaded`` onward listeners live here and lifecycle events
    are published through ``publish``.
    """

    @property
    def is_active(self) -> bool:
        ...

    @property
    def listeners(self) -> Sequence[Any]:
        """Listeners registered on this context, readable even when inactive."""
        ...

    def add_listener(self, listener: Any) -> None:
        ...

    def publish(self, event: Any, error_handler: Optional[Any] = None) -> None:
        """Deliver ``event``; ``error_handler`` overrides failure handling for this call."""
        ...
