"""
HERALD - Lifecycle Events Package

Synchronous, ordered multicasting of bootstrap lifecycle events.

Components:
- model: immutable event records and the lifecycle phases
- listeners: listener capability protocols and helpers
- matcher: event/source type interest checks
- registry: priority-ordered listener collection
- handlers: listener failure strategies
- multicaster: fan-out of one event to matching listeners
- publisher: one method per bootstrap phase

Usage:
    from events import LifecyclePublisher, ListenerBase, ApplicationReadyEvent

    class ReadyLogger(ListenerBase):
        event_types = (ApplicationReadyEvent,)

        def on_event(self, event):
            print("ready:", event.application)
"""
from events.handlers import (
    ErrorHandler,
    FailurePhaseErrorHandler,
    LoggingErrorHandler,
    PropagatingErrorHandler,
)
from events.listeners import (
    HIGHEST_PRECEDENCE,
    LOWEST_PRECEDENCE,
    ApplicationListener,
    ContextAware,
    FunctionListener,
    ListenerBase,
    SourceAwareListener,
    get_order,
    listener,
)
from events.matcher import EventTypeMatcher
from events.model import (
    ApplicationEvent,
    ApplicationFailedEvent,
    ApplicationPreparedEvent,
    ApplicationReadyEvent,
    ApplicationStartedEvent,
    ApplicationStartingEvent,
    ContextClosedEvent,
    ContextInitializedEvent,
    ContextLifecycleEvent,
    ContextRefreshedEvent,
    EnvironmentPreparedEvent,
    LifecycleEvent,
    LifecyclePhase,
)
from events.multicaster import Multicaster
from events.publisher import FrozenListenerSource, LifecyclePublisher, LiveListenerSource
from events.registry import ListenerRegistry

__all__ = [
    # Model
    "ApplicationEvent",
    "ApplicationFailedEvent",
    "ApplicationPreparedEvent",
    "ApplicationReadyEvent",
    "ApplicationStartedEvent",
    "ApplicationStartingEvent",
    "ContextClosedEvent",
    "ContextInitializedEvent",
    "ContextLifecycleEvent",
    "ContextRefreshedEvent",
    "EnvironmentPreparedEvent",
    "LifecycleEvent",
    "LifecyclePhase",
    # Listeners
    "HIGHEST_PRECEDENCE",
    "LOWEST_PRECEDENCE",
    "ApplicationListener",
    "ContextAware",
    "FunctionListener",
    "ListenerBase",
    "SourceAwareListener",
    "get_order",
    "listener",
    # Dispatch
    "EventTypeMatcher",
    "ListenerRegistry",
    "Multicaster",
    # Error handling
    "ErrorHandler",
    "FailurePhaseErrorHandler",
    "LoggingErrorHandler",
    "PropagatingErrorHandler",
    # Publishing
    "FrozenListenerSource",
    "LifecyclePublisher",
    "LiveListenerSource",
]
