"""
HERALD - Lifecycle Event Model

Immutable event records published during bootstrap. One event is built per
lifecycle phase and discarded once its multicast returns.

Every event may carry a ``source``: the phase-specific object (environment
or context) that listeners can filter on by type. Events without a source
return ``None`` and are matched on event type alone.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Optional, Tuple


class LifecyclePhase(Enum):
    """
    Bootstrap phases, in the only order they may occur.

    CREATED → STARTING → ENVIRONMENT_PREPARED → CONTEXT_INITIALIZED →
    CONTEXT_LOADED → STARTED → READY, with FAILED reachable after STARTING.
    """
    CREATED = "created"
    STARTING = "starting"
    ENVIRONMENT_PREPARED = "environment_prepared"
    CONTEXT_INITIALIZED = "context_initialized"
    CONTEXT_LOADED = "context_loaded"
    STARTED = "started"
    READY = "ready"
    FAILED = "failed"

    @property
    def next_phase(self) -> Optional["LifecyclePhase"]:
        """The phase that may follow this one, ignoring FAILED."""
        return _NEXT_PHASE.get(self)


_NEXT_PHASE = {
    LifecyclePhase.CREATED: LifecyclePhase.STARTING,
    LifecyclePhase.STARTING: LifecyclePhase.ENVIRONMENT_PREPARED,
    LifecyclePhase.ENVIRONMENT_PREPARED: LifecyclePhase.CONTEXT_INITIALIZED,
    LifecyclePhase.CONTEXT_INITIALIZED: LifecyclePhase.CONTEXT_LOADED,
    LifecyclePhase.CONTEXT_LOADED: LifecyclePhase.STARTED,
    LifecyclePhase.STARTED: LifecyclePhase.READY,
}


# =============================================================================
# BASE EVENTS
# =============================================================================


@dataclass(frozen=True, slots=True)
class ApplicationEvent:
    """Base class for everything a multicaster can deliver."""
    timestamp: float = field(default_factory=time.time, kw_only=True)

    @property
    def source(self) -> Any:
        """Object whose type listeners may filter on; ``None`` if absent."""
        return None


@dataclass(frozen=True, slots=True)
class LifecycleEvent(ApplicationEvent):
    """An event tied to one bootstrap phase of ``application``."""
    application: Any
    args: Tuple[str, ...] = ()

    phase: ClassVar[LifecyclePhase]


@dataclass(frozen=True, slots=True)
class ContextLifecycleEvent(LifecycleEvent):
    """A lifecycle event whose payload and source is the context."""
    context: Any = None

    @property
    def source(self) -> Any:
        return self.context


# =============================================================================
# PHASE EVENTS
# =============================================================================


@dataclass(frozen=True, slots=True)
class ApplicationStartingEvent(LifecycleEvent):
    """Published as early as possible, before environment or context exist."""
    phase: ClassVar[LifecyclePhase] = LifecyclePhase.STARTING


@dataclass(frozen=True, slots=True)
class EnvironmentPreparedEvent(LifecycleEvent):
    """Published once the environment is fully prepared."""
    environment: Any = None

    phase: ClassVar[LifecyclePhase] = LifecyclePhase.ENVIRONMENT_PREPARED

    @property
    def source(self) -> Any:
        return self.environment


@dataclass(frozen=True, slots=True)
class ContextInitializedEvent(ContextLifecycleEvent):
    """Published once the context is created but before listeners move to it."""
    phase: ClassVar[LifecyclePhase] = LifecyclePhase.CONTEXT_INITIALIZED


@dataclass(frozen=True, slots=True)
class ApplicationPreparedEvent(ContextLifecycleEvent):
    """Published after listeners are transferred, before the context is refreshed."""
    phase: ClassVar[LifecyclePhase] = LifecyclePhase.CONTEXT_LOADED


@dataclass(frozen=True, slots=True)
class ApplicationStartedEvent(ContextLifecycleEvent):
    """Published through the context once it has been refreshed."""
    phase: ClassVar[LifecyclePhase] = LifecyclePhase.STARTED


@dataclass(frozen=True, slots=True)
class ApplicationReadyEvent(ContextLifecycleEvent):
    """Published through the context when the application can serve."""
    phase: ClassVar[LifecyclePhase] = LifecyclePhase.READY


@dataclass(frozen=True, slots=True)
class ApplicationFailedEvent(ContextLifecycleEvent):
    """Published when bootstrap fails; ``context`` is ``None`` if it was never built."""
    exception: Optional[BaseException] = None

    phase: ClassVar[LifecyclePhase] = LifecyclePhase.FAILED


# =============================================================================
# CONTEXT-NATIVE EVENTS
# =============================================================================


@dataclass(frozen=True, slots=True)
class ContextRefreshedEvent(ApplicationEvent):
    """Published by a context when its own event system comes online."""
    context: Any = None

    @property
    def source(self) -> Any:
        return self.context


@dataclass(frozen=True, slots=True)
class ContextClosedEvent(ApplicationEvent):
    """Published by a context as it shuts down."""
    context: Any = None

    @property
    def source(self) -> Any:
        return self.context
