"""
HERALD - Listener Contracts

Listeners are arbitrary objects that satisfy a small capability set rather
than a shared base class:

    supports_event(event_type) -> bool     required
    on_event(event) -> None                required
    order                                  optional attribute or method, lower first
    supports_source(source_type) -> bool   optional, narrows by source type
    bind_context(context) -> None          optional, called at context_loaded

``ListenerBase`` and the ``listener`` decorator cover the common case of
declaring interest as explicit event/source classes.

Usage:
    class AuditListener(ListenerBase):
        event_types = (ApplicationReadyEvent,)

        def on_event(self, event):
            audit.record("ready", event.application)

    @listener(EnvironmentPreparedEvent, order=HIGHEST_PRECEDENCE)
    def validate_environment(event):
        ...
"""
from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from typing import (
    Any,
    Callable,
    ClassVar,
    Optional,
    Protocol,
    Tuple,
    Type,
    runtime_checkable,
)

from events.model import ApplicationEvent

HIGHEST_PRECEDENCE = -sys.maxsize - 1
LOWEST_PRECEDENCE = sys.maxsize


@runtime_checkable
class ApplicationListener(Protocol):
    """Minimal capability every listener must provide."""

    def supports_event(self, event_type: Type[Any]) -> bool:
        ...

    def on_event(self, event: Any) -> None:
        ...


@runtime_checkable
class SourceAwareListener(Protocol):
    """Listener that also narrows interest by the event source's type."""

    def supports_source(self, source_type: Type[Any]) -> bool:
        ...


@runtime_checkable
class ContextAware(Protocol):
    """Listener that wants a reference to the context before it is refreshed."""

    def bind_context(self, context: Any) -> None:
        ...


def get_order(listener: Any) -> int:
    """Dispatch priority of ``listener``; unordered listeners go last."""
    order = getattr(listener, "order", LOWEST_PRECEDENCE)
    if callable(order):
        order = order()
    if order is None:
        return LOWEST_PRECEDENCE
    return int(order)


class ListenerBase(ABC):
    """
    Base class for listeners that declare interest as class metadata.

    ``event_types`` lists the event classes handled (subclasses included).
    ``source_types``, when set, restricts delivery to events whose source is
    an instance of one of the listed classes; ``None`` accepts any source.
    """

    event_types: ClassVar[Tuple[type, ...]] = (ApplicationEvent,)
    source_types: ClassVar[Optional[Tuple[type, ...]]] = None

    def __init__(self, name: Optional[str] = None, order: int = LOWEST_PRECEDENCE):
        self._name = name or self.__class__.__name__
        self._order = order

    @property
    def name(self) -> str:
        return self._name

    @property
    def order(self) -> int:
        return self._order

    def supports_event(self, event_type: Type[Any]) -> bool:
        return issubclass(event_type, self.event_types)

    def supports_source(self, source_type: Type[Any]) -> bool:
        if self.source_types is None:
            return True
        return issubclass(source_type, self.source_types)

    @abstractmethod
    def on_event(self, event: Any) -> None:
        """Handle an event this listener declared interest in."""
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self._name!r} order={self._order}>"


class FunctionListener(ListenerBase):
    """Adapts a plain callable into a listener."""

    def __init__(
        self,
        func: Callable[[Any], None],
        event_types: Tuple[type, ...] = (ApplicationEvent,),
        source_types: Optional[Tuple[type, ...]] = None,
        order: int = LOWEST_PRECEDENCE,
        name: Optional[str] = None,
    ):
        super().__init__(name=name or getattr(func, "__qualname__", repr(func)), order=order)
        if not event_types:
            raise ValueError("FunctionListener needs at least one event type")
        self._func = func
        self.event_types = tuple(event_types)
        self.source_types = tuple(source_types) if source_types is not None else None

    @property
    def func(self) -> Callable[[Any], None]:
        return self._func

    def on_event(self, event: Any) -> None:
        self._func(event)

    def __call__(self, event: Any) -> None:
        self._func(event)


def listener(
    *event_types: type,
    source_types: Optional[Tuple[type, ...]] = None,
    order: int = LOWEST_PRECEDENCE,
    name: Optional[str] = None,
) -> Callable[[Callable[[Any], None]], FunctionListener]:
    """
    Decorator turning a function into a ``FunctionListener``.

    With no event types the function receives every event.
    """

    def decorator(func: Callable[[Any], None]) -> FunctionListener:
        return FunctionListener(
            func,
            event_types=event_types or (ApplicationEvent,),
            source_types=source_types,
            order=order,
            name=name,
        )

    return decorator
