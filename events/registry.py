"""
HERALD - Listener Registry

Ordered listener collection owned by a single multicaster.
"""
from __future__ import annotations

from typing import Any, Iterable, Iterator, List, Tuple

from events.listeners import ApplicationListener, get_order


class ListenerRegistry:
    """
    Listeners in registration order, with a priority view for dispatch.

    Registering the same instance twice keeps both entries; it will then be
    invoked twice per matching multicast.
    """

    def __init__(self, listeners: Iterable[Any] = ()):
        self._listeners: List[Any] = []
        for item in listeners:
            self.add(item)

    def add(self, listener: Any) -> None:
        if not isinstance(listener, ApplicationListener):
            raise TypeError(
                f"{type(listener).__name__} is not a listener: "
                "supports_event() and on_event() are required"
            )
        self._listeners.append(listener)

    def remove(self, listener: Any) -> bool:
        """Remove the earliest registration of this exact instance."""
        for index, existing in enumerate(self._listeners):
            if existing is listener:
                del self._listeners[index]
                return True
        return False

    def clear(self) -> None:
        self._listeners.clear()

    def snapshot(self) -> Tuple[Any, ...]:
        """
        Point-in-time dispatch order: ``order`` ascending, ties in
        registration order. Later registrations do not affect the result.
        """
        return tuple(sorted(self._listeners, key=get_order))

    def __len__(self) -> int:
        return len(self._listeners)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._listeners))

    def __contains__(self, listener: object) -> bool:
        return any(existing is listener for existing in self._listeners)

    def __repr__(self) -> str:
        return f"<ListenerRegistry listeners={len(self._listeners)}>"
