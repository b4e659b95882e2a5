"""
HERALD - Event Type Matching

Decides whether a listener wants an event. Interest is asked of the listener
on every dispatch and never cached, since it may depend on state that only
exists at dispatch time.
"""
from __future__ import annotations

from typing import Any

from events.listeners import SourceAwareListener


class EventTypeMatcher:
    """
    Two-tier interest check.

    A listener matches when it supports the event's concrete type and, if the
    event has a source and the listener narrows by source, it also supports
    the source's concrete type. Events without a source skip the second check.
    """

    def matches(self, listener: Any, event: Any) -> bool:
        if not listener.supports_event(type(event)):
            return False

        source = getattr(event, "source", None)
        if source is None:
            return True

        if isinstance(listener, SourceAwareListener):
            return bool(listener.supports_source(type(source)))
        return True
