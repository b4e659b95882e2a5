"""
HERALD - Test Configuration

Pytest fixtures and configuration for all tests.
"""
from typing import Any, Callable, List, Optional, Tuple

import pytest

from observability.logging import LoggingConfig, setup_logging

# Uncached loggers so structlog.testing.capture_logs() sees every call
setup_logging(LoggingConfig(
    level="DEBUG",
    cache_logger_on_first_use=False,
    enable_trace_context=False,
))

from events.listeners import LOWEST_PRECEDENCE, ListenerBase  # noqa: E402
from events.model import ApplicationEvent  # noqa: E402


class RecordingListener(ListenerBase):
    """Listener that appends (name, event) to a shared call log."""

    def __init__(
        self,
        name: str,
        calls: List[Tuple[str, Any]],
        event_types: Tuple[type, ...] = (ApplicationEvent,),
        source_types: Optional[Tuple[type, ...]] = None,
        order: int = LOWEST_PRECEDENCE,
        raises: Optional[BaseException] = None,
        side_effect: Optional[Callable[[Any], None]] = None,
    ):
        super().__init__(name=name, order=order)
        self.event_types = event_types
        self.source_types = source_types
        self._calls = calls
        self._raises = raises
        self._side_effect = side_effect

    def on_event(self, event: Any) -> None:
        self._calls.append((self.name, event))
        if self._side_effect is not None:
            self._side_effect(event)
        if self._raises is not None:
            raise self._raises


class StubApplication:
    """Host application whose listener list tests can mutate directly."""

    def __init__(self, *listeners: Any):
        self.listeners: List[Any] = list(listeners)

    def get_listeners(self) -> Tuple[Any, ...]:
        return tuple(self.listeners)


@pytest.fixture
def calls() -> List[Tuple[str, Any]]:
    """Shared call log for RecordingListener instances."""
    return []


@pytest.fixture
def make_listener(calls) -> Callable[..., RecordingListener]:
    """Factory for recording listeners bound to the ``calls`` log."""

    def factory(name: str, *event_types: type, **kwargs: Any) -> RecordingListener:
        return RecordingListener(
            name,
            calls,
            event_types=event_types or (ApplicationEvent,),
            **kwargs,
        )

    return factory


@pytest.fixture
def called_names(calls) -> Callable[[], List[str]]:
    """Names of listeners invoked so far, in call order."""
    return lambda: [name for name, _ in calls]


@pytest.fixture
def stub_application() -> StubApplication:
    return StubApplication()
