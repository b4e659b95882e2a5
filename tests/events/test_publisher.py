"""
Tests for events/publisher.py - phase sequencing and listener hand-off.
"""
from unittest.mock import MagicMock, Mock, PropertyMock

import pytest
from structlog.testing import capture_logs

from context.application_context import ApplicationContext
from context.environment import Environment
from core.errors import LifecycleStateError, PropagatedDispatchError
from events.handlers import FailurePhaseErrorHandler, PropagatingErrorHandler
from events.listeners import ListenerBase
from events.model import (
    ApplicationFailedEvent,
    ApplicationPreparedEvent,
    ApplicationReadyEvent,
    ApplicationStartedEvent,
    ApplicationStartingEvent,
    ContextInitializedEvent,
    ContextRefreshedEvent,
    EnvironmentPreparedEvent,
    LifecyclePhase,
)
from events.multicaster import Multicaster
from events.publisher import LifecyclePublisher


def run_until_loaded(publisher, context, environment=None):
    publisher.starting()
    publisher.environment_prepared(environment or Environment())
    publisher.context_initialized(context)
    publisher.context_loaded(context)


def event_types(calls):
    return [type(event) for _, event in calls]


class ContextBindingListener(ListenerBase):

    def __init__(self):
        super().__init__()
        self.bound = None

    def bind_context(self, context):
        self.bound = context

    def on_event(self, event):
        pass


class TestPhaseOrder:

    def test_full_run_publishes_every_phase(self, stub_application, make_listener, calls):
        stub_application.listeners.append(make_listener("all"))
        publisher = LifecyclePublisher(stub_application, ["--a=1"])
        context = ApplicationContext()

        run_until_loaded(publisher, context)
        context.refresh()
        publisher.started(context)
        publisher.ready(context)

        assert event_types(calls) == [
            ApplicationStartingEvent,
            EnvironmentPreparedEvent,
            ContextInitializedEvent,
            ApplicationPreparedEvent,
            ContextRefreshedEvent,
            ApplicationStartedEvent,
            ApplicationReadyEvent,
        ]
        assert publisher.phase is LifecyclePhase.READY
        assert all(event.args == ("--a=1",) for _, event in calls if hasattr(event, "args"))

    def test_skipping_a_phase_raises(self, stub_application):
        publisher = LifecyclePublisher(stub_application)
        publisher.starting()

        with pytest.raises(LifecycleStateError) as exc_info:
            publisher.context_initialized(ApplicationContext())

        assert exc_info.value.current_phase == "starting"
        assert exc_info.value.requested_phase == "context_initialized"
        assert publisher.phase is LifecyclePhase.STARTING

    def test_repeating_a_phase_raises(self, stub_application):
        publisher = LifecyclePublisher(stub_application)
        publisher.starting()
        with pytest.raises(LifecycleStateError):
            publisher.starting()

    def test_out_of_order_publishes_nothing(self, stub_application, make_listener, calls):
        stub_application.listeners.append(make_listener("all"))
        publisher = LifecyclePublisher(stub_application)

        with pytest.raises(LifecycleStateError):
            publisher.environment_prepared(Environment())
        assert calls == []

    def test_no_phase_after_failed(self, stub_application):
        publisher = LifecyclePublisher(stub_application)
        publisher.starting()
        publisher.failed(None, RuntimeError("boom"))

        with pytest.raises(LifecycleStateError):
            publisher.environment_prepared(Environment())


class TestEarlyPhases:

    def test_environment_listener_only_sees_its_event(
        self, stub_application, make_listener, called_names, calls
    ):
        stub_application.listeners.append(make_listener("env", EnvironmentPreparedEvent))
        publisher = LifecyclePublisher(stub_application)
        context = ApplicationContext()
        environment = Environment(properties={"PORT": "8080"})

        run_until_loaded(publisher, context, environment)
        context.refresh()
        publisher.started(context)
        publisher.ready(context)

        assert called_names() == ["env"]
        assert calls[0][1].environment is environment
        assert calls[0][1].source is environment

    def test_initial_listeners_are_read_once(self, stub_application, make_listener, called_names):
        stub_application.listeners.append(make_listener("first"))
        publisher = LifecyclePublisher(stub_application)
        stub_application.listeners.append(make_listener("added-later"))

        publisher.starting()
        publisher.environment_prepared(Environment())

        assert called_names() == ["first", "first"]

    def test_priority_order_in_early_phases(self, stub_application, make_listener, called_names):
        stub_application.listeners.extend([
            make_listener("A", ApplicationStartingEvent, order=10),
            make_listener("B", ApplicationStartingEvent, order=5),
            make_listener("C", ApplicationStartingEvent, order=5),
        ])
        LifecyclePublisher(stub_application).starting()
        assert called_names() == ["B", "C", "A"]

    def test_error_handler_applies_to_internal_multicaster(self, stub_application, make_listener):
        stub_application.listeners.append(make_listener("broken", raises=RuntimeError("x")))
        publisher = LifecyclePublisher(stub_application, error_handler=PropagatingErrorHandler())

        with pytest.raises(PropagatedDispatchError):
            publisher.starting()


class TestContextLoaded:

    def test_current_listeners_transferred_to_context(
        self, stub_application, make_listener
    ):
        early = make_listener("early")
        stub_application.listeners.append(early)
        publisher = LifecyclePublisher(stub_application)
        publisher.starting()
        publisher.environment_prepared(Environment())

        late = make_listener("late")
        stub_application.listeners.append(late)
        context = ApplicationContext()
        publisher.context_initialized(context)
        publisher.context_loaded(context)

        assert context.listeners == (early, late)

    def test_late_listener_misses_prepared_event(
        self, stub_application, make_listener, calls
    ):
        publisher = LifecyclePublisher(stub_application)
        publisher.starting()
        stub_application.listeners.append(make_listener("late"))
        context = ApplicationContext()
        publisher.environment_prepared(Environment())
        publisher.context_initialized(context)
        publisher.context_loaded(context)

        assert calls == []

        context.refresh()
        publisher.started(context)
        assert ApplicationStartedEvent in event_types(calls)

    def test_context_aware_listener_bound_before_registration(self, stub_application):
        binder = ContextBindingListener()
        stub_application.listeners.append(binder)
        bound_at_registration = []
        context = Mock()
        context.add_listener.side_effect = lambda l: bound_at_registration.append(l.bound)
        publisher = LifecyclePublisher(stub_application)

        run_until_loaded(publisher, context)

        assert binder.bound is context
        assert bound_at_registration == [context]
        context.add_listener.assert_called_once_with(binder)

    def test_prepared_event_goes_through_internal_multicaster(self, stub_application, make_listener):
        stub_application.listeners.append(make_listener("a"))
        context = Mock()
        publisher = LifecyclePublisher(stub_application)

        run_until_loaded(publisher, context)

        context.publish.assert_not_called()


class TestContextPhases:

    def test_started_and_ready_published_by_context(self, stub_application):
        internal = MagicMock(spec=Multicaster)
        context = Mock()
        publisher = LifecyclePublisher(stub_application, multicaster=internal)
        run_until_loaded(publisher, context)
        internal.multicast.reset_mock()

        publisher.started(context)
        publisher.ready(context)

        internal.multicast.assert_not_called()
        published = [c.args[0] for c in context.publish.call_args_list]
        assert [type(e) for e in published] == [ApplicationStartedEvent, ApplicationReadyEvent]
        assert all(e.context is context for e in published)

    def test_context_publish_errors_propagate(self, stub_application):
        context = Mock()
        context.publish.side_effect = RuntimeError("context broken")
        publisher = LifecyclePublisher(stub_application)
        run_until_loaded(publisher, context)

        with pytest.raises(RuntimeError, match="context broken"):
            publisher.started(context)


class TestFailed:

    def test_active_context_publishes_failure(self, stub_application, make_listener, calls):
        stub_application.listeners.append(make_listener("f", ApplicationFailedEvent))
        publisher = LifecyclePublisher(stub_application)
        context = ApplicationContext()
        run_until_loaded(publisher, context)
        context.refresh()
        failure = RuntimeError("late failure")

        publisher.failed(context, failure)

        assert len(calls) == 1
        event = calls[0][1]
        assert event.exception is failure
        assert event.context is context
        assert publisher.phase is LifecyclePhase.FAILED

    def test_inactive_context_uses_internal_multicaster(
        self, stub_application, make_listener, called_names
    ):
        stub_application.listeners.append(make_listener("app-listener", ApplicationFailedEvent, order=1))
        publisher = LifecyclePublisher(stub_application)
        context = ApplicationContext()
        run_until_loaded(publisher, context)
        context.add_listener(make_listener("ctx-listener", ApplicationFailedEvent, order=2))

        publisher.failed(context, RuntimeError("refresh failed"))

        assert called_names() == ["app-listener", "ctx-listener"]
        assert not isinstance(publisher.initial_multicaster.error_handler, FailurePhaseErrorHandler)

    def test_no_context_delivers_to_initial_listeners(
        self, stub_application, make_listener, calls
    ):
        stub_application.listeners.append(make_listener("f", ApplicationFailedEvent))
        publisher = LifecyclePublisher(stub_application)
        publisher.starting()
        failure = ValueError("bad environment")

        publisher.failed(None, failure)

        assert len(calls) == 1
        assert calls[0][1].context is None
        assert calls[0][1].source is None
        assert calls[0][1].exception is failure

    def test_listener_errors_during_failure_are_swallowed(
        self, stub_application, make_listener, called_names
    ):
        stub_application.listeners.extend([
            make_listener("broken", ApplicationFailedEvent, order=1, raises=RuntimeError("x")),
            make_listener("after", ApplicationFailedEvent, order=2),
        ])
        publisher = LifecyclePublisher(stub_application, error_handler=PropagatingErrorHandler())
        publisher.starting()

        with capture_logs() as logs:
            publisher.failed(None, RuntimeError("original"))

        assert called_names() == ["broken", "after"]
        warnings = [e for e in logs if e["log_level"] == "warning"]
        assert warnings[0]["error_code"] == "FAILURE_PHASE_ERROR"
        assert "original" in warnings[0]["original_cause"]

    def test_unreadable_context_listeners_treated_as_empty(
        self, stub_application, make_listener, called_names
    ):
        stub_application.listeners.append(make_listener("app", ApplicationFailedEvent))
        context = Mock()
        context.is_active = False
        type(context).listeners = PropertyMock(side_effect=RuntimeError("unreadable"))
        publisher = LifecyclePublisher(stub_application)
        publisher.starting()

        publisher.failed(context, RuntimeError("boom"))

        assert called_names() == ["app"]

    def test_unreadable_active_state_treated_as_inactive(self, stub_application):
        context = Mock()
        type(context).is_active = PropertyMock(side_effect=RuntimeError("unreadable"))
        context.listeners = ()
        publisher = LifecyclePublisher(stub_application)
        publisher.starting()

        publisher.failed(context, RuntimeError("boom"))

        context.publish.assert_not_called()

    def test_context_publish_failure_is_swallowed(self, stub_application):
        context = Mock()
        context.is_active = True
        context.publish.side_effect = RuntimeError("publish broken")
        publisher = LifecyclePublisher(stub_application)
        run_until_loaded(publisher, context)

        with capture_logs() as logs:
            publisher.failed(context, RuntimeError("boom"))

        assert any(e["event"] == "Error delivering application failure event" for e in logs)

    def test_listener_in_both_sources_delivered_once(
        self, stub_application, make_listener, called_names
    ):
        shared = make_listener("shared", ApplicationFailedEvent)
        stub_application.listeners.append(shared)
        publisher = LifecyclePublisher(stub_application)
        context = ApplicationContext()
        run_until_loaded(publisher, context)

        publisher.failed(context, RuntimeError("boom"))

        assert called_names() == ["shared"]

    def test_failed_before_starting_logs_but_delivers(
        self, stub_application, make_listener, called_names
    ):
        stub_application.listeners.append(make_listener("f", ApplicationFailedEvent))
        publisher = LifecyclePublisher(stub_application)

        with capture_logs() as logs:
            publisher.failed(None, RuntimeError("early"))

        assert called_names() == ["f"]
        assert any(e["event"] == "Failure reported out of lifecycle order" for e in logs)

    def test_active_fail_fast_context_isolates_failure_listeners(
        self, stub_application, make_listener, called_names
    ):
        publisher = LifecyclePublisher(stub_application)
        context = ApplicationContext(error_handler=PropagatingErrorHandler())
        run_until_loaded(publisher, context)
        context.add_listener(
            make_listener("first", ApplicationFailedEvent, order=1, raises=RuntimeError("x"))
        )
        context.add_listener(make_listener("second", ApplicationFailedEvent, order=2))
        context.refresh()

        with capture_logs() as logs:
            publisher.failed(context, RuntimeError("ready broke"))

        assert called_names() == ["first", "second"]
        warnings = [e for e in logs if e["log_level"] == "warning"]
        assert [w["error_code"] for w in warnings] == ["FAILURE_PHASE_ERROR"]
        assert isinstance(context.multicaster.error_handler, PropagatingErrorHandler)

    def test_active_context_receives_failure_handler(self, stub_application):
        context = Mock()
        context.is_active = True
        publisher = LifecyclePublisher(stub_application)
        run_until_loaded(publisher, context)
        failure = RuntimeError("boom")

        publisher.failed(context, failure)

        handler = context.publish.call_args.kwargs["error_handler"]
        assert isinstance(handler, FailurePhaseErrorHandler)
        assert handler.original_cause is failure
