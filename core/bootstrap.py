"""
HERALD - Application Bootstrap

Drives an application through its lifecycle phases and reports each one to
the lifecycle publisher.

Architecture:
    ApplicationBuilder → Application.run() → LifecyclePublisher → listeners
                                           → ApplicationContext.refresh()

Phase order inside ``run``:
    starting → environment_prepared → context_initialized → context_loaded
    → (context refresh) → started → ready

Any exception raised along the way is reported through ``failed`` and then
re-raised unchanged to the caller.

Usage:
    from core.bootstrap import ApplicationBuilder

    context = (
        ApplicationBuilder()
        .with_name("orders")
        .with_listener(AuditListener())
        .with_fail_fast()
        .build()
        .run("--port=8080")
    )
"""
from __future__ import annotations

import copy
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from config import Config, get_config
from context.application_context import ApplicationContext
from context.environment import Environment
from core.types import PublishingContext
from events.handlers import ErrorHandler, LoggingErrorHandler, PropagatingErrorHandler
from events.listeners import ApplicationListener
from events.publisher import LifecyclePublisher
from observability.logging import get_logger

logger = get_logger("herald.bootstrap")

ContextFactory = Callable[["Application", Environment], PublishingContext]
EnvironmentFactory = Callable[["Application", Tuple[str, ...]], Any]


def default_context_factory(app: "Application", environment: Environment) -> ApplicationContext:
    return ApplicationContext(
        environment=environment,
        name=app.name,
        error_handler=app.dispatch_error_handler(),
    )


class Application:
    """
    The application being bootstrapped.

    Owns the listener list the publisher reads from, and the sequencing of
    lifecycle phases in ``run``.
    """

    def __init__(
        self,
        name: Optional[str] = None,
        config: Optional[Config] = None,
        context_factory: Optional[ContextFactory] = None,
        environment_factory: Optional[EnvironmentFactory] = None,
        environment_defaults: Optional[Mapping[str, str]] = None,
    ):
        self._config = config or get_config()
        self._name = name or self._config.bootstrap.app_name
        self._listeners: List[Any] = []
        self._context_factory = context_factory or default_context_factory
        self._environment_factory = environment_factory
        self._environment_defaults: Dict[str, str] = dict(environment_defaults or {})
        self._startup_duration_ms: Optional[float] = None

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> Config:
        return self._config

    @property
    def startup_duration_ms(self) -> Optional[float]:
        """Wall time of the last successful ``run``."""
        return self._startup_duration_ms

    # -------------------------------------------------------------------------
    # Listener registration
    # -------------------------------------------------------------------------

    def add_listener(self, *listeners: Any) -> "Application":
        for item in listeners:
            if not isinstance(item, ApplicationListener):
                raise TypeError(f"{type(item).__name__} is not an application listener")
            self._listeners.append(item)
        return self

    def get_listeners(self) -> Tuple[Any, ...]:
        """Listeners in registration order."""
        return tuple(self._listeners)

    def dispatch_error_handler(self) -> ErrorHandler:
        """Handler for normal phases, chosen by ``multicast.fail_fast``."""
        if self._config.multicast.fail_fast:
            return PropagatingErrorHandler()
        return LoggingErrorHandler()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def run(self, *args: str) -> PublishingContext:
        """
        Bootstrap the application and return its refreshed context.

        The sequencer blocks for the full duration of every phase.
        """
        start = time.perf_counter()
        publisher = LifecyclePublisher(self, args, error_handler=self.dispatch_error_handler())
        context: Optional[PublishingContext] = None

        try:
            publisher.starting()
            environment = self._prepare_environment(args)
            publisher.environment_prepared(environment)

            context = self._context_factory(self, environment)
            publisher.context_initialized(context)
            publisher.context_loaded(context)

            self._refresh(context)
            publisher.started(context)
            publisher.ready(context)
        except Exception as exc:
            logger.error(
                "Application run failed",
                app=self._name,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            publisher.failed(context, exc)
            raise

        self._startup_duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "Application started",
            app=self._name,
            duration_ms=round(self._startup_duration_ms, 2),
            listeners=len(self._listeners),
        )
        return context

    def _prepare_environment(self, args: Tuple[str, ...]) -> Any:
        if self._environment_factory is not None:
            return self._environment_factory(self, args)
        return Environment.from_sources(
            args=args,
            defaults=self._environment_defaults,
            dotenv_path=self._config.bootstrap.dotenv_path,
            profiles=self._config.bootstrap.profiles,
        )

    @staticmethod
    def _refresh(context: PublishingContext) -> None:
        refresh = getattr(context, "refresh", None)
        if callable(refresh):
            refresh()

    def __repr__(self) -> str:
        return f"<Application name={self._name!r} listeners={len(self._listeners)}>"


class ApplicationBuilder:
    """
    Fluent builder for ``Application``.

    Usage:
        app = (
            ApplicationBuilder()
            .with_name("orders")
            .with_listener(AuditListener(), ReadyProbe())
            .with_environment_defaults({"PORT": "8080"})
            .build()
        )
    """

    def __init__(self):
        self._name: Optional[str] = None
        self._config: Optional[Config] = None
        self._fail_fast: Optional[bool] = None
        self._listeners: List[Any] = []
        self._context_factory: Optional[ContextFactory] = None
        self._environment_factory: Optional[EnvironmentFactory] = None
        self._environment_defaults: Dict[str, str] = {}

    def with_name(self, name: str) -> "ApplicationBuilder":
        self._name = name
        return self

    def with_config(self, config: Config) -> "ApplicationBuilder":
        self._config = config
        return self

    def with_listener(self, *listeners: Any) -> "ApplicationBuilder":
        self._listeners.extend(listeners)
        return self

    def with_fail_fast(self, enabled: bool = True) -> "ApplicationBuilder":
        """Abort a phase on the first listener failure."""
        self._fail_fast = enabled
        return self

    def with_context_factory(self, factory: ContextFactory) -> "ApplicationBuilder":
        self._context_factory = factory
        return self

    def with_environment_factory(self, factory: EnvironmentFactory) -> "ApplicationBuilder":
        self._environment_factory = factory
        return self

    def with_environment_defaults(self, defaults: Mapping[str, str]) -> "ApplicationBuilder":
        self._environment_defaults.update(defaults)
        return self

    def build(self) -> Application:
        config = self._config or get_config()
        if self._fail_fast is not None:
            config = copy.deepcopy(config)
            config.multicast.fail_fast = self._fail_fast

        app = Application(
            name=self._name,
            config=config,
            context_factory=self._context_factory,
            environment_factory=self._environment_factory,
            environment_defaults=self._environment_defaults,
        )
        app.add_listener(*self._listeners)
        return app


def run_application(
    *args: str,
    listeners: Tuple[Any, ...] = (),
    name: Optional[str] = None,
) -> PublishingContext:
    """Build an application with ``listeners`` and run it with ``args``."""
    builder = ApplicationBuilder().with_listener(*listeners)
    if name:
        builder.with_name(name)
    return builder.build().run(*args)
