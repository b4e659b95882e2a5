"""
HERALD - Core Module

Foundations shared by every other package:
- Unified error handling (errors)
- Collaborator contracts and type aliases (types)
- Bootstrap sequencer (bootstrap, imported explicitly)

``core.bootstrap`` depends on ``events`` and ``context``, so it is not
re-exported here; import it directly:

    from core.bootstrap import Application, ApplicationBuilder
"""

from core.errors import (
    ErrorContext,
    ErrorSeverity,
    FailurePhaseError,
    HeraldConfigError,
    HeraldError,
    LifecycleStateError,
    ListenerDispatchError,
    PropagatedDispatchError,
    describe_listener,
)
from core.types import HostApplication, Priority, ProcessArgs, PublishingContext

__all__ = [
    # Errors
    "ErrorContext",
    "ErrorSeverity",
    "FailurePhaseError",
    "HeraldConfigError",
    "HeraldError",
    "LifecycleStateError",
    "ListenerDispatchError",
    "PropagatedDispatchError",
    "describe_listener",
    # Types
    "HostApplication",
    "Priority",
    "ProcessArgs",
    "PublishingContext",
]
