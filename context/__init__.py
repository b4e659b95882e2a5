"""
HERALD - Context Package

Reference host collaborators for the lifecycle publisher:
- Environment: layered, immutable property snapshot
- ApplicationContext: context with its own listener list and multicaster
"""
from context.application_context import ApplicationContext
from context.environment import PROFILES_PROPERTY, Environment, parse_command_line_args

__all__ = [
    "ApplicationContext",
    "Environment",
    "PROFILES_PROPERTY",
    "parse_command_line_args",
]
