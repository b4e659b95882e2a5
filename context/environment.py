"""
HERALD - Environment Snapshot

Immutable view of the properties an application starts with. Property
sources are layered, later ones winning:

    defaults → .env file → process environment → --key=value arguments
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from dotenv import dotenv_values

PROFILES_PROPERTY = "HERALD_PROFILES"

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})


def parse_command_line_args(args: Iterable[str]) -> Dict[str, str]:
    """
    Extract ``--key=value`` options; a bare ``--flag`` becomes ``"true"``.

    Arguments not starting with ``--`` are positional and ignored.
    """
    options: Dict[str, str] = {}
    for arg in args:
        if not arg.startswith("--") or arg == "--":
            continue
        body = arg[2:]
        key, sep, value = body.partition("=")
        if not key:
            raise ValueError(f"Invalid argument syntax: {arg}")
        options[key] = value if sep else "true"
    return options


@dataclass(frozen=True)
class Environment:
    """Prepared property snapshot published with ``EnvironmentPreparedEvent``."""

    properties: Mapping[str, str] = field(default_factory=dict)
    active_profiles: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))
        object.__setattr__(self, "active_profiles", tuple(self.active_profiles))

    @classmethod
    def from_sources(
        cls,
        args: Iterable[str] = (),
        defaults: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[Union[str, Path]] = None,
        environ: Optional[Mapping[str, str]] = None,
        profiles: Iterable[str] = (),
    ) -> "Environment":
        merged: Dict[str, str] = dict(defaults or {})

        if dotenv_path is not None and Path(dotenv_path).is_file():
            merged.update(
                {k: v for k, v in dotenv_values(dotenv_path).items() if v is not None}
            )

        merged.update(os.environ if environ is None else environ)
        merged.update(parse_command_line_args(args))

        active = list(profiles)
        for profile in merged.get(PROFILES_PROPERTY, "").split(","):
            profile = profile.strip()
            if profile and profile not in active:
                active.append(profile)

        return cls(properties=merged, active_profiles=tuple(active))

    def get(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.properties.get(key)
        if value is None:
            return default
        return value.strip().lower() in _TRUE_VALUES

    def accepts_profiles(self, *profiles: str) -> bool:
        """True if any of ``profiles`` is active."""
        return any(p in self.active_profiles for p in profiles)

    def __contains__(self, key: object) -> bool:
        return key in self.properties

    def __repr__(self) -> str:
        return (
            f"<Environment properties={len(self.properties)} "
            f"profiles={list(self.active_profiles)}>"
        )
