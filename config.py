"""
HERALD - Configuration

Centralized configuration for the lifecycle multicaster.
Uses environment variables with sensible defaults.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
from enum import Enum

from dotenv import load_dotenv

from core.errors import HeraldConfigError

# Load environment variables from .env file
load_dotenv()


class Deployment(Enum):
    """Deployment environments."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


def _deployment_from_env() -> Deployment:
    raw = os.getenv("ENVIRONMENT", "development")
    try:
        return Deployment(raw.lower())
    except ValueError:
        raise HeraldConfigError(
            f"Unknown deployment environment: {raw!r}",
            config_key="ENVIRONMENT",
            actual_value=raw,
            suggestions=[f"Use one of: {', '.join(d.value for d in Deployment)}"],
        ) from None


@dataclass
class MulticastConfig:
    """Dispatch behaviour of the lifecycle multicaster."""
    # Abort a phase on the first listener failure instead of logging and continuing
    fail_fast: bool = field(default_factory=lambda: _env_bool("HERALD_FAIL_FAST"))
    # Emit one span per multicast call
    trace_dispatch: bool = field(default_factory=lambda: _env_bool("HERALD_TRACE_DISPATCH", "true"))


@dataclass
class BootstrapConfig:
    """Bootstrap sequencer configuration."""
    app_name: str = field(default_factory=lambda: os.getenv("HERALD_APP_NAME", "application"))
    dotenv_path: Optional[Path] = field(
        default_factory=lambda: Path(os.environ["HERALD_DOTENV"]) if os.getenv("HERALD_DOTENV") else None
    )
    profiles: List[str] = field(
        default_factory=lambda: [p for p in os.getenv("HERALD_PROFILES", "").split(",") if p]
    )


@dataclass
class Config:
    """Main configuration class combining all sub-configs."""
    deployment: Deployment = field(default_factory=_deployment_from_env)

    multicast: MulticastConfig = field(default_factory=MulticastConfig)
    bootstrap: BootstrapConfig = field(default_factory=BootstrapConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "deployment": self.deployment.value,
            "multicast": {
                "fail_fast": self.multicast.fail_fast,
                "trace_dispatch": self.multicast.trace_dispatch,
            },
            "bootstrap": {
                "app_name": self.bootstrap.app_name,
                "dotenv_path": str(self.bootstrap.dotenv_path) if self.bootstrap.dotenv_path else None,
                "profiles": list(self.bootstrap.profiles),
            },
        }


# Singleton configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create configuration singleton."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config() -> Config:
    """Reload configuration from environment."""
    global _config
    load_dotenv(override=True)
    _config = Config()
    return _config
