# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for orchestration, HTTP and backends
# CREATED: 06 OCT 2026
# ============================================================================
"""
Configuration Defaults

Provides sensible defaults for the onboarding engine.
These can be overridden via environment variables.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides via from_env()
- Values are passed explicitly into constructors at startup; nothing
  reads a process-wide flag at call time
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class StoreBackend(str, Enum):
    """Where status rows live."""
    POSTGRES = "postgres"
    MEMORY = "memory"


class ConfigSource(str, Enum):
    """Where per-organization platform configs come from."""
    POSTGRES = "postgres"
    FILE = "file"
    MEMORY = "memory"


class NotifierBackend(str, Enum):
    """Where status-change events go."""
    POSTGRES = "postgres"
    LOG = "log"


@dataclass(frozen=True)
class OrchestratorDefaults:
    """
    Defaults for the onboarding orchestrator.

    Controls fan-out width, call timeouts and the retry budget.
    """
    # Concurrent external calls allowed per organization
    max_concurrency_per_org: int = 8

    # Upper bound for any single module call (seconds)
    call_timeout_seconds: float = 20.0

    # create_user attempts before a transient failure becomes FAILED
    max_attempts: int = 3

    @classmethod
    def from_env(cls) -> "OrchestratorDefaults":
        """Create from environment variables."""
        return cls(
            max_concurrency_per_org=int(os.getenv("ONBOARDING_MAX_CONCURRENCY", 8)),
            call_timeout_seconds=float(os.getenv("PLATFORM_CALL_TIMEOUT_SEC", 20)),
            max_attempts=int(os.getenv("ONBOARDING_MAX_ATTEMPTS", 3)),
        )


@dataclass(frozen=True)
class HttpDefaults:
    """
    Defaults for outbound platform HTTP calls.
    """
    connect_timeout: float = 10.0
    read_timeout: float = 15.0
    write_timeout: float = 10.0
    pool_timeout: float = 10.0
    user_agent: str = "onboarding-engine"

    @classmethod
    def from_env(cls) -> "HttpDefaults":
        """Create from environment variables."""
        return cls(
            connect_timeout=float(os.getenv("PLATFORM_HTTP_CONNECT_TIMEOUT", 10)),
            read_timeout=float(os.getenv("PLATFORM_HTTP_READ_TIMEOUT", 15)),
            user_agent=os.getenv("PLATFORM_HTTP_USER_AGENT", "onboarding-engine"),
        )


@dataclass(frozen=True)
class BackendDefaults:
    """
    Backend selection for stores, config provider and notifier.
    """
    store_backend: StoreBackend = StoreBackend.POSTGRES
    config_source: ConfigSource = ConfigSource.POSTGRES
    config_file: Optional[str] = None
    notifier: NotifierBackend = NotifierBackend.POSTGRES

    @classmethod
    def from_env(cls) -> "BackendDefaults":
        """Create from environment variables."""
        return cls(
            store_backend=StoreBackend(os.getenv("STATUS_STORE_BACKEND", "postgres").lower()),
            config_source=ConfigSource(os.getenv("PLATFORM_CONFIG_SOURCE", "postgres").lower()),
            config_file=os.getenv("PLATFORM_CONFIG_FILE") or None,
            notifier=NotifierBackend(os.getenv("STATUS_NOTIFIER", "postgres").lower()),
        )


# ============================================================================
# GLOBAL DEFAULTS INSTANCE
# ============================================================================

@dataclass
class Defaults:
    """Container for all default configurations."""
    orchestrator: OrchestratorDefaults = field(default_factory=OrchestratorDefaults)
    http: HttpDefaults = field(default_factory=HttpDefaults)
    backends: BackendDefaults = field(default_factory=BackendDefaults)

    @classmethod
    def from_env(cls) -> "Defaults":
        """Create all defaults from environment variables."""
        return cls(
            orchestrator=OrchestratorDefaults.from_env(),
            http=HttpDefaults.from_env(),
            backends=BackendDefaults.from_env(),
        )


_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Get global defaults instance."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Reset defaults (for testing)."""
    global _defaults
    _defaults = None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "StoreBackend",
    "ConfigSource",
    "NotifierBackend",
    "OrchestratorDefaults",
    "HttpDefaults",
    "BackendDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
