# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 06 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the onboarding engine.
"""

from core.config.defaults import (
    StoreBackend,
    ConfigSource,
    NotifierBackend,
    OrchestratorDefaults,
    HttpDefaults,
    BackendDefaults,
    Defaults,
    get_defaults,
    reset_defaults,
)

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
