# ============================================================================
# SERVICES MODULE
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Core - Service layer
# PURPOSE: Module resolution and status notification
# CREATED: 12 OCT 2026
# ============================================================================
"""
Services Module

Services sit between the orchestrator and the platform/persistence layers.

Usage:
    from services import ModuleRegistry, LoggingNotifier

    registry = ModuleRegistry(provider)
    module = await registry.resolve("monday", "org-acme")
"""

from .module_registry import ModuleRegistry, ModuleFactory
from .notifier import Notifier, PostgresNotifier, LoggingNotifier, RecordingNotifier

__all__ = [
    "ModuleRegistry",
    "ModuleFactory",
    "Notifier",
    "PostgresNotifier",
    "LoggingNotifier",
    "RecordingNotifier",
]
