# ============================================================================
# ORCHESTRATOR MODULE
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Core - Onboarding orchestration
# PURPOSE: Fan out per-platform onboarding and settle freelancer status
# CREATED: 14 OCT 2026
# ============================================================================
"""
Orchestrator Module

Usage:
    from orchestrator import OnboardingOrchestrator

    orchestrator = OnboardingOrchestrator(store, registry, notifier)
    result = await orchestrator.onboard("fl-1", ["monday", "stripe"])
"""

from .leases import LeaseManager, RowLease
from .onboarding import OnboardingOrchestrator, OnboardingBatch, build_outcome

__all__ = [
    "OnboardingOrchestrator",
    "OnboardingBatch",
    "build_outcome",
    "LeaseManager",
    "RowLease",
]
