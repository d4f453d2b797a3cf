# ============================================================================
# ORCHESTRATOR ENGINE
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Core - Engine components
# PURPOSE: Status state machine
# CREATED: 13 OCT 2026
# ============================================================================
"""
Orchestrator Engine Components

- transitions: row state machine and freelancer status derivation
"""

from orchestrator.engine.transitions import (
    ALLOWED_TRANSITIONS,
    can_transition,
    ensure_transition,
    begin_dispatch,
    apply_success,
    apply_failure,
    apply_resolution_failure,
    request_retry,
    recover_interrupted,
    apply_deactivation,
    derive_freelancer_status,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "can_transition",
    "ensure_transition",
    "begin_dispatch",
    "apply_success",
    "apply_failure",
    "apply_resolution_failure",
    "request_retry",
    "recover_interrupted",
    "apply_deactivation",
    "derive_freelancer_status",
]
