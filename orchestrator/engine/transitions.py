# ============================================================================
# STATUS STATE MACHINE
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Core - Row transitions and freelancer status derivation
# PURPOSE: Single place that decides how statuses may change
# CREATED: 13 OCT 2026
# ============================================================================
"""
Status State Machine

Stateless: every function takes a FreelancerPlatform and returns a new
one (the input is never mutated), or derives a FreelancerStatus from a
list of rows. The orchestrator persists what these functions return.

Row transitions:
    PENDING      -> PROVISIONING   dispatch
    PENDING      -> FAILED         module could not be resolved
    PROVISIONING -> ACTIVE         create_user succeeded
    PROVISIONING -> PENDING        transient failure, attempts left
    PROVISIONING -> FAILED         permanent failure or attempts exhausted
    ACTIVE       -> DEACTIVATED    administrative deactivate
    FAILED       -> PENDING        administrative retry
    DEACTIVATED  -> (none)

Freelancer status derivation:
    any row ACTIVE                          -> ACTIVE
    no rows, or every row untouched PENDING -> PENDING
    only DEACTIVATED rows                   -> INACTIVE
    every attempted live row FAILED         -> ERROR
    otherwise                               -> PENDING
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional, Set

from core.contracts import FreelancerPlatformStatus, FreelancerStatus
from core.errors import InvalidTransitionError, OnboardingError, RegistryError
from core.models import FreelancerPlatform, PlatformUser

logger = logging.getLogger(__name__)

S = FreelancerPlatformStatus

ALLOWED_TRANSITIONS: Dict[FreelancerPlatformStatus, Set[FreelancerPlatformStatus]] = {
    S.PENDING: {S.PROVISIONING, S.FAILED},
    S.PROVISIONING: {S.ACTIVE, S.PENDING, S.FAILED},
    S.ACTIVE: {S.DEACTIVATED},
    S.FAILED: {S.PENDING},
    S.DEACTIVATED: set(),
}


def can_transition(current: FreelancerPlatformStatus, target: FreelancerPlatformStatus) -> bool:
    """Check if a row may move from current to target."""
    return target in ALLOWED_TRANSITIONS.get(current, set())


def ensure_transition(current: FreelancerPlatformStatus, target: FreelancerPlatformStatus) -> None:
    """
    Raises:
        InvalidTransitionError if the move is not in ALLOWED_TRANSITIONS
    """
    if not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value)


def _moved(row: FreelancerPlatform, target: FreelancerPlatformStatus, **changes) -> FreelancerPlatform:
    ensure_transition(row.status, target)
    return row.model_copy(
        update={"status": target, "updated_at": datetime.now(timezone.utc), **changes},
        deep=True,
    )


# ============================================================================
# ROW TRANSITIONS
# ============================================================================

def begin_dispatch(row: FreelancerPlatform) -> FreelancerPlatform:
    """PENDING -> PROVISIONING, counting the attempt."""
    return _moved(row, S.PROVISIONING, attempt_count=row.attempt_count + 1)


def apply_success(row: FreelancerPlatform, user: PlatformUser) -> FreelancerPlatform:
    """PROVISIONING -> ACTIVE with the remote account id."""
    return _moved(
        row,
        S.ACTIVE,
        external_user_id=user.external_user_id,
        last_error=None,
        platform_metadata={
            **row.platform_metadata,
            "remote_status": user.status.value,
            "requires_manual_invitation": user.requires_manual_invitation,
            **user.metadata,
        },
    )


def apply_failure(row: FreelancerPlatform, error: OnboardingError, max_attempts: int) -> FreelancerPlatform:
    """
    PROVISIONING -> PENDING (retry-eligible, attempts left)
    PROVISIONING -> FAILED  (permanent, or attempts exhausted)
    """
    if error.retry_eligible and row.attempt_count < max_attempts:
        return _moved(row, S.PENDING, last_error=error.to_info())
    return _moved(row, S.FAILED, last_error=error.to_info())


def apply_resolution_failure(row: FreelancerPlatform, error: RegistryError) -> FreelancerPlatform:
    """PENDING -> FAILED without a dispatch (no attempt counted)."""
    return _moved(row, S.FAILED, last_error=error.to_info())


def request_retry(row: FreelancerPlatform) -> FreelancerPlatform:
    """FAILED -> PENDING on an explicit retry request. last_error is kept for audit."""
    return _moved(row, S.PENDING)


def recover_interrupted(row: FreelancerPlatform, error: OnboardingError) -> FreelancerPlatform:
    """PROVISIONING -> PENDING for a row left in flight by a stopped process."""
    return _moved(row, S.PENDING, last_error=error.to_info())


def apply_deactivation(row: FreelancerPlatform, remote_removed: bool, note: Optional[str] = None) -> FreelancerPlatform:
    """ACTIVE -> DEACTIVATED."""
    metadata = {**row.platform_metadata, "remote_removed": remote_removed}
    if note:
        metadata["deactivation_note"] = note
    return _moved(row, S.DEACTIVATED, platform_metadata=metadata)


# ============================================================================
# FREELANCER STATUS
# ============================================================================

def derive_freelancer_status(rows: Iterable[FreelancerPlatform]) -> FreelancerStatus:
    """
    Aggregate freelancer status from its rows. Pure function.

    active    any row ACTIVE
    pending   no rows, or no row has left PENDING
    inactive  only DEACTIVATED rows
    error     every attempted live row is FAILED; untouched PENDING rows
              (e.g. cancelled before dispatch) are not attempted
    pending   otherwise (FAILED mixed with retry-eligible rows)
    """
    rows = list(rows)

    if any(row.status == S.ACTIVE for row in rows):
        return FreelancerStatus.ACTIVE

    if not rows or all(row.is_untouched() for row in rows):
        return FreelancerStatus.PENDING

    live = [row for row in rows if row.status != S.DEACTIVATED]
    if not live:
        return FreelancerStatus.INACTIVE

    attempted = [row for row in live if not row.is_untouched()]
    if attempted and all(row.status == S.FAILED for row in attempted):
        return FreelancerStatus.ERROR

    return FreelancerStatus.PENDING


# ============================================================================
# EXPORTS
# ============================================================================

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
