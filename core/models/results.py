# ============================================================================
# RESULT MODELS
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Core model - Module and orchestrator results
# PURPOSE: Typed values returned by platform modules and the orchestrator
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: PlatformUser, ConnectionInfo, PlatformOutcome, OnboardingResult,
#          OperationResult, ConnectionTestResult
# DEPENDENCIES: pydantic
# ============================================================================
"""
Result Models

Module level:
    PlatformUser      - account as seen by the remote platform
    ConnectionInfo    - result of a read-only capability probe

Orchestrator level:
    PlatformOutcome   - what happened to one requested platform
    OnboardingResult  - aggregate of one onboard() call
    BulkOnboardingItem - one freelancer within onboard_many()
    OperationResult   - result of retry() / deactivate()
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, computed_field

from core.contracts import FreelancerStatus, FreelancerPlatformStatus, OutcomeKind, PlatformUserStatus
from core.errors import ErrorInfo


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# MODULE RESULTS
# ============================================================================

class PlatformUser(BaseModel):
    """Remote account returned by create/get/list/update."""

    external_user_id: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = None
    display_name: Optional[str] = None
    status: PlatformUserStatus = PlatformUserStatus.ACTIVE
    requires_manual_invitation: bool = Field(
        default=False,
        description="True when the platform expects the user to accept an invite"
    )
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ConnectionInfo(BaseModel):
    """Result of a successful test_connection probe."""

    platform_id: str
    connected: bool = True
    account: Dict[str, Any] = Field(default_factory=dict)
    latency_ms: Optional[float] = None


class ConnectionTestResult(BaseModel):
    """Outcome of a credential probe, successful or not."""

    platform_id: str
    organization_id: str
    success: bool
    info: Optional[ConnectionInfo] = None
    error: Optional[ErrorInfo] = None


# ============================================================================
# ORCHESTRATOR RESULTS
# ============================================================================

class PlatformOutcome(BaseModel):
    """Outcome of one requested platform within an onboarding call."""

    platform_id: str
    outcome: OutcomeKind
    status: FreelancerPlatformStatus
    external_user_id: Optional[str] = None
    error: Optional[ErrorInfo] = None
    retry_eligible: bool = False
    attempt_count: int = 0


class OnboardingResult(BaseModel):
    """
    Aggregate result of onboard().

    Always enumerates every distinct requested platform, in request order.
    Produced even when every platform failed.
    """

    freelancer_id: str
    batch_id: str
    outcomes: List[PlatformOutcome] = Field(default_factory=list)
    freelancer_status: FreelancerStatus
    cancelled: bool = False
    started_at: datetime = Field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None

    @computed_field
    @property
    def active_count(self) -> int:
        return sum(1 for o in self.outcomes if o.outcome == OutcomeKind.ACTIVE)

    @computed_field
    @property
    def failed_count(self) -> int:
        return sum(1 for o in self.outcomes if o.outcome == OutcomeKind.FAILED)

    def outcome_for(self, platform_id: str) -> Optional[PlatformOutcome]:
        for outcome in self.outcomes:
            if outcome.platform_id == platform_id:
                return outcome
        return None


class BulkOnboardingItem(BaseModel):
    """One freelancer's entry in a bulk onboarding run."""

    freelancer_id: str
    result: Optional[OnboardingResult] = None
    error: Optional[ErrorInfo] = None


class OperationResult(BaseModel):
    """Result of retry() or deactivate() on a single row."""

    success: bool
    outcome: Optional[PlatformOutcome] = None
    error: Optional[ErrorInfo] = None
    freelancer_status: Optional[FreelancerStatus] = None


__all__ = [
    "PlatformUser",
    "ConnectionInfo",
    "ConnectionTestResult",
    "PlatformOutcome",
    "OnboardingResult",
    "BulkOnboardingItem",
    "OperationResult",
]
