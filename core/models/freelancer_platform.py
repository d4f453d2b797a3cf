# ============================================================================
# FREELANCER PLATFORM MODEL
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Core model - Per-platform onboarding row
# PURPOSE: Track one freelancer's onboarding state on one platform
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: FreelancerPlatform
# DEPENDENCIES: pydantic
# ============================================================================
"""
Freelancer Platform Model

FreelancerPlatform is the join row between a freelancer and a platform.
It is the unit of retry and the unit of concurrency: the orchestrator
leases it while create_user is in flight and every write to it is made
while holding that lease.

Rows are never deleted on failure; they are kept for audit and retry.
"""

from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, List, Optional

from pydantic import BaseModel, Field, computed_field

from core.contracts import FreelancerPlatformStatus
from core.errors import ErrorInfo


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FreelancerPlatform(BaseModel):
    """
    Onboarding state of one (freelancer, platform) pair.

    Maps to: freelancer_platforms
    Primary Key: (freelancer_id, platform_id)

    Lifecycle:
        1. Created PENDING when onboarding is first requested
        2. PROVISIONING while create_user is in flight
        3. ACTIVE with external_user_id on success
        4. PENDING again on a transient failure with attempts left
        5. FAILED with last_error on permanent failure or exhausted attempts
        6. DEACTIVATED by administrative action (terminal)
    """

    __sql_table__: ClassVar[str] = "freelancer_platforms"
    __sql_primary_key__: ClassVar[List[str]] = ["freelancer_id", "platform_id"]

    freelancer_id: str = Field(..., max_length=64)
    platform_id: str = Field(..., max_length=50)
    organization_id: str = Field(..., max_length=64)

    status: FreelancerPlatformStatus = Field(default=FreelancerPlatformStatus.PENDING)

    external_user_id: Optional[str] = Field(
        default=None,
        max_length=255,
        description="Remote account id, set on success"
    )
    last_error: Optional[ErrorInfo] = Field(
        default=None,
        description="Most recent failure, required while FAILED"
    )
    attempt_count: int = Field(default=0, ge=0)

    platform_metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Remote user metadata captured on success"
    )

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @computed_field
    @property
    def retry_eligible(self) -> bool:
        """PENDING rows: the next onboard or retry dispatches them. FAILED needs an explicit retry."""
        return self.status == FreelancerPlatformStatus.PENDING

    @property
    def key(self) -> tuple:
        return (self.freelancer_id, self.platform_id)

    def is_untouched(self) -> bool:
        """True while the row has never left PENDING."""
        return self.status == FreelancerPlatformStatus.PENDING and self.attempt_count == 0


__all__ = ["FreelancerPlatform"]
