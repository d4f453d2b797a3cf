# ============================================================================
# API SCHEMAS
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Core - Request/Response schemas
# PURPOSE: Pydantic models for API validation
# CREATED: 15 OCT 2026
# ============================================================================
"""
API Schemas

Request and response models for the API. Domain results (OnboardingResult,
OperationResult, ConnectionTestResult) are returned as they are; only
envelopes that do not exist in core.models live here.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from core.contracts import FreelancerStatus
from core.models import FreelancerPlatform, PlatformDescriptor


# ============================================================================
# REQUEST SCHEMAS
# ============================================================================

class OnboardRequest(BaseModel):
    """Request to onboard one freelancer."""
    platform_ids: List[str] = Field(..., min_length=1, description="Target platforms, in order")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"platform_ids": ["monday", "parsec", "stripe"]}
            ]
        }
    }


class BulkOnboardRequest(BaseModel):
    """Request to onboard several freelancers onto the same platforms."""
    freelancer_ids: List[str] = Field(..., min_length=1)
    platform_ids: List[str] = Field(..., min_length=1)


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================

class PlatformListResponse(BaseModel):
    """Module catalogue."""
    platforms: List[PlatformDescriptor]
    total: int


class BatchAcceptedResponse(BaseModel):
    """Returned when onboarding runs in the background (wait=false)."""
    batch_id: str
    freelancer_id: str
    platform_ids: List[str]
    started_at: datetime


class BatchCancelResponse(BaseModel):
    batch_id: str
    cancelled: bool


class FreelancerPlatformsResponse(BaseModel):
    """Freelancer status plus every platform row."""
    freelancer_id: str
    organization_id: str
    status: FreelancerStatus
    platforms: List[FreelancerPlatform]


class FreelancerStatusResponse(BaseModel):
    freelancer_id: str
    status: FreelancerStatus


class OrchestratorStatusResponse(BaseModel):
    status: str
    started_at: str
    uptime_seconds: float
    limits: Dict[str, Any]
    metrics: Dict[str, Any]


class ErrorResponse(BaseModel):
    """Error response."""
    error: str
    code: Optional[str] = None
    detail: Optional[Any] = None
