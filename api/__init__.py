# ============================================================================
# API MODULE
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Core - FastAPI routes
# PURPOSE: HTTP API for onboarding, retry and deactivation
# CREATED: 15 OCT 2026
# ============================================================================
"""
API Module

FastAPI routes for the onboarding engine.
"""

from .routes import router, set_services
from .schemas import (
    OnboardRequest,
    BulkOnboardRequest,
    BatchAcceptedResponse,
    FreelancerPlatformsResponse,
)

__all__ = [
    "router",
    "set_services",
    "OnboardRequest",
    "BulkOnboardRequest",
    "BatchAcceptedResponse",
    "FreelancerPlatformsResponse",
]
