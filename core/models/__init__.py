# ============================================================================
# MODELS MODULE
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Model exports
# PURPOSE: Central export point for all Pydantic models
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

All Pydantic models for the onboarding engine. Persisted models declare
their table via __sql_table__ / __sql_primary_key__ ClassVars; the DDL
itself lives in repositories/database.py.
"""

from core.models.platform import PlatformDescriptor, PlatformConfig, missing_fields
from core.models.freelancer import Freelancer, PlatformCredentials
from core.models.freelancer_platform import FreelancerPlatform
from core.models.events import EventType, PlatformStatusChanged, FreelancerStatusChanged
from core.models.results import (
    PlatformUser,
    ConnectionInfo,
    ConnectionTestResult,
    PlatformOutcome,
    OnboardingResult,
    BulkOnboardingItem,
    OperationResult,
)

__all__ = [
    # Platform
    "PlatformDescriptor",
    "PlatformConfig",
    "missing_fields",
    # Freelancer
    "Freelancer",
    "PlatformCredentials",
    "FreelancerPlatform",
    # Events
    "EventType",
    "PlatformStatusChanged",
    "FreelancerStatusChanged",
    # Results
    "PlatformUser",
    "ConnectionInfo",
    "ConnectionTestResult",
    "PlatformOutcome",
    "OnboardingResult",
    "BulkOnboardingItem",
    "OperationResult",
]
