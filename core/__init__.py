# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Core module initialization
# PURPOSE: Export core contracts, errors and models
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================

from core.contracts import (
    FreelancerStatus,
    FreelancerPlatformStatus,
    FailureKind,
    RegistryFailure,
    OutcomeKind,
    PlatformCategory,
    PlatformUserStatus,
)
from core.errors import (
    ErrorInfo,
    OnboardingError,
    ConfigError,
    NotInitializedError,
    PlatformError,
    NotSupportedError,
    RegistryError,
    ConcurrentOperationError,
    InvalidTransitionError,
    OnboardingCancelledError,
    FreelancerNotFoundError,
    RepositoryError,
)
from core.models import (
    PlatformDescriptor,
    PlatformConfig,
    Freelancer,
    PlatformCredentials,
    FreelancerPlatform,
    PlatformStatusChanged,
    FreelancerStatusChanged,
    PlatformUser,
    ConnectionInfo,
    PlatformOutcome,
    OnboardingResult,
    OperationResult,
)

__all__ = [
    # Enums
    "FreelancerStatus",
    "FreelancerPlatformStatus",
    "FailureKind",
    "RegistryFailure",
    "OutcomeKind",
    "PlatformCategory",
    "PlatformUserStatus",
    # Errors
    "ErrorInfo",
    "OnboardingError",
    "ConfigError",
    "NotInitializedError",
    "PlatformError",
    "NotSupportedError",
    "RegistryError",
    "ConcurrentOperationError",
    "InvalidTransitionError",
    "OnboardingCancelledError",
    "FreelancerNotFoundError",
    "RepositoryError",
    # Models
    "PlatformDescriptor",
    "PlatformConfig",
    "Freelancer",
    "PlatformCredentials",
    "FreelancerPlatform",
    "PlatformStatusChanged",
    "FreelancerStatusChanged",
    "PlatformUser",
    "ConnectionInfo",
    "PlatformOutcome",
    "OnboardingResult",
    "OperationResult",
]
