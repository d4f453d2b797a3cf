# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Foundation - Core enums shared by every layer
# PURPOSE: Status enums for freelancers, platform rows and remote users
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: FreelancerStatus, FreelancerPlatformStatus, FailureKind,
#          RegistryFailure, PlatformCategory, PlatformUserStatus, OutcomeKind
# DEPENDENCIES: enum
# ============================================================================
"""
Base contracts for the onboarding engine.

These enums cross every boundary:
- SQL (PostgreSQL status columns)
- HTTP (API responses)
- Python (orchestrator state machine)
"""

from enum import Enum


# ============================================================================
# STATUS ENUMS
# ============================================================================

class FreelancerPlatformStatus(str, Enum):
    """
    Lifecycle of one (freelancer, platform) row.

    State transitions:
        PENDING -> PROVISIONING -> ACTIVE -> DEACTIVATED
                                -> PENDING (transient, attempts left)
                                -> FAILED  -> PENDING (administrative retry)
    """
    PENDING = "pending"                # Created or waiting for (re)dispatch
    PROVISIONING = "provisioning"      # create_user in flight
    ACTIVE = "active"                  # Remote account exists
    FAILED = "failed"                  # Permanent failure or attempts exhausted
    DEACTIVATED = "deactivated"        # Administratively removed (terminal)

    def is_terminal(self) -> bool:
        """Check if no further transition is possible."""
        return self == FreelancerPlatformStatus.DEACTIVATED

    def is_settled(self) -> bool:
        """Check if the row is not waiting on the orchestrator."""
        return self in (
            FreelancerPlatformStatus.ACTIVE,
            FreelancerPlatformStatus.FAILED,
            FreelancerPlatformStatus.DEACTIVATED,
        )


class FreelancerStatus(str, Enum):
    """
    Aggregate freelancer status.

    Derived from the freelancer's platform rows; only INACTIVE may be set
    directly (manual administrative action).
    """
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"
    ERROR = "error"


class FailureKind(str, Enum):
    """Remote failure classes. Only TRANSIENT is retry-eligible."""
    TRANSIENT = "transient"   # Network, timeout, rate limit
    PERMANENT = "permanent"   # Validation, auth, duplicate resource


class RegistryFailure(str, Enum):
    """Reasons a platform module could not be resolved for an organization."""
    UNKNOWN_PLATFORM = "unknown_platform"
    INCOMPLETE_CONFIG = "incomplete_config"
    INIT_FAILED = "init_failed"
    DISABLED = "disabled"


class OutcomeKind(str, Enum):
    """Per-platform outcome reported by an onboarding call."""
    ACTIVE = "active"
    FAILED = "failed"


# ============================================================================
# PLATFORM DESCRIPTORS
# ============================================================================

class PlatformCategory(str, Enum):
    """Catalogue grouping for platform modules."""
    COLLABORATION = "collaboration"
    SCREEN_SHARING = "screen-sharing"
    FILE_SHARING = "file-sharing"
    PAYMENTS = "payments"


class PlatformUserStatus(str, Enum):
    """Status of an account as reported by the remote platform."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"
    SUSPENDED = "suspended"


__all__ = [
    "FreelancerPlatformStatus",
    "FreelancerStatus",
    "FailureKind",
    "RegistryFailure",
    "OutcomeKind",
    "PlatformCategory",
    "PlatformUserStatus",
]
