# ============================================================================
# ERROR TAXONOMY
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Foundation - Exception hierarchy
# PURPOSE: Typed errors for modules, registry and orchestrator
# CREATED: 06 OCT 2026
# ============================================================================
"""
Error Taxonomy

Every failure the engine reports is one of these exceptions. Module code
raises them; the orchestrator catches them at the row level and stores
their ErrorInfo on the row, so callers never see a raw transport exception.

    OnboardingError
    ├── ConfigError              bad/missing local configuration
    ├── NotInitializedError      caller bug (operation before initialize)
    ├── PlatformError            remote failure (transient | permanent)
    ├── NotSupportedError        capability absent on this platform
    ├── RegistryError            module could not be resolved
    ├── ConcurrentOperationError row already leased
    ├── InvalidTransitionError   operation not allowed from current status
    ├── OnboardingCancelledError batch cancelled before dispatch
    └── FreelancerNotFoundError  unknown freelancer id
"""

from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field

from core.contracts import FailureKind, RegistryFailure


class ErrorInfo(BaseModel):
    """Serializable error summary stored on rows and returned to callers."""
    code: str = Field(..., max_length=64)
    message: str = Field(..., max_length=2000)
    kind: Optional[FailureKind] = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class OnboardingError(Exception):
    """Base exception for the onboarding engine."""

    code = "onboarding_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    @property
    def retry_eligible(self) -> bool:
        return False

    def to_info(self) -> ErrorInfo:
        return ErrorInfo(code=self.code, message=self.message[:2000])


# ============================================================================
# MODULE ERRORS
# ============================================================================

class ConfigError(OnboardingError):
    """Raised when a platform config is missing required fields."""

    code = "config_error"

    def __init__(self, platform_id: str, missing_fields: Iterable[str]):
        self.platform_id = platform_id
        self.missing_fields: List[str] = sorted(missing_fields)
        super().__init__(
            f"{platform_id} config is missing required field(s): "
            f"{', '.join(self.missing_fields)}"
        )


class NotInitializedError(OnboardingError):
    """Raised when a module operation runs before initialize()."""

    code = "not_initialized"

    def __init__(self, platform_id: str, operation: str):
        self.platform_id = platform_id
        self.operation = operation
        super().__init__(f"{platform_id}.{operation} called before initialize()")


class PlatformError(OnboardingError):
    """
    Remote platform failure.

    TRANSIENT covers network errors, timeouts and rate limits.
    PERMANENT covers validation, auth and duplicate-resource errors.
    """

    code = "platform_error"

    def __init__(
        self,
        platform_id: str,
        message: str,
        kind: FailureKind = FailureKind.PERMANENT,
        status_code: Optional[int] = None,
    ):
        self.platform_id = platform_id
        self.kind = kind
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def transient(cls, platform_id: str, message: str, status_code: Optional[int] = None) -> "PlatformError":
        return cls(platform_id, message, FailureKind.TRANSIENT, status_code)

    @classmethod
    def permanent(cls, platform_id: str, message: str, status_code: Optional[int] = None) -> "PlatformError":
        return cls(platform_id, message, FailureKind.PERMANENT, status_code)

    @property
    def retry_eligible(self) -> bool:
        return self.kind == FailureKind.TRANSIENT

    def to_info(self) -> ErrorInfo:
        return ErrorInfo(code=self.code, message=self.message[:2000], kind=self.kind)


class NotSupportedError(OnboardingError):
    """Raised when a module does not offer an optional capability."""

    code = "not_supported"

    def __init__(self, platform_id: str, operation: str, reason: str = ""):
        self.platform_id = platform_id
        self.operation = operation
        message = f"{platform_id} does not support {operation}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


# ============================================================================
# REGISTRY ERRORS
# ============================================================================

class RegistryError(OnboardingError):
    """Raised when the registry cannot hand out an initialized module."""

    code = "registry_error"

    def __init__(self, platform_id: str, reason: RegistryFailure, detail: str = ""):
        self.platform_id = platform_id
        self.reason = reason
        message = f"Cannot resolve platform '{platform_id}' ({reason.value})"
        if detail:
            message += f": {detail}"
        super().__init__(message)

    def to_info(self) -> ErrorInfo:
        return ErrorInfo(code=f"registry_{self.reason.value}", message=self.message[:2000])


# ============================================================================
# ORCHESTRATION ERRORS
# ============================================================================

class ConcurrentOperationError(OnboardingError):
    """Raised when a (freelancer, platform) row already has an operation in flight."""

    code = "concurrent_operation"

    def __init__(self, pairs: Iterable[Tuple[str, str]]):
        self.pairs = list(pairs)
        rendered = ", ".join(f"{f}/{p}" for f, p in self.pairs)
        super().__init__(f"Operation already in flight for: {rendered}")


class InvalidTransitionError(OnboardingError):
    """Raised when an operation is not allowed from the row's current status."""

    code = "invalid_transition"

    def __init__(self, current: str, target: str, detail: str = ""):
        self.current = current
        self.target = target
        message = f"Cannot transition from {current} to {target}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class OnboardingCancelledError(OnboardingError):
    """Recorded for rows whose dispatch was prevented by batch cancellation."""

    code = "cancelled"

    def __init__(self, batch_id: str, platform_id: str):
        self.batch_id = batch_id
        self.platform_id = platform_id
        super().__init__(f"Batch {batch_id} cancelled before {platform_id} was dispatched")

    @property
    def retry_eligible(self) -> bool:
        return True


class FreelancerNotFoundError(OnboardingError):
    """Raised when a freelancer id is unknown to the status store."""

    code = "freelancer_not_found"

    def __init__(self, freelancer_id: str):
        self.freelancer_id = freelancer_id
        super().__init__(f"Freelancer not found: {freelancer_id}")


# ============================================================================
# PERSISTENCE ERRORS
# ============================================================================

class RepositoryError(OnboardingError):
    """Raised when a status store or config provider operation fails."""

    code = "repository_error"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        super().__init__(f"{operation} failed: {detail}")


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
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
]
