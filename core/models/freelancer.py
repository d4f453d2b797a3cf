# ============================================================================
# FREELANCER MODEL
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Domain model - Freelancer profile and derived status
# PURPOSE: Freelancer identity plus the credentials handed to modules
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Freelancer Model

A Freelancer belongs to one organization. Its status is derived from its
platform rows by the orchestrator; callers may only set INACTIVE.

PlatformCredentials is what a module's create_user receives: the profile
fields plus any per-platform overrides stored in metadata[platform_id].
"""

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional

from pydantic import BaseModel, Field

from core.contracts import FreelancerStatus


class PlatformCredentials(BaseModel):
    """Profile data passed to PlatformModule.create_user."""

    freelancer_id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    username: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None
    extra: Dict[str, Any] = Field(default_factory=dict)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.email

    def field_value(self, name: str) -> Any:
        """Look a credential field up by name (model field first, then extra)."""
        if name in type(self).model_fields:
            return getattr(self, name)
        return self.extra.get(name)


class Freelancer(BaseModel):
    """
    Freelancer profile.

    Maps to: freelancers
    Primary Key: id
    """

    __sql_table__: ClassVar[str] = "freelancers"
    __sql_primary_key__: ClassVar[List[str]] = ["id"]

    id: str = Field(..., max_length=64)
    organization_id: str = Field(..., max_length=64)
    email: str = Field(..., max_length=255)
    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)
    username: Optional[str] = Field(default=None, max_length=100)

    status: FreelancerStatus = Field(default=FreelancerStatus.PENDING)

    # Per-platform overrides, e.g. {"truenas": {"username": "...", "password": "..."}}
    metadata: Dict[str, Any] = Field(default_factory=dict)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def credentials_for(self, platform_id: str) -> PlatformCredentials:
        """Build create_user credentials for one platform."""
        overrides = dict(self.metadata.get(platform_id) or {})
        known = {
            "email": overrides.pop("email", self.email),
            "first_name": overrides.pop("first_name", self.first_name),
            "last_name": overrides.pop("last_name", self.last_name),
            "username": overrides.pop("username", self.username),
            "password": overrides.pop("password", None),
            "role": overrides.pop("role", None),
        }
        return PlatformCredentials(freelancer_id=self.id, extra=overrides, **known)


__all__ = ["Freelancer", "PlatformCredentials"]
