# ============================================================================
# PLATFORM MODEL
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Domain model - Platform descriptors and per-org configuration
# PURPOSE: Describe what each platform needs and hold org-scoped config
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Platform Model

PlatformDescriptor is the immutable capability descriptor a module
publishes: identity, category and which config/credential fields it needs.

PlatformConfig is one organization's configuration for one platform
(API keys, tenant ids) plus the administrative enabled flag.

Example:
    Monday requires ["apiToken"]; an org config of {"apiToken": ""}
    is incomplete because empty values do not count as present.
"""

from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, FrozenSet, List

from pydantic import BaseModel, Field

from core.contracts import PlatformCategory


def missing_fields(values: Dict[str, Any], required: FrozenSet[str]) -> List[str]:
    """
    Required field names absent from values.

    A field counts as present only if its value is truthy, so empty
    strings and None do not satisfy a requirement. Pure function.
    """
    return sorted(name for name in required if not values.get(name))


class PlatformDescriptor(BaseModel):
    """
    Capability descriptor for a registered platform module.

    Immutable once registered.
    """

    platform_id: str = Field(
        ..., max_length=50,
        description="Unique platform identifier (lowercase)",
    )
    display_name: str = Field(..., max_length=100)
    description: str = Field(default="", max_length=500)
    category: PlatformCategory

    required_config_fields: FrozenSet[str] = Field(default_factory=frozenset)
    optional_config_fields: FrozenSet[str] = Field(default_factory=frozenset)
    required_credential_fields: FrozenSet[str] = Field(
        default_factory=lambda: frozenset({"email"}),
        description="Profile fields create_user needs",
    )

    website: str = ""
    documentation_url: str = ""

    model_config = {"frozen": True}

    def missing_config_fields(self, values: Dict[str, Any]) -> List[str]:
        return missing_fields(values, self.required_config_fields)


class PlatformConfig(BaseModel):
    """
    Organization-scoped configuration for one platform.

    Maps to: organization_platforms
    Primary Key: (organization_id, platform_id)
    """

    __sql_table__: ClassVar[str] = "organization_platforms"
    __sql_primary_key__: ClassVar[List[str]] = ["organization_id", "platform_id"]

    organization_id: str = Field(..., max_length=64)
    platform_id: str = Field(..., max_length=50)
    is_enabled: bool = Field(default=True, description="Administrative enable flag")
    values: Dict[str, Any] = Field(
        default_factory=dict,
        description="Field name -> secret/opaque value",
    )
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def fingerprint(self) -> str:
        """Stable identity of the config values, used to detect changes."""
        return repr(sorted((k, repr(v)) for k, v in self.values.items()))

    def redacted(self) -> Dict[str, Any]:
        """Values with secrets masked, for logs and API responses."""
        return {key: ("***" if value else value) for key, value in self.values.items()}


__all__ = ["PlatformDescriptor", "PlatformConfig", "missing_fields"]
