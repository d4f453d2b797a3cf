# ============================================================================
# REPOSITORY CONTRACTS
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Repositories - Abstract store and provider interfaces
# PURPOSE: What the orchestrator and registry need from persistence
# CREATED: 10 OCT 2026
# ============================================================================
"""
Repository Contracts

StatusStore       durable per-platform rows and freelancer status
ConfigProvider    per-organization platform configuration

Implementations:
    PostgreSQL   repositories.status_repo / repositories.config_repo
    In-memory    repositories.memory
    YAML file    repositories.file_config (ConfigProvider only)

Backends are picked at startup from BackendDefaults and passed into the
orchestrator and registry constructors.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from core.contracts import FreelancerStatus
from core.models import Freelancer, FreelancerPlatform, PlatformConfig


class StatusStore(ABC):
    """
    Durable record of per-platform and per-freelancer status.

    upsert_freelancer_platform must be atomic per row. Write ordering for a
    row is the orchestrator's job (it writes only while holding the row's
    lease).
    """

    @abstractmethod
    async def get_freelancer(self, freelancer_id: str) -> Optional[Freelancer]:
        ...

    @abstractmethod
    async def upsert_freelancer(self, freelancer: Freelancer) -> Freelancer:
        ...

    @abstractmethod
    async def upsert_freelancer_status(self, freelancer_id: str, status: FreelancerStatus) -> None:
        """Raises FreelancerNotFoundError for unknown ids."""

    @abstractmethod
    async def upsert_freelancer_platform(self, row: FreelancerPlatform) -> FreelancerPlatform:
        ...

    @abstractmethod
    async def get_freelancer_platform(self, freelancer_id: str, platform_id: str) -> Optional[FreelancerPlatform]:
        ...

    @abstractmethod
    async def list_by_freelancer(self, freelancer_id: str) -> List[FreelancerPlatform]:
        """Rows for a freelancer ordered by creation time."""


class ConfigProvider(ABC):
    """Supplies per-organization platform configuration."""

    @abstractmethod
    async def get_config(self, organization_id: str, platform_id: str) -> Optional[PlatformConfig]:
        """Config for one platform, or None when the org has none."""

    @abstractmethod
    async def list_configs(self, organization_id: str) -> List[PlatformConfig]:
        """All configs for an organization, enabled or not."""


__all__ = ["StatusStore", "ConfigProvider"]
