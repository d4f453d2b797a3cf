# ============================================================================
# IN-MEMORY REPOSITORIES
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Repositories - Dict-backed store and provider
# PURPOSE: Local development and tests without PostgreSQL
# CREATED: 11 OCT 2026
# ============================================================================
"""
In-Memory Repositories

Dict-backed StatusStore and ConfigProvider. Models are copied on the way
in and out, so callers cannot mutate stored state by holding a reference
(same behavior as a real database round-trip).
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from core.contracts import FreelancerStatus
from core.errors import FreelancerNotFoundError
from core.models import Freelancer, FreelancerPlatform, PlatformConfig
from .base import ConfigProvider, StatusStore

logger = logging.getLogger(__name__)


class InMemoryStatusStore(StatusStore):
    """StatusStore held in process memory."""

    def __init__(self, freelancers: Optional[Iterable[Freelancer]] = None):
        self._freelancers: Dict[str, Freelancer] = {}
        self._rows: Dict[Tuple[str, str], FreelancerPlatform] = {}
        self.write_count = 0
        for freelancer in freelancers or []:
            self._freelancers[freelancer.id] = freelancer.model_copy(deep=True)

    async def get_freelancer(self, freelancer_id: str) -> Optional[Freelancer]:
        freelancer = self._freelancers.get(freelancer_id)
        return freelancer.model_copy(deep=True) if freelancer else None

    async def upsert_freelancer(self, freelancer: Freelancer) -> Freelancer:
        existing = self._freelancers.get(freelancer.id)
        stored = freelancer.model_copy(deep=True)
        if existing is not None:
            stored.status = existing.status
            stored.created_at = existing.created_at
        self._freelancers[freelancer.id] = stored
        return stored.model_copy(deep=True)

    async def upsert_freelancer_status(self, freelancer_id: str, status: FreelancerStatus) -> None:
        freelancer = self._freelancers.get(freelancer_id)
        if freelancer is None:
            raise FreelancerNotFoundError(freelancer_id)
        freelancer.status = status
        freelancer.updated_at = datetime.now(timezone.utc)

    async def upsert_freelancer_platform(self, row: FreelancerPlatform) -> FreelancerPlatform:
        self._rows[row.key] = row.model_copy(deep=True)
        self.write_count += 1
        return row

    async def get_freelancer_platform(self, freelancer_id: str, platform_id: str) -> Optional[FreelancerPlatform]:
        row = self._rows.get((freelancer_id, platform_id))
        return row.model_copy(deep=True) if row else None

    async def list_by_freelancer(self, freelancer_id: str) -> List[FreelancerPlatform]:
        rows = [row for key, row in self._rows.items() if key[0] == freelancer_id]
        rows.sort(key=lambda r: (r.created_at, r.platform_id))
        return [row.model_copy(deep=True) for row in rows]


class InMemoryConfigProvider(ConfigProvider):
    """ConfigProvider held in process memory."""

    def __init__(self, configs: Optional[Iterable[PlatformConfig]] = None):
        self._configs: Dict[Tuple[str, str], PlatformConfig] = {}
        for config in configs or []:
            self.put(config)

    def put(self, config: PlatformConfig) -> None:
        self._configs[(config.organization_id, config.platform_id)] = config.model_copy(deep=True)

    async def get_config(self, organization_id: str, platform_id: str) -> Optional[PlatformConfig]:
        config = self._configs.get((organization_id, platform_id))
        return config.model_copy(deep=True) if config else None

    async def list_configs(self, organization_id: str) -> List[PlatformConfig]:
        return [
            config.model_copy(deep=True)
            for (org, _), config in sorted(self._configs.items())
            if org == organization_id
        ]


__all__ = ["InMemoryStatusStore", "InMemoryConfigProvider"]
