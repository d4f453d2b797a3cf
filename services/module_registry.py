# ============================================================================
# MODULE REGISTRY
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Services - Platform module resolution
# PURPOSE: Hand out initialized modules per (organization, platform)
# CREATED: 12 OCT 2026
# ============================================================================
"""
Module Registry

The gatekeeper between platform configuration and the orchestrator. A
module only leaves resolve() after it has been initialized with the
organization's config.

Resolution order:
    1. platform id known?          else RegistryError(UNKNOWN_PLATFORM)
    2. config exists for the org?  else RegistryError(INCOMPLETE_CONFIG)
    3. config enabled?             else RegistryError(DISABLED)
    4. required fields present?    else RegistryError(INCOMPLETE_CONFIG)
    5. initialize() succeeds?      else RegistryError(INIT_FAILED)

Initialized modules are cached per (organization, platform) and reused
until the config values change.

Module construction is injectable: by default classes come from the
platform catalogue; tests pass a factories mapping instead.
"""

import logging
from typing import Callable, Dict, List, Mapping, Optional, Tuple

import httpx

from core.config import HttpDefaults
from core.contracts import RegistryFailure
from core.errors import ConfigError, RegistryError
from core.models import PlatformDescriptor
from platforms import PlatformModule, get_platform_class, list_platforms
from platforms.base import config_fingerprint
from repositories import ConfigProvider

logger = logging.getLogger(__name__)

ModuleFactory = Callable[[], PlatformModule]


class ModuleRegistry:
    """Resolves platform ids to initialized modules for an organization."""

    def __init__(
        self,
        provider: ConfigProvider,
        factories: Optional[Mapping[str, ModuleFactory]] = None,
        http_defaults: Optional[HttpDefaults] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            provider: Source of per-organization platform configs
            factories: platform_id -> zero-arg module factory; defaults to
                the registered platform catalogue
            http_defaults: Timeouts for catalogue-built modules
            transport: httpx transport for catalogue-built modules (tests)
        """
        self._provider = provider
        self._factories = dict(factories) if factories is not None else None
        self._http_defaults = http_defaults or HttpDefaults()
        self._transport = transport
        self._cache: Dict[Tuple[str, str], PlatformModule] = {}

    @property
    def provider(self) -> ConfigProvider:
        return self._provider

    # =========================================================================
    # CATALOGUE
    # =========================================================================

    def _factory(self, platform_id: str) -> Optional[ModuleFactory]:
        if self._factories is not None:
            return self._factories.get(platform_id)

        cls = get_platform_class(platform_id)
        if cls is None:
            return None
        return lambda: cls(http_defaults=self._http_defaults, transport=self._transport)

    def is_known(self, platform_id: str) -> bool:
        return self._factory(platform_id) is not None

    def known_platforms(self) -> List[str]:
        if self._factories is not None:
            return sorted(self._factories)
        return [d.platform_id for d in list_platforms()]

    def descriptors(self) -> List[PlatformDescriptor]:
        if self._factories is not None:
            return [self._factories[pid]().descriptor for pid in sorted(self._factories)]
        return list_platforms()

    # =========================================================================
    # RESOLUTION
    # =========================================================================

    async def resolve(self, platform_id: str, organization_id: str) -> PlatformModule:
        """
        Get an initialized module for one organization.

        Raises:
            RegistryError: UNKNOWN_PLATFORM, INCOMPLETE_CONFIG, DISABLED
                or INIT_FAILED
        """
        factory = self._factory(platform_id)
        if factory is None:
            raise RegistryError(platform_id, RegistryFailure.UNKNOWN_PLATFORM)

        config = await self._provider.get_config(organization_id, platform_id)
        if config is None:
            raise RegistryError(
                platform_id,
                RegistryFailure.INCOMPLETE_CONFIG,
                f"no configuration for organization {organization_id}",
            )
        if not config.is_enabled:
            raise RegistryError(
                platform_id,
                RegistryFailure.DISABLED,
                f"disabled for organization {organization_id}",
            )

        key = (organization_id, platform_id)
        cached = self._cache.get(key)
        if cached is not None and cached.config_fingerprint == config_fingerprint(config.values):
            return cached

        module = factory()
        try:
            module.initialize(config.values)
        except ConfigError as e:
            raise RegistryError(platform_id, RegistryFailure.INCOMPLETE_CONFIG, e.message) from e
        except Exception as e:
            logger.error(f"Initializing {platform_id} for org {organization_id} failed: {e}")
            raise RegistryError(platform_id, RegistryFailure.INIT_FAILED, str(e)) from e

        self._cache[key] = module
        logger.info(f"Resolved {platform_id} for org {organization_id}")
        return module

    def invalidate(self, organization_id: str, platform_id: Optional[str] = None) -> int:
        """
        Drop cached modules for an organization (or one platform).

        Returns:
            Number of cache entries removed
        """
        keys = [
            key for key in self._cache
            if key[0] == organization_id and (platform_id is None or key[1] == platform_id)
        ]
        for key in keys:
            del self._cache[key]
        return len(keys)


__all__ = ["ModuleRegistry", "ModuleFactory"]
