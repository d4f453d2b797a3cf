# ============================================================================
# FILE CONFIG PROVIDER
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Repositories - YAML-backed config provider
# PURPOSE: Load per-organization platform configs from a YAML file
# CREATED: 11 OCT 2026
# ============================================================================
"""
File Config Provider

Reads organization platform configs from YAML:

    organizations:
      org-acme:
        monday:
          enabled: true
          config:
            apiToken: ${MONDAY_API_TOKEN}
        stripe:
          enabled: false
          config:
            secretKey: sk_test_123

String values have ${VAR} references expanded from the environment at
load time, so secrets need not live in the file. The file is read once
and cached until reload().
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from core.errors import RepositoryError
from core.models import PlatformConfig
from .base import ConfigProvider

logger = logging.getLogger(__name__)


def _expand(value: Any) -> Any:
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, dict):
        return {k: _expand(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand(v) for v in value]
    return value


class FileConfigProvider(ConfigProvider):
    """ConfigProvider backed by a YAML file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._cache: Dict[Tuple[str, str], PlatformConfig] = {}
        self._loaded = False

    def load(self) -> int:
        """
        Parse the YAML file into the cache.

        Returns:
            Number of configs loaded

        Raises:
            RepositoryError: file missing or malformed
        """
        try:
            with open(self.path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise RepositoryError("load_config_file", f"{self.path}: {e}") from e

        organizations = data.get("organizations") or {}
        if not isinstance(organizations, dict):
            raise RepositoryError("load_config_file", f"{self.path}: 'organizations' must be a mapping")

        cache: Dict[Tuple[str, str], PlatformConfig] = {}
        for org_id, platforms in organizations.items():
            for platform_id, entry in (platforms or {}).items():
                entry = entry or {}
                cache[(str(org_id), str(platform_id))] = PlatformConfig(
                    organization_id=str(org_id),
                    platform_id=str(platform_id),
                    is_enabled=bool(entry.get("enabled", True)),
                    values=_expand(entry.get("config") or {}),
                )

        self._cache = cache
        self._loaded = True
        logger.info(f"Loaded {len(cache)} platform configs from {self.path}")
        return len(cache)

    def reload(self) -> int:
        self._loaded = False
        return self.load()

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    async def get_config(self, organization_id: str, platform_id: str) -> Optional[PlatformConfig]:
        self._ensure_loaded()
        config = self._cache.get((organization_id, platform_id))
        return config.model_copy(deep=True) if config else None

    async def list_configs(self, organization_id: str) -> List[PlatformConfig]:
        self._ensure_loaded()
        return [
            config.model_copy(deep=True)
            for (org, _), config in sorted(self._cache.items())
            if org == organization_id
        ]


__all__ = ["FileConfigProvider"]
