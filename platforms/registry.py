# ============================================================================
# PLATFORM CATALOGUE
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Platforms - Module registration and lookup
# PURPOSE: Register and discover platform modules by platform id
# CREATED: 07 OCT 2026
# ============================================================================
"""
Platform Catalogue

Maps a platform id to its PlatformModule class. The ModuleRegistry in
services/ uses this to build and initialize per-organization instances.

Design:
- Modules are registered at import time via class decorator
- Catalogue is a simple dict (platform_id -> module class)
- Fail-fast on duplicate registration
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Type

from core.contracts import RegistryFailure
from core.errors import RegistryError
from core.models import PlatformDescriptor
from platforms.base import PlatformModule

logger = logging.getLogger(__name__)


# ============================================================================
# EXCEPTIONS
# ============================================================================

class DuplicatePlatformError(Exception):
    """Raised when a platform id is already registered."""
    def __init__(self, platform_id: str):
        self.platform_id = platform_id
        super().__init__(f"Platform already registered: {platform_id}")


# ============================================================================
# CATALOGUE
# ============================================================================

_platforms: Dict[str, Type[PlatformModule]] = {}
_platform_metadata: Dict[str, Dict[str, Any]] = {}


def register_platform(cls: Type[PlatformModule]) -> Type[PlatformModule]:
    """
    Class decorator registering a platform module.

    Example:
        @register_platform
        class MondayModule(PlatformModule):
            descriptor = PlatformDescriptor(platform_id="monday", ...)
    """
    descriptor = getattr(cls, "descriptor", None)
    if not isinstance(descriptor, PlatformDescriptor):
        raise TypeError(f"{cls.__name__} must define a PlatformDescriptor 'descriptor'")

    platform_id = descriptor.platform_id
    if platform_id in _platforms:
        raise DuplicatePlatformError(platform_id)

    _platforms[platform_id] = cls
    _platform_metadata[platform_id] = {
        "class": cls.__name__,
        "module": cls.__module__,
        "supported_operations": cls.supported_operations(),
        "registered_at": datetime.utcnow().isoformat(),
    }

    logger.debug(f"Registered platform: {platform_id} ({cls.__module__}.{cls.__name__})")
    return cls


def get_platform_class(platform_id: str) -> Optional[Type[PlatformModule]]:
    """Get a module class by platform id, or None."""
    return _platforms.get(platform_id)


def get_platform_class_or_raise(platform_id: str) -> Type[PlatformModule]:
    """
    Get a module class by platform id.

    Raises:
        RegistryError(UNKNOWN_PLATFORM) if not registered
    """
    cls = _platforms.get(platform_id)
    if cls is None:
        raise RegistryError(platform_id, RegistryFailure.UNKNOWN_PLATFORM)
    return cls


def list_platforms() -> List[PlatformDescriptor]:
    """Descriptors of all registered platforms, sorted by id."""
    return [_platforms[pid].descriptor for pid in sorted(_platforms)]


def get_platform_metadata(platform_id: str) -> Optional[Dict[str, Any]]:
    """Registration metadata for one platform."""
    return _platform_metadata.get(platform_id)


def unregister_platform(platform_id: str) -> None:
    """Remove one platform. Primarily for testing."""
    _platforms.pop(platform_id, None)
    _platform_metadata.pop(platform_id, None)


def clear_platforms() -> None:
    """
    Clear all registered platforms.

    Primarily for testing.
    """
    _platforms.clear()
    _platform_metadata.clear()
    logger.debug("Cleared all platforms")


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "register_platform",
    "get_platform_class",
    "get_platform_class_or_raise",
    "list_platforms",
    "get_platform_metadata",
    "unregister_platform",
    "clear_platforms",
    "DuplicatePlatformError",
]
