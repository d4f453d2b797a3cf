# ============================================================================
# PLATFORMS MODULE
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Platforms - Module exports and registration
# PURPOSE: Import concrete modules so they register with the catalogue
# CREATED: 07 OCT 2026
# ============================================================================
"""
Platform Modules

Importing this package registers every concrete module:

    monday   Monday.com (collaboration)
    parsec   Parsec Teams (screen-sharing)
    stripe   Stripe Connect (payments)
    truenas  TrueNAS (file-sharing)
"""

from platforms.base import PlatformModule
from platforms.http import PlatformHttpClient, classify_status
from platforms.registry import (
    register_platform,
    get_platform_class,
    get_platform_class_or_raise,
    list_platforms,
    get_platform_metadata,
    unregister_platform,
    clear_platforms,
    DuplicatePlatformError,
)

# Register concrete modules
from platforms import monday, parsec, stripe, truenas  # noqa: F401

__all__ = [
    "PlatformModule",
    "PlatformHttpClient",
    "classify_status",
    "register_platform",
    "get_platform_class",
    "get_platform_class_or_raise",
    "list_platforms",
    "get_platform_metadata",
    "unregister_platform",
    "clear_platforms",
    "DuplicatePlatformError",
]
