# ============================================================================
# PLATFORM MODULE CONTRACT
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Platforms - Uniform capability contract
# PURPOSE: Base class every platform module implements
# CREATED: 07 OCT 2026
# ============================================================================
"""
Platform Module Contract

Every platform implements the same capability set behind PlatformModule.
The public methods are template wrappers; subclasses implement the
underscore hooks:

    Required hooks:  _test_connection, _create_user
    Optional hooks:  _update_user, _delete_user, _get_user, _list_users
                     (default: NotSupportedError)
    Init hook:       _on_initialize (runs once per distinct config)

Wrapper guarantees:
    - Every operation except initialize/validate_config raises
      NotInitializedError until initialize() has succeeded.
    - initialize() raises ConfigError naming missing required fields and
      is a no-op when called again with an identical config.
    - create_user() checks the descriptor's required_credential_fields
      before any remote call (missing -> permanent PlatformError).

Example:
    @register_platform
    class AcmeModule(PlatformModule):
        descriptor = PlatformDescriptor(platform_id="acme", ...)

        async def _test_connection(self) -> ConnectionInfo: ...
        async def _create_user(self, credentials) -> PlatformUser: ...
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, List, Mapping, Optional

import httpx

from core.config import HttpDefaults
from core.errors import ConfigError, NotInitializedError, NotSupportedError, PlatformError
from core.models import (
    ConnectionInfo,
    PlatformCredentials,
    PlatformDescriptor,
    PlatformUser,
    missing_fields,
)
from platforms.http import PlatformHttpClient

logger = logging.getLogger(__name__)

OPTIONAL_OPERATIONS = ("update_user", "delete_user", "get_user", "list_users")


def config_fingerprint(config: Mapping[str, Any]) -> str:
    """Stable identity of a config mapping."""
    return repr(sorted((k, repr(v)) for k, v in config.items()))


class PlatformModule(ABC):
    """
    Base class for platform modules.

    One instance serves one organization's config. Instances are created
    and initialized by the ModuleRegistry; the orchestrator only ever sees
    initialized modules.
    """

    descriptor: ClassVar[PlatformDescriptor]

    # Operation name -> reason, used in NotSupportedError messages
    unsupported_reasons: ClassVar[Dict[str, str]] = {}

    def __init__(
        self,
        http_defaults: Optional[HttpDefaults] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._http_defaults = http_defaults or HttpDefaults()
        self._transport = transport
        self._config: Optional[Dict[str, Any]] = None
        self._fingerprint: Optional[str] = None

    # =========================================================================
    # IDENTITY
    # =========================================================================

    @property
    def platform_id(self) -> str:
        return self.descriptor.platform_id

    @property
    def is_initialized(self) -> bool:
        return self._config is not None

    @property
    def config_fingerprint(self) -> Optional[str]:
        return self._fingerprint

    @classmethod
    def supported_operations(cls) -> List[str]:
        """Optional operations this module overrides."""
        supported = []
        for operation in OPTIONAL_OPERATIONS:
            hook = f"_{operation}"
            if getattr(cls, hook) is not getattr(PlatformModule, hook):
                supported.append(operation)
        return supported

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def validate_config(self, config: Mapping[str, Any]) -> bool:
        """Pure check mirroring initialize()'s validation. No side effects."""
        return not missing_fields(dict(config), self.descriptor.required_config_fields)

    def initialize(self, config: Mapping[str, Any]) -> None:
        """
        Validate and apply an organization's config.

        Idempotent: an identical config is a no-op. A different config
        re-runs the init hook.

        Raises:
            ConfigError: required field(s) missing or empty
        """
        values = dict(config)
        missing = missing_fields(values, self.descriptor.required_config_fields)
        if missing:
            raise ConfigError(self.platform_id, missing)

        fingerprint = config_fingerprint(values)
        if self._config is not None and fingerprint == self._fingerprint:
            return

        self._on_initialize(values)
        self._config = values
        self._fingerprint = fingerprint
        logger.debug(f"Initialized {self.platform_id} module")

    def _on_initialize(self, config: Dict[str, Any]) -> None:
        """Platform-specific init. Raise ValueError for unusable values."""

    def config_value(self, name: str, default: Any = None) -> Any:
        if self._config is None:
            raise NotInitializedError(self.platform_id, "config_value")
        value = self._config.get(name)
        return value if value not in (None, "") else default

    def _require_initialized(self, operation: str) -> None:
        if self._config is None:
            raise NotInitializedError(self.platform_id, operation)

    def _http(self, base_url: str, headers: Optional[Dict[str, str]] = None, verify: bool = True) -> PlatformHttpClient:
        return PlatformHttpClient(
            self.platform_id,
            base_url,
            headers=headers,
            defaults=self._http_defaults,
            transport=self._transport,
            verify=verify,
        )

    # =========================================================================
    # OPERATIONS (template wrappers)
    # =========================================================================

    async def test_connection(self) -> ConnectionInfo:
        """Read-only capability probe. Never mutates remote state."""
        self._require_initialized("test_connection")
        started = time.monotonic()
        info = await self._test_connection()
        info.latency_ms = round((time.monotonic() - started) * 1000, 1)
        return info

    async def create_user(self, credentials: PlatformCredentials) -> PlatformUser:
        """
        Create (or adopt) the remote account.

        Not assumed idempotent remotely; the orchestrator never calls this
        for an ACTIVE row without an explicit retry.
        """
        self._require_initialized("create_user")
        missing = sorted(
            name for name in self.descriptor.required_credential_fields
            if not credentials.field_value(name)
        )
        if missing:
            raise PlatformError.permanent(
                self.platform_id,
                f"Missing required credential field(s): {', '.join(missing)}",
            )
        self._validate_credentials(credentials)
        return await self._create_user(credentials)

    async def update_user(self, external_user_id: str, changes: Dict[str, Any]) -> PlatformUser:
        self._require_initialized("update_user")
        return await self._update_user(external_user_id, changes)

    async def delete_user(self, external_user_id: str) -> None:
        self._require_initialized("delete_user")
        await self._delete_user(external_user_id)

    async def get_user(self, external_user_id: str) -> PlatformUser:
        self._require_initialized("get_user")
        return await self._get_user(external_user_id)

    async def list_users(self) -> List[PlatformUser]:
        self._require_initialized("list_users")
        return await self._list_users()

    # =========================================================================
    # HOOKS
    # =========================================================================

    def _validate_credentials(self, credentials: PlatformCredentials) -> None:
        """Platform-specific credential checks. Raise permanent PlatformError."""

    def _not_supported(self, operation: str) -> NotSupportedError:
        return NotSupportedError(
            self.platform_id, operation, self.unsupported_reasons.get(operation, ""),
        )

    @abstractmethod
    async def _test_connection(self) -> ConnectionInfo:
        ...

    @abstractmethod
    async def _create_user(self, credentials: PlatformCredentials) -> PlatformUser:
        ...

    async def _update_user(self, external_user_id: str, changes: Dict[str, Any]) -> PlatformUser:
        raise self._not_supported("update_user")

    async def _delete_user(self, external_user_id: str) -> None:
        raise self._not_supported("delete_user")

    async def _get_user(self, external_user_id: str) -> PlatformUser:
        raise self._not_supported("get_user")

    async def _list_users(self) -> List[PlatformUser]:
        raise self._not_supported("list_users")


__all__ = ["PlatformModule", "OPTIONAL_OPERATIONS", "config_fingerprint"]
