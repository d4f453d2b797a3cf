# ============================================================================
# TRUENAS MODULE
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Platforms - File sharing (REST v2.0)
# PURPOSE: Create local TrueNAS accounts with SMB access
# CREATED: 09 OCT 2026
# ============================================================================
"""
TrueNAS Module

Talks to the TrueNAS REST API (apiUrl points at .../api/v2.0). Unlike the
SaaS platforms, TrueNAS needs a local username and password, so these are
required credential fields; they normally come from the freelancer's
metadata["truenas"] overrides.

Usernames must match ^[a-zA-Z0-9_-]{1,32}$. A bad username is rejected
locally as a permanent error before any remote call.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from core.contracts import PlatformCategory, PlatformUserStatus
from core.errors import PlatformError
from core.models import ConnectionInfo, PlatformCredentials, PlatformDescriptor, PlatformUser
from platforms.base import PlatformModule
from platforms.registry import register_platform

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1,32}$")
UPDATABLE_FIELDS = ("full_name", "email", "password", "locked", "smb")


def parse_bool(value: Any) -> bool:
    """Parse a config flag that may arrive as bool or string."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "1", "yes", "on"):
        return True
    if text in ("false", "0", "no", "off"):
        return False
    raise ValueError(f"Not a boolean: {value!r}")


@register_platform
class TrueNASModule(PlatformModule):
    """TrueNAS file sharing."""

    descriptor = PlatformDescriptor(
        platform_id="truenas",
        display_name="TrueNAS",
        description="Network attached storage with SMB shares for project files",
        category=PlatformCategory.FILE_SHARING,
        required_config_fields=frozenset({"apiUrl", "apiKey"}),
        optional_config_fields=frozenset({"defaultGroup", "verifySsl"}),
        required_credential_fields=frozenset({"email", "username", "password"}),
        website="https://www.truenas.com",
        documentation_url="https://www.truenas.com/docs/api/",
    )

    def _on_initialize(self, config: Dict[str, Any]) -> None:
        if not str(config["apiUrl"]).startswith(("http://", "https://")):
            raise ValueError(f"apiUrl must be an http(s) URL: {config['apiUrl']}")
        if config.get("verifySsl") not in (None, ""):
            parse_bool(config["verifySsl"])

    def _client(self):
        verify_raw = self.config_value("verifySsl")
        return self._http(
            self.config_value("apiUrl"),
            headers={"Authorization": f"Bearer {self.config_value('apiKey')}"},
            verify=True if verify_raw is None else parse_bool(verify_raw),
        )

    def _validate_credentials(self, credentials: PlatformCredentials) -> None:
        if not USERNAME_PATTERN.match(credentials.username or ""):
            raise PlatformError.permanent(
                self.platform_id,
                f"Invalid TrueNAS username '{credentials.username}': "
                "use 1-32 letters, digits, '_' or '-'",
            )

    def _to_user(self, raw: Dict[str, Any]) -> PlatformUser:
        return PlatformUser(
            external_user_id=str(raw["id"]),
            email=raw.get("email"),
            display_name=raw.get("full_name") or raw.get("username"),
            status=PlatformUserStatus.INACTIVE if raw.get("locked") else PlatformUserStatus.ACTIVE,
            metadata={
                "username": raw.get("username"),
                "uid": raw.get("uid"),
                "home": raw.get("home"),
                "smb": raw.get("smb"),
            },
        )

    async def _group_id(self, name: str) -> Optional[int]:
        groups = await self._client().get(
            "/group",
            params={"limit": 1, "query-filters": json.dumps([["name", "=", name]])},
        )
        return groups[0]["id"] if groups else None

    async def _test_connection(self) -> ConnectionInfo:
        info = await self._client().get("/system/info")
        return ConnectionInfo(
            platform_id=self.platform_id,
            account={"hostname": info.get("hostname"), "version": info.get("version")},
        )

    async def _create_user(self, credentials: PlatformCredentials) -> PlatformUser:
        body: Dict[str, Any] = {
            "username": credentials.username,
            "password": credentials.password,
            "full_name": credentials.full_name,
            "email": credentials.email,
            "smb": True,
            "password_disabled": False,
        }

        group_name = self.config_value("defaultGroup")
        if group_name:
            group_id = await self._group_id(group_name)
            if group_id is None:
                raise PlatformError.permanent(self.platform_id, f"TrueNAS group not found: {group_name}")
            body["group"] = group_id
            body["group_create"] = False
        else:
            body["group_create"] = True

        created = await self._client().post("/user", json=body)
        # POST /user returns the new id, older releases return the full object
        if isinstance(created, dict):
            return self._to_user(created)
        return await self._get_user(str(created))

    async def _update_user(self, external_user_id: str, changes: Dict[str, Any]) -> PlatformUser:
        body = {key: changes[key] for key in UPDATABLE_FIELDS if key in changes}
        if not body:
            raise PlatformError.permanent(
                self.platform_id, f"No updatable fields given (allowed: {', '.join(UPDATABLE_FIELDS)})",
            )
        await self._client().put(f"/user/id/{external_user_id}", json=body)
        return await self._get_user(external_user_id)

    async def _delete_user(self, external_user_id: str) -> None:
        await self._client().delete(f"/user/id/{external_user_id}")

    async def _get_user(self, external_user_id: str) -> PlatformUser:
        raw = await self._client().get(f"/user/id/{external_user_id}")
        return self._to_user(raw)

    async def _list_users(self) -> List[PlatformUser]:
        users = await self._client().get(
            "/user",
            params={"limit": 200, "query-filters": json.dumps([["builtin", "=", False]])},
        )
        return [self._to_user(raw) for raw in users]


__all__ = ["TrueNASModule", "USERNAME_PATTERN", "parse_bool"]
