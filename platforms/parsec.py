# ============================================================================
# PARSEC TEAMS MODULE
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Platforms - Screen sharing (REST)
# PURPOSE: Invite and manage Parsec Teams members
# CREATED: 08 OCT 2026
# ============================================================================
"""
Parsec Teams Module

REST API scoped to one team. A new member is created by a team invite;
the invite is accepted by the user, so create_user returns a PENDING
account that requires manual acceptance.
"""

import logging
from typing import Any, Dict, List

from core.contracts import PlatformCategory, PlatformUserStatus
from core.errors import PlatformError
from core.models import ConnectionInfo, PlatformCredentials, PlatformDescriptor, PlatformUser
from platforms.base import PlatformModule
from platforms.registry import register_platform

logger = logging.getLogger(__name__)

PARSEC_API_URL = "https://api.parsec.app/v1"


@register_platform
class ParsecModule(PlatformModule):
    """Parsec Teams remote desktop access."""

    descriptor = PlatformDescriptor(
        platform_id="parsec",
        display_name="Parsec Teams",
        description="Ultra-low latency remote desktop access for teams",
        category=PlatformCategory.SCREEN_SHARING,
        required_config_fields=frozenset({"apiKey", "teamId"}),
        optional_config_fields=frozenset({"groupId", "baseUrl"}),
        website="https://parsec.app",
        documentation_url="https://parsec.app/docs/",
    )

    @property
    def _team_path(self) -> str:
        return f"/teams/{self.config_value('teamId')}"

    def _client(self):
        return self._http(
            self.config_value("baseUrl", PARSEC_API_URL),
            headers={"Authorization": f"Bearer {self.config_value('apiKey')}"},
        )

    def _to_user(self, raw: Dict[str, Any]) -> PlatformUser:
        user = raw.get("user") or raw
        return PlatformUser(
            external_user_id=str(user.get("id") or raw["id"]),
            email=user.get("email"),
            display_name=user.get("name"),
            status=PlatformUserStatus.ACTIVE,
            metadata={
                "team_id": self.config_value("teamId"),
                "group_id": raw.get("team_group_id"),
            },
        )

    async def _test_connection(self) -> ConnectionInfo:
        team = await self._client().get(self._team_path)
        data = team.get("data", team)
        return ConnectionInfo(
            platform_id=self.platform_id,
            account={
                "team_id": self.config_value("teamId"),
                "team_name": data.get("name"),
                "member_count": data.get("member_count"),
            },
        )

    async def _create_user(self, credentials: PlatformCredentials) -> PlatformUser:
        body: Dict[str, Any] = {"emails": [credentials.email]}
        group_id = self.config_value("groupId")
        if group_id:
            body["team_group_id"] = group_id

        response = await self._client().post(f"{self._team_path}/invites", json=body)
        invites = response.get("data") or []
        if not invites:
            raise PlatformError.permanent(self.platform_id, "Parsec returned no invite")

        invite = invites[0]
        return PlatformUser(
            external_user_id=str(invite.get("user_id") or invite["id"]),
            email=credentials.email,
            display_name=credentials.full_name,
            status=PlatformUserStatus.PENDING,
            requires_manual_invitation=True,
            metadata={
                "team_id": self.config_value("teamId"),
                "invite_id": invite.get("id"),
                "role": credentials.role or "member",
            },
        )

    async def _update_user(self, external_user_id: str, changes: Dict[str, Any]) -> PlatformUser:
        group_id = changes.get("group_id") or changes.get("team_group_id")
        if not group_id:
            raise PlatformError.permanent(self.platform_id, "Parsec member updates only support group_id")
        member = await self._client().put(
            f"{self._team_path}/members/{external_user_id}",
            json={"team_group_id": group_id},
        )
        return self._to_user(member.get("data", member))

    async def _delete_user(self, external_user_id: str) -> None:
        await self._client().delete(f"{self._team_path}/members/{external_user_id}")

    async def _get_user(self, external_user_id: str) -> PlatformUser:
        member = await self._client().get(f"{self._team_path}/members/{external_user_id}")
        return self._to_user(member.get("data", member))

    async def _list_users(self) -> List[PlatformUser]:
        members = await self._client().get(f"{self._team_path}/members")
        return [self._to_user(raw) for raw in members.get("data") or []]


__all__ = ["ParsecModule"]
