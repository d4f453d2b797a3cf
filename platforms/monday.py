# ============================================================================
# MONDAY.COM MODULE
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Platforms - Collaboration (GraphQL)
# PURPOSE: Invite, adopt and deactivate Monday.com users
# CREATED: 08 OCT 2026
# ============================================================================
"""
Monday.com Module

All calls go to the GraphQL endpoint at https://api.monday.com/v2 with the
API token in the Authorization header.

GraphQL reports failures with HTTP 200 and an error body, so responses are
checked for both shapes Monday uses:
    {"errors": [{"message": ..., "extensions": {"code": ...}}]}
    {"error_code": ..., "error_message": ...}
Rate-limit and complexity codes are transient, everything else permanent.

create_user adopts an existing account with the same email (case
insensitive) before inviting, so a re-run never sends a second invite.
"""

import logging
from typing import Any, Dict, List, Optional

from core.contracts import FailureKind, PlatformCategory, PlatformUserStatus
from core.errors import PlatformError
from core.models import ConnectionInfo, PlatformCredentials, PlatformDescriptor, PlatformUser
from platforms.base import PlatformModule
from platforms.registry import register_platform

logger = logging.getLogger(__name__)

MONDAY_API_URL = "https://api.monday.com/v2"
MONDAY_API_VERSION = "2024-10"

TRANSIENT_ERROR_CODES = frozenset({
    "ComplexityException",
    "COMPLEXITY_BUDGET_EXHAUSTED",
    "MAX_COMPLEXITY_EXCEEDED",
    "RATE_LIMIT_EXCEEDED",
    "IP_RATE_LIMIT_EXCEEDED",
    "MAX_CONCURRENCY_EXCEEDED",
    "INTERNAL_SERVER_ERROR",
})

# Monday user_role enum values accepted by invite_users
USER_KINDS = {
    "member": "MEMBER",
    "guest": "GUEST",
    "viewer": "VIEW_ONLY",
    "view_only": "VIEW_ONLY",
    "admin": "ADMIN",
}

USER_FIELDS = "id name email enabled is_pending created_at"


@register_platform
class MondayModule(PlatformModule):
    """Monday.com work management platform."""

    descriptor = PlatformDescriptor(
        platform_id="monday",
        display_name="Monday.com",
        description="Work management platform that helps teams collaborate and track projects",
        category=PlatformCategory.COLLABORATION,
        required_config_fields=frozenset({"apiToken"}),
        optional_config_fields=frozenset({"workspaceId", "userKind"}),
        website="https://monday.com",
        documentation_url="https://developer.monday.com/api-reference/",
    )

    unsupported_reasons = {
        "update_user": "user edits are made in the Monday.com admin interface",
    }

    def _on_initialize(self, config: Dict[str, Any]) -> None:
        kind = str(config.get("userKind") or "member").lower()
        if kind not in USER_KINDS:
            raise ValueError(f"Unknown Monday.com userKind '{kind}' (expected one of {sorted(USER_KINDS)})")

    # =========================================================================
    # GRAPHQL
    # =========================================================================

    async def _graphql(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        client = self._http(
            MONDAY_API_URL,
            headers={
                "Authorization": self.config_value("apiToken"),
                "API-Version": MONDAY_API_VERSION,
            },
        )
        body = await client.post("", json={"query": query, "variables": variables or {}})
        self._raise_for_graphql_errors(body)
        return body.get("data") or {}

    def _raise_for_graphql_errors(self, body: Dict[str, Any]) -> None:
        if body.get("errors"):
            first = body["errors"][0]
            code = (first.get("extensions") or {}).get("code", "")
            message = first.get("message", "Unknown GraphQL error")
        elif body.get("error_code") or body.get("error_message"):
            code = body.get("error_code", "")
            message = body.get("error_message", "Unknown GraphQL error")
        else:
            return

        kind = FailureKind.TRANSIENT if code in TRANSIENT_ERROR_CODES else FailureKind.PERMANENT
        raise PlatformError(self.platform_id, f"Monday.com API error: {message} ({code or 'no code'})", kind=kind)

    def _to_user(self, raw: Dict[str, Any]) -> PlatformUser:
        if raw.get("is_pending"):
            status = PlatformUserStatus.PENDING
        elif raw.get("enabled", True):
            status = PlatformUserStatus.ACTIVE
        else:
            status = PlatformUserStatus.INACTIVE
        return PlatformUser(
            external_user_id=str(raw["id"]),
            email=raw.get("email"),
            display_name=raw.get("name"),
            status=status,
            requires_manual_invitation=status == PlatformUserStatus.PENDING,
            metadata={"created_at": raw.get("created_at")} if raw.get("created_at") else {},
        )

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    async def _test_connection(self) -> ConnectionInfo:
        data = await self._graphql("query { me { id name email account { id name } } }")
        me = data.get("me")
        if not me:
            raise PlatformError.permanent(self.platform_id, "Unable to retrieve user data from Monday.com API")
        account = me.get("account") or {}
        return ConnectionInfo(
            platform_id=self.platform_id,
            account={
                "id": account.get("id"),
                "name": account.get("name"),
                "user": me.get("email"),
                "workspace_id": self.config_value("workspaceId", "main"),
            },
        )

    async def _find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        data = await self._graphql(
            f"query ($emails: [String]) {{ users (emails: $emails) {{ {USER_FIELDS} }} }}",
            {"emails": [email]},
        )
        for user in data.get("users") or []:
            if (user.get("email") or "").lower() == email.lower():
                return user
        return None

    async def _create_user(self, credentials: PlatformCredentials) -> PlatformUser:
        existing = await self._find_by_email(credentials.email)
        if existing:
            logger.info(f"Adopting existing Monday.com user {existing['id']} for {credentials.freelancer_id}")
            user = self._to_user(existing)
            user.metadata["adopted"] = True
            return user

        kind = str(credentials.role or self.config_value("userKind", "member")).lower()
        data = await self._graphql(
            "mutation ($emails: [String!]!, $role: UserRole) {"
            " invite_users (emails: $emails, user_role: $role) {"
            " invited_users { id email name } errors { message code email } } }",
            {"emails": [credentials.email], "role": USER_KINDS.get(kind, "MEMBER")},
        )
        result = data.get("invite_users") or {}
        if result.get("errors"):
            error = result["errors"][0]
            raise PlatformError.permanent(
                self.platform_id,
                f"Invite rejected for {error.get('email', credentials.email)}: {error.get('message')}",
            )

        invited = result.get("invited_users") or []
        if not invited:
            raise PlatformError.permanent(self.platform_id, "Monday.com returned no invited user")

        return PlatformUser(
            external_user_id=str(invited[0]["id"]),
            email=invited[0].get("email", credentials.email),
            display_name=credentials.full_name,
            status=PlatformUserStatus.PENDING,
            requires_manual_invitation=True,
            metadata={"workspace_id": self.config_value("workspaceId", "main"), "user_kind": kind},
        )

    async def _delete_user(self, external_user_id: str) -> None:
        data = await self._graphql(
            "mutation ($ids: [ID!]!) { deactivate_users (user_ids: $ids) {"
            " deactivated_users { id } errors { message code user_id } } }",
            {"ids": [external_user_id]},
        )
        result = data.get("deactivate_users") or {}
        if result.get("errors"):
            raise PlatformError.permanent(
                self.platform_id, f"Failed to deactivate user: {result['errors'][0].get('message')}",
            )

    async def _get_user(self, external_user_id: str) -> PlatformUser:
        data = await self._graphql(
            f"query ($ids: [ID!]) {{ users (ids: $ids) {{ {USER_FIELDS} }} }}",
            {"ids": [external_user_id]},
        )
        users = data.get("users") or []
        if not users:
            raise PlatformError.permanent(self.platform_id, f"User not found: {external_user_id}", status_code=404)
        return self._to_user(users[0])

    async def _list_users(self) -> List[PlatformUser]:
        data = await self._graphql(f"query {{ users {{ {USER_FIELDS} }} }}")
        return [self._to_user(raw) for raw in data.get("users") or []]


__all__ = ["MondayModule"]
