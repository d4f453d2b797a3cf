# ============================================================================
# STRIPE CONNECT MODULE
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Platforms - Payments (form-encoded REST)
# PURPOSE: Create and manage Stripe Connect accounts for freelancers
# CREATED: 09 OCT 2026
# ============================================================================
"""
Stripe Connect Module

Each freelancer becomes a connected account. Requests are form encoded;
nested parameters use Stripe's bracket notation (individual[first_name]).

Account creation sends an Idempotency-Key derived from the freelancer and
platform ids, so a retried create after a lost response returns the
account Stripe already made instead of a duplicate.
"""

import logging
from typing import Any, Dict, List

from core.contracts import PlatformCategory, PlatformUserStatus
from core.models import ConnectionInfo, PlatformCredentials, PlatformDescriptor, PlatformUser
from platforms.base import PlatformModule
from platforms.registry import register_platform

logger = logging.getLogger(__name__)

STRIPE_API_URL = "https://api.stripe.com/v1"
ACCOUNT_TYPES = ("express", "standard", "custom")


def idempotency_key(freelancer_id: str, platform_id: str) -> str:
    return f"onboard-{freelancer_id}-{platform_id}"


@register_platform
class StripeModule(PlatformModule):
    """Stripe Connect payouts."""

    descriptor = PlatformDescriptor(
        platform_id="stripe",
        display_name="Stripe Connect",
        description="Connected accounts for freelancer payouts",
        category=PlatformCategory.PAYMENTS,
        required_config_fields=frozenset({"secretKey"}),
        optional_config_fields=frozenset({"accountType", "country"}),
        website="https://stripe.com/connect",
        documentation_url="https://docs.stripe.com/api/accounts",
    )

    def _on_initialize(self, config: Dict[str, Any]) -> None:
        account_type = config.get("accountType") or "express"
        if account_type not in ACCOUNT_TYPES:
            raise ValueError(f"Unknown Stripe accountType '{account_type}' (expected one of {ACCOUNT_TYPES})")

    def _client(self):
        return self._http(
            STRIPE_API_URL,
            headers={"Authorization": f"Bearer {self.config_value('secretKey')}"},
        )

    def _to_user(self, raw: Dict[str, Any]) -> PlatformUser:
        individual = raw.get("individual") or {}
        name = " ".join(filter(None, [individual.get("first_name"), individual.get("last_name")]))
        if raw.get("charges_enabled") or raw.get("payouts_enabled"):
            status = PlatformUserStatus.ACTIVE
        elif (raw.get("requirements") or {}).get("disabled_reason"):
            status = PlatformUserStatus.SUSPENDED
        else:
            status = PlatformUserStatus.PENDING
        return PlatformUser(
            external_user_id=raw["id"],
            email=raw.get("email"),
            display_name=name or None,
            status=status,
            requires_manual_invitation=not raw.get("details_submitted", False),
            metadata={
                "account_type": raw.get("type"),
                "country": raw.get("country"),
                "details_submitted": raw.get("details_submitted", False),
            },
        )

    async def _test_connection(self) -> ConnectionInfo:
        balance = await self._client().get("/balance")
        return ConnectionInfo(
            platform_id=self.platform_id,
            account={
                "livemode": balance.get("livemode"),
                "currencies": sorted({b.get("currency") for b in balance.get("available") or []}),
            },
        )

    async def _create_user(self, credentials: PlatformCredentials) -> PlatformUser:
        form: Dict[str, Any] = {
            "type": self.config_value("accountType", "express"),
            "email": credentials.email,
            "business_type": "individual",
            "individual[email]": credentials.email,
            "capabilities[transfers][requested]": "true",
            "metadata[freelancer_id]": credentials.freelancer_id,
        }
        if credentials.first_name:
            form["individual[first_name]"] = credentials.first_name
        if credentials.last_name:
            form["individual[last_name]"] = credentials.last_name
        country = self.config_value("country")
        if country:
            form["country"] = country

        account = await self._client().post(
            "/accounts",
            data=form,
            headers={"Idempotency-Key": idempotency_key(credentials.freelancer_id, self.platform_id)},
        )
        return self._to_user(account)

    async def _update_user(self, external_user_id: str, changes: Dict[str, Any]) -> PlatformUser:
        form: Dict[str, Any] = {}
        if changes.get("email"):
            form["email"] = changes["email"]
        for key, value in (changes.get("metadata") or {}).items():
            form[f"metadata[{key}]"] = value
        account = await self._client().post(f"/accounts/{external_user_id}", data=form)
        return self._to_user(account)

    async def _delete_user(self, external_user_id: str) -> None:
        await self._client().delete(f"/accounts/{external_user_id}")

    async def _get_user(self, external_user_id: str) -> PlatformUser:
        account = await self._client().get(f"/accounts/{external_user_id}")
        return self._to_user(account)

    async def _list_users(self) -> List[PlatformUser]:
        page = await self._client().get("/accounts", params={"limit": 100})
        return [self._to_user(raw) for raw in page.get("data") or []]


__all__ = ["StripeModule", "idempotency_key"]
