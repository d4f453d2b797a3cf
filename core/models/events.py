# ============================================================================
# STATUS EVENT MODELS
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Core model - Status-change events
# PURPOSE: Payloads emitted to the notifier on every transition
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: EventType, PlatformStatusChanged, FreelancerStatusChanged
# DEPENDENCIES: pydantic, enum, uuid
# ============================================================================
"""
Status Event Models

Delivery is at-least-once, so every event carries an event_id that
consumers use to drop duplicates.

Both models map to the onboarding_events table (one row per event,
discriminated by event_type).
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional

from pydantic import BaseModel, Field

from core.contracts import FreelancerPlatformStatus, FreelancerStatus


class EventType(str, Enum):
    """Kinds of status events."""
    PLATFORM_STATUS_CHANGED = "platform_status_changed"
    FREELANCER_STATUS_CHANGED = "freelancer_status_changed"


def _new_event_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PlatformStatusChanged(BaseModel):
    """
    Emitted on every FreelancerPlatform transition.

    Maps to: onboarding_events (event_type = platform_status_changed)
    """

    __sql_table__: ClassVar[str] = "onboarding_events"
    __sql_primary_key__: ClassVar[List[str]] = ["event_id"]

    event_type: EventType = Field(default=EventType.PLATFORM_STATUS_CHANGED, frozen=True)
    event_id: str = Field(default_factory=_new_event_id, max_length=64)

    freelancer_id: str = Field(..., max_length=64)
    platform_id: str = Field(..., max_length=50)
    organization_id: Optional[str] = Field(default=None, max_length=64)
    old_status: Optional[FreelancerPlatformStatus] = Field(
        default=None,
        description="None when the row was just created"
    )
    new_status: FreelancerPlatformStatus
    batch_id: Optional[str] = Field(default=None, max_length=64)
    detail: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utcnow)


class FreelancerStatusChanged(BaseModel):
    """
    Emitted on every freelancer status recomputation.

    Emitted even when old_status == new_status so that consumers always
    see the outcome of a recomputation.

    Maps to: onboarding_events (event_type = freelancer_status_changed)
    """

    __sql_table__: ClassVar[str] = "onboarding_events"
    __sql_primary_key__: ClassVar[List[str]] = ["event_id"]

    event_type: EventType = Field(default=EventType.FREELANCER_STATUS_CHANGED, frozen=True)
    event_id: str = Field(default_factory=_new_event_id, max_length=64)

    freelancer_id: str = Field(..., max_length=64)
    organization_id: Optional[str] = Field(default=None, max_length=64)
    old_status: Optional[FreelancerStatus] = None
    new_status: FreelancerStatus
    batch_id: Optional[str] = Field(default=None, max_length=64)
    timestamp: datetime = Field(default_factory=_utcnow)

    @property
    def changed(self) -> bool:
        return self.old_status != self.new_status


__all__ = ["EventType", "PlatformStatusChanged", "FreelancerStatusChanged"]
