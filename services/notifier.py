# ============================================================================
# STATUS NOTIFIER
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Services - Status-change event emission
# PURPOSE: Deliver row and freelancer status events to live consumers
# CREATED: 11 OCT 2026
# ============================================================================
"""
Status Notifier

The orchestrator emits an event on every row transition and every
freelancer status recomputation. Emission is fire-and-forget: a delivery
failure is logged and never propagates into onboarding.

Implementations:
    PostgresNotifier   onboarding_events row + pg_notify('onboarding_status')
    LoggingNotifier    structured log line per event
    RecordingNotifier  keeps events in memory (tests)
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Union

from psycopg_pool import AsyncConnectionPool

from core.models import FreelancerStatusChanged, PlatformStatusChanged
from repositories import EventRepository

logger = logging.getLogger(__name__)

StatusEvent = Union[PlatformStatusChanged, FreelancerStatusChanged]


class Notifier(ABC):
    """Base class for status-change notifiers."""

    async def emit(self, event: StatusEvent) -> bool:
        """
        Deliver an event. Fire-and-forget - logs errors but doesn't raise.

        Returns:
            True if delivered
        """
        try:
            await self._deliver(event)
            return True
        except Exception as e:
            logger.warning(
                f"Failed to emit {event.event_type.value} {event.event_id} "
                f"for freelancer {event.freelancer_id}: {e}"
            )
            return False

    @abstractmethod
    async def _deliver(self, event: StatusEvent) -> None:
        ...


class PostgresNotifier(Notifier):
    """Persists events and publishes them with pg_notify."""

    def __init__(self, pool: AsyncConnectionPool):
        self.pool = pool
        self._repo = EventRepository(pool)

    async def _deliver(self, event: StatusEvent) -> None:
        await self._repo.create(event)
        logger.debug(f"Event emitted: {event.event_type.value} for freelancer={event.freelancer_id}")


class LoggingNotifier(Notifier):
    """Writes one log line per event."""

    def __init__(self, level: int = logging.INFO):
        self.level = level

    async def _deliver(self, event: StatusEvent) -> None:
        old = event.old_status.value if event.old_status else None
        target = getattr(event, "platform_id", None)
        where = f"{event.freelancer_id}/{target}" if target else event.freelancer_id
        logger.log(
            self.level,
            f"{event.event_type.value}: {where} {old} -> {event.new_status.value}",
            extra={"extra": event.model_dump(mode="json")},
        )


class RecordingNotifier(Notifier):
    """Keeps every delivered event in order."""

    def __init__(self):
        self.events: List[StatusEvent] = []

    async def _deliver(self, event: StatusEvent) -> None:
        self.events.append(event)

    def platform_events(self, freelancer_id: str, platform_id: str) -> List[PlatformStatusChanged]:
        return [
            e for e in self.events
            if isinstance(e, PlatformStatusChanged)
            and e.freelancer_id == freelancer_id
            and e.platform_id == platform_id
        ]

    def freelancer_events(self, freelancer_id: str) -> List[FreelancerStatusChanged]:
        return [
            e for e in self.events
            if isinstance(e, FreelancerStatusChanged) and e.freelancer_id == freelancer_id
        ]

    def status_path(self, freelancer_id: str, platform_id: str) -> List[str]:
        """Status sequence of one row, starting with its first recorded state."""
        events = self.platform_events(freelancer_id, platform_id)
        if not events:
            return []
        path = [events[0].old_status.value] if events[0].old_status else []
        path.extend(e.new_status.value for e in events)
        return path


__all__ = [
    "Notifier",
    "PostgresNotifier",
    "LoggingNotifier",
    "RecordingNotifier",
    "StatusEvent",
]
