# ============================================================================
# EVENT REPOSITORY
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Repositories - Status event persistence and fan-out
# PURPOSE: Database access for onboarding_events table plus pg_notify
# CREATED: 11 OCT 2026
# ============================================================================
"""
Event Repository

Persists status-change events and publishes them on the
'onboarding_status' NOTIFY channel in the same transaction, so a listener
never sees an event that was rolled back.

Inserts are keyed on event_id with ON CONFLICT DO NOTHING; a redelivered
event is stored once but notified again (at-least-once).
"""

import logging
from typing import List, Union

from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Json
from psycopg_pool import AsyncConnectionPool

from core.models import FreelancerStatusChanged, PlatformStatusChanged
from .database import NOTIFY_CHANNEL, TABLE_EVENTS

logger = logging.getLogger(__name__)

StatusEvent = Union[PlatformStatusChanged, FreelancerStatusChanged]


class EventRepository:
    """Repository for onboarding status events."""

    def __init__(self, pool: AsyncConnectionPool, channel: str = NOTIFY_CHANNEL):
        self.pool = pool
        self.channel = channel

    async def create(self, event: StatusEvent) -> StatusEvent:
        """
        Store an event and notify listeners.

        Args:
            event: PlatformStatusChanged or FreelancerStatusChanged

        Returns:
            The event
        """
        payload = event.model_dump(mode="json")
        async with self.pool.connection() as conn:
            async with conn.transaction():
                await conn.execute(
                    sql.SQL("""
                        INSERT INTO {} (
                            event_id, event_type, freelancer_id, platform_id,
                            organization_id, batch_id, old_status, new_status,
                            payload, created_at
                        ) VALUES (
                            %(event_id)s, %(event_type)s, %(freelancer_id)s,
                            %(platform_id)s, %(organization_id)s, %(batch_id)s,
                            %(old_status)s, %(new_status)s, %(payload)s,
                            %(created_at)s
                        )
                        ON CONFLICT (event_id) DO NOTHING
                    """).format(TABLE_EVENTS),
                    {
                        "event_id": event.event_id,
                        "event_type": event.event_type.value,
                        "freelancer_id": event.freelancer_id,
                        "platform_id": getattr(event, "platform_id", None),
                        "organization_id": event.organization_id,
                        "batch_id": event.batch_id,
                        "old_status": payload["old_status"],
                        "new_status": payload["new_status"],
                        "payload": Json(payload),
                        "created_at": event.timestamp,
                    },
                )
                await conn.execute(
                    "SELECT pg_notify(%s, %s)",
                    (self.channel, event.model_dump_json()),
                )
        return event

    async def get_for_freelancer(self, freelancer_id: str, limit: int = 100) -> List[dict]:
        """
        Get recent events for a freelancer.

        Returns:
            Event payload dicts, newest first
        """
        async with self.pool.connection() as conn:
            conn.row_factory = dict_row
            result = await conn.execute(
                sql.SQL("""
                    SELECT payload FROM {}
                    WHERE freelancer_id = %s
                    ORDER BY created_at DESC
                    LIMIT %s
                """).format(TABLE_EVENTS),
                (freelancer_id, limit),
            )
            rows = await result.fetchall()
            return [row["payload"] for row in rows]


__all__ = ["EventRepository", "StatusEvent"]
