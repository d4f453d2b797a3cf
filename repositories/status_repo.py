# ============================================================================
# STATUS REPOSITORY
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Repositories - PostgreSQL status store
# PURPOSE: Database access for freelancers and freelancer_platforms tables
# CREATED: 10 OCT 2026
# ============================================================================
"""
Status Repository

PostgreSQL implementation of StatusStore.
All SQL uses psycopg sql.SQL composition for injection safety.

Row upserts are a single INSERT ... ON CONFLICT DO UPDATE statement, so a
row write is atomic without an explicit transaction.
"""

import logging
from typing import Any, Dict, List, Optional

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Json
from psycopg_pool import AsyncConnectionPool

from core.contracts import FreelancerStatus, FreelancerPlatformStatus
from core.errors import ErrorInfo, FreelancerNotFoundError, RepositoryError
from core.models import Freelancer, FreelancerPlatform
from .base import StatusStore
from .database import TABLE_FREELANCERS, TABLE_FREELANCER_PLATFORMS

logger = logging.getLogger(__name__)


class PostgresStatusStore(StatusStore):
    """StatusStore backed by PostgreSQL."""

    def __init__(self, pool: AsyncConnectionPool):
        self.pool = pool

    # =========================================================================
    # FREELANCERS
    # =========================================================================

    async def get_freelancer(self, freelancer_id: str) -> Optional[Freelancer]:
        try:
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(
                    sql.SQL("SELECT * FROM {} WHERE id = %s").format(TABLE_FREELANCERS),
                    (freelancer_id,),
                )
                row = await result.fetchone()
        except psycopg.Error as e:
            raise RepositoryError("get_freelancer", str(e)) from e
        return Freelancer(**row) if row else None

    async def upsert_freelancer(self, freelancer: Freelancer) -> Freelancer:
        try:
            async with self.pool.connection() as conn:
                await conn.execute(
                    sql.SQL("""
                        INSERT INTO {} (
                            id, organization_id, email, first_name, last_name,
                            username, status, metadata, created_at, updated_at
                        ) VALUES (
                            %(id)s, %(organization_id)s, %(email)s, %(first_name)s,
                            %(last_name)s, %(username)s, %(status)s, %(metadata)s,
                            %(created_at)s, %(updated_at)s
                        )
                        ON CONFLICT (id) DO UPDATE SET
                            organization_id = EXCLUDED.organization_id,
                            email = EXCLUDED.email,
                            first_name = EXCLUDED.first_name,
                            last_name = EXCLUDED.last_name,
                            username = EXCLUDED.username,
                            metadata = EXCLUDED.metadata,
                            updated_at = NOW()
                    """).format(TABLE_FREELANCERS),
                    {
                        "id": freelancer.id,
                        "organization_id": freelancer.organization_id,
                        "email": freelancer.email,
                        "first_name": freelancer.first_name,
                        "last_name": freelancer.last_name,
                        "username": freelancer.username,
                        "status": freelancer.status.value,
                        "metadata": Json(freelancer.metadata),
                        "created_at": freelancer.created_at,
                        "updated_at": freelancer.updated_at,
                    },
                )
        except psycopg.Error as e:
            raise RepositoryError("upsert_freelancer", str(e)) from e
        logger.debug(f"Upserted freelancer {freelancer.id}")
        return freelancer

    async def upsert_freelancer_status(self, freelancer_id: str, status: FreelancerStatus) -> None:
        try:
            async with self.pool.connection() as conn:
                result = await conn.execute(
                    sql.SQL("""
                        UPDATE {} SET status = %s, updated_at = NOW()
                        WHERE id = %s
                    """).format(TABLE_FREELANCERS),
                    (status.value, freelancer_id),
                )
                updated = result.rowcount
        except psycopg.Error as e:
            raise RepositoryError("upsert_freelancer_status", str(e)) from e
        if updated == 0:
            raise FreelancerNotFoundError(freelancer_id)

    # =========================================================================
    # FREELANCER PLATFORM ROWS
    # =========================================================================

    async def upsert_freelancer_platform(self, row: FreelancerPlatform) -> FreelancerPlatform:
        try:
            async with self.pool.connection() as conn:
                await conn.execute(
                    sql.SQL("""
                        INSERT INTO {} (
                            freelancer_id, platform_id, organization_id, status,
                            external_user_id, last_error, attempt_count,
                            platform_metadata, created_at, updated_at
                        ) VALUES (
                            %(freelancer_id)s, %(platform_id)s, %(organization_id)s,
                            %(status)s, %(external_user_id)s, %(last_error)s,
                            %(attempt_count)s, %(platform_metadata)s,
                            %(created_at)s, %(updated_at)s
                        )
                        ON CONFLICT (freelancer_id, platform_id) DO UPDATE SET
                            status = EXCLUDED.status,
                            external_user_id = EXCLUDED.external_user_id,
                            last_error = EXCLUDED.last_error,
                            attempt_count = EXCLUDED.attempt_count,
                            platform_metadata = EXCLUDED.platform_metadata,
                            updated_at = EXCLUDED.updated_at
                    """).format(TABLE_FREELANCER_PLATFORMS),
                    {
                        "freelancer_id": row.freelancer_id,
                        "platform_id": row.platform_id,
                        "organization_id": row.organization_id,
                        "status": row.status.value,
                        "external_user_id": row.external_user_id,
                        "last_error": Json(row.last_error.model_dump(mode="json")) if row.last_error else None,
                        "attempt_count": row.attempt_count,
                        "platform_metadata": Json(row.platform_metadata),
                        "created_at": row.created_at,
                        "updated_at": row.updated_at,
                    },
                )
        except psycopg.Error as e:
            raise RepositoryError("upsert_freelancer_platform", str(e)) from e
        return row

    async def get_freelancer_platform(self, freelancer_id: str, platform_id: str) -> Optional[FreelancerPlatform]:
        try:
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(
                    sql.SQL(
                        "SELECT * FROM {} WHERE freelancer_id = %s AND platform_id = %s"
                    ).format(TABLE_FREELANCER_PLATFORMS),
                    (freelancer_id, platform_id),
                )
                row = await result.fetchone()
        except psycopg.Error as e:
            raise RepositoryError("get_freelancer_platform", str(e)) from e
        return self._row_to_model(row) if row else None

    async def list_by_freelancer(self, freelancer_id: str) -> List[FreelancerPlatform]:
        try:
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(
                    sql.SQL(
                        "SELECT * FROM {} WHERE freelancer_id = %s ORDER BY created_at, platform_id"
                    ).format(TABLE_FREELANCER_PLATFORMS),
                    (freelancer_id,),
                )
                rows = await result.fetchall()
        except psycopg.Error as e:
            raise RepositoryError("list_by_freelancer", str(e)) from e
        return [self._row_to_model(row) for row in rows]

    @staticmethod
    def _row_to_model(row: Dict[str, Any]) -> FreelancerPlatform:
        return FreelancerPlatform(
            freelancer_id=row["freelancer_id"],
            platform_id=row["platform_id"],
            organization_id=row["organization_id"],
            status=FreelancerPlatformStatus(row["status"]),
            external_user_id=row.get("external_user_id"),
            last_error=ErrorInfo(**row["last_error"]) if row.get("last_error") else None,
            attempt_count=row.get("attempt_count", 0),
            platform_metadata=row.get("platform_metadata") or {},
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


__all__ = ["PostgresStatusStore"]
