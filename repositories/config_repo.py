# ============================================================================
# PLATFORM CONFIG REPOSITORY
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Repositories - PostgreSQL config provider
# PURPOSE: Database access for organization_platforms table
# CREATED: 10 OCT 2026
# ============================================================================
"""
Platform Config Repository

PostgreSQL implementation of ConfigProvider. Each row holds one
organization's config for one platform as JSONB plus an enabled flag.
"""

import logging
from typing import Any, Dict, List, Optional

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Json
from psycopg_pool import AsyncConnectionPool

from core.errors import RepositoryError
from core.models import PlatformConfig
from .base import ConfigProvider
from .database import TABLE_ORG_PLATFORMS

logger = logging.getLogger(__name__)


class PostgresConfigProvider(ConfigProvider):
    """ConfigProvider backed by the organization_platforms table."""

    def __init__(self, pool: AsyncConnectionPool):
        self.pool = pool

    async def get_config(self, organization_id: str, platform_id: str) -> Optional[PlatformConfig]:
        try:
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(
                    sql.SQL(
                        "SELECT * FROM {} WHERE organization_id = %s AND platform_id = %s"
                    ).format(TABLE_ORG_PLATFORMS),
                    (organization_id, platform_id),
                )
                row = await result.fetchone()
        except psycopg.Error as e:
            raise RepositoryError("get_config", str(e)) from e
        return self._row_to_model(row) if row else None

    async def list_configs(self, organization_id: str) -> List[PlatformConfig]:
        try:
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(
                    sql.SQL(
                        "SELECT * FROM {} WHERE organization_id = %s ORDER BY platform_id"
                    ).format(TABLE_ORG_PLATFORMS),
                    (organization_id,),
                )
                rows = await result.fetchall()
        except psycopg.Error as e:
            raise RepositoryError("list_configs", str(e)) from e
        return [self._row_to_model(row) for row in rows]

    async def save(self, config: PlatformConfig) -> PlatformConfig:
        """Insert or replace one organization's platform config."""
        try:
            async with self.pool.connection() as conn:
                await conn.execute(
                    sql.SQL("""
                        INSERT INTO {} (organization_id, platform_id, is_enabled, config, updated_at)
                        VALUES (%(organization_id)s, %(platform_id)s, %(is_enabled)s, %(config)s, NOW())
                        ON CONFLICT (organization_id, platform_id) DO UPDATE SET
                            is_enabled = EXCLUDED.is_enabled,
                            config = EXCLUDED.config,
                            updated_at = NOW()
                    """).format(TABLE_ORG_PLATFORMS),
                    {
                        "organization_id": config.organization_id,
                        "platform_id": config.platform_id,
                        "is_enabled": config.is_enabled,
                        "config": Json(config.values),
                    },
                )
        except psycopg.Error as e:
            raise RepositoryError("save_config", str(e)) from e
        logger.info(
            f"Saved {config.platform_id} config for org {config.organization_id}: {config.redacted()}"
        )
        return config

    @staticmethod
    def _row_to_model(row: Dict[str, Any]) -> PlatformConfig:
        return PlatformConfig(
            organization_id=row["organization_id"],
            platform_id=row["platform_id"],
            is_enabled=row["is_enabled"],
            values=row.get("config") or {},
            updated_at=row["updated_at"],
        )


__all__ = ["PostgresConfigProvider"]
