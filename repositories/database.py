# ============================================================================
# DATABASE CONNECTION POOL
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Core - Async PostgreSQL connection management
# PURPOSE: Provide connection pooling for psycopg3 async and schema bootstrap
# CREATED: 10 OCT 2026
# ============================================================================
"""
Database Connection Pool

Manages async PostgreSQL connections using psycopg3 and psycopg_pool.
Singleton pattern ensures one pool per application.

Connection string comes from DATABASE_URL or the POSTGRES_* variables.

Usage:
    from repositories.database import get_pool

    pool = await get_pool()
    async with pool.connection() as conn:
        result = await conn.execute("SELECT 1")
"""

import os
import logging
from typing import Optional

from psycopg import sql
from psycopg_pool import AsyncConnectionPool

logger = logging.getLogger(__name__)

# Global pool instance
_pool: Optional[AsyncConnectionPool] = None


def get_connection_string() -> str:
    """
    Get database connection string from environment.

    Priority:
    1. DATABASE_URL environment variable
    2. Individual POSTGRES_* components

    Returns:
        PostgreSQL connection string
    """
    if url := os.environ.get("DATABASE_URL"):
        return url

    host = os.environ.get("POSTGRES_HOST", "localhost")
    port = os.environ.get("POSTGRES_PORT", "5432")
    name = os.environ.get("POSTGRES_DB", "postgres")
    user = os.environ.get("POSTGRES_USER", "postgres")
    password = os.environ.get("POSTGRES_PASSWORD", "")
    sslmode = os.environ.get("POSTGRES_SSLMODE", "prefer")

    return f"postgresql://{user}:{password}@{host}:{port}/{name}?sslmode={sslmode}"


def _safe_conninfo(conninfo: str) -> str:
    """Connection string with credentials stripped, for logs."""
    if "@" in conninfo:
        return conninfo.split("@")[-1]
    if "password=" in conninfo:
        return conninfo.split("password=")[0] + "password=***"
    return conninfo


async def init_pool(
    min_size: int = 2,
    max_size: int = 10,
    connection_string: Optional[str] = None,
) -> AsyncConnectionPool:
    """
    Initialize the global connection pool.

    Args:
        min_size: Minimum connections to maintain
        max_size: Maximum connections allowed
        connection_string: Override connection string (defaults to env)

    Returns:
        AsyncConnectionPool instance
    """
    global _pool

    if _pool is not None:
        logger.warning("Pool already initialized, returning existing pool")
        return _pool

    conninfo = connection_string or get_connection_string()
    logger.info(f"Initializing connection pool: {_safe_conninfo(conninfo)}")

    _pool = AsyncConnectionPool(
        conninfo=conninfo,
        min_size=min_size,
        max_size=max_size,
        open=False,  # We'll open it explicitly
    )

    await _pool.open()
    logger.info(f"Connection pool opened (min={min_size}, max={max_size})")

    return _pool


async def get_pool() -> AsyncConnectionPool:
    """
    Get the global connection pool, initializing if needed.

    Returns:
        AsyncConnectionPool instance
    """
    global _pool

    if _pool is None:
        await init_pool()

    return _pool


async def close_pool() -> None:
    """Close the global connection pool."""
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("Connection pool closed")


# ============================================================================
# SCHEMA CONSTANTS
# ============================================================================

SCHEMA = os.environ.get("ONBOARDING_DB_SCHEMA", "onboarding")

# Table identifiers - use with psycopg sql.SQL().format() for injection-safe queries
TABLE_FREELANCERS = sql.Identifier(SCHEMA, "freelancers")
TABLE_FREELANCER_PLATFORMS = sql.Identifier(SCHEMA, "freelancer_platforms")
TABLE_ORG_PLATFORMS = sql.Identifier(SCHEMA, "organization_platforms")
TABLE_EVENTS = sql.Identifier(SCHEMA, "onboarding_events")

# pg_notify channel for realtime consumers
NOTIFY_CHANNEL = "onboarding_status"


# ============================================================================
# SCHEMA BOOTSTRAP
# ============================================================================

SCHEMA_DDL = [
    sql.SQL("CREATE SCHEMA IF NOT EXISTS {}").format(sql.Identifier(SCHEMA)),
    sql.SQL("""
        CREATE TABLE IF NOT EXISTS {} (
            id              VARCHAR(64) PRIMARY KEY,
            organization_id VARCHAR(64) NOT NULL,
            email           VARCHAR(255) NOT NULL,
            first_name      VARCHAR(100) NOT NULL DEFAULT '',
            last_name       VARCHAR(100) NOT NULL DEFAULT '',
            username        VARCHAR(100),
            status          VARCHAR(16) NOT NULL DEFAULT 'pending',
            metadata        JSONB NOT NULL DEFAULT '{{}}'::jsonb,
            created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """).format(TABLE_FREELANCERS),
    sql.SQL("""
        CREATE TABLE IF NOT EXISTS {} (
            organization_id VARCHAR(64) NOT NULL,
            platform_id     VARCHAR(50) NOT NULL,
            is_enabled      BOOLEAN NOT NULL DEFAULT TRUE,
            config          JSONB NOT NULL DEFAULT '{{}}'::jsonb,
            updated_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            PRIMARY KEY (organization_id, platform_id)
        )
    """).format(TABLE_ORG_PLATFORMS),
    sql.SQL("""
        CREATE TABLE IF NOT EXISTS {} (
            freelancer_id     VARCHAR(64) NOT NULL REFERENCES {} (id),
            platform_id       VARCHAR(50) NOT NULL,
            organization_id   VARCHAR(64) NOT NULL,
            status            VARCHAR(16) NOT NULL DEFAULT 'pending',
            external_user_id  VARCHAR(255),
            last_error        JSONB,
            attempt_count     INTEGER NOT NULL DEFAULT 0,
            platform_metadata JSONB NOT NULL DEFAULT '{{}}'::jsonb,
            created_at        TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at        TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            PRIMARY KEY (freelancer_id, platform_id),
            CHECK (status <> 'active' OR external_user_id IS NOT NULL),
            CHECK (status <> 'failed' OR last_error IS NOT NULL)
        )
    """).format(TABLE_FREELANCER_PLATFORMS, TABLE_FREELANCERS),
    sql.SQL("""
        CREATE TABLE IF NOT EXISTS {} (
            event_id        VARCHAR(64) PRIMARY KEY,
            event_type      VARCHAR(32) NOT NULL,
            freelancer_id   VARCHAR(64) NOT NULL,
            platform_id     VARCHAR(50),
            organization_id VARCHAR(64),
            batch_id        VARCHAR(64),
            old_status      VARCHAR(16),
            new_status      VARCHAR(16) NOT NULL,
            payload         JSONB NOT NULL DEFAULT '{{}}'::jsonb,
            created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """).format(TABLE_EVENTS),
    sql.SQL("CREATE INDEX IF NOT EXISTS idx_fp_org_status ON {} (organization_id, status)").format(
        TABLE_FREELANCER_PLATFORMS
    ),
    sql.SQL("CREATE INDEX IF NOT EXISTS idx_events_freelancer ON {} (freelancer_id, created_at)").format(
        TABLE_EVENTS
    ),
]


async def bootstrap_schema(pool: AsyncConnectionPool) -> None:
    """Create the schema and tables if they do not exist. Idempotent."""
    async with pool.connection() as conn:
        async with conn.transaction():
            for statement in SCHEMA_DDL:
                await conn.execute(statement)
    logger.info(f"Schema '{SCHEMA}' bootstrapped ({len(SCHEMA_DDL)} statements)")
