# ============================================================================
# REPOSITORIES MODULE
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Core - Persistence layer
# PURPOSE: Status store and config provider implementations
# CREATED: 10 OCT 2026
# ============================================================================
"""
Repositories Module

Status Store and Credential/Config Provider contracts plus their
PostgreSQL (psycopg3 async pool), in-memory and YAML-file implementations.

Usage:
    from repositories import PostgresStatusStore, get_pool

    pool = await get_pool()
    store = PostgresStatusStore(pool)
    rows = await store.list_by_freelancer("fl-123")
"""

from .base import StatusStore, ConfigProvider
from .database import get_pool, init_pool, close_pool, bootstrap_schema
from .status_repo import PostgresStatusStore
from .config_repo import PostgresConfigProvider
from .event_repo import EventRepository
from .file_config import FileConfigProvider
from .memory import InMemoryStatusStore, InMemoryConfigProvider

__all__ = [
    "StatusStore",
    "ConfigProvider",
    "get_pool",
    "init_pool",
    "close_pool",
    "bootstrap_schema",
    "PostgresStatusStore",
    "PostgresConfigProvider",
    "EventRepository",
    "FileConfigProvider",
    "InMemoryStatusStore",
    "InMemoryConfigProvider",
]
