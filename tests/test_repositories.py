# ============================================================================
# REPOSITORY + NOTIFIER TESTS
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Tests - Status stores, config providers, notifiers
# PURPOSE: Verify persistence contracts without a live database
# CREATED: 17 OCT 2026
# ============================================================================
"""
Repository + Notifier Tests

Covers:
1. InMemoryStatusStore isolation and ordering
2. InMemoryConfigProvider / FileConfigProvider (YAML, ${VAR} expansion)
3. PostgresStatusStore against a mocked psycopg pool
4. Notifier fire-and-forget semantics
5. Connection string resolution and pool-only connection access

Run with:
    pytest tests/test_repositories.py -v
"""

import asyncio
from datetime import datetime, timezone
import pytest
from unittest.mock import AsyncMock, MagicMock

import psycopg

from core.contracts import FreelancerPlatformStatus, FreelancerStatus
from core.errors import FreelancerNotFoundError, RepositoryError
from core.models import FreelancerPlatform, FreelancerStatusChanged, PlatformStatusChanged
from repositories import (
    FileConfigProvider,
    InMemoryConfigProvider,
    InMemoryStatusStore,
    PostgresStatusStore,
)
from repositories import database
from services import LoggingNotifier, Notifier, RecordingNotifier

from tests.fakes import ORG, make_config, make_freelancer

S = FreelancerPlatformStatus


def _make_row(platform_id="a", status=S.PENDING, **kwargs):
    return FreelancerPlatform(
        freelancer_id="fl-1", platform_id=platform_id, organization_id=ORG, status=status, **kwargs,
    )


def _mock_pool(fetchone=None, fetchall=None, rowcount=1, error=None):
    """psycopg AsyncConnectionPool stand-in: pool.connection() -> conn.execute() -> cursor."""
    cursor = MagicMock()
    cursor.fetchone = AsyncMock(return_value=fetchone)
    cursor.fetchall = AsyncMock(return_value=fetchall or [])
    cursor.rowcount = rowcount

    conn = MagicMock()
    conn.execute = AsyncMock(return_value=cursor, side_effect=error)

    ctx = MagicMock()
    ctx.__aenter__ = AsyncMock(return_value=conn)
    ctx.__aexit__ = AsyncMock(return_value=False)

    pool = MagicMock()
    pool.connection.return_value = ctx
    return pool, conn


# ============================================================================
# IN-MEMORY STATUS STORE
# ============================================================================

class TestInMemoryStatusStore:
    """Dict-backed StatusStore."""

    def test_rows_are_copies(self):
        async def run_test():
            store = InMemoryStatusStore([make_freelancer()])
            row = _make_row()
            await store.upsert_freelancer_platform(row)
            row.status = S.ACTIVE

            stored = await store.get_freelancer_platform("fl-1", "a")
            assert stored.status == S.PENDING
            stored.attempt_count = 9
            assert (await store.get_freelancer_platform("fl-1", "a")).attempt_count == 0

        asyncio.run(run_test())

    def test_upsert_replaces_row(self):
        async def run_test():
            store = InMemoryStatusStore([make_freelancer()])
            await store.upsert_freelancer_platform(_make_row())
            await store.upsert_freelancer_platform(_make_row(status=S.PROVISIONING, attempt_count=1))

            rows = await store.list_by_freelancer("fl-1")
            assert len(rows) == 1
            assert rows[0].status == S.PROVISIONING
            assert store.write_count == 2

        asyncio.run(run_test())

    def test_list_only_own_rows(self):
        async def run_test():
            store = InMemoryStatusStore([make_freelancer(), make_freelancer("fl-2")])
            await store.upsert_freelancer_platform(_make_row("a"))
            await store.upsert_freelancer_platform(_make_row("b"))
            await store.upsert_freelancer_platform(FreelancerPlatform(
                freelancer_id="fl-2", platform_id="a", organization_id=ORG,
            ))

            rows = await store.list_by_freelancer("fl-1")
            assert {r.platform_id for r in rows} == {"a", "b"}

        asyncio.run(run_test())

    def test_status_for_unknown_freelancer(self):
        async def run_test():
            store = InMemoryStatusStore()
            with pytest.raises(FreelancerNotFoundError):
                await store.upsert_freelancer_status("ghost", FreelancerStatus.ACTIVE)

        asyncio.run(run_test())

    def test_upsert_freelancer_keeps_status(self):
        async def run_test():
            store = InMemoryStatusStore([make_freelancer()])
            await store.upsert_freelancer_status("fl-1", FreelancerStatus.ACTIVE)
            await store.upsert_freelancer(make_freelancer(email="new@example.com"))

            freelancer = await store.get_freelancer("fl-1")
            assert freelancer.email == "new@example.com"
            assert freelancer.status == FreelancerStatus.ACTIVE

        asyncio.run(run_test())


# ============================================================================
# CONFIG PROVIDERS
# ============================================================================

PLATFORMS_YAML = """
organizations:
  org-acme:
    monday:
      enabled: true
      config:
        apiToken: ${MONDAY_TOKEN}
        workspaceId: ws-1
    stripe:
      enabled: false
      config:
        secretKey: sk_test_1
  org-other:
    parsec:
      config:
        apiKey: pk
        teamId: T1
"""


class TestConfigProviders:
    """In-memory and YAML-file config providers."""

    def test_in_memory(self):
        async def run_test():
            provider = InMemoryConfigProvider([make_config("a"), make_config("b", organization_id="org-x")])

            assert (await provider.get_config(ORG, "a")).values == {"apiKey": "k-123"}
            assert await provider.get_config(ORG, "b") is None
            assert [c.platform_id for c in await provider.list_configs(ORG)] == ["a"]

        asyncio.run(run_test())

    def test_file_provider_expands_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MONDAY_TOKEN", "tok-from-env")
        path = tmp_path / "platforms.yaml"
        path.write_text(PLATFORMS_YAML)

        async def run_test():
            provider = FileConfigProvider(path)

            monday = await provider.get_config("org-acme", "monday")
            assert monday.values == {"apiToken": "tok-from-env", "workspaceId": "ws-1"}
            assert monday.is_enabled is True

            stripe = await provider.get_config("org-acme", "stripe")
            assert stripe.is_enabled is False

            parsec = await provider.get_config("org-other", "parsec")
            assert parsec.is_enabled is True

            ids = [c.platform_id for c in await provider.list_configs("org-acme")]
            assert ids == ["monday", "stripe"]

        asyncio.run(run_test())

    def test_file_provider_reload(self, tmp_path):
        path = tmp_path / "platforms.yaml"
        path.write_text("organizations:\n  org-acme:\n    a:\n      config: {apiKey: one}\n")
        provider = FileConfigProvider(path)
        assert provider.load() == 1

        path.write_text("organizations:\n  org-acme:\n    a:\n      config: {apiKey: two}\n")
        provider.reload()

        config = asyncio.run(provider.get_config("org-acme", "a"))
        assert config.values == {"apiKey": "two"}

    def test_file_provider_missing_file(self, tmp_path):
        provider = FileConfigProvider(tmp_path / "nope.yaml")
        with pytest.raises(RepositoryError):
            provider.load()

    def test_file_provider_malformed(self, tmp_path):
        path = tmp_path / "platforms.yaml"
        path.write_text("organizations: [1, 2]\n")
        with pytest.raises(RepositoryError):
            FileConfigProvider(path).load()


# ============================================================================
# POSTGRES STATUS STORE
# ============================================================================

class TestPostgresStatusStore:
    """PostgresStatusStore with a mocked pool."""

    def test_upsert_row_uses_on_conflict(self):
        pool, conn = _mock_pool()
        store = PostgresStatusStore(pool)

        asyncio.run(store.upsert_freelancer_platform(_make_row(attempt_count=1)))

        query, params = conn.execute.call_args.args
        assert "ON CONFLICT (freelancer_id, platform_id)" in repr(query)
        assert params["status"] == "pending"
        assert params["attempt_count"] == 1
        assert params["last_error"] is None

    def test_get_row_maps_columns(self):
        pool, _ = _mock_pool(fetchone={
            "freelancer_id": "fl-1",
            "platform_id": "a",
            "organization_id": ORG,
            "status": "failed",
            "external_user_id": None,
            "last_error": {"code": "platform_error", "message": "HTTP 422", "kind": "permanent"},
            "attempt_count": 1,
            "platform_metadata": {},
            "created_at": datetime(2026, 10, 1, tzinfo=timezone.utc),
            "updated_at": datetime(2026, 10, 1, tzinfo=timezone.utc),
        })
        store = PostgresStatusStore(pool)

        row = asyncio.run(store.get_freelancer_platform("fl-1", "a"))

        assert row.status == S.FAILED
        assert row.last_error.code == "platform_error"

    def test_missing_row(self):
        pool, _ = _mock_pool(fetchone=None)
        assert asyncio.run(PostgresStatusStore(pool).get_freelancer_platform("fl-1", "a")) is None

    def test_status_update_for_unknown_freelancer(self):
        pool, _ = _mock_pool(rowcount=0)
        with pytest.raises(FreelancerNotFoundError):
            asyncio.run(PostgresStatusStore(pool).upsert_freelancer_status("ghost", FreelancerStatus.ERROR))

    def test_database_error_wrapped(self):
        pool, _ = _mock_pool(error=psycopg.OperationalError("connection lost"))

        with pytest.raises(RepositoryError) as exc_info:
            asyncio.run(PostgresStatusStore(pool).list_by_freelancer("fl-1"))

        assert exc_info.value.operation == "list_by_freelancer"
        assert "connection lost" in exc_info.value.message


# ============================================================================
# CONNECTION MODULE
# ============================================================================

class TestDatabaseModule:
    """Pool helpers are the only way to reach a connection."""

    def test_connection_string_prefers_database_url(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db:5432/onboarding")
        assert database.get_connection_string() == "postgresql://u:p@db:5432/onboarding"

    def test_connection_string_from_components(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("POSTGRES_HOST", "db")
        monkeypatch.setenv("POSTGRES_USER", "svc")
        monkeypatch.setenv("POSTGRES_PASSWORD", "secret")
        conninfo = database.get_connection_string()
        assert conninfo.startswith("postgresql://svc:secret@db:")
        assert "secret" not in database._safe_conninfo(conninfo)

    def test_no_standalone_connection_helper(self):
        assert not hasattr(database, "get_connection")
        for name in ("init_pool", "get_pool", "close_pool", "bootstrap_schema"):
            assert callable(getattr(database, name))


# ============================================================================
# NOTIFIERS
# ============================================================================

class _BrokenNotifier(Notifier):
    async def _deliver(self, event):
        raise ConnectionError("broker down")


class TestNotifiers:
    """Fire-and-forget delivery."""

    def _event(self, **kwargs):
        defaults = {
            "freelancer_id": "fl-1",
            "platform_id": "a",
            "old_status": S.PENDING,
            "new_status": S.PROVISIONING,
        }
        defaults.update(kwargs)
        return PlatformStatusChanged(**defaults)

    def test_recording_notifier_status_path(self):
        notifier = RecordingNotifier()

        async def run_test():
            await notifier.emit(self._event(old_status=None, new_status=S.PENDING))
            await notifier.emit(self._event())
            await notifier.emit(self._event(old_status=S.PROVISIONING, new_status=S.ACTIVE))
            await notifier.emit(FreelancerStatusChanged(
                freelancer_id="fl-1", old_status=FreelancerStatus.PENDING, new_status=FreelancerStatus.ACTIVE,
            ))

        asyncio.run(run_test())

        assert notifier.status_path("fl-1", "a") == ["pending", "provisioning", "active"]
        assert len(notifier.freelancer_events("fl-1")) == 1
        assert notifier.freelancer_events("fl-1")[0].changed is True

    def test_delivery_failure_is_swallowed(self):
        assert asyncio.run(_BrokenNotifier().emit(self._event())) is False

    def test_logging_notifier(self, caplog):
        with caplog.at_level("INFO", logger="services.notifier"):
            delivered = asyncio.run(LoggingNotifier().emit(self._event()))

        assert delivered is True
        assert "fl-1/a pending -> provisioning" in caplog.text
