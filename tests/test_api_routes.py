# ============================================================================
# API ROUTES TESTS
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Tests - HTTP endpoint tests
# PURPOSE: Verify routes, status codes and service wiring
# CREATED: 18 OCT 2026
# ============================================================================
"""
API Routes Tests

Tests the onboarding HTTP endpoints (api/routes.py) against a real
orchestrator wired to in-memory backends and fake platform modules, and
the backend selection in main.build_services.

Uses FastAPI TestClient; background batches run on the client's portal
loop, so TestClient is always used as a context manager.

Run with:
    pytest tests/test_api_routes.py -v
"""

import time
import pytest

from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.config import (
    BackendDefaults,
    ConfigSource,
    Defaults,
    NotifierBackend,
    OrchestratorDefaults,
    StoreBackend,
)
from core.errors import PlatformError
from repositories import FileConfigProvider, InMemoryConfigProvider, InMemoryStatusStore
from services import LoggingNotifier

from api.routes import router, set_services, status_for_error
from core.errors import ErrorInfo

from tests.fakes import FakePlatformModule, Harness, ORG, make_config, make_freelancer


# ============================================================================
# FIXTURES
# ============================================================================

def _make_test_app(harness):
    """Create a test FastAPI app with onboarding routes and a harness orchestrator."""
    app = FastAPI()
    app.include_router(router, prefix="/api/v1")
    set_services(orchestrator=harness.orchestrator, registry=harness.registry)
    return app


def _make_harness(**kwargs):
    modules = kwargs.pop("modules", None) or {
        "a": FakePlatformModule("a"),
        "b": FakePlatformModule("b"),
    }
    return Harness(modules, **kwargs)


@pytest.fixture(autouse=True)
def _reset_services():
    yield
    set_services(None, None)


# ============================================================================
# ERROR MAPPING
# ============================================================================

class TestStatusForError:
    @pytest.mark.parametrize("code,status", [
        ("freelancer_not_found", 404),
        ("registry_unknown_platform", 404),
        ("concurrent_operation", 409),
        ("invalid_transition", 409),
        ("registry_disabled", 422),
        ("registry_incomplete_config", 422),
        ("platform_error", 200),
    ])
    def test_mapping(self, code, status):
        assert status_for_error(ErrorInfo(code=code, message="x")) == status

    def test_no_error(self):
        assert status_for_error(None) == 200


# ============================================================================
# SERVICE WIRING
# ============================================================================

class TestUninitialized:
    def test_routes_fail_before_startup(self):
        app = FastAPI()
        app.include_router(router, prefix="/api/v1")
        set_services(None, None)

        with TestClient(app) as client:
            response = client.get("/api/v1/platforms")

        assert response.status_code == 500


# ============================================================================
# ONBOARDING
# ============================================================================

class TestOnboardRoute:
    """POST /freelancers/{id}/onboard"""

    def test_onboard_waits_for_result(self):
        h = _make_harness()

        with TestClient(_make_test_app(h)) as client:
            response = client.post("/api/v1/freelancers/fl-1/onboard", json={"platform_ids": ["a", "b"]})

        assert response.status_code == 200
        body = response.json()
        assert body["freelancer_status"] == "active"
        assert body["active_count"] == 2
        assert [o["platform_id"] for o in body["outcomes"]] == ["a", "b"]

    def test_platform_failure_is_not_http_error(self):
        h = _make_harness(modules={
            "a": FakePlatformModule("a"),
            "b": FakePlatformModule("b", outcomes=[PlatformError.permanent("b", "HTTP 422", 422)]),
        })

        with TestClient(_make_test_app(h)) as client:
            response = client.post("/api/v1/freelancers/fl-1/onboard", json={"platform_ids": ["a", "b"]})

        assert response.status_code == 200
        outcomes = {o["platform_id"]: o for o in response.json()["outcomes"]}
        assert outcomes["a"]["outcome"] == "active"
        assert outcomes["b"]["outcome"] == "failed"
        assert outcomes["b"]["error"]["code"] == "platform_error"

    def test_unknown_freelancer(self):
        h = _make_harness()

        with TestClient(_make_test_app(h)) as client:
            response = client.post("/api/v1/freelancers/ghost/onboard", json={"platform_ids": ["a"]})

        assert response.status_code == 404

    def test_empty_platform_list_rejected(self):
        h = _make_harness()

        with TestClient(_make_test_app(h)) as client:
            response = client.post("/api/v1/freelancers/fl-1/onboard", json={"platform_ids": []})

        assert response.status_code == 422

    def test_background_batch_and_cancel(self):
        h = _make_harness(
            modules={"a": FakePlatformModule("a", delay=0.5), "b": FakePlatformModule("b")},
            defaults=OrchestratorDefaults(max_concurrency_per_org=1, call_timeout_seconds=2.0),
        )

        with TestClient(_make_test_app(h)) as client:
            accepted = client.post(
                "/api/v1/freelancers/fl-1/onboard?wait=false", json={"platform_ids": ["a", "b"]},
            )
            assert accepted.status_code == 202
            batch_id = accepted.json()["batch_id"]
            assert batch_id.startswith("batch-")

            cancelled = client.post(f"/api/v1/batches/{batch_id}/cancel")
            assert cancelled.status_code == 200
            assert cancelled.json() == {"batch_id": batch_id, "cancelled": True}

            time.sleep(1.0)
            platforms = client.get("/api/v1/freelancers/fl-1/platforms").json()

        rows = {row["platform_id"]: row for row in platforms["platforms"]}
        assert rows["a"]["status"] == "active"
        assert rows["b"]["status"] == "pending"
        assert h.modules["b"].create_count == 0

    def test_cancel_unknown_batch(self):
        h = _make_harness()

        with TestClient(_make_test_app(h)) as client:
            response = client.post("/api/v1/batches/batch-nope/cancel")

        assert response.status_code == 404

    def test_bulk_reports_per_freelancer(self):
        h = _make_harness(freelancers=[make_freelancer("fl-1"), make_freelancer("fl-2")])

        with TestClient(_make_test_app(h)) as client:
            response = client.post(
                "/api/v1/freelancers/onboard-bulk",
                json={"freelancer_ids": ["fl-1", "fl-2", "ghost"], "platform_ids": ["a"]},
            )

        assert response.status_code == 200
        items = {item["freelancer_id"]: item for item in response.json()}
        assert items["fl-1"]["result"]["active_count"] == 1
        assert items["fl-2"]["result"]["active_count"] == 1
        assert items["ghost"]["result"] is None
        assert items["ghost"]["error"]["code"] == "freelancer_not_found"


# ============================================================================
# RETRY + DEACTIVATE
# ============================================================================

class TestRowOperations:
    """Retry and deactivate endpoints."""

    def test_retry_failed_row(self):
        h = _make_harness(modules={
            "a": FakePlatformModule("a", outcomes=[PlatformError.permanent("a", "HTTP 400", 400), "ok"]),
        })

        with TestClient(_make_test_app(h)) as client:
            client.post("/api/v1/freelancers/fl-1/onboard", json={"platform_ids": ["a"]})
            response = client.post("/api/v1/freelancers/fl-1/platforms/a/retry")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["outcome"]["status"] == "active"
        assert body["freelancer_status"] == "active"

    def test_retry_active_row_conflicts(self):
        h = _make_harness()

        with TestClient(_make_test_app(h)) as client:
            client.post("/api/v1/freelancers/fl-1/onboard", json={"platform_ids": ["a"]})
            response = client.post("/api/v1/freelancers/fl-1/platforms/a/retry")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "invalid_transition"

    def test_retry_unknown_freelancer(self):
        h = _make_harness()

        with TestClient(_make_test_app(h)) as client:
            response = client.post("/api/v1/freelancers/ghost/platforms/a/retry")

        assert response.status_code == 404

    def test_deactivate_active_row(self):
        h = _make_harness()

        with TestClient(_make_test_app(h)) as client:
            client.post("/api/v1/freelancers/fl-1/onboard", json={"platform_ids": ["a"]})
            response = client.post("/api/v1/freelancers/fl-1/platforms/a/deactivate")
            platforms = client.get("/api/v1/freelancers/fl-1/platforms").json()

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["freelancer_status"] == "inactive"
        assert platforms["platforms"][0]["status"] == "deactivated"
        assert platforms["platforms"][0]["platform_metadata"]["remote_removed"] is True
        assert h.modules["a"].delete_calls == ["a-fl-1"]

    def test_deactivate_pending_row_conflicts(self):
        h = _make_harness()

        with TestClient(_make_test_app(h)) as client:
            response = client.post("/api/v1/freelancers/fl-1/platforms/a/deactivate")

        assert response.status_code == 409


# ============================================================================
# FREELANCERS
# ============================================================================

class TestFreelancerRoutes:
    def test_platforms_view(self):
        h = _make_harness()

        with TestClient(_make_test_app(h)) as client:
            client.post("/api/v1/freelancers/fl-1/onboard", json={"platform_ids": ["b", "a"]})
            response = client.get("/api/v1/freelancers/fl-1/platforms")

        assert response.status_code == 200
        body = response.json()
        assert body["organization_id"] == ORG
        assert body["status"] == "active"
        assert {row["platform_id"] for row in body["platforms"]} == {"a", "b"}
        assert all(row["retry_eligible"] is False for row in body["platforms"])

    def test_platforms_view_unknown(self):
        h = _make_harness()

        with TestClient(_make_test_app(h)) as client:
            response = client.get("/api/v1/freelancers/ghost/platforms")

        assert response.status_code == 404

    def test_mark_inactive(self):
        h = _make_harness()

        with TestClient(_make_test_app(h)) as client:
            response = client.post("/api/v1/freelancers/fl-1/deactivate")

        assert response.status_code == 200
        assert response.json() == {"freelancer_id": "fl-1", "status": "inactive"}


# ============================================================================
# PLATFORMS + STATUS
# ============================================================================

class TestPlatformRoutes:
    def test_list_platforms(self):
        h = _make_harness()

        with TestClient(_make_test_app(h)) as client:
            response = client.get("/api/v1/platforms")

        body = response.json()
        assert body["total"] == 2
        assert [p["platform_id"] for p in body["platforms"]] == ["a", "b"]

    def test_connection_ok(self):
        h = _make_harness()

        with TestClient(_make_test_app(h)) as client:
            response = client.post(f"/api/v1/organizations/{ORG}/platforms/a/test-connection")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert h.modules["a"].test_calls == 1

    def test_connection_unknown_platform(self):
        h = _make_harness()

        with TestClient(_make_test_app(h)) as client:
            response = client.post(f"/api/v1/organizations/{ORG}/platforms/nope/test-connection")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "registry_unknown_platform"

    def test_connection_disabled_platform(self):
        h = _make_harness(configs=[make_config("a", enabled=False), make_config("b")])

        with TestClient(_make_test_app(h)) as client:
            response = client.post(f"/api/v1/organizations/{ORG}/platforms/a/test-connection")

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "registry_disabled"

    def test_all_connections(self):
        h = _make_harness()

        with TestClient(_make_test_app(h)) as client:
            response = client.post(f"/api/v1/organizations/{ORG}/platforms/test-connections")

        assert response.status_code == 200
        assert [r["platform_id"] for r in response.json()] == ["a", "b"]

    def test_orchestrator_status(self):
        h = _make_harness()

        with TestClient(_make_test_app(h)) as client:
            client.post("/api/v1/freelancers/fl-1/onboard", json={"platform_ids": ["a"]})
            response = client.get("/api/v1/orchestrator/status")

        body = response.json()
        assert body["status"] == "running"
        assert body["limits"]["max_concurrency_per_org"] == 8
        assert body["metrics"]["batches_started"] == 1
        assert body["metrics"]["successes"] == 1
        assert body["metrics"]["leases_held"] == 0


# ============================================================================
# BACKEND SELECTION
# ============================================================================

def _defaults(**backends):
    return Defaults(backends=BackendDefaults(**backends))


class TestBuildServices:
    """main.build_services backend selection."""

    def test_memory_backends(self):
        from main import build_services, needs_database

        defaults = _defaults(
            store_backend=StoreBackend.MEMORY,
            config_source=ConfigSource.MEMORY,
            notifier=NotifierBackend.LOG,
        )
        services = build_services(defaults)

        assert needs_database(defaults) is False
        assert isinstance(services.store, InMemoryStatusStore)
        assert isinstance(services.provider, InMemoryConfigProvider)
        assert isinstance(services.notifier, LoggingNotifier)
        assert services.orchestrator.registry is services.registry
        assert "stripe" in services.registry.known_platforms()

    def test_file_config_source(self, tmp_path):
        from main import build_services

        path = tmp_path / "platforms.yaml"
        path.write_text("organizations: {}\n")
        services = build_services(_defaults(
            store_backend=StoreBackend.MEMORY,
            config_source=ConfigSource.FILE,
            config_file=str(path),
            notifier=NotifierBackend.LOG,
        ))

        assert isinstance(services.provider, FileConfigProvider)

    def test_file_source_requires_path(self):
        from main import build_services

        with pytest.raises(ValueError):
            build_services(_defaults(
                store_backend=StoreBackend.MEMORY,
                config_source=ConfigSource.FILE,
                notifier=NotifierBackend.LOG,
            ))

    def test_postgres_requires_pool(self):
        from main import build_services

        with pytest.raises(ValueError):
            build_services(_defaults())
