# ============================================================================
# ONBOARDING ORCHESTRATOR TESTS
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Tests - Fan-out onboarding, retry and deactivation
# PURPOSE: Verify orchestrator outcomes against scripted platform modules
# CREATED: 16 OCT 2026
# ============================================================================
"""
Onboarding Orchestrator Tests

Covers:
1. Mixed success / permanent failure -> freelancer ACTIVE
2. All platforms fail permanently -> freelancer ERROR
3. Transient failure then caller retry -> ACTIVE after two attempts
4. Disabled platform -> FAILED without any remote call
5. Result enumerates every distinct requested platform in order
6. Attempt budget, timeouts, interrupted rows
7. Batch cancellation stops new dispatches only
8. retry / deactivate / manual inactive
9. Unexpected module exceptions fail the row, not the batch

Uses asyncio.run + in-memory backends and FakePlatformModule.

Run with:
    pytest tests/test_orchestrator.py -v
"""

import asyncio
import pytest

from core.config import OrchestratorDefaults
from core.contracts import (
    FailureKind,
    FreelancerPlatformStatus,
    FreelancerStatus,
    OutcomeKind,
)
from core.errors import (
    FreelancerNotFoundError,
    PlatformError,
)
from core.models import FreelancerPlatform

from tests.fakes import FakePlatformModule, Harness, ORG, make_config, make_freelancer

S = FreelancerPlatformStatus


def _permanent(pid):
    return PlatformError.permanent(pid, "422 Unprocessable: email rejected", status_code=422)


def _transient(pid):
    return PlatformError.transient(pid, "503 Service Unavailable", status_code=503)


# ============================================================================
# REQUIRED SCENARIOS
# ============================================================================

class TestScenarios:
    """End-to-end onboarding outcomes."""

    def test_one_success_one_permanent_failure(self):
        async def run_test():
            h = Harness({
                "x": FakePlatformModule("x"),
                "y": FakePlatformModule("y", outcomes=[_permanent("y")] * 5),
            })
            result = await h.orchestrator.onboard("fl-1", ["x", "y"])

            assert (await h.row("x")).status == S.ACTIVE
            row_y = await h.row("y")
            assert row_y.status == S.FAILED
            assert row_y.last_error.kind == FailureKind.PERMANENT
            assert result.freelancer_status == FreelancerStatus.ACTIVE
            assert (await h.freelancer()).status == FreelancerStatus.ACTIVE
            assert result.active_count == 1
            assert result.failed_count == 1

        asyncio.run(run_test())

    def test_all_permanent_failures_give_error(self):
        async def run_test():
            h = Harness({
                pid: FakePlatformModule(pid, outcomes=[_permanent(pid)])
                for pid in ("x", "y", "z")
            })
            result = await h.orchestrator.onboard("fl-1", ["x", "y", "z"])

            for pid in ("x", "y", "z"):
                assert (await h.row(pid)).status == S.FAILED
            assert result.freelancer_status == FreelancerStatus.ERROR
            assert all(o.outcome == OutcomeKind.FAILED for o in result.outcomes)
            assert not any(o.retry_eligible for o in result.outcomes)

        asyncio.run(run_test())

    def test_transient_then_retry_succeeds(self):
        async def run_test():
            module = FakePlatformModule("x", outcomes=[_transient("x"), "ok"])
            h = Harness({"x": module})

            first = await h.orchestrator.onboard("fl-1", ["x"])
            outcome = first.outcome_for("x")
            assert outcome.status == S.PENDING
            assert outcome.retry_eligible is True
            assert first.freelancer_status == FreelancerStatus.PENDING

            retried = await h.orchestrator.retry("fl-1", "x")
            assert retried.success is True
            assert retried.freelancer_status == FreelancerStatus.ACTIVE

            row = await h.row("x")
            assert row.status == S.ACTIVE
            assert row.attempt_count == 2
            assert row.last_error is None
            assert h.notifier.status_path("fl-1", "x") == [
                "pending", "provisioning", "pending", "provisioning", "active",
            ]
            assert module.create_count == 2

        asyncio.run(run_test())

    def test_disabled_platform_fails_without_remote_call(self):
        async def run_test():
            module = FakePlatformModule("x")
            h = Harness({"x": module}, configs=[make_config("x", enabled=False)])

            result = await h.orchestrator.onboard("fl-1", ["x"])

            row = await h.row("x")
            assert row.status == S.FAILED
            assert row.last_error.code == "registry_disabled"
            assert row.attempt_count == 0
            assert module.create_count == 0
            assert module.init_count == 0
            assert h.notifier.status_path("fl-1", "x") == ["pending", "failed"]
            assert result.outcome_for("x").error.code == "registry_disabled"

        asyncio.run(run_test())


# ============================================================================
# RESULT SHAPE
# ============================================================================

class TestOnboardingResult:
    """Every requested platform is enumerated."""

    def test_outcomes_follow_request_order_and_dedupe(self):
        async def run_test():
            h = Harness({pid: FakePlatformModule(pid) for pid in ("a", "b", "c")})
            result = await h.orchestrator.onboard("fl-1", ["c", "a", "c", "b", "a"])

            assert [o.platform_id for o in result.outcomes] == ["c", "a", "b"]
            assert result.completed_at is not None
            assert result.cancelled is False

        asyncio.run(run_test())

    def test_unknown_platform_reported_not_raised(self):
        async def run_test():
            h = Harness({"a": FakePlatformModule("a")})
            result = await h.orchestrator.onboard("fl-1", ["a", "nope"])

            assert len(result.outcomes) == 2
            assert result.outcome_for("a").outcome == OutcomeKind.ACTIVE
            nope = result.outcome_for("nope")
            assert nope.outcome == OutcomeKind.FAILED
            assert nope.error.code == "registry_unknown_platform"

        asyncio.run(run_test())

    def test_incomplete_config_fails_row(self):
        async def run_test():
            module = FakePlatformModule("a")
            h = Harness({"a": module}, configs=[make_config("a", values={"apiKey": ""})])
            result = await h.orchestrator.onboard("fl-1", ["a"])

            assert result.outcome_for("a").error.code == "registry_incomplete_config"
            assert module.create_count == 0

        asyncio.run(run_test())

    def test_init_failure_fails_row(self):
        async def run_test():
            module = FakePlatformModule("a", init_error=ValueError("bad region"))
            h = Harness({"a": module})
            result = await h.orchestrator.onboard("fl-1", ["a"])

            assert result.outcome_for("a").error.code == "registry_init_failed"
            assert "bad region" in result.outcome_for("a").error.message

        asyncio.run(run_test())

    def test_unexpected_module_exception_fails_row(self):
        async def run_test():
            h = Harness({
                "a": FakePlatformModule("a", outcomes=[KeyError("id")]),
                "b": FakePlatformModule("b"),
            })
            result = await h.orchestrator.onboard("fl-1", ["a", "b"])

            row_a = await h.row("a")
            assert row_a.status == S.FAILED
            assert row_a.last_error.code == "platform_error"
            assert row_a.last_error.kind == FailureKind.PERMANENT
            assert "Unexpected module error" in row_a.last_error.message
            assert result.outcome_for("a").outcome == OutcomeKind.FAILED
            assert (await h.row("b")).status == S.ACTIVE
            assert result.freelancer_status == FreelancerStatus.ACTIVE
            assert (await h.freelancer()).status == FreelancerStatus.ACTIVE
            assert h.orchestrator.leases.held_count == 0

        asyncio.run(run_test())

    def test_outcome_retry_flag_matches_row(self):
        async def run_test():
            h = Harness(
                {
                    "a": FakePlatformModule("a"),
                    "b": FakePlatformModule("b", outcomes=[_permanent("b")]),
                    "c": FakePlatformModule("c", outcomes=[_transient("c")]),
                },
                defaults=OrchestratorDefaults(max_attempts=3, call_timeout_seconds=2.0),
            )
            result = await h.orchestrator.onboard("fl-1", ["a", "b", "c"])

            for pid in ("a", "b", "c"):
                row = await h.row(pid)
                assert result.outcome_for(pid).retry_eligible is row.retry_eligible
            assert result.outcome_for("a").retry_eligible is False
            assert result.outcome_for("b").retry_eligible is False
            assert result.outcome_for("c").retry_eligible is True

        asyncio.run(run_test())

    def test_unknown_freelancer_raises(self):
        async def run_test():
            h = Harness({"a": FakePlatformModule("a")})
            with pytest.raises(FreelancerNotFoundError):
                await h.orchestrator.onboard("ghost", ["a"])
            assert h.orchestrator.leases.held_count == 0

        asyncio.run(run_test())

    def test_empty_platform_list(self):
        async def run_test():
            h = Harness({})
            result = await h.orchestrator.onboard("fl-1", [])

            assert result.outcomes == []
            assert result.freelancer_status == FreelancerStatus.PENDING

        asyncio.run(run_test())

    def test_missing_credential_field_is_permanent(self):
        async def run_test():
            module = FakePlatformModule("a")
            module.descriptor = module.descriptor.model_copy(
                update={"required_credential_fields": frozenset({"email", "password"})}
            )
            h = Harness({"a": module})
            result = await h.orchestrator.onboard("fl-1", ["a"])

            outcome = result.outcome_for("a")
            assert outcome.status == S.FAILED
            assert outcome.error.kind == FailureKind.PERMANENT
            assert "password" in outcome.error.message

        asyncio.run(run_test())

    def test_credentials_include_platform_overrides(self):
        async def run_test():
            module = FakePlatformModule("a")
            freelancer = make_freelancer(metadata={"a": {"username": "ada_l", "role": "editor"}})
            h = Harness({"a": module}, freelancers=[freelancer])
            await h.orchestrator.onboard("fl-1", ["a"])

            credentials = module.create_calls[0]
            assert credentials.username == "ada_l"
            assert credentials.role == "editor"
            assert credentials.email == "fl-1@example.com"

        asyncio.run(run_test())


# ============================================================================
# EXISTING ROWS
# ============================================================================

class TestExistingRows:
    """Rows that already exist when onboarding is requested again."""

    def test_active_row_not_called_again(self):
        async def run_test():
            module = FakePlatformModule("a")
            h = Harness({"a": module})
            await h.orchestrator.onboard("fl-1", ["a"])
            result = await h.orchestrator.onboard("fl-1", ["a"])

            assert module.create_count == 1
            assert result.outcome_for("a").outcome == OutcomeKind.ACTIVE

        asyncio.run(run_test())

    def test_failed_row_requires_explicit_retry(self):
        async def run_test():
            module = FakePlatformModule("a", outcomes=[_permanent("a")])
            h = Harness({"a": module})
            await h.orchestrator.onboard("fl-1", ["a"])
            result = await h.orchestrator.onboard("fl-1", ["a"])

            assert module.create_count == 1
            outcome = result.outcome_for("a")
            assert outcome.status == S.FAILED
            assert outcome.error.code == "platform_error"

        asyncio.run(run_test())

    def test_pending_row_redispatched(self):
        async def run_test():
            module = FakePlatformModule("a", outcomes=[_transient("a")])
            h = Harness({"a": module})
            await h.orchestrator.onboard("fl-1", ["a"])
            result = await h.orchestrator.onboard("fl-1", ["a"])

            assert module.create_count == 2
            assert result.outcome_for("a").status == S.ACTIVE
            assert result.outcome_for("a").attempt_count == 2

        asyncio.run(run_test())

    def test_interrupted_provisioning_row_recovered(self):
        async def run_test():
            module = FakePlatformModule("a")
            h = Harness({"a": module})
            await h.store.upsert_freelancer_platform(FreelancerPlatform(
                freelancer_id="fl-1",
                platform_id="a",
                organization_id=ORG,
                status=S.PROVISIONING,
                attempt_count=1,
            ))

            result = await h.orchestrator.onboard("fl-1", ["a"])

            assert result.outcome_for("a").status == S.ACTIVE
            assert result.outcome_for("a").attempt_count == 2
            assert h.notifier.status_path("fl-1", "a") == [
                "provisioning", "pending", "provisioning", "active",
            ]

        asyncio.run(run_test())

    def test_deactivated_row_reports_invalid_transition(self):
        async def run_test():
            module = FakePlatformModule("a")
            h = Harness({"a": module})
            await h.store.upsert_freelancer_platform(FreelancerPlatform(
                freelancer_id="fl-1",
                platform_id="a",
                organization_id=ORG,
                status=S.DEACTIVATED,
                external_user_id="u-1",
                attempt_count=1,
            ))

            result = await h.orchestrator.onboard("fl-1", ["a"])

            assert module.create_count == 0
            assert result.outcome_for("a").error.code == "invalid_transition"
            assert result.freelancer_status == FreelancerStatus.INACTIVE

        asyncio.run(run_test())


# ============================================================================
# ATTEMPTS AND TIMEOUTS
# ============================================================================

class TestAttemptsAndTimeouts:
    """Attempt budget and per-call timeout."""

    def test_exhausted_attempts_fail_row(self):
        async def run_test():
            module = FakePlatformModule("a", outcomes=[_transient("a")] * 3)
            h = Harness({"a": module}, defaults=OrchestratorDefaults(max_attempts=3))

            await h.orchestrator.onboard("fl-1", ["a"])
            await h.orchestrator.retry("fl-1", "a")
            result = await h.orchestrator.retry("fl-1", "a")

            row = await h.row("a")
            assert row.status == S.FAILED
            assert row.attempt_count == 3
            assert row.last_error.kind == FailureKind.TRANSIENT
            assert result.success is False
            assert result.outcome.retry_eligible is False
            assert result.freelancer_status == FreelancerStatus.ERROR

        asyncio.run(run_test())

    def test_retry_after_exhaustion_gets_one_more_attempt(self):
        async def run_test():
            module = FakePlatformModule("a", outcomes=[_transient("a")] * 4)
            h = Harness({"a": module}, defaults=OrchestratorDefaults(max_attempts=2))

            await h.orchestrator.onboard("fl-1", ["a"])
            await h.orchestrator.retry("fl-1", "a")
            assert (await h.row("a")).status == S.FAILED

            result = await h.orchestrator.retry("fl-1", "a")

            assert result.outcome.status == S.FAILED
            assert result.outcome.attempt_count == 3
            assert module.create_count == 3

        asyncio.run(run_test())

    def test_timeout_is_transient(self):
        async def run_test():
            module = FakePlatformModule("a", gate=asyncio.Event())
            h = Harness({"a": module}, defaults=OrchestratorDefaults(call_timeout_seconds=0.05))

            result = await h.orchestrator.onboard("fl-1", ["a"])

            outcome = result.outcome_for("a")
            assert outcome.status == S.PENDING
            assert outcome.retry_eligible is True
            assert outcome.error.kind == FailureKind.TRANSIENT
            assert "timed out" in outcome.error.message

        asyncio.run(run_test())


# ============================================================================
# CANCELLATION
# ============================================================================

class TestCancellation:
    """cancel() stops new dispatches and never interrupts calls in flight."""

    def test_cancel_before_dispatch_leaves_rows_pending(self):
        async def run_test():
            gate = asyncio.Event()
            first = FakePlatformModule("a", gate=gate)
            second = FakePlatformModule("b")
            h = Harness(
                {"a": first, "b": second},
                defaults=OrchestratorDefaults(max_concurrency_per_org=1, call_timeout_seconds=2.0),
            )

            batch = await h.orchestrator.start_onboarding("fl-1", ["a", "b"])
            while first.in_flight == 0:
                await asyncio.sleep(0)

            assert batch.cancel() is True
            gate.set()
            result = await batch.wait()

            assert result.cancelled is True
            assert result.outcome_for("a").status == S.ACTIVE
            cancelled = result.outcome_for("b")
            assert cancelled.status == S.PENDING
            assert cancelled.outcome == OutcomeKind.FAILED
            assert cancelled.retry_eligible is True
            assert cancelled.error.code == "cancelled"
            assert second.create_count == 0
            assert h.orchestrator.leases.held_count == 0

        asyncio.run(run_test())

    def test_cancel_after_only_dispatch_failed_gives_error(self):
        async def run_test():
            gate = asyncio.Event()
            first = FakePlatformModule("a", outcomes=[_permanent("a")], gate=gate)
            second = FakePlatformModule("b")
            h = Harness(
                {"a": first, "b": second},
                defaults=OrchestratorDefaults(max_concurrency_per_org=1, call_timeout_seconds=2.0),
            )

            batch = await h.orchestrator.start_onboarding("fl-1", ["a", "b"])
            while first.in_flight == 0:
                await asyncio.sleep(0)

            assert batch.cancel() is True
            gate.set()
            result = await batch.wait()

            row_a = await h.row("a")
            row_b = await h.row("b")
            assert row_a.status == S.FAILED
            assert row_a.attempt_count == 1
            assert row_b.status == S.PENDING
            assert row_b.attempt_count == 0
            assert second.create_count == 0
            assert result.freelancer_status == FreelancerStatus.ERROR
            assert (await h.freelancer()).status == FreelancerStatus.ERROR

        asyncio.run(run_test())

    def test_cancel_after_completion_returns_false(self):
        async def run_test():
            h = Harness({"a": FakePlatformModule("a")})
            batch = await h.orchestrator.start_onboarding("fl-1", ["a"])
            await batch.wait()

            assert batch.cancel() is False
            assert h.orchestrator.get_batch(batch.batch_id) is None

        asyncio.run(run_test())


# ============================================================================
# RETRY
# ============================================================================

class TestRetry:
    """Explicit retry of a single row."""

    def test_retry_active_row_is_invalid(self):
        async def run_test():
            module = FakePlatformModule("a")
            h = Harness({"a": module})
            await h.orchestrator.onboard("fl-1", ["a"])

            result = await h.orchestrator.retry("fl-1", "a")

            assert result.success is False
            assert result.error.code == "invalid_transition"
            assert module.create_count == 1

        asyncio.run(run_test())

    def test_retry_unknown_row_is_invalid(self):
        async def run_test():
            h = Harness({"a": FakePlatformModule("a")})
            result = await h.orchestrator.retry("fl-1", "a")

            assert result.success is False
            assert result.error.code == "invalid_transition"

        asyncio.run(run_test())

    def test_retry_permanent_failure_succeeds(self):
        async def run_test():
            module = FakePlatformModule("a", outcomes=[_permanent("a"), "ok"])
            h = Harness({"a": module})
            await h.orchestrator.onboard("fl-1", ["a"])

            result = await h.orchestrator.retry("fl-1", "a")

            assert result.success is True
            assert result.outcome.external_user_id == "a-fl-1"
            assert h.notifier.status_path("fl-1", "a") == [
                "pending", "provisioning", "failed", "pending", "provisioning", "active",
            ]

        asyncio.run(run_test())

    def test_retry_unknown_freelancer_raises(self):
        async def run_test():
            h = Harness({"a": FakePlatformModule("a")})
            with pytest.raises(FreelancerNotFoundError):
                await h.orchestrator.retry("ghost", "a")

        asyncio.run(run_test())


# ============================================================================
# DEACTIVATION
# ============================================================================

class TestDeactivate:
    """Administrative deactivation of active rows."""

    def test_deactivate_removes_remote_account(self):
        async def run_test():
            module = FakePlatformModule("a")
            h = Harness({"a": module})
            await h.orchestrator.onboard("fl-1", ["a"])

            result = await h.orchestrator.deactivate("fl-1", "a")

            assert result.success is True
            row = await h.row("a")
            assert row.status == S.DEACTIVATED
            assert row.platform_metadata["remote_removed"] is True
            assert module.delete_calls == ["a-fl-1"]
            assert result.freelancer_status == FreelancerStatus.INACTIVE

        asyncio.run(run_test())

    def test_deactivate_without_delete_support_is_local(self):
        async def run_test():
            module = FakePlatformModule("a", supports_delete=False)
            h = Harness({"a": module})
            await h.orchestrator.onboard("fl-1", ["a"])

            result = await h.orchestrator.deactivate("fl-1", "a")

            assert result.success is True
            row = await h.row("a")
            assert row.status == S.DEACTIVATED
            assert row.platform_metadata["remote_removed"] is False
            assert "does not support delete_user" in row.platform_metadata["deactivation_note"]

        asyncio.run(run_test())

    def test_deactivate_platform_error_keeps_row_active(self):
        async def run_test():
            module = FakePlatformModule("a", delete_outcomes=[_transient("a")])
            h = Harness({"a": module})
            await h.orchestrator.onboard("fl-1", ["a"])

            result = await h.orchestrator.deactivate("fl-1", "a")

            assert result.success is False
            assert result.error.code == "platform_error"
            assert (await h.row("a")).status == S.ACTIVE
            assert (await h.freelancer()).status == FreelancerStatus.ACTIVE

        asyncio.run(run_test())

    def test_deactivate_non_active_row_is_invalid(self):
        async def run_test():
            module = FakePlatformModule("a", outcomes=[_permanent("a")])
            h = Harness({"a": module})
            await h.orchestrator.onboard("fl-1", ["a"])

            result = await h.orchestrator.deactivate("fl-1", "a")

            assert result.success is False
            assert result.error.code == "invalid_transition"
            assert module.delete_calls == []

        asyncio.run(run_test())

    def test_one_of_two_deactivated_keeps_freelancer_active(self):
        async def run_test():
            h = Harness({pid: FakePlatformModule(pid) for pid in ("a", "b")})
            await h.orchestrator.onboard("fl-1", ["a", "b"])

            result = await h.orchestrator.deactivate("fl-1", "a")

            assert result.freelancer_status == FreelancerStatus.ACTIVE

        asyncio.run(run_test())


# ============================================================================
# FREELANCER STATUS
# ============================================================================

class TestFreelancerStatus:
    """Manual inactive transition and status events."""

    def test_mark_inactive(self):
        async def run_test():
            h = Harness({"a": FakePlatformModule("a")})
            await h.orchestrator.onboard("fl-1", ["a"])

            status = await h.orchestrator.mark_freelancer_inactive("fl-1")

            assert status == FreelancerStatus.INACTIVE
            assert (await h.freelancer()).status == FreelancerStatus.INACTIVE
            assert (await h.row("a")).status == S.ACTIVE
            last = h.notifier.freelancer_events("fl-1")[-1]
            assert last.old_status == FreelancerStatus.ACTIVE
            assert last.new_status == FreelancerStatus.INACTIVE

        asyncio.run(run_test())

    def test_status_event_emitted_per_recomputation(self):
        async def run_test():
            h = Harness({"a": FakePlatformModule("a")})
            result = await h.orchestrator.onboard("fl-1", ["a"])

            events = h.notifier.freelancer_events("fl-1")
            assert len(events) == 1
            assert events[0].old_status == FreelancerStatus.PENDING
            assert events[0].new_status == FreelancerStatus.ACTIVE
            assert events[0].batch_id == result.batch_id

        asyncio.run(run_test())

    def test_platform_events_carry_batch_id(self):
        async def run_test():
            h = Harness({"a": FakePlatformModule("a")})
            result = await h.orchestrator.onboard("fl-1", ["a"])

            events = h.notifier.platform_events("fl-1", "a")
            assert events[0].old_status is None
            assert {e.batch_id for e in events} == {result.batch_id}
            assert len({e.event_id for e in events}) == len(events)

        asyncio.run(run_test())


# ============================================================================
# CONNECTION TESTS AND STATS
# ============================================================================

class TestConnectionsAndStats:
    """Credential checks and counters."""

    def test_connection_success(self):
        async def run_test():
            module = FakePlatformModule("a")
            h = Harness({"a": module})
            result = await h.orchestrator.test_connection(ORG, "a")

            assert result.success is True
            assert result.info.connected is True
            assert result.info.latency_ms is not None
            assert module.test_calls == 1

        asyncio.run(run_test())

    def test_connection_failure_reported(self):
        async def run_test():
            module = FakePlatformModule(
                "a",
                connection_outcomes=[PlatformError.permanent("a", "401 Unauthorized", 401)],
            )
            h = Harness({"a": module})
            result = await h.orchestrator.test_connection(ORG, "a")

            assert result.success is False
            assert result.error.kind == FailureKind.PERMANENT

        asyncio.run(run_test())

    def test_all_connections_cover_configured_platforms(self):
        async def run_test():
            h = Harness(
                {pid: FakePlatformModule(pid) for pid in ("a", "b")},
                configs=[make_config("a"), make_config("b", enabled=False)],
            )
            results = await h.orchestrator.test_all_connections(ORG)

            by_platform = {r.platform_id: r for r in results}
            assert by_platform["a"].success is True
            assert by_platform["b"].error.code == "registry_disabled"

        asyncio.run(run_test())

    def test_stats_counters(self):
        async def run_test():
            h = Harness({
                "a": FakePlatformModule("a"),
                "b": FakePlatformModule("b", outcomes=[_permanent("b")]),
            })
            await h.orchestrator.onboard("fl-1", ["a", "b"])

            stats = h.orchestrator.stats
            assert stats["batches_started"] == 1
            assert stats["dispatches"] == 2
            assert stats["successes"] == 1
            assert stats["failures"] == 1
            assert stats["in_flight"] == 0
            assert stats["active_batches"] == 0
            assert stats["leases_held"] == 0

        asyncio.run(run_test())
