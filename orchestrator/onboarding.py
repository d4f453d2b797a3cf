# ============================================================================
# ONBOARDING ORCHESTRATOR
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Core - Concurrent per-platform onboarding
# PURPOSE: Drive onboarding, retry and deactivation across platforms
# CREATED: 14 OCT 2026
# ============================================================================
"""
Onboarding Orchestrator

Drives one freelancer's onboarding across a set of platforms:

1. Lease every requested (freelancer, platform) row, all or nothing
2. Create missing rows in PENDING, in request order
3. Resolve each platform's module through the ModuleRegistry
4. Dispatch create_user for every PENDING row concurrently, bounded by a
   per-organization semaphore and a per-call timeout
5. Apply the state machine to each completion, persist, emit an event
6. After every row settles, recompute the freelancer's status

One platform's failure never blocks or cancels another's: each row is an
independent task and the batch waits for all of them (fan-out / fan-in).

Cancelling a batch stops new dispatches only. Calls already in flight run
to completion because the remote side effect may already have happened.

Errors from modules and the registry are caught per row and recorded on
it. Only unknown freelancers, store failures and programmer errors
(NotInitializedError) propagate to the caller.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from core.config import OrchestratorDefaults
from core.contracts import FreelancerPlatformStatus, FreelancerStatus, OutcomeKind
from core.errors import (
    ConcurrentOperationError,
    ErrorInfo,
    FreelancerNotFoundError,
    InvalidTransitionError,
    NotInitializedError,
    NotSupportedError,
    OnboardingCancelledError,
    OnboardingError,
    PlatformError,
    RegistryError,
)
from core.logging import log_checkpoint, log_context
from core.models import (
    BulkOnboardingItem,
    ConnectionTestResult,
    Freelancer,
    FreelancerPlatform,
    FreelancerStatusChanged,
    OnboardingResult,
    OperationResult,
    PlatformOutcome,
    PlatformStatusChanged,
)
from orchestrator.engine.transitions import (
    apply_deactivation,
    apply_failure,
    apply_resolution_failure,
    apply_success,
    begin_dispatch,
    derive_freelancer_status,
    recover_interrupted,
    request_retry,
)
from orchestrator.leases import LeaseManager
from repositories import StatusStore
from services import ModuleRegistry, Notifier, LoggingNotifier

logger = logging.getLogger(__name__)

S = FreelancerPlatformStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def build_outcome(row: FreelancerPlatform, error: Optional[ErrorInfo] = None) -> PlatformOutcome:
    """
    Outcome of a row as reported to callers.

    ACTIVE rows are onboarded; every other status is a failed outcome.
    retry_eligible is the row's own flag.
    """
    active = row.status == S.ACTIVE
    return PlatformOutcome(
        platform_id=row.platform_id,
        outcome=OutcomeKind.ACTIVE if active else OutcomeKind.FAILED,
        status=row.status,
        external_user_id=row.external_user_id,
        error=None if active else (error or row.last_error),
        retry_eligible=row.retry_eligible,
        attempt_count=row.attempt_count,
    )


# ============================================================================
# BATCH HANDLE
# ============================================================================

class OnboardingBatch:
    """
    Handle for one running onboard() call.

    cancel() prevents rows that have not been dispatched yet from being
    dispatched; they stay PENDING and are reported as cancelled.
    """

    def __init__(self, batch_id: str, freelancer: Freelancer, platform_ids: List[str]):
        self.batch_id = batch_id
        self.freelancer_id = freelancer.id
        self.organization_id = freelancer.organization_id
        self.platform_ids = platform_ids
        self.started_at = _utcnow()
        self._cancelled = False
        self._task: Optional[asyncio.Task] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    def cancel(self) -> bool:
        """
        Stop further dispatches in this batch.

        Returns:
            False if the batch had already finished
        """
        if self.done:
            return False
        if not self._cancelled:
            logger.info(f"Batch {self.batch_id} cancelled")
        self._cancelled = True
        return True

    async def wait(self) -> OnboardingResult:
        """Wait for every row to settle. Cancelling the waiter leaves the batch running."""
        return await asyncio.shield(self._task)


# ============================================================================
# ORCHESTRATOR
# ============================================================================

class OnboardingOrchestrator:
    """
    Onboarding orchestrator.

    Collaborators are injected; nothing is read from global state at call
    time.
    """

    def __init__(
        self,
        store: StatusStore,
        registry: ModuleRegistry,
        notifier: Optional[Notifier] = None,
        defaults: Optional[OrchestratorDefaults] = None,
        leases: Optional[LeaseManager] = None,
    ):
        """
        Args:
            store: Status store for rows and freelancer status
            registry: Resolves platform ids to initialized modules
            notifier: Receives status-change events (default: log only)
            defaults: Concurrency, timeout and attempt limits
            leases: Row lease manager (default: a private one)
        """
        self.store = store
        self.registry = registry
        self.notifier = notifier or LoggingNotifier()
        self.defaults = defaults or OrchestratorDefaults()
        self.leases = leases or LeaseManager()

        self._semaphores: Dict[str, asyncio.Semaphore] = {}
        self._status_locks: Dict[str, asyncio.Lock] = {}
        self._batches: Dict[str, OnboardingBatch] = {}

        # Metrics
        self._started_at = _utcnow()
        self._batches_started = 0
        self._batches_cancelled = 0
        self._dispatches = 0
        self._successes = 0
        self._failures = 0
        self._rejections = 0
        self._in_flight = 0

    # =========================================================================
    # PUBLIC SURFACE
    # =========================================================================

    async def onboard(self, freelancer_id: str, platform_ids: Iterable[str]) -> OnboardingResult:
        """
        Onboard a freelancer onto platforms and wait for every row to settle.

        Succeeds even when every platform failed; inspect result.outcomes.

        Raises:
            FreelancerNotFoundError: unknown freelancer
            ConcurrentOperationError: a requested row already has an
                operation in flight (nothing is written)
        """
        batch = await self.start_onboarding(freelancer_id, platform_ids)
        return await batch.wait()

    async def start_onboarding(self, freelancer_id: str, platform_ids: Iterable[str]) -> OnboardingBatch:
        """
        Lease the rows and start the batch in the background.

        Raises:
            FreelancerNotFoundError, ConcurrentOperationError
        """
        freelancer = await self._get_freelancer(freelancer_id)
        requested = list(dict.fromkeys(platform_ids))
        batch_id = _new_id("batch")

        try:
            self.leases.acquire_all([(freelancer_id, pid) for pid in requested], holder=batch_id)
        except ConcurrentOperationError:
            self._rejections += 1
            raise

        batch = OnboardingBatch(batch_id, freelancer, requested)
        self._batches[batch_id] = batch
        self._batches_started += 1
        batch._task = asyncio.create_task(self._run_batch(batch, freelancer))
        return batch

    def get_batch(self, batch_id: str) -> Optional[OnboardingBatch]:
        """A batch that has not finished yet."""
        return self._batches.get(batch_id)

    async def onboard_many(
        self,
        freelancer_ids: Iterable[str],
        platform_ids: Iterable[str],
    ) -> List[BulkOnboardingItem]:
        """
        Onboard several freelancers concurrently, one batch each.

        Per-freelancer rejections (unknown id, concurrent operation) are
        reported in the item instead of aborting the run.
        """
        fids = list(dict.fromkeys(freelancer_ids))
        pids = list(dict.fromkeys(platform_ids))

        results = await asyncio.gather(
            *(self.onboard(fid, pids) for fid in fids),
            return_exceptions=True,
        )

        items = []
        for fid, result in zip(fids, results):
            if isinstance(result, OnboardingError) and not isinstance(result, NotInitializedError):
                items.append(BulkOnboardingItem(freelancer_id=fid, error=result.to_info()))
            elif isinstance(result, BaseException):
                raise result
            else:
                items.append(BulkOnboardingItem(freelancer_id=fid, result=result))
        return items

    async def retry(self, freelancer_id: str, platform_id: str) -> OperationResult:
        """
        Explicitly retry one row.

        FAILED rows go back to PENDING first; PENDING rows are dispatched
        as they are. Any other status yields InvalidTransitionError.

        Raises:
            FreelancerNotFoundError: unknown freelancer
        """
        freelancer = await self._get_freelancer(freelancer_id)
        op_id = _new_id("retry")
        key = (freelancer_id, platform_id)

        try:
            self.leases.acquire_all([key], holder=op_id)
        except ConcurrentOperationError as e:
            self._rejections += 1
            return OperationResult(success=False, error=e.to_info())

        try:
            with log_context(
                freelancer_id=freelancer_id,
                platform_id=platform_id,
                organization_id=freelancer.organization_id,
                batch_id=op_id,
            ):
                row = await self.store.get_freelancer_platform(freelancer_id, platform_id)
                if row is None:
                    error = InvalidTransitionError("none", S.PENDING.value, "platform was never requested")
                    return OperationResult(success=False, error=error.to_info())

                if row.status == S.FAILED:
                    row = await self._write(request_retry(row), row.status, op_id, {"reason": "retry"})
                elif row.status != S.PENDING:
                    error = InvalidTransitionError(row.status.value, S.PENDING.value)
                    return OperationResult(
                        success=False,
                        outcome=build_outcome(row, error.to_info()),
                        error=error.to_info(),
                    )

                outcome = await self._dispatch_row(freelancer, row, op_id, is_cancelled=lambda: False)
                status = await self._recompute_status(freelancer, op_id)
                return OperationResult(
                    success=outcome.outcome == OutcomeKind.ACTIVE,
                    outcome=outcome,
                    error=outcome.error,
                    freelancer_status=status,
                )
        finally:
            self.leases.release(key, op_id)

    async def deactivate(self, freelancer_id: str, platform_id: str) -> OperationResult:
        """
        Deactivate an ACTIVE row and remove the remote account.

        A module without delete_user still deactivates locally
        (platform_metadata.remote_removed = False). A PlatformError leaves
        the row ACTIVE and is returned.

        Raises:
            FreelancerNotFoundError: unknown freelancer
        """
        freelancer = await self._get_freelancer(freelancer_id)
        op_id = _new_id("deactivate")
        key = (freelancer_id, platform_id)

        try:
            self.leases.acquire_all([key], holder=op_id)
        except ConcurrentOperationError as e:
            self._rejections += 1
            return OperationResult(success=False, error=e.to_info())

        try:
            with log_context(
                freelancer_id=freelancer_id,
                platform_id=platform_id,
                organization_id=freelancer.organization_id,
                batch_id=op_id,
            ):
                row = await self.store.get_freelancer_platform(freelancer_id, platform_id)
                if row is None:
                    error = InvalidTransitionError("none", S.DEACTIVATED.value, "platform was never requested")
                    return OperationResult(success=False, error=error.to_info())
                if row.status != S.ACTIVE:
                    error = InvalidTransitionError(row.status.value, S.DEACTIVATED.value)
                    return OperationResult(
                        success=False,
                        outcome=build_outcome(row, error.to_info()),
                        error=error.to_info(),
                    )

                remote_removed = True
                note = None
                try:
                    module = await self.registry.resolve(platform_id, freelancer.organization_id)
                    await self._bounded(
                        freelancer.organization_id,
                        module.delete_user(row.external_user_id),
                        platform_id,
                        "delete_user",
                    )
                except NotSupportedError as e:
                    remote_removed = False
                    note = e.message
                    logger.info(f"Deactivating locally only: {e.message}")
                except (PlatformError, RegistryError) as e:
                    logger.warning(f"Deactivation of {freelancer_id}/{platform_id} failed: {e.message}")
                    return OperationResult(
                        success=False,
                        outcome=build_outcome(row),
                        error=e.to_info(),
                    )

                row = await self._write(
                    apply_deactivation(row, remote_removed, note),
                    S.ACTIVE,
                    op_id,
                    {"remote_removed": remote_removed},
                )
                status = await self._recompute_status(freelancer, op_id)
                return OperationResult(success=True, outcome=build_outcome(row), freelancer_status=status)
        finally:
            self.leases.release(key, op_id)

    async def mark_freelancer_inactive(self, freelancer_id: str) -> FreelancerStatus:
        """
        Manual INACTIVE transition.

        Platform rows are left as they are; the next recomputation (after
        an onboard, retry or deactivate) derives the status again.

        Raises:
            FreelancerNotFoundError: unknown freelancer
        """
        freelancer = await self._get_freelancer(freelancer_id)
        async with self._status_lock(freelancer_id):
            current = await self._get_freelancer(freelancer_id)
            await self.store.upsert_freelancer_status(freelancer_id, FreelancerStatus.INACTIVE)
            await self.notifier.emit(FreelancerStatusChanged(
                freelancer_id=freelancer_id,
                organization_id=freelancer.organization_id,
                old_status=current.status,
                new_status=FreelancerStatus.INACTIVE,
            ))
        logger.info(f"Freelancer {freelancer_id} marked inactive")
        return FreelancerStatus.INACTIVE

    async def test_connection(self, organization_id: str, platform_id: str) -> ConnectionTestResult:
        """Probe one platform's credentials. Never touches onboarding state."""
        with log_context(organization_id=organization_id, platform_id=platform_id):
            try:
                module = await self.registry.resolve(platform_id, organization_id)
                info = await self._bounded(
                    organization_id, module.test_connection(), platform_id, "test_connection",
                )
            except NotInitializedError:
                raise
            except OnboardingError as e:
                logger.info(f"Connection test failed for {platform_id}: {e.message}")
                return ConnectionTestResult(
                    platform_id=platform_id,
                    organization_id=organization_id,
                    success=False,
                    error=e.to_info(),
                )
            return ConnectionTestResult(
                platform_id=platform_id,
                organization_id=organization_id,
                success=True,
                info=info,
            )

    async def test_all_connections(self, organization_id: str) -> List[ConnectionTestResult]:
        """Probe every platform the organization has a config for."""
        configs = await self.registry.provider.list_configs(organization_id)
        return list(await asyncio.gather(
            *(self.test_connection(organization_id, c.platform_id) for c in configs)
        ))

    async def get_status(self, freelancer_id: str) -> Tuple[Freelancer, List[FreelancerPlatform]]:
        """Freelancer and its rows, for read APIs."""
        freelancer = await self._get_freelancer(freelancer_id)
        rows = await self.store.list_by_freelancer(freelancer_id)
        return freelancer, rows

    # =========================================================================
    # BATCH EXECUTION
    # =========================================================================

    async def _run_batch(self, batch: OnboardingBatch, freelancer: Freelancer) -> OnboardingResult:
        try:
            with log_context(
                freelancer_id=batch.freelancer_id,
                organization_id=batch.organization_id,
                batch_id=batch.batch_id,
            ):
                log_checkpoint("batch_started", {"platforms": batch.platform_ids}, logger)

                # Rows are created sequentially so persistence order follows request order
                rows: List[FreelancerPlatform] = []
                for platform_id in batch.platform_ids:
                    row = await self.store.get_freelancer_platform(batch.freelancer_id, platform_id)
                    if row is None:
                        row = FreelancerPlatform(
                            freelancer_id=batch.freelancer_id,
                            platform_id=platform_id,
                            organization_id=batch.organization_id,
                        )
                        row = await self._write(row, None, batch.batch_id, {"reason": "requested"})
                    rows.append(row)

                results = await asyncio.gather(
                    *(self._process_row(batch, freelancer, row) for row in rows),
                    return_exceptions=True,
                )

                # Every row has settled; surface the first hard failure, if any
                for result in results:
                    if isinstance(result, BaseException):
                        raise result

                status = await self._recompute_status(freelancer, batch.batch_id)
                if batch.cancelled:
                    self._batches_cancelled += 1

                result = OnboardingResult(
                    freelancer_id=batch.freelancer_id,
                    batch_id=batch.batch_id,
                    outcomes=list(results),
                    freelancer_status=status,
                    cancelled=batch.cancelled,
                    started_at=batch.started_at,
                    completed_at=_utcnow(),
                )
                log_checkpoint(
                    "batch_settled",
                    {
                        "active": result.active_count,
                        "failed": result.failed_count,
                        "freelancer_status": status.value,
                        "cancelled": batch.cancelled,
                    },
                    logger,
                )
                return result
        finally:
            self.leases.release_holder(batch.batch_id)
            self._batches.pop(batch.batch_id, None)

    async def _process_row(
        self,
        batch: OnboardingBatch,
        freelancer: Freelancer,
        row: FreelancerPlatform,
    ) -> PlatformOutcome:
        """Route one requested row by its current status."""
        key = (row.freelancer_id, row.platform_id)
        try:
            with log_context(platform_id=row.platform_id):
                if row.status == S.ACTIVE:
                    return build_outcome(row)

                if row.status == S.FAILED:
                    # Stays failed until an explicit retry
                    return build_outcome(row)

                if row.status == S.DEACTIVATED:
                    error = InvalidTransitionError(
                        row.status.value, S.PROVISIONING.value, "platform was deactivated",
                    )
                    return build_outcome(row, error.to_info())

                if row.status == S.PROVISIONING:
                    # Leased by us, so nothing is in flight: a previous process stopped mid-call
                    interrupted = PlatformError.transient(row.platform_id, "Previous attempt was interrupted")
                    logger.warning(f"Recovering interrupted row {key}")
                    row = await self._write(
                        recover_interrupted(row, interrupted), S.PROVISIONING, batch.batch_id,
                        {"reason": "recovered"},
                    )

                return await self._dispatch_row(
                    freelancer, row, batch.batch_id, is_cancelled=lambda: batch.cancelled,
                )
        finally:
            self.leases.release(key, batch.batch_id)

    async def _dispatch_row(
        self,
        freelancer: Freelancer,
        row: FreelancerPlatform,
        holder: str,
        is_cancelled: Callable[[], bool],
    ) -> PlatformOutcome:
        """
        Resolve the module and run create_user for a PENDING row.

        The caller holds the row's lease.
        """
        if is_cancelled():
            return self._cancelled_outcome(row, holder)

        try:
            module = await self.registry.resolve(row.platform_id, row.organization_id)
        except RegistryError as e:
            logger.warning(f"Resolution failed: {e.message}")
            row = await self._write(apply_resolution_failure(row, e), row.status, holder, {"error": e.code})
            self._failures += 1
            return build_outcome(row)

        credentials = freelancer.credentials_for(row.platform_id)

        async with self._semaphore(row.organization_id):
            # Re-check: waiting for a slot may have outlasted a cancel
            if is_cancelled():
                return self._cancelled_outcome(row, holder)

            row = await self._write(begin_dispatch(row), S.PENDING, holder)
            self._dispatches += 1
            self._in_flight += 1
            try:
                user = await asyncio.wait_for(
                    module.create_user(credentials),
                    timeout=self.defaults.call_timeout_seconds,
                )
                error: Optional[OnboardingError] = None
            except asyncio.TimeoutError:
                user = None
                error = PlatformError.transient(
                    row.platform_id,
                    f"create_user timed out after {self.defaults.call_timeout_seconds}s",
                )
            except NotInitializedError:
                raise
            except OnboardingError as e:
                user = None
                error = e
            except Exception as e:
                logger.exception(f"create_user on {row.platform_id} raised {type(e).__name__}")
                user = None
                error = PlatformError.permanent(row.platform_id, f"Unexpected module error: {e!r}")
            finally:
                self._in_flight -= 1

        if error is None:
            row = await self._write(apply_success(row, user), S.PROVISIONING, holder)
            self._successes += 1
            logger.info(f"Onboarded onto {row.platform_id} as {row.external_user_id}")
        else:
            row = await self._write(
                apply_failure(row, error, self.defaults.max_attempts),
                S.PROVISIONING,
                holder,
                {"error": error.code, "retry_eligible": error.retry_eligible},
            )
            self._failures += 1
            logger.warning(
                f"create_user on {row.platform_id} failed "
                f"(attempt {row.attempt_count}, now {row.status.value}): {error.message}"
            )

        return build_outcome(row)

    def _cancelled_outcome(self, row: FreelancerPlatform, holder: str) -> PlatformOutcome:
        error = OnboardingCancelledError(holder, row.platform_id)
        logger.info(error.message)
        return build_outcome(row, error.to_info())

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _get_freelancer(self, freelancer_id: str) -> Freelancer:
        freelancer = await self.store.get_freelancer(freelancer_id)
        if freelancer is None:
            raise FreelancerNotFoundError(freelancer_id)
        return freelancer

    def _semaphore(self, organization_id: str) -> asyncio.Semaphore:
        semaphore = self._semaphores.get(organization_id)
        if semaphore is None:
            semaphore = asyncio.Semaphore(self.defaults.max_concurrency_per_org)
            self._semaphores[organization_id] = semaphore
        return semaphore

    def _status_lock(self, freelancer_id: str) -> asyncio.Lock:
        lock = self._status_locks.get(freelancer_id)
        if lock is None:
            lock = asyncio.Lock()
            self._status_locks[freelancer_id] = lock
        return lock

    async def _bounded(self, organization_id: str, call, platform_id: str, operation: str) -> Any:
        """Run a module call under the org semaphore and the call timeout."""
        async with self._semaphore(organization_id):
            try:
                return await asyncio.wait_for(call, timeout=self.defaults.call_timeout_seconds)
            except asyncio.TimeoutError:
                raise PlatformError.transient(
                    platform_id,
                    f"{operation} timed out after {self.defaults.call_timeout_seconds}s",
                )

    async def _write(
        self,
        row: FreelancerPlatform,
        old_status: Optional[FreelancerPlatformStatus],
        holder: str,
        detail: Optional[Dict[str, Any]] = None,
    ) -> FreelancerPlatform:
        """Persist a row and emit its transition event."""
        await self.store.upsert_freelancer_platform(row)
        await self.notifier.emit(PlatformStatusChanged(
            freelancer_id=row.freelancer_id,
            platform_id=row.platform_id,
            organization_id=row.organization_id,
            old_status=old_status,
            new_status=row.status,
            batch_id=holder,
            detail=detail or {},
        ))
        log_checkpoint(
            "row_transition",
            {
                "from": old_status.value if old_status else None,
                "to": row.status.value,
                "attempt": row.attempt_count,
            },
            logger,
        )
        return row

    async def _recompute_status(self, freelancer: Freelancer, holder: str) -> FreelancerStatus:
        """Derive, persist and emit the freelancer status. Serialized per freelancer."""
        async with self._status_lock(freelancer.id):
            current = await self._get_freelancer(freelancer.id)
            rows = await self.store.list_by_freelancer(freelancer.id)
            status = derive_freelancer_status(rows)
            await self.store.upsert_freelancer_status(freelancer.id, status)
            await self.notifier.emit(FreelancerStatusChanged(
                freelancer_id=freelancer.id,
                organization_id=freelancer.organization_id,
                old_status=current.status,
                new_status=status,
                batch_id=holder,
            ))
        if current.status != status:
            logger.info(f"Freelancer {freelancer.id}: {current.status.value} -> {status.value}")
        return status

    # =========================================================================
    # STATS
    # =========================================================================

    @property
    def stats(self) -> Dict[str, Any]:
        """Get orchestrator statistics."""
        return {
            "started_at": self._started_at.isoformat(),
            "uptime_seconds": (_utcnow() - self._started_at).total_seconds(),
            "max_concurrency_per_org": self.defaults.max_concurrency_per_org,
            "call_timeout_seconds": self.defaults.call_timeout_seconds,
            "max_attempts": self.defaults.max_attempts,
            "batches_started": self._batches_started,
            "batches_cancelled": self._batches_cancelled,
            "active_batches": len(self._batches),
            "dispatches": self._dispatches,
            "successes": self._successes,
            "failures": self._failures,
            "rejections": self._rejections,
            "in_flight": self._in_flight,
            "leases_held": self.leases.held_count,
        }


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = ["OnboardingOrchestrator", "OnboardingBatch", "build_outcome"]
