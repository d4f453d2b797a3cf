# ============================================================================
# API ROUTES
# ============================================================================
# EPOCH: 1 - PLATFORM ONBOARDING
# STATUS: Core - FastAPI route definitions
# PURPOSE: HTTP endpoints for onboarding, retry and deactivation
# CREATED: 15 OCT 2026
# ============================================================================
"""
API Routes

FastAPI routes for the onboarding engine.

Error mapping:
    FreelancerNotFoundError, unknown platform  -> 404
    ConcurrentOperationError                   -> 409
    InvalidTransitionError                     -> 409
    other registry errors                      -> 422

A platform failure during onboarding is not an HTTP error: the request
succeeded and the per-platform outcome carries the failure.
"""

import logging
from typing import List, Optional, Union

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse

from core.errors import (
    ConcurrentOperationError,
    ErrorInfo,
    FreelancerNotFoundError,
    InvalidTransitionError,
)
from core.models import (
    BulkOnboardingItem,
    ConnectionTestResult,
    OnboardingResult,
    OperationResult,
)
from .schemas import (
    BatchAcceptedResponse,
    BatchCancelResponse,
    BulkOnboardRequest,
    ErrorResponse,
    FreelancerPlatformsResponse,
    FreelancerStatusResponse,
    OnboardRequest,
    OrchestratorStatusResponse,
    PlatformListResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================
# These will be set by the main app at startup

_orchestrator = None
_registry = None


def set_services(orchestrator, registry):
    """Set service instances for dependency injection."""
    global _orchestrator, _registry
    _orchestrator = orchestrator
    _registry = registry


def get_orchestrator():
    if _orchestrator is None:
        raise HTTPException(500, "Orchestrator not initialized")
    return _orchestrator


def get_registry():
    if _registry is None:
        raise HTTPException(500, "Module registry not initialized")
    return _registry


# ============================================================================
# ERROR MAPPING
# ============================================================================

CONFLICT_CODES = {ConcurrentOperationError.code, InvalidTransitionError.code}
NOT_FOUND_CODES = {FreelancerNotFoundError.code, "registry_unknown_platform"}


def status_for_error(error: Optional[ErrorInfo]) -> int:
    """HTTP status for an operation that returned an error instead of raising."""
    if error is None:
        return 200
    if error.code in NOT_FOUND_CODES:
        return 404
    if error.code in CONFLICT_CODES:
        return 409
    if error.code.startswith("registry_"):
        return 422
    return 200


def _respond(model, error: Optional[ErrorInfo]):
    status_code = status_for_error(error)
    if status_code == 200:
        return model
    return JSONResponse(status_code=status_code, content=model.model_dump(mode="json"))


# ============================================================================
# ORCHESTRATOR STATUS
# ============================================================================

@router.get("/orchestrator/status", response_model=OrchestratorStatusResponse, tags=["Orchestrator"])
async def get_orchestrator_status():
    """
    Get orchestrator status and statistics.

    Returns:
    - Concurrency, timeout and attempt limits
    - Batches started/cancelled/active
    - Dispatches, successes, failures, rejections
    - In-flight calls and held leases
    """
    stats = get_orchestrator().stats

    return OrchestratorStatusResponse(
        status="running",
        started_at=stats["started_at"],
        uptime_seconds=stats["uptime_seconds"],
        limits={
            "max_concurrency_per_org": stats["max_concurrency_per_org"],
            "call_timeout_seconds": stats["call_timeout_seconds"],
            "max_attempts": stats["max_attempts"],
        },
        metrics={
            "batches_started": stats["batches_started"],
            "batches_cancelled": stats["batches_cancelled"],
            "active_batches": stats["active_batches"],
            "dispatches": stats["dispatches"],
            "successes": stats["successes"],
            "failures": stats["failures"],
            "rejections": stats["rejections"],
            "in_flight": stats["in_flight"],
            "leases_held": stats["leases_held"],
        },
    )


# ============================================================================
# PLATFORMS
# ============================================================================

@router.get("/platforms", response_model=PlatformListResponse, tags=["Platforms"])
async def list_platforms():
    """List the registered platform modules."""
    descriptors = get_registry().descriptors()
    return PlatformListResponse(platforms=descriptors, total=len(descriptors))


@router.post(
    "/organizations/{organization_id}/platforms/test-connections",
    response_model=List[ConnectionTestResult],
    tags=["Platforms"],
)
async def test_connections(organization_id: str):
    """Probe every platform configured for the organization."""
    return await get_orchestrator().test_all_connections(organization_id)


@router.post(
    "/organizations/{organization_id}/platforms/{platform_id}/test-connection",
    response_model=ConnectionTestResult,
    tags=["Platforms"],
    responses={404: {"model": ConnectionTestResult}, 422: {"model": ConnectionTestResult}},
)
async def test_connection(organization_id: str, platform_id: str):
    """
    Probe one platform's credentials.

    A rejected credential is a 200 with success=false; a platform the
    registry cannot resolve is 404 (unknown) or 422 (config problem).
    """
    result = await get_orchestrator().test_connection(organization_id, platform_id)
    return _respond(result, result.error)


# ============================================================================
# ONBOARDING
# ============================================================================

@router.post(
    "/freelancers/onboard-bulk",
    response_model=List[BulkOnboardingItem],
    tags=["Onboarding"],
)
async def onboard_bulk(request: BulkOnboardRequest):
    """
    Onboard several freelancers concurrently.

    Per-freelancer rejections are reported in the item, not as HTTP errors.
    """
    return await get_orchestrator().onboard_many(request.freelancer_ids, request.platform_ids)


@router.post(
    "/freelancers/{freelancer_id}/onboard",
    response_model=Union[OnboardingResult, BatchAcceptedResponse],
    tags=["Onboarding"],
    responses={
        202: {"model": BatchAcceptedResponse, "description": "Running in background"},
        404: {"model": ErrorResponse, "description": "Freelancer not found"},
        409: {"model": ErrorResponse, "description": "Operation already in flight"},
    },
)
async def onboard(
    freelancer_id: str,
    request: OnboardRequest,
    wait: bool = Query(True, description="Wait for every platform to settle"),
):
    """
    Onboard a freelancer onto the requested platforms.

    With wait=true (default) returns the OnboardingResult. With wait=false
    returns 202 and the batch id; POST /batches/{batch_id}/cancel stops
    further dispatches.
    """
    orchestrator = get_orchestrator()

    try:
        batch = await orchestrator.start_onboarding(freelancer_id, request.platform_ids)
    except FreelancerNotFoundError as e:
        raise HTTPException(404, e.message)
    except ConcurrentOperationError as e:
        raise HTTPException(409, e.message)

    logger.info(f"Accepted batch {batch.batch_id} for {freelancer_id}: {batch.platform_ids}")

    if not wait:
        accepted = BatchAcceptedResponse(
            batch_id=batch.batch_id,
            freelancer_id=batch.freelancer_id,
            platform_ids=batch.platform_ids,
            started_at=batch.started_at,
        )
        return JSONResponse(status_code=202, content=accepted.model_dump(mode="json"))

    return await batch.wait()


@router.post(
    "/batches/{batch_id}/cancel",
    response_model=BatchCancelResponse,
    tags=["Onboarding"],
    responses={404: {"model": ErrorResponse}},
)
async def cancel_batch(batch_id: str):
    """Prevent further dispatches in a running batch."""
    batch = get_orchestrator().get_batch(batch_id)
    if batch is None:
        raise HTTPException(404, f"Batch not found or already finished: {batch_id}")
    return BatchCancelResponse(batch_id=batch_id, cancelled=batch.cancel())


@router.post(
    "/freelancers/{freelancer_id}/platforms/{platform_id}/retry",
    response_model=OperationResult,
    tags=["Onboarding"],
    responses={404: {"model": ErrorResponse}, 409: {"model": OperationResult}},
)
async def retry_platform(freelancer_id: str, platform_id: str):
    """Retry one failed or retry-eligible platform."""
    try:
        result = await get_orchestrator().retry(freelancer_id, platform_id)
    except FreelancerNotFoundError as e:
        raise HTTPException(404, e.message)
    return _respond(result, result.error)


@router.post(
    "/freelancers/{freelancer_id}/platforms/{platform_id}/deactivate",
    response_model=OperationResult,
    tags=["Onboarding"],
    responses={404: {"model": ErrorResponse}, 409: {"model": OperationResult}},
)
async def deactivate_platform(freelancer_id: str, platform_id: str):
    """Deactivate an active platform account."""
    try:
        result = await get_orchestrator().deactivate(freelancer_id, platform_id)
    except FreelancerNotFoundError as e:
        raise HTTPException(404, e.message)
    return _respond(result, result.error)


# ============================================================================
# FREELANCERS
# ============================================================================

@router.post(
    "/freelancers/{freelancer_id}/deactivate",
    response_model=FreelancerStatusResponse,
    tags=["Freelancers"],
    responses={404: {"model": ErrorResponse}},
)
async def deactivate_freelancer(freelancer_id: str):
    """Manually mark a freelancer inactive. Platform rows are not touched."""
    try:
        status = await get_orchestrator().mark_freelancer_inactive(freelancer_id)
    except FreelancerNotFoundError as e:
        raise HTTPException(404, e.message)
    return FreelancerStatusResponse(freelancer_id=freelancer_id, status=status)


@router.get(
    "/freelancers/{freelancer_id}/platforms",
    response_model=FreelancerPlatformsResponse,
    tags=["Freelancers"],
    responses={404: {"model": ErrorResponse}},
)
async def get_freelancer_platforms(freelancer_id: str):
    """Freelancer status and every platform row."""
    try:
        freelancer, rows = await get_orchestrator().get_status(freelancer_id)
    except FreelancerNotFoundError as e:
        raise HTTPException(404, e.message)

    return FreelancerPlatformsResponse(
        freelancer_id=freelancer.id,
        organization_id=freelancer.organization_id,
        status=freelancer.status,
        platforms=rows,
    )
