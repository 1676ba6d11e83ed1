"""
HTTP routes for the continuity analysis API.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from backend.analysis import (
    OrganizationNotFoundError,
    analysis_response,
    run_bus_factor_analysis,
)
from backend.auth import CallerClaims, api_error, get_caller_claims, require_org_access
from backend.db import DbClient
from backend.dependencies import get_db_client, get_notifier, get_queue_client
from backend.notifications import Notifier
from backend.queue import RecalculationQueue
from backend.schemas import (
    BusFactorRequest,
    BusFactorResponse,
    QueueRecalculationResponse,
    StoredAnalysisResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

WRITE_PERMISSIONS = ("analysis:write", "admin", "owner")
READ_PERMISSIONS = ("analysis:read", "analysis:write", "admin", "owner")


@router.post("/v1/analysis/bus-factor", response_model=BusFactorResponse)
def bus_factor_analysis(
    payload: BusFactorRequest,
    claims: CallerClaims = Depends(get_caller_claims),
    db: DbClient = Depends(get_db_client),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Return the organization's bus factor analysis, recalculating on request
    or when the last one is stale.
    """
    org_id = str(payload.orgId)
    require_org_access(claims, org_id, WRITE_PERMISSIONS)
    try:
        snapshot, _ = run_bus_factor_analysis(
            org_id, recalculate=payload.recalculate, db=db, notifier=notifier
        )
    except OrganizationNotFoundError:
        raise api_error(404, "Organization not found", "NOT_FOUND")
    return analysis_response(snapshot)


@router.get(
    "/v1/analysis/bus-factor/{org_id}", response_model=StoredAnalysisResponse
)
def latest_bus_factor_analysis(
    org_id: str,
    claims: CallerClaims = Depends(get_caller_claims),
    db: DbClient = Depends(get_db_client),
):
    require_org_access(claims, org_id, READ_PERMISSIONS)
    snapshot = db.get_latest_analysis(org_id)
    if not snapshot:
        raise api_error(404, "No analysis found", "NOT_FOUND")
    return {
        **analysis_response(snapshot),
        "calculatedAt": snapshot.calculated_at,
        "nextCalculationDue": snapshot.next_calculation_due,
    }


@router.post(
    "/v1/analysis/bus-factor/{org_id}/queue",
    response_model=QueueRecalculationResponse,
    status_code=202,
)
def queue_bus_factor_recalculation(
    org_id: str,
    claims: CallerClaims = Depends(get_caller_claims),
    db: DbClient = Depends(get_db_client),
    queue: RecalculationQueue = Depends(get_queue_client),
):
    """
    Enqueue a recalculation. The worker will run it.
    """
    require_org_access(claims, org_id, WRITE_PERMISSIONS)
    if not db.get_organization(org_id):
        raise api_error(404, "Organization not found", "NOT_FOUND")
    queue.enqueue(org_id)
    logger.info("[%s] Queued bus factor recalculation", org_id)
    return QueueRecalculationResponse(orgId=org_id, status="QUEUED")
