"""
Runs a bus factor analysis for one organization and persists the snapshot.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Optional

from backend.config import get_settings
from backend.db import DbClient
from backend.notifications import NotificationError, Notifier
from scoring.bus_factor import compute_bus_factor
from scoring.evidence import resolve_verified_people
from shared import constants
from shared.types import AnalysisSnapshot

logger = logging.getLogger(__name__)


class OrganizationNotFoundError(Exception):
    pass


def analysis_response(snapshot: AnalysisSnapshot) -> dict:
    """The stable wire shape consumed by the dashboard."""
    return {"analysisId": snapshot.analysis_id, **snapshot.result.as_dict()}


def _is_fresh(snapshot: AnalysisSnapshot, now: float, reuse_hours: float) -> bool:
    return now - snapshot.calculated_at < reuse_hours * constants.SECONDS_PER_HOUR


def run_bus_factor_analysis(
    org_id: str,
    *,
    recalculate: bool,
    db: DbClient,
    notifier: Notifier,
    now: Optional[float] = None,
) -> tuple[AnalysisSnapshot, bool]:
    """
    Returns the organization's analysis and whether a stored one was reused.

    Without `recalculate`, a snapshot calculated within the reuse window is
    returned as is. Otherwise evidence is resolved from the database, scored,
    and stored with the next due date. Owners get an alert email when any
    category is critical; a failed alert never fails the analysis.
    """
    settings = get_settings()
    now = time.time() if now is None else now

    organization = db.get_organization(org_id)
    if not organization:
        raise OrganizationNotFoundError(org_id)

    if not recalculate:
        existing = db.get_latest_analysis(org_id)
        if existing and _is_fresh(existing, now, settings.analysis_reuse_hours):
            logger.info("[%s] Reusing analysis %s", org_id, existing.analysis_id)
            return existing, True

    procedures = db.list_procedures(org_id)
    verified = resolve_verified_people(
        procedures,
        db.list_people(org_id),
        db.list_completed_executions(org_id),
        db.list_knowledge_contributions(org_id),
    )
    result = compute_bus_factor(procedures, verified)

    snapshot = AnalysisSnapshot(
        analysis_id=uuid.uuid4().hex,
        org_id=org_id,
        result=result,
        calculated_at=now,
        next_calculation_due=(
            now + settings.recalculation_interval_days * constants.SECONDS_PER_DAY
        ),
    )
    db.save_analysis(snapshot)
    logger.info(
        "[%s] Analysis %s: bus factor %d, %d critical gaps",
        org_id,
        snapshot.analysis_id,
        result.bus_factor,
        len(result.critical_gaps),
    )

    if result.has_critical_risk():
        owners = db.list_owner_emails(org_id)
        if owners:
            try:
                notifier.send_critical_alert(owners, organization.name, result)
            except NotificationError:
                logger.exception("[%s] Failed to send critical alert", org_id)
        else:
            logger.warning("[%s] Critical risk but no owner emails on file", org_id)

    return snapshot, False
