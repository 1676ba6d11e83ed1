"""
Worker loop that runs queued bus factor recalculations.

Each pass enqueues organizations whose latest analysis is past its due date,
then drains the queue one org at a time.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from backend.analysis import OrganizationNotFoundError, run_bus_factor_analysis
from backend.db import DbClient
from backend.dependencies import get_db_client, get_notifier, get_queue_client
from backend.notifications import Notifier
from backend.queue import RecalculationQueue

logger = logging.getLogger(__name__)


def enqueue_due_recalculations(
    *,
    db: Optional[DbClient] = None,
    queue: Optional[RecalculationQueue] = None,
    now: Optional[float] = None,
) -> int:
    """
    Queue every organization with no analysis or an overdue one. Returns the count.
    """
    db = db or get_db_client()
    queue = queue if queue is not None else get_queue_client()
    now = time.time() if now is None else now

    due = db.list_due_organizations(now)
    for org_id in due:
        queue.enqueue(org_id)
    if due:
        logger.info("Queued %d due recalculations", len(due))
    return len(due)


def process_next(
    *,
    db: Optional[DbClient] = None,
    queue: Optional[RecalculationQueue] = None,
    notifier: Optional[Notifier] = None,
    block: bool = True,
    timeout: Optional[int] = None,
) -> bool:
    """
    Recalculate one queued organization. Returns True if one was processed.
    """
    db = db or get_db_client()
    queue = queue if queue is not None else get_queue_client()
    notifier = notifier or get_notifier()

    org_id = queue.dequeue(block=block, timeout=timeout)
    if not org_id:
        return False

    try:
        snapshot, _ = run_bus_factor_analysis(
            org_id, recalculate=True, db=db, notifier=notifier
        )
    except OrganizationNotFoundError:
        logger.warning("Received org_id %s from queue but no DB record found", org_id)
        return False
    logger.info(
        "[%s] Recalculated analysis %s (bus factor %d)",
        org_id,
        snapshot.analysis_id,
        snapshot.result.bus_factor,
    )
    return True


def run_loop(poll_interval_seconds: float = 2.0, sweep_interval_seconds: float = 300.0) -> None:
    """
    Simple polling loop that blocks on the queue. Intended to be run under systemd/supervisor.
    """
    db = get_db_client()
    queue = get_queue_client()
    notifier = get_notifier()
    last_sweep = 0.0
    while True:
        if time.time() - last_sweep >= sweep_interval_seconds:
            try:
                enqueue_due_recalculations(db=db, queue=queue)
            except Exception:
                logger.exception("Failed to enqueue due recalculations")
            last_sweep = time.time()
        try:
            processed = process_next(
                db=db,
                queue=queue,
                notifier=notifier,
                block=True,
                timeout=int(poll_interval_seconds),
            )
        except Exception:
            logger.exception("Recalculation failed")
            processed = False
        if not processed:
            time.sleep(poll_interval_seconds)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run_loop()
