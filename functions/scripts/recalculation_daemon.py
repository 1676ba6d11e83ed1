"""
Daemon that periodically queues overdue bus factor recalculations.

Run the worker (`python -m backend.worker`) alongside it to drain the queue,
or pass --process to recalculate inline.
"""

from __future__ import annotations

import argparse
import logging
import random
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.dependencies import get_db_client, get_notifier, get_queue_client
from backend.worker import enqueue_due_recalculations, process_next

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Bus factor recalculation daemon")
    parser.add_argument(
        "--interval-seconds",
        type=int,
        default=3600,
        help="Seconds between sweeps for overdue analyses",
    )
    parser.add_argument(
        "--jitter-seconds",
        type=int,
        default=120,
        help="Max random jitter added to sleep",
    )
    parser.add_argument(
        "--process",
        action="store_true",
        help="Drain the queue in this process after each sweep",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single sweep and exit",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    db = get_db_client()
    queue = get_queue_client()
    notifier = get_notifier()

    while True:
        try:
            queued = enqueue_due_recalculations(db=db, queue=queue)
            logger.info("Sweep complete, queued %d organizations", queued)
            if args.process:
                processed = 0
                while len(queue):
                    if process_next(
                        db=db, queue=queue, notifier=notifier, block=False
                    ):
                        processed += 1
                logger.info("Recalculated %d organizations", processed)
        except Exception as exc:
            logger.exception("Sweep failed: %s", exc)

        if args.once:
            return 0

        sleep_for = args.interval_seconds + random.uniform(0, args.jitter_seconds)
        logger.info("Sleeping for %.1fs", sleep_for)
        time.sleep(sleep_for)


if __name__ == "__main__":
    raise SystemExit(main())
