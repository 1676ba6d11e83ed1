"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from backend.config import get_settings
from backend.db import DbClient, InMemoryDbClient, PostgresDbClient
from backend.notifications import InMemoryNotifier, Notifier, ResendNotifier
from backend.queue import (
    InMemoryRecalculationQueue,
    RecalculationQueue,
    RedisRecalculationQueue,
)

_db_client: DbClient | None = None
_queue_client: RecalculationQueue | None = None
_notifier: Notifier | None = None


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so analysis state persists across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _db_client = InMemoryDbClient()
    else:
        _db_client = PostgresDbClient(settings.database_url)
    return _db_client


def get_queue_client() -> RecalculationQueue:
    """
    Return a singleton queue client for dispatching recalculations to workers.
    """
    global _queue_client
    if _queue_client is not None:
        return _queue_client

    settings = get_settings()
    if settings.redis_url and not settings.use_in_memory_backends:
        _queue_client = RedisRecalculationQueue(
            url=settings.redis_url,
            queue_key=settings.redis_queue_key,
        )
    else:
        _queue_client = InMemoryRecalculationQueue()
    return _queue_client


def get_notifier() -> Notifier:
    global _notifier
    if _notifier:
        return _notifier

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.resend_api_key:
        _notifier = InMemoryNotifier()
    else:
        _notifier = ResendNotifier(
            api_key=settings.resend_api_key,
            sender=settings.alert_sender,
        )
    return _notifier
