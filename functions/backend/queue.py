"""
Queue of organizations awaiting a bus factor recalculation.

Supports an in-memory fallback for tests/local runs and a Redis-backed
implementation for production.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

import redis
from redis import exceptions as redis_exceptions

logger = logging.getLogger(__name__)


class RecalculationQueue(Protocol):
    """Minimal queue interface for dispatching org ids to workers."""

    def enqueue(self, org_id: str) -> None:
        ...

    def dequeue(self, *, block: bool = True, timeout: int | None = None) -> Optional[str]:
        ...

    def __len__(self) -> int:
        ...


@dataclass
class InMemoryRecalculationQueue:
    """FIFO queue for testing/dev. Skips org ids that are already waiting."""

    items: list[str] = field(default_factory=list)

    def enqueue(self, org_id: str) -> None:
        if org_id not in self.items:
            self.items.append(org_id)

    def dequeue(self, *, block: bool = True, timeout: int | None = None) -> Optional[str]:
        if not self.items:
            return None
        return self.items.pop(0)

    def __len__(self) -> int:
        return len(self.items)


# The list itself is the only state: an org id is queued at most once and
# popping it is enough to let it be queued again.
PUSH_IF_ABSENT = """
if redis.call('LPOS', KEYS[1], ARGV[1]) then
    return 0
end
redis.call('RPUSH', KEYS[1], ARGV[1])
return 1
"""


@dataclass
class RedisRecalculationQueue:
    """Redis list queue that keeps each org queued at most once. Needs Redis >= 6.0.6."""

    url: str
    queue_key: str = "backupboss:recalculations"

    def __post_init__(self):
        self._connect()

    def _connect(self) -> None:
        self.client = redis.Redis.from_url(self.url)
        self._push_if_absent = self.client.register_script(PUSH_IF_ABSENT)

    def enqueue(self, org_id: str) -> None:
        if not self._push_if_absent(keys=[self.queue_key], args=[org_id]):
            logger.debug("Org %s already queued", org_id)

    def dequeue(self, *, block: bool = True, timeout: int | None = None) -> Optional[str]:
        try:
            if block:
                result = self.client.blpop(self.queue_key, timeout=timeout or 0)
                if result is None:
                    return None
                _, raw = result
            else:
                raw = self.client.lpop(self.queue_key)
                if raw is None:
                    return None
            return raw.decode("utf-8")
        except redis_exceptions.ConnectionError:
            # Managed Redis drops idle connections; reconnect and let the loop retry.
            logger.warning("Redis connection lost, reconnecting")
            self._connect()
            return None

    def __len__(self) -> int:
        return int(self.client.llen(self.queue_key))
