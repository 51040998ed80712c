"""
FlowBoard Change Feed — in-process table change notifications.

Every committed insert/update/delete on the task table is published as a
TaskChange. Subscribers (the change-stream endpoint, tests) receive each
change for their user through a private queue:

    async with feed.subscribe(user_id) as subscription:
        async for change in subscription:
            await refetch()
"""
from __future__ import annotations
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, AsyncIterator
import asyncio
import logging

logger = logging.getLogger(__name__)


class ChangeEvent(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass
class TaskChange:
    """One committed change to a task row."""
    event: ChangeEvent
    task_id: str
    user_id: str
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "event": self.event.value,
            "task_id": self.task_id,
            "occurred_at": self.occurred_at.isoformat(),
        }


class Subscription:
    """One subscriber's view of the feed."""

    def __init__(self, queue: asyncio.Queue):
        self._queue = queue

    async def next(self, timeout: float | None = None) -> TaskChange | None:
        """Wait for the next change; None if timeout elapses first."""
        try:
            return await asyncio.wait_for(self._queue.get(), timeout)
        except asyncio.TimeoutError:
            return None

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> TaskChange:
        return await self._queue.get()


class TaskChangeFeed:
    """Fans task changes out to per-user subscriber queues."""

    MAX_QUEUE = 100

    def __init__(self):
        self._subscribers: dict[str, set[asyncio.Queue]] = {}

    def subscriber_count(self, user_id: str | None = None) -> int:
        if user_id is not None:
            return len(self._subscribers.get(user_id, ()))
        return sum(len(queues) for queues in self._subscribers.values())

    async def publish(self, change: TaskChange) -> int:
        """Deliver a change to every subscriber of its owner. Returns the count."""
        queues = self._subscribers.get(change.user_id, set())
        delivered = 0
        for queue in list(queues):
            try:
                queue.put_nowait(change)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(
                    "Dropping %s notification for slow subscriber of %s",
                    change.event.value, change.user_id,
                )
        return delivered

    @asynccontextmanager
    async def subscribe(self, user_id: str) -> AsyncIterator["Subscription"]:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.MAX_QUEUE)
        self._subscribers.setdefault(user_id, set()).add(queue)
        try:
            yield Subscription(queue)
        finally:
            queues = self._subscribers.get(user_id)
            if queues is not None:
                queues.discard(queue)
                if not queues:
                    del self._subscribers[user_id]
