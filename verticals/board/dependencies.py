"""FastAPI dependency factories for the task board vertical."""

from functools import lru_cache

from fastapi import Depends

from core.database import get_session_context
from core.llm.gateway import GatewayClient
from core.realtime.change_feed import TaskChangeFeed
from verticals.board.config import config
from verticals.board.service import TaskService


@lru_cache
def get_gateway() -> GatewayClient:
    """Process-wide gateway client (shared connection pool)."""
    return GatewayClient(config.gateway)


@lru_cache
def get_change_feed() -> TaskChangeFeed:
    return TaskChangeFeed()


def get_task_service(
    feed: TaskChangeFeed = Depends(get_change_feed),
) -> TaskService:
    return TaskService(get_session_context, feed)
