"""Task store service.

Wraps TaskRepository with session lifecycle and change notifications.
Each write runs in its own session, commits, and only then publishes the
matching TaskChange, so subscribers that refetch always see the new row.
Database errors surface as PersistenceFailure.
"""

import logging
from contextlib import AbstractAsyncContextManager
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import PersistenceFailure
from core.realtime.change_feed import ChangeEvent, TaskChange, TaskChangeFeed
from verticals.board.repository import TaskRepository

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class TaskService:
    """Read/write access to one user's tasks."""

    def __init__(self, session_factory: SessionFactory, feed: TaskChangeFeed):
        self.session_factory = session_factory
        self.feed = feed

    async def list_tasks(self, user_id: str) -> list[dict]:
        try:
            async with self.session_factory() as session:
                return await TaskRepository(session).list_for_user(user_id)
        except SQLAlchemyError as exc:
            logger.error("Failed to load tasks for %s: %s", user_id, exc)
            raise PersistenceFailure("Failed to load tasks") from exc

    async def create_task(self, user_id: str, data: dict[str, Any]) -> dict:
        try:
            async with self.session_factory() as session:
                task = await TaskRepository(session).create(user_id, data)
        except SQLAlchemyError as exc:
            logger.error("Failed to create task for %s: %s", user_id, exc)
            raise PersistenceFailure("Failed to create task") from exc

        await self.feed.publish(TaskChange(ChangeEvent.INSERT, task["id"], user_id))
        return task

    async def update_task(
        self, user_id: str, task_id: str, data: dict[str, Any]
    ) -> dict | None:
        try:
            async with self.session_factory() as session:
                task = await TaskRepository(session).update(task_id, user_id, data)
        except SQLAlchemyError as exc:
            logger.error("Failed to update task %s: %s", task_id, exc)
            raise PersistenceFailure("Failed to update task") from exc

        if task is not None:
            await self.feed.publish(TaskChange(ChangeEvent.UPDATE, task["id"], user_id))
        return task

    async def move_task(self, user_id: str, task_id: str, status: str) -> dict | None:
        """Drag-and-drop column change."""
        return await self.update_task(user_id, task_id, {"status": status})

    async def delete_task(self, user_id: str, task_id: str) -> bool:
        try:
            async with self.session_factory() as session:
                deleted = await TaskRepository(session).delete(task_id, user_id)
        except SQLAlchemyError as exc:
            logger.error("Failed to delete task %s: %s", task_id, exc)
            raise PersistenceFailure("Failed to delete task") from exc

        if deleted:
            await self.feed.publish(TaskChange(ChangeEvent.DELETE, str(task_id), user_id))
        return deleted
