"""Task board repository — async database access with ownership isolation.

Extends BaseRepository with the board's ordering: tasks are listed by
position ascending, then by creation time.
"""

from sqlalchemy import select

from patterns.repository import BaseRepository
from verticals.board.models.db_models import Task


class TaskRepository(BaseRepository[Task]):
    """Repository for task CRUD."""

    model = Task

    async def list_for_user(self, user_id: str) -> list[dict]:
        """All tasks owned by user_id, board order."""
        stmt = (
            select(Task)
            .where(Task.user_id == user_id)
            .order_by(Task.position.asc(), Task.created_at.asc())
        )
        result = await self.session.execute(stmt)
        return [row.to_dict() for row in result.scalars().all()]
