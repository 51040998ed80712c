"""Async repository pattern for database access.

Provides a generic base repository with CRUD operations and per-user
ownership isolation. Verticals subclass this to add domain-specific
queries.

Example: TaskRepository extending BaseRepository.
"""

from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.models.base import Base

# ---------------------------------------------------------------------------
# Type variable for model classes
# ---------------------------------------------------------------------------

ModelT = TypeVar("ModelT", bound=Base)

_PROTECTED_COLUMNS = ("id", "user_id", "created_at")


def _as_uuid(item_id: str | UUID) -> UUID | None:
    if isinstance(item_id, UUID):
        return item_id
    try:
        return UUID(str(item_id))
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Base repository
# ---------------------------------------------------------------------------

class BaseRepository(Generic[ModelT]):
    """Generic async repository with CRUD + ownership isolation.

    Subclass and set `model` to your SQLAlchemy model::

        class TaskRepository(BaseRepository[Task]):
            model = Task

            async def list_in_column(self, user_id: str, status: str):
                stmt = select(self.model).where(
                    self.model.user_id == user_id,
                    self.model.status == status,
                )
                result = await self.session.execute(stmt)
                return [r.to_dict() for r in result.scalars().all()]
    """

    model: type[ModelT]

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_row(self, item_id: str | UUID, user_id: str) -> ModelT | None:
        key = _as_uuid(item_id)
        if key is None:
            return None
        stmt = select(self.model).where(
            self.model.id == key,
            self.model.user_id == user_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    # -- Get by ID --

    async def get(self, item_id: str | UUID, user_id: str) -> dict | None:
        """Get a single item by ID, scoped to its owner."""
        row = await self._get_row(item_id, user_id)
        return row.to_dict() if row else None

    # -- Create --

    async def create(self, user_id: str, data: dict[str, Any]) -> dict:
        """Create a new item owned by user_id."""
        fields = {k: v for k, v in data.items() if k not in _PROTECTED_COLUMNS}
        item = self.model(user_id=user_id, **fields)
        self.session.add(item)
        await self.session.flush()
        return item.to_dict()

    # -- Update --

    async def update(
        self, item_id: str | UUID, user_id: str, data: dict[str, Any]
    ) -> dict | None:
        """Update an existing item. Returns None if not found."""
        item = await self._get_row(item_id, user_id)
        if not item:
            return None

        for key, value in data.items():
            if hasattr(item, key) and key not in _PROTECTED_COLUMNS:
                setattr(item, key, value)

        await self.session.flush()
        return item.to_dict()

    # -- Delete --

    async def delete(self, item_id: str | UUID, user_id: str) -> bool:
        """Delete an item. Returns True if deleted, False if not found."""
        item = await self._get_row(item_id, user_id)
        if not item:
            return False

        await self.session.delete(item)
        await self.session.flush()
        return True
