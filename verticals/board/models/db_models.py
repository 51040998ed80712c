"""SQLAlchemy models for the task board vertical.

Tasks inherit from Base and use OwnedMixin so every row belongs to exactly
one user. The to_dict() method provides the standard serialisation
interface used by repositories and routers.
"""

from datetime import date

from sqlalchemy import Date, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.models.base import Base, OwnedMixin


class Task(OwnedMixin, Base):
    """A card on the board."""

    __tablename__ = "tasks"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="todo", index=True)
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default="medium")
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    # Written as 0 everywhere; ordering is by position then creation time.
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "category": self.category,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "position": self.position,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
