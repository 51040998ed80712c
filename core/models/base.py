"""Base model and mixins for all SQLAlchemy models.

Provides:
- Base: Declarative base class for all models
- OwnedMixin: Adds owner user_id, UUID primary key, and timestamps

Rows belong to exactly one user. The user_id column is indexed for
efficient per-user queries and is always taken from the authenticated
identity, never from client-supplied data.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Declarative base for all FlowBoard models."""
    pass


class OwnedMixin:
    """Mixin providing per-user ownership and standard audit columns.

    Adds:
    - id: UUID primary key (auto-generated)
    - user_id: Indexed owner reference
    - created_at: Timestamp set on insert
    - updated_at: Timestamp updated on every change
    """

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        index=True,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
        nullable=False,
    )
