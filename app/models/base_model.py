"""
Base model with common fields.

All Taskflow tables inherit from TimestampedModel to get:
- id (UUID primary key)
- created_at (when the record was created)
- updated_at (when the record was last modified)

Soft-deletable tables also mix in SoftDeleteMixin, which is the one place the
"is this row visible" rule lives.
"""

import enum
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class TrashState(str, enum.Enum):
    """
    Lifecycle of soft-deletable rows.

    PURGED rows no longer exist in the database; nothing is ever stored with
    that state.
    """

    ACTIVE = "active"
    TRASHED = "trashed"
    PURGED = "purged"


class TimestampedModel(Base):
    """Abstract base class: UUID id plus created/updated timestamps."""
    
    __abstract__ = True  # This means: don't create a table for this class
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class SoftDeleteMixin:
    """Adds deleted_at plus the visibility predicates every query goes through."""

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )

    @property
    def trash_state(self) -> TrashState:
        return TrashState.ACTIVE if self.deleted_at is None else TrashState.TRASHED

    @property
    def is_visible(self) -> bool:
        return self.trash_state is TrashState.ACTIVE

    @classmethod
    def visible(cls):
        """SQL predicate: row is ACTIVE (not in the trash)."""
        return cls.deleted_at.is_(None)

    @classmethod
    def trashed(cls):
        """SQL predicate: row is TRASHED."""
        return cls.deleted_at.is_not(None)

    @classmethod
    def trashed_before(cls, threshold: datetime):
        """SQL predicate: row has been in the trash since at least `threshold`."""
        return cls.deleted_at.is_not(None) & (cls.deleted_at <= threshold)
