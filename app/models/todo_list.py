"""
TodoList model.

A named container of tasks owned by exactly one user. The list type decides
whether its tasks recur (DAILY/WEEKLY/MONTHLY/YEARLY), get archived when
completed (CUSTOM) or are the archive itself (FINISHED).
"""

import enum
import uuid

from sqlalchemy import Boolean, Enum, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base_model import SoftDeleteMixin, TimestampedModel


class ListType(str, enum.Enum):
    CUSTOM = "CUSTOM"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"
    FINISHED = "FINISHED"

    @property
    def is_recurring(self) -> bool:
        return self in RECURRING_LIST_TYPES


RECURRING_LIST_TYPES = frozenset(
    {ListType.DAILY, ListType.WEEKLY, ListType.MONTHLY, ListType.YEARLY}
)

# One of each per user, created at registration, never user-deletable
SYSTEM_LIST_NAMES = {
    ListType.DAILY: "Daily",
    ListType.WEEKLY: "Weekly",
    ListType.MONTHLY: "Monthly",
    ListType.YEARLY: "Yearly",
    ListType.FINISHED: "Finished Tasks",
}


class TodoList(SoftDeleteMixin, TimestampedModel):
    """
    TodoList table.
    """
    
    __tablename__ = "todo_list"
    
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("user.id"),
        nullable=False,
        index=True,
    )
    
    type: Mapped[ListType] = mapped_column(
        Enum(ListType, name="list_type"),
        nullable=False,
        default=ListType.CUSTOM,
        index=True,
    )
    
    is_system: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    # At most one live system list of each type per owner
    __table_args__ = (
        Index(
            "uq_todo_list_system_type",
            "owner_id",
            "type",
            unique=True,
            postgresql_where=text("is_system AND deleted_at IS NULL"),
            sqlite_where=text("is_system AND deleted_at IS NULL"),
        ),
    )
