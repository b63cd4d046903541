"""
ListShare model.

Grants another user access to a list. Shared users see the list's tasks in
their reminders and receive its real-time events.
"""

import enum
import uuid

from sqlalchemy import Enum, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base_model import TimestampedModel


class ShareRole(str, enum.Enum):
    VIEWER = "VIEWER"
    EDITOR = "EDITOR"


class ListShare(TimestampedModel):
    __tablename__ = "list_share"
    
    todo_list_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("todo_list.id"),
        nullable=False,
    )
    
    shared_with_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("user.id"),
        nullable=False,
        index=True,
    )
    
    role: Mapped[ShareRole] = mapped_column(
        Enum(ShareRole, name="share_role"),
        nullable=False,
        default=ShareRole.VIEWER,
    )
    
    __table_args__ = (
        Index("ix_list_share_list_user", "todo_list_id", "shared_with_id", unique=True),
    )
