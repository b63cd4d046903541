"""
Task model.

A task lives in exactly one list at a time. Tasks in recurring lists are reset
by the lifecycle scheduler; completed tasks in CUSTOM lists are moved to the
owner's FINISHED list, remembering where they came from in original_list_id.
"""

import uuid
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, CheckConstraint, Date, DateTime, ForeignKey, Integer, SmallInteger, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base_model import SoftDeleteMixin, TimestampedModel


class Task(SoftDeleteMixin, TimestampedModel):
    """
    Task table.
    """
    
    __tablename__ = "task"
    
    todo_list_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("todo_list.id"),
        nullable=False,
        index=True,
    )
    
    # Set only while the task sits in FINISHED because of automatic archiving.
    # No foreign key: the origin list may be purged while the task stays archived.
    original_list_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        nullable=True,
    )
    
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    
    due_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )
    
    # 0 = Sunday .. 6 = Saturday
    specific_day_of_week: Mapped[Optional[int]] = mapped_column(
        SmallInteger,
        nullable=True,
    )
    
    # List of day offsets; older rows may hold a bare integer
    reminder_days_before: Mapped[Optional[Any]] = mapped_column(
        JSON,
        nullable=True,
    )
    
    completed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    
    completion_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
    
    order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    __table_args__ = (
        CheckConstraint(
            "specific_day_of_week IS NULL OR specific_day_of_week BETWEEN 0 AND 6",
            name="ck_task_specific_day_of_week",
        ),
    )
