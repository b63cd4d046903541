"""
Step model - a checklist item inside a task.
"""

import uuid

from sqlalchemy import Boolean, ForeignKey, Integer, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base_model import SoftDeleteMixin, TimestampedModel


class Step(SoftDeleteMixin, TimestampedModel):
    __tablename__ = "step"
    
    task_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("task.id"),
        nullable=False,
        index=True,
    )
    
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    
    completed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    
    order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
