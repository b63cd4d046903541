"""
User model.

Only the fields the lifecycle engine reads are mapped here: contact address,
notification preference and trash retention.
"""

import enum
from typing import Optional

from sqlalchemy import Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.config import settings
from app.models.base_model import SoftDeleteMixin, TimestampedModel


class NotificationFrequency(str, enum.Enum):
    """How often a user wants reminder emails. NONE disables email, not push."""

    NONE = "NONE"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"


class User(SoftDeleteMixin, TimestampedModel):
    """
    User table - owners of lists.
    """
    
    __tablename__ = "user"
    
    email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        unique=True,
    )
    
    full_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    
    notification_frequency: Mapped[NotificationFrequency] = mapped_column(
        Enum(NotificationFrequency, name="notification_frequency"),
        nullable=False,
        default=NotificationFrequency.DAILY,
    )
    
    trash_retention_days: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=lambda: settings.DEFAULT_TRASH_RETENTION_DAYS,
    )
