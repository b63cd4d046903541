"""
Reminder notification schemas.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from app.schemas.base import CamelModel


class ReminderNotification(CamelModel):
    """One reminder for one task on one day, ready for push or email delivery."""

    task_id: UUID
    task_description: str
    due_date: Optional[date] = None
    reminder_date: date
    reminder_days_before: int
    title: str
    message: str
    list_name: str
    list_type: str
