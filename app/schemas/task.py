"""
Task Pydantic schemas.
"""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from app.schemas.base import RecordRead
from app.services.recurrence import normalize_reminder_days


class StepRead(RecordRead):
    """Schema for reading a step."""

    task_id: UUID
    description: str
    completed: bool
    order: int


class TaskRead(RecordRead):
    """Schema for reading task data (API response)."""
    
    todo_list_id: UUID
    original_list_id: Optional[UUID] = None
    description: str
    due_date: Optional[date] = None
    specific_day_of_week: Optional[int] = None
    reminder_days_before: List[int] = Field(default_factory=lambda: [1])
    completed: bool
    completed_at: Optional[datetime] = None
    completion_count: int
    deleted_at: Optional[datetime] = None
    order: int

    @field_validator("reminder_days_before", mode="before")
    @classmethod
    def _normalize_reminder_days(cls, value):
        return normalize_reminder_days(value)


class TaskWithSteps(TaskRead):
    steps: List[StepRead] = Field(default_factory=list)
