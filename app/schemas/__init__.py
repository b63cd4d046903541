"""
Pydantic schemas package.
"""

from app.schemas.reminder import ReminderNotification
from app.schemas.task import StepRead, TaskRead, TaskWithSteps
from app.schemas.trash import TrashedItem, TrashRead

__all__ = [
    "ReminderNotification",
    "StepRead",
    "TaskRead",
    "TaskWithSteps",
    "TrashedItem",
    "TrashRead",
]
