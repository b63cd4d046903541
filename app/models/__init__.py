"""
Models package.

Import all models here so they are registered with SQLAlchemy.
This file also makes it easy to import models from one place.
"""

from app.models.base_model import TrashState
from app.models.user import User, NotificationFrequency
from app.models.todo_list import TodoList, ListType, RECURRING_LIST_TYPES, SYSTEM_LIST_NAMES
from app.models.list_share import ListShare, ShareRole
from app.models.task import Task
from app.models.step import Step

# Export all models
__all__ = [
    "TrashState",
    "User",
    "NotificationFrequency",
    "TodoList",
    "ListType",
    "RECURRING_LIST_TYPES",
    "SYSTEM_LIST_NAMES",
    "ListShare",
    "ShareRole",
    "Task",
    "Step",
]
