"""
Trash view schemas.
"""

from datetime import datetime
from typing import List
from uuid import UUID

from app.schemas.base import CamelModel


class TrashedItem(CamelModel):
    """A soft-deleted list or task and the moment it will be purged."""

    id: UUID
    kind: str  # "list" or "task"
    name: str
    deleted_at: datetime
    purge_at: datetime


class TrashRead(CamelModel):
    retention_days: int
    lists: List[TrashedItem]
    tasks: List[TrashedItem]
