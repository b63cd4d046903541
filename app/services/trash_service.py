"""
Trash retention: listing and purging soft-deleted lists and tasks.

Each user keeps trashed items for `trash_retention_days` (default 30); the
daily purge hard-deletes anything older than that.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.errors import NotFoundError
from app.models.user import User
from app.repositories.step_repository import StepRepository
from app.repositories.task_repository import TaskRepository
from app.repositories.todo_list_repository import TodoListRepository
from app.repositories.user_repository import UserRepository
from app.schemas.trash import TrashedItem, TrashRead
from app.utils.time import utc_now

logger = logging.getLogger(__name__)


@dataclass
class PurgeResult:
    """Counts of rows a purge run removed for good."""

    tasks: int = 0
    lists: int = 0
    users: int = 0
    per_user: Dict[UUID, Dict[str, int]] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.tasks + self.lists


def retention_days_for(user: User) -> int:
    days = user.trash_retention_days
    if days is None or days < 0:
        return settings.DEFAULT_TRASH_RETENTION_DAYS
    return days


class TrashService:
    """Trash view and retention purge."""

    def __init__(self, db: AsyncSession, list_batch_size: Optional[int] = None):
        self.db = db
        self.users = UserRepository(db)
        self.lists = TodoListRepository(db)
        self.tasks = TaskRepository(db)
        self.steps = StepRepository(db)
        self.list_batch_size = list_batch_size if list_batch_size is not None else settings.PURGE_BATCH_SIZE

    async def list_trash(self, user_id: UUID) -> TrashRead:
        """Trashed lists and tasks of a user, with the moment each will be purged."""
        user = await self.users.get_active(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found", details={"user_id": str(user_id)})

        retention = timedelta(days=retention_days_for(user))
        lists = await self.lists.list_trashed_for_owner(user_id)
        tasks = await self.tasks.list_trashed_for_owner(user_id)

        return TrashRead(
            retention_days=retention.days,
            lists=[
                TrashedItem(
                    id=item.id,
                    kind="list",
                    name=item.name,
                    deleted_at=item.deleted_at,
                    purge_at=item.deleted_at + retention,
                )
                for item in lists
            ],
            tasks=[
                TrashedItem(
                    id=item.id,
                    kind="task",
                    name=item.description,
                    deleted_at=item.deleted_at,
                    purge_at=item.deleted_at + retention,
                )
                for item in tasks
            ],
        )

    async def purge_user(self, user: User, now: datetime) -> Dict[str, int]:
        """Hard-delete one user's trash older than their retention window."""
        threshold = now - timedelta(days=retention_days_for(user))

        task_ids = await self.tasks.list_trashed_ids_for_owner(user.id, threshold)
        await self.steps.delete_for_tasks(task_ids)
        purged_tasks = await self.tasks.delete_by_ids(task_ids)

        trashed_lists = await self.lists.list_trashed_for_owner(
            user.id,
            threshold=threshold,
            limit=self.list_batch_size,
        )
        for todo_list in trashed_lists:
            await self.lists.hard_delete(todo_list.id)

        await self.db.flush()
        return {"tasks": purged_tasks, "lists": len(trashed_lists)}

    async def purge_trash(self, now: Optional[datetime] = None) -> PurgeResult:
        """Run the retention purge for every active user."""
        now = now or utc_now()
        result = PurgeResult()

        for user in await self.users.list_active():
            counts = await self.purge_user(user, now)
            if counts["tasks"] or counts["lists"]:
                result.per_user[user.id] = counts
                result.users += 1
                result.tasks += counts["tasks"]
                result.lists += counts["lists"]
                logger.info(
                    "Purged %s tasks and %s lists from trash for user %s",
                    counts["tasks"],
                    counts["lists"],
                    user.id,
                )

        return result
