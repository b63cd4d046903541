"""
Task repository - database operations for Task.

Bulk lifecycle writes (reset, archive move) are guarded UPDATE statements:
the WHERE clause re-checks the state the row was selected in, so two workers
racing over the same task cannot both apply the transition.
"""

from datetime import datetime
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.task import Task
from app.models.todo_list import ListType, TodoList
from app.repositories.todo_list_repository import accessible_by


class TaskRepository:
    """Repository for Task database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_for_user(self, task_id: UUID, user_id: UUID) -> Optional[Tuple[Task, TodoList]]:
        """
        Get a task with its list if the user owns or shares the list.

        Trashed tasks and lists are included so restore paths can find them.
        """
        result = await self.db.execute(
            select(Task, TodoList)
            .join(TodoList, TodoList.id == Task.todo_list_id)
            .where(Task.id == task_id, accessible_by(user_id))
        )
        row = result.first()
        if row is None:
            return None
        return row[0], row[1]

    async def list_for_list(self, list_id: UUID) -> List[Task]:
        """Visible tasks of a list in display order."""
        result = await self.db.execute(
            select(Task)
            .where(Task.todo_list_id == list_id, Task.visible())
            .order_by(Task.order.asc(), Task.created_at.asc())
        )
        return list(result.scalars().all())

    async def list_visible_for_user(
        self,
        user_id: UUID,
        completed: Optional[bool] = None,
    ) -> List[Tuple[Task, TodoList]]:
        """Visible tasks in visible lists the user owns or shares, paired with their list."""
        query = (
            select(Task, TodoList)
            .join(TodoList, TodoList.id == Task.todo_list_id)
            .where(
                Task.visible(),
                TodoList.visible(),
                accessible_by(user_id),
            )
            .order_by(Task.order.asc(), Task.created_at.asc())
        )
        if completed is not None:
            query = query.where(Task.completed.is_(completed))
        result = await self.db.execute(query)
        return [(task, todo_list) for task, todo_list in result.all()]

    async def list_reminder_candidates(self, user_id: UUID) -> List[Tuple[Task, TodoList]]:
        """Open tasks that may produce reminders for the user."""
        return await self.list_visible_for_user(user_id, completed=False)

    async def find_resettable_ids(
        self,
        list_type: ListType,
        completed_before: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[UUID]:
        """
        Ids of completed, visible tasks in visible lists of `list_type`.

        With `completed_before`, only tasks completed before that instant (or
        completed with no timestamp at all) qualify.
        """
        query = (
            select(Task.id)
            .join(TodoList, TodoList.id == Task.todo_list_id)
            .where(
                Task.completed.is_(True),
                Task.visible(),
                TodoList.type == list_type,
                TodoList.visible(),
            )
            .order_by(Task.id)
        )
        if completed_before is not None:
            query = query.where(
                or_(Task.completed_at.is_(None), Task.completed_at < completed_before)
            )
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def reset_completed(self, task_ids: Sequence[UUID]) -> List[UUID]:
        """
        Count one more completion and reopen the given tasks, in one statement.

        Only rows still completed are touched. Returns the ids actually reset.
        """
        if not task_ids:
            return []
        result = await self.db.execute(
            update(Task)
            .where(
                Task.id.in_(task_ids),
                Task.completed.is_(True),
                Task.visible(),
            )
            .values(
                completion_count=Task.completion_count + 1,
                completed=False,
                completed_at=None,
            )
            .returning(Task.id)
            .execution_options(synchronize_session=False)
        )
        return list(result.scalars().all())

    async def find_archivable(
        self,
        completed_before: datetime,
        limit: Optional[int] = None,
    ) -> List[Tuple[UUID, UUID, UUID]]:
        """(task_id, list_id, owner_id) of tasks completed in CUSTOM lists at or before the cutoff."""
        query = (
            select(Task.id, Task.todo_list_id, TodoList.owner_id)
            .join(TodoList, TodoList.id == Task.todo_list_id)
            .where(
                Task.completed.is_(True),
                Task.completed_at.is_not(None),
                Task.completed_at <= completed_before,
                Task.visible(),
                TodoList.type == ListType.CUSTOM,
                TodoList.visible(),
            )
            .order_by(TodoList.owner_id, Task.completed_at.asc())
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return [(row[0], row[1], row[2]) for row in result.all()]

    async def move_to_archive(self, task_id: UUID, from_list_id: UUID, finished_list_id: UUID) -> bool:
        """
        Move a completed task into a FINISHED list, remembering its origin.

        Returns False when the task changed (reopened, moved, trashed, deleted)
        since it was selected.
        """
        result = await self.db.execute(
            update(Task)
            .where(
                Task.id == task_id,
                Task.todo_list_id == from_list_id,
                Task.completed.is_(True),
                Task.visible(),
            )
            .values(todo_list_id=finished_list_id, original_list_id=from_list_id)
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) > 0

    async def list_trashed_ids_for_owner(
        self,
        owner_id: UUID,
        threshold: Optional[datetime] = None,
    ) -> List[UUID]:
        """Ids of trashed tasks in lists owned by `owner_id` (lists themselves may be trashed too)."""
        condition = Task.trashed() if threshold is None else Task.trashed_before(threshold)
        result = await self.db.execute(
            select(Task.id)
            .join(TodoList, TodoList.id == Task.todo_list_id)
            .where(TodoList.owner_id == owner_id, condition)
        )
        return list(result.scalars().all())

    async def list_trashed_for_owner(self, owner_id: UUID) -> List[Task]:
        result = await self.db.execute(
            select(Task)
            .join(TodoList, TodoList.id == Task.todo_list_id)
            .where(TodoList.owner_id == owner_id, Task.trashed())
            .order_by(Task.deleted_at.asc())
        )
        return list(result.scalars().all())

    async def delete_by_ids(self, task_ids: Sequence[UUID]) -> int:
        """Hard-delete task rows. Steps must be removed first."""
        if not task_ids:
            return 0
        result = await self.db.execute(
            delete(Task)
            .where(Task.id.in_(task_ids))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
