"""
Task lifecycle business logic.

State transitions of tasks over time:
- recurring lists (DAILY/WEEKLY/MONTHLY/YEARLY): completed tasks are reopened
  at each reset point and their completion_count goes up by one
- CUSTOM lists: completed tasks move to the owner's FINISHED list after a delay
- FINISHED list: tasks can be restored to their original list or deleted for good

Every bulk operation is idempotent: running it again with nothing qualifying
changes nothing.
"""

import logging
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.errors import InvalidStateError, NotFoundError
from app.models.task import Task
from app.models.todo_list import ListType, TodoList
from app.repositories.step_repository import StepRepository
from app.repositories.task_repository import TaskRepository
from app.repositories.todo_list_repository import TodoListRepository
from app.schemas.task import TaskRead
from app.services.delivery import PushSink
from app.services.events_service import EventsService
from app.utils.time import start_of_local_day, utc_now

logger = logging.getLogger(__name__)


class TaskLifecycleService:
    """Reset, archive, restore and permanent delete of tasks."""

    def __init__(
        self,
        db: AsyncSession,
        push: Optional[PushSink] = None,
        batch_size: Optional[int] = None,
        tz_name: Optional[str] = None,
    ):
        self.db = db
        self.tasks = TaskRepository(db)
        self.steps = StepRepository(db)
        self.lists = TodoListRepository(db)
        self.events = EventsService(db, push) if push is not None else None
        self.batch_size = batch_size or settings.LIFECYCLE_BATCH_SIZE
        self.tz_name = tz_name or settings.SCHEDULER_TIMEZONE

    # ------------------------------------------------------------------
    # Recurring resets
    # ------------------------------------------------------------------

    async def reset_recurring(
        self,
        list_type: ListType,
        now: Optional[datetime] = None,
        completed_before: Optional[datetime] = None,
    ) -> int:
        """
        Reopen completed tasks of every visible list of `list_type`.

        Only tasks completed before `completed_before` (default: `now`) or
        completed without a timestamp qualify, so completions made after the
        reset point survive a late-running job.

        Each task's completion_count is incremented in the same statement that
        clears completed/completed_at, and its visible steps are reopened too.
        Returns the number of tasks reset.
        """
        if not list_type.is_recurring:
            raise InvalidStateError(f"{list_type.value} lists do not recur")
        cutoff = completed_before if completed_before is not None else (now or utc_now())

        total = 0
        while True:
            candidate_ids = await self.tasks.find_resettable_ids(
                list_type,
                completed_before=cutoff,
                limit=self.batch_size,
            )
            if not candidate_ids:
                break

            reset_ids = await self.tasks.reset_completed(candidate_ids)
            await self.steps.reset_for_tasks(reset_ids)
            await self.db.flush()
            total += len(reset_ids)

            # Rows another worker reset first drop out of the next selection;
            # stop if none of this batch could be claimed
            if not reset_ids or len(candidate_ids) < self.batch_size:
                break

        if total:
            logger.info("Reset %s %s tasks", total, list_type.value.lower())
        return total

    async def check_and_reset_daily_tasks_if_needed(self, now: Optional[datetime] = None) -> int:
        """
        Catch-up for DAILY lists when the midnight reset did not run.

        Resets DAILY tasks completed before the start of the current local day
        (or marked completed without a timestamp). Tasks completed today stay
        completed.
        """
        now = now or utc_now()
        day_start = start_of_local_day(now, self.tz_name)
        return await self.reset_recurring(ListType.DAILY, now=now, completed_before=day_start)

    # ------------------------------------------------------------------
    # Archiving
    # ------------------------------------------------------------------

    async def archive_completed(
        self,
        now: Optional[datetime] = None,
        delay_minutes: Optional[int] = None,
    ) -> int:
        """
        Move CUSTOM-list tasks completed at least `delay_minutes` ago to their
        owner's FINISHED list. Tasks keep completed/completed_at.
        Returns the number of tasks moved.
        """
        now = now or utc_now()
        if delay_minutes is None:
            delay_minutes = settings.ARCHIVE_DELAY_MINUTES
        threshold = now - timedelta(minutes=delay_minutes)

        archived = 0
        while True:
            rows = await self.tasks.find_archivable(threshold, limit=self.batch_size)
            if not rows:
                break
            logger.info("Found %s tasks to archive", len(rows))

            moved = await self._archive_batch(rows)
            archived += moved
            if not moved or len(rows) < self.batch_size:
                break

        return archived

    async def _archive_batch(self, rows: List[Tuple[UUID, UUID, UUID]]) -> int:
        by_owner: Dict[UUID, List[Tuple[UUID, UUID]]] = OrderedDict()
        for task_id, list_id, owner_id in rows:
            by_owner.setdefault(owner_id, []).append((task_id, list_id))

        archived = 0
        for owner_id, owner_tasks in by_owner.items():
            finished = await self.lists.get_or_create_finished_list(owner_id)
            moved = 0
            for task_id, list_id in owner_tasks:
                if await self.tasks.move_to_archive(task_id, list_id, finished.id):
                    moved += 1
            await self.db.flush()
            archived += moved
            logger.info("Archived %s tasks for user %s", moved, owner_id)
        return archived

    # ------------------------------------------------------------------
    # User actions on archived / trashed tasks
    # ------------------------------------------------------------------

    async def _get_for_user(self, task_id: UUID, user_id: UUID) -> Tuple[Task, TodoList]:
        found = await self.tasks.get_for_user(task_id, user_id)
        if found is None:
            raise NotFoundError(f"Task with ID {task_id} not found", details={"task_id": str(task_id)})
        return found

    async def restore(self, task_id: UUID, requester_id: UUID) -> Task:
        """
        Move an archived task back to the list it was archived from.

        Raises InvalidStateError when the task is not archived or its original
        list is gone; the task is left untouched in that case.
        """
        task, todo_list = await self._get_for_user(task_id, requester_id)

        if todo_list.type != ListType.FINISHED or not task.is_visible:
            raise InvalidStateError(
                "Task is not archived",
                details={"task_id": str(task_id), "list_type": todo_list.type.value},
            )
        if task.original_list_id is None:
            raise InvalidStateError(
                "Original list information not available",
                details={"task_id": str(task_id)},
            )

        original = await self.lists.get_visible_owned(task.original_list_id, requester_id)
        if original is None:
            raise InvalidStateError(
                "Original list no longer exists",
                details={"task_id": str(task_id), "original_list_id": str(task.original_list_id)},
            )

        task.todo_list_id = original.id
        task.original_list_id = None
        task.completed = False
        task.completed_at = None
        await self.db.flush()
        await self.db.refresh(task)

        logger.info("Task unarchived: task_id=%s user_id=%s", task_id, requester_id)
        await self._broadcast(original.id, "task_restored", TaskRead.model_validate(task).model_dump(mode="json", by_alias=True))
        return task

    async def restore_from_trash(self, task_id: UUID, requester_id: UUID) -> Task:
        """Take a soft-deleted task out of the trash."""
        task, todo_list = await self._get_for_user(task_id, requester_id)

        if task.is_visible:
            raise InvalidStateError("Task is not in the trash", details={"task_id": str(task_id)})
        if not todo_list.is_visible:
            raise InvalidStateError(
                "Task's list is in the trash; restore the list first",
                details={"task_id": str(task_id), "list_id": str(todo_list.id)},
            )

        task.deleted_at = None
        await self.db.flush()
        await self.db.refresh(task)

        logger.info("Task undeleted: task_id=%s user_id=%s", task_id, requester_id)
        await self._broadcast(todo_list.id, "task_restored", TaskRead.model_validate(task).model_dump(mode="json", by_alias=True))
        return task

    async def permanent_delete(self, task_id: UUID, requester_id: UUID) -> None:
        """Hard-delete an archived task and its steps."""
        task, todo_list = await self._get_for_user(task_id, requester_id)

        if todo_list.type != ListType.FINISHED:
            raise InvalidStateError(
                "Only archived tasks can be permanently deleted",
                details={"task_id": str(task_id), "list_type": todo_list.type.value},
            )

        await self.steps.delete_for_tasks([task.id])
        await self.db.delete(task)
        await self.db.flush()

        logger.info("Task permanently deleted: task_id=%s user_id=%s", task_id, requester_id)
        await self._broadcast(todo_list.id, "task_permanently_deleted", {"id": str(task_id)})

    async def _broadcast(self, list_id: UUID, event: str, data) -> None:
        if self.events is not None:
            await self.events.broadcast_list_event(list_id, event, data)
