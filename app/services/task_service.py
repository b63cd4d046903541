"""
Task read paths.

Reading a DAILY list first runs the daily catch-up reset, so a missed
midnight job never shows yesterday's completions as done today.
"""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import NotFoundError
from app.models.task import Task
from app.models.todo_list import ListType
from app.repositories.step_repository import StepRepository
from app.repositories.task_repository import TaskRepository
from app.repositories.todo_list_repository import TodoListRepository
from app.schemas.task import StepRead, TaskRead, TaskWithSteps
from app.services.recurrence import is_due_on
from app.services.task_lifecycle_service import TaskLifecycleService


class TaskService:
    """Service for task read logic."""
    
    def __init__(self, db: AsyncSession, lifecycle: Optional[TaskLifecycleService] = None):
        self.repository = TaskRepository(db)
        self.steps = StepRepository(db)
        self.lists = TodoListRepository(db)
        self.lifecycle = lifecycle or TaskLifecycleService(db)
    
    async def list_tasks(
        self,
        user_id: UUID,
        list_id: UUID,
        now: Optional[datetime] = None,
    ) -> List[TaskWithSteps]:
        """Tasks of a list the user can see, with their visible steps."""
        todo_list = await self.lists.get_accessible(list_id, user_id)
        if todo_list is None:
            raise NotFoundError(f"List {list_id} not found", details={"list_id": str(list_id)})

        if todo_list.type == ListType.DAILY:
            await self.lifecycle.check_and_reset_daily_tasks_if_needed(now)

        tasks = await self.repository.list_for_list(list_id)
        return await self._with_steps(tasks)
    
    async def tasks_for_date(self, user_id: UUID, day: date) -> List[TaskRead]:
        """Open and completed tasks that are due on `day` across every list the user can see."""
        rows = await self.repository.list_visible_for_user(user_id)
        return [
            TaskRead.model_validate(task)
            for task, todo_list in rows
            if todo_list.type != ListType.FINISHED and is_due_on(task, todo_list.type, day)
        ]

    async def _with_steps(self, tasks: List[Task]) -> List[TaskWithSteps]:
        steps = await self.steps.list_for_tasks([task.id for task in tasks])
        result = []
        for task in tasks:
            item = TaskWithSteps.model_validate(task)
            item.steps = [StepRead.model_validate(step) for step in steps.get(task.id, [])]
            result.append(item)
        return result
