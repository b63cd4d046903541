"""
Step repository - database operations for Step.
"""

from typing import Dict, List, Sequence
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.step import Step


class StepRepository:
    """Repository for Step database operations."""
    
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_for_tasks(self, task_ids: Sequence[UUID]) -> Dict[UUID, List[Step]]:
        """Visible steps grouped by task, in display order."""
        grouped: Dict[UUID, List[Step]] = {task_id: [] for task_id in task_ids}
        if not task_ids:
            return grouped
        result = await self.db.execute(
            select(Step)
            .where(Step.task_id.in_(task_ids), Step.visible())
            .order_by(Step.order.asc())
        )
        for step in result.scalars().all():
            grouped.setdefault(step.task_id, []).append(step)
        return grouped

    async def reset_for_tasks(self, task_ids: Sequence[UUID]) -> int:
        """Mark the visible steps of the given tasks as not completed."""
        if not task_ids:
            return 0
        result = await self.db.execute(
            update(Step)
            .where(
                Step.task_id.in_(task_ids),
                Step.visible(),
                Step.completed.is_(True),
            )
            .values(completed=False)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def delete_for_tasks(self, task_ids: Sequence[UUID]) -> int:
        """Hard-delete every step (trashed or not) of the given tasks."""
        if not task_ids:
            return 0
        result = await self.db.execute(
            delete(Step)
            .where(Step.task_id.in_(task_ids))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
