"""
TodoList repository - database operations for TodoList and ListShare.
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.list_share import ListShare
from app.models.step import Step
from app.models.task import Task
from app.models.todo_list import ListType, SYSTEM_LIST_NAMES, TodoList

logger = logging.getLogger(__name__)


def accessible_by(user_id: UUID):
    """SQL predicate: the list is owned by, or shared with, the user."""
    shared = (
        select(ListShare.id)
        .where(
            ListShare.todo_list_id == TodoList.id,
            ListShare.shared_with_id == user_id,
        )
        .exists()
    )
    return or_(TodoList.owner_id == user_id, shared)


class TodoListRepository:
    """Repository for TodoList database operations."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def get_by_id(self, list_id: UUID) -> Optional[TodoList]:
        """Get a list by ID, trashed or not."""
        result = await self.db.execute(select(TodoList).where(TodoList.id == list_id))
        return result.scalar_one_or_none()

    async def get_accessible(self, list_id: UUID, user_id: UUID) -> Optional[TodoList]:
        """Get a visible list the user owns or has been shared."""
        result = await self.db.execute(
            select(TodoList).where(
                TodoList.id == list_id,
                TodoList.visible(),
                accessible_by(user_id),
            )
        )
        return result.scalar_one_or_none()

    async def get_visible_owned(self, list_id: UUID, owner_id: UUID) -> Optional[TodoList]:
        result = await self.db.execute(
            select(TodoList).where(
                TodoList.id == list_id,
                TodoList.owner_id == owner_id,
                TodoList.visible(),
            )
        )
        return result.scalar_one_or_none()
    
    async def get_system_list(self, owner_id: UUID, list_type: ListType) -> Optional[TodoList]:
        result = await self.db.execute(
            select(TodoList)
            .where(
                TodoList.owner_id == owner_id,
                TodoList.type == list_type,
                TodoList.is_system.is_(True),
                TodoList.visible(),
            )
            .order_by(TodoList.created_at.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def create_system_list(self, owner_id: UUID, list_type: ListType) -> TodoList:
        todo_list = TodoList(
            name=SYSTEM_LIST_NAMES[list_type],
            owner_id=owner_id,
            type=list_type,
            is_system=True,
        )
        self.db.add(todo_list)
        await self.db.flush()
        return todo_list

    async def get_or_create_system_list(self, owner_id: UUID, list_type: ListType) -> TodoList:
        """
        Get the owner's system list of `list_type`, creating it when missing.

        A concurrent writer may create the same list between the lookup and the
        insert; the unique index rejects the second row, the savepoint is rolled
        back and the winner's row is returned.
        """
        existing = await self.get_system_list(owner_id, list_type)
        if existing is not None:
            return existing

        try:
            async with self.db.begin_nested():
                created = await self.create_system_list(owner_id, list_type)
        except IntegrityError:
            existing = await self.get_system_list(owner_id, list_type)
            if existing is None:
                raise
            logger.info("%s list for user %s was created concurrently", list_type.value, owner_id)
            return existing

        logger.info("Created %s list for user %s", SYSTEM_LIST_NAMES[list_type], owner_id)
        return created

    async def get_or_create_finished_list(self, owner_id: UUID) -> TodoList:
        """Get the user's FINISHED system list, creating it on first use."""
        return await self.get_or_create_system_list(owner_id, ListType.FINISHED)

    async def ensure_system_lists(self, owner_id: UUID) -> List[TodoList]:
        """Create whichever DAILY/WEEKLY/MONTHLY/YEARLY/FINISHED lists the user is missing."""
        return [
            await self.get_or_create_system_list(owner_id, list_type)
            for list_type in SYSTEM_LIST_NAMES
        ]

    async def list_trashed_for_owner(
        self,
        owner_id: UUID,
        threshold: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[TodoList]:
        """Trashed lists of an owner, optionally only those trashed at or before `threshold`."""
        condition = TodoList.trashed() if threshold is None else TodoList.trashed_before(threshold)
        query = (
            select(TodoList)
            .where(TodoList.owner_id == owner_id, condition)
            .order_by(TodoList.deleted_at.asc())
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def shared_user_ids(self, list_id: UUID) -> List[UUID]:
        result = await self.db.execute(
            select(ListShare.shared_with_id).where(ListShare.todo_list_id == list_id)
        )
        return list(result.scalars().all())

    async def hard_delete(self, list_id: UUID) -> None:
        """Remove a list for good: its steps, tasks, shares, then the list row."""
        task_ids = select(Task.id).where(Task.todo_list_id == list_id)
        await self.db.execute(
            delete(Step)
            .where(Step.task_id.in_(task_ids))
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(
            delete(Task)
            .where(Task.todo_list_id == list_id)
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(
            delete(ListShare)
            .where(ListShare.todo_list_id == list_id)
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(
            delete(TodoList)
            .where(TodoList.id == list_id)
            .execution_options(synchronize_session=False)
        )
