"""
Real-time task events.

Fans an event out to everyone who can see the task's list: the owner plus
every user the list is shared with.
"""

import logging
from typing import Any, Set
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.todo_list_repository import TodoListRepository
from app.services.delivery import PushSink

logger = logging.getLogger(__name__)


class EventsService:
    """Broadcasts task and list events through a PushSink."""

    def __init__(self, db: AsyncSession, push: PushSink):
        self.lists = TodoListRepository(db)
        self.push = push

    async def audience(self, list_id: UUID) -> Set[UUID]:
        todo_list = await self.lists.get_by_id(list_id)
        if todo_list is None:
            return set()
        user_ids = {todo_list.owner_id}
        user_ids.update(await self.lists.shared_user_ids(list_id))
        return user_ids

    async def broadcast_list_event(self, list_id: UUID, event: str, data: Any) -> int:
        """Send an event to the list's audience. Delivery failures are logged, not raised."""
        delivered = 0
        for user_id in sorted(await self.audience(list_id), key=str):
            try:
                await self.push.send(user_id, event, data)
                delivered += 1
            except Exception:
                logger.exception("Failed to broadcast %s to user %s", event, user_id)
        return delivered
