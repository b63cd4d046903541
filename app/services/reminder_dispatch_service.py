"""
Daily reminder dispatch.

The scheduled job only fans out: one `process_user_reminders` job per active
user goes onto the job queue. Each job then builds that user's reminders for
today and hands them to the push and email sinks.
"""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import NotificationFrequency
from app.repositories.user_repository import UserRepository
from app.services.delivery import EmailSink, PushSink
from app.services.reminder_service import ReminderService
from app.workers.ports import JobQueuePort

logger = logging.getLogger(__name__)

PROCESS_USER_REMINDERS_JOB = "process_user_reminders"
REMINDERS_EVENT = "reminders"


class ReminderDispatchService:
    """Fan-out and per-user delivery of today's reminders."""

    def __init__(
        self,
        db: AsyncSession,
        push: PushSink,
        email: EmailSink,
        reminders: Optional[ReminderService] = None,
    ):
        self.users = UserRepository(db)
        self.push = push
        self.email = email
        self.reminders = reminders or ReminderService(db)

    async def enqueue_all(self, queue: JobQueuePort) -> int:
        """Queue one reminder job per active user. Returns the number of jobs queued."""
        users = await self.users.list_active()
        for user in users:
            await queue.enqueue(PROCESS_USER_REMINDERS_JOB, {"user_id": str(user.id)})
        if users:
            logger.info("Queued reminder jobs for %s users", len(users))
        return len(users)

    async def process_user(self, user_id: UUID, today: Optional[date] = None) -> int:
        """
        Deliver one user's reminders for `today` (default: current local day).

        Push always fires when there is something to send; email is skipped
        when the user opted out or has no address. Returns the number of
        notifications built.
        """
        user = await self.users.get_active(user_id)
        if user is None:
            logger.info("Skipping reminders for missing user %s", user_id)
            return 0

        day = today or self.reminders.today()
        notifications = await self.reminders.for_date(user.id, day, today=day)
        if not notifications:
            return 0

        await self.push.send(
            user.id,
            REMINDERS_EVENT,
            [item.model_dump(mode="json", by_alias=True) for item in notifications],
        )

        if user.email and user.notification_frequency != NotificationFrequency.NONE:
            for item in notifications:
                await self.email.send(user.email, item.title, item.message)

        logger.info("Sent %s reminders to user %s", len(notifications), user.id)
        return len(notifications)
