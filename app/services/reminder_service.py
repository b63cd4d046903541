"""
Reminder notification builder.

build_notifications / build_notifications_for_range are pure: they turn
(task, list) pairs into ReminderNotification objects for a day or a range.
ReminderService wraps them with the database query for one user's tasks.
"""

import logging
from datetime import date, timedelta
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.errors import InvalidStateError
from app.models.todo_list import ListType
from app.repositories.task_repository import TaskRepository
from app.schemas.reminder import ReminderNotification
from app.services.recurrence import coerce_list_type, due_date_for, normalize_reminder_days
from app.utils.time import iter_days, local_date, utc_now

logger = logging.getLogger(__name__)

TaskWithList = Tuple[Any, Any]


def format_reminder_title(description: str) -> str:
    return f"Reminder: {description}"


def format_reminder_message(
    description: str,
    list_name: str,
    due_date: Optional[date],
    today: date,
) -> str:
    """
    Human readable reminder text.

    The day count is measured from the wall-clock `today`, not from the day the
    reminder is for, so range queries read "due in N days" relative to now.
    """
    if due_date is not None:
        days_until_due = (due_date - today).days
        if days_until_due == 0:
            return f'"{description}" from {list_name} is due today!'
        if days_until_due == 1:
            return f'"{description}" from {list_name} is due tomorrow.'
        if days_until_due > 1:
            return f'"{description}" from {list_name} is due in {days_until_due} days.'
    return f'Reminder: "{description}" from {list_name}'


def build_notifications(
    tasks: Iterable[TaskWithList],
    target_date: date,
    today: Optional[date] = None,
) -> List[ReminderNotification]:
    """
    Notifications whose reminder day is `target_date`.

    `tasks` yields (task, list) pairs. `today` defaults to the current local
    day and only affects message wording.
    """
    if today is None:
        today = local_date(utc_now(), settings.SCHEDULER_TIMEZONE)

    notifications: List[ReminderNotification] = []
    for task, todo_list in tasks:
        list_type = coerce_list_type(todo_list.type)
        due_date = due_date_for(task, list_type, target_date)

        if due_date is None:
            if list_type is not ListType.DAILY:
                continue
            # DAILY tasks without their own date are due every day
            due_date = target_date

        for days_before in normalize_reminder_days(task.reminder_days_before):
            if due_date - timedelta(days=days_before) != target_date:
                continue
            notifications.append(
                ReminderNotification(
                    task_id=task.id,
                    task_description=task.description,
                    due_date=due_date,
                    reminder_date=target_date,
                    reminder_days_before=days_before,
                    title=format_reminder_title(task.description),
                    message=format_reminder_message(task.description, todo_list.name, due_date, today),
                    list_name=todo_list.name,
                    list_type=list_type.value if list_type is not None else str(todo_list.type),
                )
            )
    return notifications


def build_notifications_for_range(
    tasks: Sequence[TaskWithList],
    start_date: date,
    end_date: date,
    today: Optional[date] = None,
) -> List[ReminderNotification]:
    """
    Notifications for every day in [start_date, end_date], one per task.

    When several days or offsets match for a task, the earliest day wins.
    """
    seen = set()
    unique: List[ReminderNotification] = []
    for day in iter_days(start_date, end_date):
        for notification in build_notifications(tasks, day, today=today):
            if notification.task_id in seen:
                continue
            seen.add(notification.task_id)
            unique.append(notification)
    return unique


class ReminderService:
    """Reminders for one user, backed by the database."""

    def __init__(
        self,
        db: AsyncSession,
        today_provider: Optional[Callable[[], date]] = None,
    ):
        self.tasks = TaskRepository(db)
        self._today_provider = today_provider or (
            lambda: local_date(utc_now(), settings.SCHEDULER_TIMEZONE)
        )

    def today(self) -> date:
        return self._today_provider()

    async def for_date(
        self,
        user_id: UUID,
        target_date: date,
        today: Optional[date] = None,
    ) -> List[ReminderNotification]:
        candidates = await self.tasks.list_reminder_candidates(user_id)
        return build_notifications(candidates, target_date, today=today or self.today())

    async def for_today(self, user_id: UUID) -> List[ReminderNotification]:
        return await self.for_date(user_id, self.today())

    async def for_range(self, user_id: UUID, start_date: date, end_date: date) -> List[ReminderNotification]:
        if end_date < start_date:
            raise InvalidStateError(
                "Reminder range end is before its start",
                details={"start": start_date.isoformat(), "end": end_date.isoformat()},
            )
        span = (end_date - start_date).days + 1
        if span > settings.REMINDER_RANGE_MAX_DAYS:
            raise InvalidStateError(
                f"Reminder range is limited to {settings.REMINDER_RANGE_MAX_DAYS} days",
                details={"days": span},
            )

        candidates = await self.tasks.list_reminder_candidates(user_id)
        reminders = build_notifications_for_range(candidates, start_date, end_date, today=self.today())
        logger.debug("Built %s reminders for user %s over %s days", len(reminders), user_id, span)
        return reminders
