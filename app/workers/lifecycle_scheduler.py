"""Lifecycle scheduler: wires the task lifecycle jobs onto a scheduler and a job queue.

Jobs:
- reset_<type>: reopen completed tasks of recurring lists at their reset point
- archive_completed: move finished one-off tasks to the FINISHED list
- purge_trash: hard-delete trash past each user's retention window
- dispatch_reminders: queue one reminder job per user

Every job opens its own session and commits at the end. Connectivity failures
go through JobGuard; SCHEDULER_DISABLED turns every job into a logged no-op.
"""

from __future__ import annotations

import logging
import time
from functools import partial
from typing import Any, AsyncContextManager, Awaitable, Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Environment, Settings, settings as default_settings
from app.db.session import get_async_session_context
from app.errors import ConnectivityError
from app.models.todo_list import ListType
from app.services.delivery import EmailSink, PushSink, get_default_email_sink, get_default_push_sink
from app.services.recurrence import RESET_CRON
from app.services.reminder_dispatch_service import PROCESS_USER_REMINDERS_JOB, ReminderDispatchService
from app.services.task_lifecycle_service import TaskLifecycleService
from app.services.trash_service import PurgeResult, TrashService
from app.utils.time import local_date, start_of_local_day, utc_now
from app.workers.in_process import AsyncioCronScheduler, InMemoryJobQueue
from app.workers.ports import JobQueuePort, SchedulerPort

logger = logging.getLogger(__name__)

CONNECTIVITY_ERRORS = (ConnectivityError, OperationalError, InterfaceError, OSError)

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]


class JobGuard:
    """Error policy for scheduled jobs.

    Outside production a lost database connection skips the run and is logged
    at most once per cooldown per job. In production it is raised as
    ConnectivityError. Any other exception propagates unchanged.
    """

    def __init__(
        self,
        environment: Environment,
        cooldown_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.environment = environment
        self.cooldown_seconds = cooldown_seconds
        self.clock = clock
        self._last_logged: Dict[str, float] = {}

    def _should_log(self, name: str) -> bool:
        now = self.clock()
        last = self._last_logged.get(name)
        if last is not None and now - last < self.cooldown_seconds:
            return False
        self._last_logged[name] = now
        return True

    async def run(self, name: str, job: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return await job()
        except CONNECTIVITY_ERRORS as exc:
            if self.environment == Environment.PRODUCTION:
                logger.error("Job %s lost its database connection: %s", name, exc)
                if isinstance(exc, ConnectivityError):
                    raise
                raise ConnectivityError(
                    "Database unreachable",
                    details={"job": name, "error": str(exc)},
                ) from exc
            if self._should_log(name):
                logger.warning("Job %s skipped, database unreachable: %s", name, exc)
            return None


class LifecycleScheduler:
    """Registers and runs the task lifecycle jobs."""

    def __init__(
        self,
        settings: Settings = default_settings,
        session_factory: SessionFactory = get_async_session_context,
        scheduler: Optional[SchedulerPort] = None,
        queue: Optional[JobQueuePort] = None,
        push: Optional[PushSink] = None,
        email: Optional[EmailSink] = None,
        clock: Callable[[], Any] = utc_now,
        guard: Optional[JobGuard] = None,
    ) -> None:
        self.settings = settings
        self.session_factory = session_factory
        self.scheduler = scheduler or AsyncioCronScheduler(settings.SCHEDULER_TIMEZONE)
        self.queue = queue or InMemoryJobQueue()
        self.push = push or get_default_push_sink()
        self.email = email or get_default_email_sink()
        self.clock = clock
        self.guard = guard or JobGuard(
            settings.APP_ENV,
            cooldown_seconds=settings.CONNECTIVITY_LOG_COOLDOWN_SECONDS,
        )
        self.registered: List[str] = []

    @property
    def disabled(self) -> bool:
        return self.settings.SCHEDULER_DISABLED

    def _skipped(self, name: str) -> bool:
        if self.disabled:
            logger.info("Scheduler disabled, skipping %s", name)
            return True
        return False

    def register(self) -> List[str]:
        """Register every periodic job and the reminder consumer. No-op when disabled."""
        if self.disabled:
            logger.warning("SCHEDULER_DISABLED is set; no lifecycle jobs registered")
            return []

        for list_type, cron_expr in RESET_CRON.items():
            name = f"reset_{list_type.value.lower()}"
            self.scheduler.register_periodic(cron_expr, partial(self.reset_recurring, list_type), name)
            self.registered.append(name)

        jobs = [
            (self.settings.ARCHIVE_INTERVAL_CRON, self.archive_completed, "archive_completed"),
            (self.settings.TRASH_PURGE_CRON, self.purge_trash, "purge_trash"),
            (f"0 {self.settings.REMINDER_DISPATCH_HOUR} * * *", self.dispatch_reminders, "dispatch_reminders"),
        ]
        for cron_expr, handler, name in jobs:
            self.scheduler.register_periodic(cron_expr, handler, name)
            self.registered.append(name)

        self.queue.consume(PROCESS_USER_REMINDERS_JOB, self.process_user_reminders)
        return list(self.registered)

    def _lifecycle(self, db: AsyncSession) -> TaskLifecycleService:
        return TaskLifecycleService(
            db,
            push=self.push,
            batch_size=self.settings.LIFECYCLE_BATCH_SIZE,
            tz_name=self.settings.SCHEDULER_TIMEZONE,
        )

    async def run_startup(self) -> Optional[int]:
        """DAILY catch-up for a process that was down at midnight."""
        if self._skipped("startup_daily_catch_up"):
            return None

        async def job() -> int:
            async with self.session_factory() as db:
                return await self._lifecycle(db).check_and_reset_daily_tasks_if_needed(self.clock())

        return await self.guard.run("startup_daily_catch_up", job)

    async def reset_recurring(self, list_type: ListType) -> Optional[int]:
        name = f"reset_{list_type.value.lower()}"
        if self._skipped(name):
            return None

        async def job() -> int:
            now = self.clock()
            async with self.session_factory() as db:
                return await self._lifecycle(db).reset_recurring(
                    list_type,
                    now=now,
                    completed_before=start_of_local_day(now, self.settings.SCHEDULER_TIMEZONE),
                )

        return await self.guard.run(name, job)

    async def archive_completed(self) -> Optional[int]:
        if self._skipped("archive_completed"):
            return None

        async def job() -> int:
            async with self.session_factory() as db:
                return await self._lifecycle(db).archive_completed(
                    self.clock(),
                    delay_minutes=self.settings.ARCHIVE_DELAY_MINUTES,
                )

        return await self.guard.run("archive_completed", job)

    async def purge_trash(self) -> Optional[PurgeResult]:
        if self._skipped("purge_trash"):
            return None

        async def job() -> PurgeResult:
            async with self.session_factory() as db:
                service = TrashService(db, list_batch_size=self.settings.PURGE_BATCH_SIZE)
                return await service.purge_trash(self.clock())

        return await self.guard.run("purge_trash", job)

    async def dispatch_reminders(self) -> Optional[int]:
        if self._skipped("dispatch_reminders"):
            return None

        async def job() -> int:
            async with self.session_factory() as db:
                service = ReminderDispatchService(db, self.push, self.email)
                return await service.enqueue_all(self.queue)

        return await self.guard.run("dispatch_reminders", job)

    async def process_user_reminders(self, payload: Dict[str, Any]) -> Optional[int]:
        """Queue consumer for one user's reminders."""
        if self._skipped(PROCESS_USER_REMINDERS_JOB):
            return None

        user_id = UUID(str(payload["user_id"]))
        today = local_date(self.clock(), self.settings.SCHEDULER_TIMEZONE)

        async def job() -> int:
            async with self.session_factory() as db:
                service = ReminderDispatchService(db, self.push, self.email)
                return await service.process_user(user_id, today=today)

        return await self.guard.run(PROCESS_USER_REMINDERS_JOB, job)

    async def start(self) -> None:
        """Register jobs, run the startup catch-up and start the in-process loops."""
        self.register()
        if self.disabled:
            return
        try:
            await self.run_startup()
        except ConnectivityError:
            logger.exception("Startup catch-up failed; timers start anyway")
        for runner in (self.scheduler, self.queue):
            start = getattr(runner, "start", None)
            if start is not None:
                start()

    async def stop(self) -> None:
        for runner in (self.scheduler, self.queue):
            stop = getattr(runner, "stop", None)
            if stop is not None:
                await stop()
