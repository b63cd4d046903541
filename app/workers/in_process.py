"""In-process scheduler and job queue.

AsyncioCronScheduler evaluates 5-field cron expressions once per minute in the
configured timezone, catching up on minutes missed while the loop was busy. InMemoryJobQueue hands queued payloads to the handler
registered for their job name. Both run inside the API process; a deployment
with several API replicas should swap them for shared implementations of the
same ports.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from functools import partial
from typing import Any, Callable, Deque, Dict, FrozenSet, List, Optional, Tuple
from zoneinfo import ZoneInfo

from app.utils.time import utc_now
from app.workers.ports import JobHandler, QueueHandler

logger = logging.getLogger(__name__)

# (name, low, high) per cron field, in order
_FIELDS = (
    ("minute", 0, 59),
    ("hour", 0, 23),
    ("day", 1, 31),
    ("month", 1, 12),
    ("weekday", 0, 7),
)


def _parse_field(text: str, low: int, high: int) -> FrozenSet[int]:
    values = set()
    for part in text.split(","):
        if not part:
            raise ValueError(f"Empty cron field entry in {text!r}")

        step = 1
        if "/" in part:
            part, step_text = part.split("/", 1)
            step = int(step_text)
            if step <= 0:
                raise ValueError(f"Cron step must be positive: {text!r}")

        if part == "*":
            start, end = low, high
        elif "-" in part:
            start_text, end_text = part.split("-", 1)
            start, end = int(start_text), int(end_text)
        else:
            start = end = int(part)
            if step != 1:
                end = high

        if start < low or end > high or start > end:
            raise ValueError(f"Cron value out of range {low}-{high}: {text!r}")
        values.update(range(start, end + 1, step))
    return frozenset(values)


@dataclass(frozen=True)
class CronExpression:
    """Parsed `minute hour day month weekday` expression; weekday 0 and 7 are Sunday."""

    source: str
    minutes: FrozenSet[int]
    hours: FrozenSet[int]
    days: FrozenSet[int]
    months: FrozenSet[int]
    weekdays: FrozenSet[int]
    day_restricted: bool
    weekday_restricted: bool

    @classmethod
    def parse(cls, expression: str) -> "CronExpression":
        parts = expression.split()
        if len(parts) != len(_FIELDS):
            raise ValueError(f"Cron expression needs 5 fields: {expression!r}")

        parsed = [_parse_field(part, low, high) for part, (_, low, high) in zip(parts, _FIELDS)]
        weekdays = frozenset(0 if value == 7 else value for value in parsed[4])
        return cls(
            source=expression,
            minutes=parsed[0],
            hours=parsed[1],
            days=parsed[2],
            months=parsed[3],
            weekdays=weekdays,
            day_restricted=parts[2] != "*",
            weekday_restricted=parts[4] != "*",
        )

    def matches(self, moment: datetime) -> bool:
        if moment.minute not in self.minutes or moment.hour not in self.hours:
            return False
        if moment.month not in self.months:
            return False

        day_ok = moment.day in self.days
        weekday_ok = (moment.weekday() + 1) % 7 in self.weekdays
        # Standard cron: when both day fields are restricted either one may match
        if self.day_restricted and self.weekday_restricted:
            return day_ok or weekday_ok
        return day_ok and weekday_ok


@dataclass
class ScheduledJob:
    name: str
    cron: CronExpression
    handler: JobHandler
    last_run: Optional[Tuple[int, int, int, int, int]] = field(default=None)


class AsyncioCronScheduler:
    """
    Minute-resolution cron loop on top of asyncio.

    Each wake evaluates every minute since the previous wake, so a minute that
    passed while the loop was busy still fires its jobs. Due handlers run as
    separate tasks; a slow job never holds up another one. A job whose
    previous run is still in progress is not started twice.
    """

    def __init__(
        self,
        tz_name: str = "UTC",
        clock: Optional[Callable[[], datetime]] = None,
        max_catch_up: timedelta = timedelta(days=1),
    ) -> None:
        self.tz = ZoneInfo(tz_name)
        self.clock = clock or utc_now
        self.max_catch_up = max_catch_up
        self.jobs: List[ScheduledJob] = []
        self._last_minute: Optional[datetime] = None
        self._running: Dict[str, asyncio.Task] = {}
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    def register_periodic(self, cron_expr: str, handler: JobHandler, name: str) -> None:
        self.jobs.append(ScheduledJob(name=name, cron=CronExpression.parse(cron_expr), handler=handler))
        logger.info("Registered job %s (%s)", name, cron_expr)

    def _minutes_since_last_wake(self, now: datetime) -> List[datetime]:
        current = now.astimezone(timezone.utc).replace(second=0, microsecond=0)
        last = self._last_minute
        if last is not None and current <= last:
            return []
        self._last_minute = current
        if last is None:
            return [current]

        first = last + timedelta(minutes=1)
        if current - first > self.max_catch_up:
            logger.warning("Scheduler fell behind by %s; only catching up %s", current - last, self.max_catch_up)
            first = current - self.max_catch_up

        minutes = []
        moment = first
        while moment <= current:
            minutes.append(moment)
            moment += timedelta(minutes=1)
        return minutes

    async def _run_job(self, job: ScheduledJob) -> None:
        try:
            await job.handler()
        except Exception:
            logger.exception("Scheduled job %s failed", job.name)

    async def run_due(self, now: Optional[datetime] = None) -> List[str]:
        """
        Start every job matching a minute since the previous call, up to `now`.

        A job fires once per call even if it matched several missed minutes.
        Returns the names of the jobs started; `wait_idle` awaits them.
        """
        due: Dict[str, ScheduledJob] = {}
        for minute in self._minutes_since_last_wake(now or self.clock()):
            local = minute.astimezone(self.tz)
            minute_key = (local.year, local.month, local.day, local.hour, local.minute)
            for job in self.jobs:
                if job.name in due or job.last_run == minute_key or not job.cron.matches(local):
                    continue
                job.last_run = minute_key
                due[job.name] = job

        started = []
        for job in due.values():
            running = self._running.get(job.name)
            if running is not None and not running.done():
                logger.warning("Scheduled job %s still running; skipping this run", job.name)
                continue
            task = asyncio.create_task(self._run_job(job), name=f"cron:{job.name}")
            self._running[job.name] = task
            task.add_done_callback(partial(self._forget, job.name))
            started.append(job.name)
        return started

    def _forget(self, name: str, task: asyncio.Task) -> None:
        if self._running.get(name) is task:
            del self._running[name]

    async def wait_idle(self) -> None:
        """Wait for every job started so far."""
        while self._running:
            await asyncio.gather(*self._running.values())

    async def run_forever(self) -> None:
        while not self._stop_event.is_set():
            await self.run_due()

            now = self.clock()
            next_minute = now.replace(second=0, microsecond=0) + timedelta(minutes=1)
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(),
                    timeout=max((next_minute - now).total_seconds(), 0.0),
                )
            except asyncio.TimeoutError:
                continue

    def start(self) -> None:
        if self._task is None:
            self._stop_event.clear()
            self._task = asyncio.create_task(self.run_forever())

    async def stop(self) -> None:
        self._stop_event.set()
        if self._task is not None:
            await self._task
            self._task = None
        await self.wait_idle()


class InMemoryJobQueue:
    """FIFO job queue; a failing job is logged and does not stop the others."""

    def __init__(self) -> None:
        self._handlers: Dict[str, QueueHandler] = {}
        self._pending: Deque[Tuple[str, Dict[str, Any]]] = deque()
        self._wakeup = asyncio.Event()
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    def consume(self, job_name: str, handler: QueueHandler) -> None:
        self._handlers[job_name] = handler

    async def enqueue(self, job_name: str, payload: Dict[str, Any]) -> None:
        self._pending.append((job_name, dict(payload)))
        self._wakeup.set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> int:
        """
        Process everything queued so far.

        Returns the number of jobs that completed with a result. A handler
        returning None skipped its work and is not counted.
        """
        done = 0
        while self._pending:
            job_name, payload = self._pending.popleft()
            handler = self._handlers.get(job_name)
            if handler is None:
                logger.warning("No consumer for job %s; dropping payload %s", job_name, payload)
                continue
            try:
                result = await handler(payload)
            except Exception:
                logger.exception("Job %s failed for payload %s", job_name, payload)
                continue
            if result is not None:
                done += 1
        return done

    async def run_forever(self) -> None:
        while not self._stop_event.is_set():
            self._wakeup.clear()
            await self.drain()
            wakeup = asyncio.create_task(self._wakeup.wait())
            stop = asyncio.create_task(self._stop_event.wait())
            _, waiting = await asyncio.wait({wakeup, stop}, return_when=asyncio.FIRST_COMPLETED)
            for task in waiting:
                task.cancel()

    def start(self) -> None:
        if self._task is None:
            self._stop_event.clear()
            self._task = asyncio.create_task(self.run_forever())

    async def stop(self) -> None:
        self._stop_event.set()
        if self._task is not None:
            await self._task
            self._task = None
