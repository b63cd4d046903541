"""Scheduling and job queue ports used by the lifecycle scheduler."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Protocol

JobHandler = Callable[[], Awaitable[Any]]
QueueHandler = Callable[[Dict[str, Any]], Awaitable[Any]]


class SchedulerPort(Protocol):
    """Runs handlers on a cron schedule."""

    def register_periodic(self, cron_expr: str, handler: JobHandler, name: str) -> None: ...


class JobQueuePort(Protocol):
    """Named jobs with JSON-like payloads, consumed by one handler per job name."""

    async def enqueue(self, job_name: str, payload: Dict[str, Any]) -> None: ...

    def consume(self, job_name: str, handler: QueueHandler) -> None: ...
