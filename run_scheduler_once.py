#!/usr/bin/env python3
"""Run every lifecycle job once, outside the API process.

Useful after downtime or from an external cron:
    python run_scheduler_once.py
"""

import asyncio
import logging
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent))

from app.core.config import settings
from app.models.todo_list import RECURRING_LIST_TYPES
from app.services.recurrence import is_reset_point
from app.utils.time import local_date, utc_now
from app.workers.lifecycle_scheduler import LifecycleScheduler


async def run_scheduler_once():
    scheduler = LifecycleScheduler(settings)
    if not scheduler.register():
        print("Scheduler disabled; nothing to do")
        return

    await scheduler.run_startup()
    today = local_date(utc_now(), settings.SCHEDULER_TIMEZONE)
    for list_type in sorted(RECURRING_LIST_TYPES, key=lambda item: item.value):
        # Only types whose reset point is today
        if not is_reset_point(list_type, today):
            continue
        reset = await scheduler.reset_recurring(list_type)
        print(f"reset_{list_type.value.lower()}: {reset}")

    print(f"archive_completed: {await scheduler.archive_completed()}")

    purge = await scheduler.purge_trash()
    if purge is not None:
        print(f"purge_trash: {purge.tasks} tasks, {purge.lists} lists")

    queued = await scheduler.dispatch_reminders()
    print(f"dispatch_reminders: {queued} users queued")
    processed = await scheduler.queue.drain()
    print(f"process_user_reminders: {processed} jobs done")


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    asyncio.run(run_scheduler_once())
