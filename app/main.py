"""
Main FastAPI application.

This is the entry point for the API server. The lifecycle scheduler runs
inside the same process and is started and stopped with the app.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.core.config import settings
from app.errors import AppError, app_error_handler
from app.routers import health, me, reminders, task
from app.workers.lifecycle_scheduler import LifecycleScheduler

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for the FastAPI app.

    - On startup: register lifecycle jobs, run the DAILY catch-up, start timers
    - On shutdown: stop the timers
    """
    logger.info("Starting %s (%s)", settings.APP_NAME, settings.APP_ENV.value)
    scheduler = LifecycleScheduler(settings)
    app.state.lifecycle_scheduler = scheduler
    await scheduler.start()

    yield  # The server runs while we're "yielded" here

    await scheduler.stop()
    logger.info("Shutting down %s", settings.APP_NAME)


# Create the FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="Recurring task lifecycle engine",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_exception_handler(AppError, app_error_handler)

# Include routers (API endpoints)
app.include_router(health.router, tags=["Health"])
app.include_router(task.router)
app.include_router(reminders.router)
app.include_router(me.router)
