"""Health check router."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.session import get_db

router = APIRouter()


@router.get("/health")
async def health_check(request: Request, db: AsyncSession = Depends(get_db)):
    """DB reachability and which lifecycle jobs this process runs."""
    try:
        await db.execute(text("SELECT 1"))
        db_ok = True
    except (SQLAlchemyError, OSError):
        db_ok = False

    scheduler = getattr(request.app.state, "lifecycle_scheduler", None)
    return {
        "api_ok": True,
        "db_ok": db_ok,
        "environment": settings.APP_ENV.value,
        "scheduler_disabled": settings.SCHEDULER_DISABLED,
        "scheduled_jobs": list(scheduler.registered) if scheduler is not None else [],
    }
