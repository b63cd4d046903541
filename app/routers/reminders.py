"""
Reminder router - reminders the caller would receive for a day or a range.
"""

from datetime import date
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user_id, get_db
from app.schemas.reminder import ReminderNotification
from app.services.reminder_service import ReminderService

router = APIRouter(prefix="/reminders", tags=["reminders"])


@router.get("/today", response_model=List[ReminderNotification], response_model_by_alias=True)
async def reminders_for_today(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await ReminderService(db).for_today(user_id)


@router.get("/date", response_model=List[ReminderNotification], response_model_by_alias=True)
async def reminders_for_date(
    day: date = Query(..., alias="date"),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await ReminderService(db).for_date(user_id, day)


@router.get("/range", response_model=List[ReminderNotification], response_model_by_alias=True)
async def reminders_for_range(
    start: date,
    end: date,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """One reminder per task over [start, end]; the earliest matching day wins."""
    return await ReminderService(db).for_range(user_id, start, end)
