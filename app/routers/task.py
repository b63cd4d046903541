"""
Task router - API endpoints for task lifecycle actions and read paths.
"""

from datetime import date
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user_id, get_db, get_push_sink
from app.schemas.task import TaskRead, TaskWithSteps
from app.services.delivery import PushSink
from app.services.task_lifecycle_service import TaskLifecycleService
from app.services.task_service import TaskService

router = APIRouter(tags=["tasks"])


@router.get("/lists/{list_id}/tasks", response_model=List[TaskWithSteps], response_model_by_alias=True)
async def list_tasks(
    list_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    push: PushSink = Depends(get_push_sink),
):
    """
    List the tasks of a list with their steps.

    DAILY lists are brought up to date first when the midnight reset was missed.
    """
    service = TaskService(db, lifecycle=TaskLifecycleService(db, push=push))
    return await service.list_tasks(user_id, list_id)


@router.get("/tasks/for-date", response_model=List[TaskRead], response_model_by_alias=True)
async def tasks_for_date(
    day: date = Query(..., alias="date"),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Tasks due on a given date across all lists the caller can see."""
    service = TaskService(db)
    return await service.tasks_for_date(user_id, day)


@router.post("/tasks/{task_id}/restore", response_model=TaskRead, response_model_by_alias=True)
async def restore_task(
    task_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    push: PushSink = Depends(get_push_sink),
):
    """Move an archived task back to its original list."""
    service = TaskLifecycleService(db, push=push)
    return await service.restore(task_id, user_id)


@router.post("/tasks/{task_id}/restore-from-trash", response_model=TaskRead, response_model_by_alias=True)
async def restore_task_from_trash(
    task_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    push: PushSink = Depends(get_push_sink),
):
    service = TaskLifecycleService(db, push=push)
    return await service.restore_from_trash(task_id, user_id)


@router.delete("/tasks/{task_id}/permanent", status_code=status.HTTP_204_NO_CONTENT)
async def permanently_delete_task(
    task_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    push: PushSink = Depends(get_push_sink),
):
    """Delete an archived task and its steps for good."""
    service = TaskLifecycleService(db, push=push)
    await service.permanent_delete(task_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
