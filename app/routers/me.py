"""
Current-user router.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user_id, get_db
from app.schemas.trash import TrashRead
from app.services.trash_service import TrashService

router = APIRouter(prefix="/me", tags=["me"])


@router.get("/trash", response_model=TrashRead, response_model_by_alias=True)
async def get_trash(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Trashed lists and tasks with the date each will be purged."""
    return await TrashService(db).list_trash(user_id)
