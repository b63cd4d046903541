"""
User repository - database operations for User.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User


class UserRepository:
    """Repository for User database operations."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def get_active(self, user_id: UUID) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.id == user_id, User.visible())
        )
        return result.scalar_one_or_none()
    
    async def list_active(self) -> List[User]:
        """All users that have not been deleted."""
        result = await self.db.execute(
            select(User).where(User.visible()).order_by(User.created_at.asc())
        )
        return list(result.scalars().all())
