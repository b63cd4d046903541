"""
FastAPI dependencies shared by the routers.

Authentication is handled upstream; the gateway forwards the caller's id in
the X-User-ID header.
"""

from uuid import UUID

from fastapi import Header, HTTPException, status

from app.db.session import get_db
from app.services.delivery import PushSink, get_default_push_sink

__all__ = ["get_db", "get_current_user_id", "get_push_sink"]


async def get_current_user_id(x_user_id: str = Header(..., alias="X-User-ID")) -> UUID:
    """Parse the caller's user id from the X-User-ID header."""
    try:
        return UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-User-ID header must be a UUID",
        )


def get_push_sink() -> PushSink:
    return get_default_push_sink()
