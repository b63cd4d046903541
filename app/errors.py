"""Domain errors for the lifecycle engine and their structured API rendering."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse


def build_error_payload(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    payload = {"error": {"code": code, "message": message}}
    if details is not None:
        payload["error"]["details"] = details
    return payload


class AppError(Exception):
    """Application-scoped error for standardized API responses."""

    status_code = 500
    code = "internal_error"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.message = message
        self.details = details
        self.payload = build_error_payload(self.code, message, details)


class NotFoundError(AppError):
    """Referenced task, list or user does not exist or is not visible to the caller."""

    status_code = 404
    code = "not_found"


class InvalidStateError(AppError):
    """Operation is not valid for the entity's current lifecycle state."""

    status_code = 409
    code = "invalid_state"


class ConnectivityError(AppError):
    """Persistence layer is unreachable."""

    status_code = 503
    code = "connectivity"


async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.payload)
