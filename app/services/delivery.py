"""
Delivery ports for reminders and real-time events.

The engine only depends on the PushSink / EmailSink protocols. The logging
sinks are the defaults when no transport is configured; WebhookPushSink
forwards events to an HTTP endpoint (e.g. a websocket gateway).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol
from uuid import UUID

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


class PushSink(Protocol):
    """Real-time push: fire-and-forget, no delivery guarantee."""

    async def send(self, user_id: UUID, event: str, payload: Any) -> None: ...


class EmailSink(Protocol):
    async def send(self, address: str, subject: str, body: str) -> None: ...


class LoggingPushSink:
    async def send(self, user_id: UUID, event: str, payload: Any) -> None:
        logger.info("Push %s to user %s", event, user_id)


class LoggingEmailSink:
    async def send(self, address: str, subject: str, body: str) -> None:
        logger.info("Queueing reminder email for %s: %s", address, subject)


class WebhookPushSink:
    """POST {"userId", "event", "payload"} to a gateway; failures are logged, never raised."""

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._client = client

    async def send(self, user_id: UUID, event: str, payload: Any) -> None:
        body: Dict[str, Any] = {"userId": str(user_id), "event": event, "payload": payload}
        try:
            if self._client is not None:
                response = await self._client.post(self.url, json=body, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.url, json=body)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Push %s to user %s failed: %s", event, user_id, exc)


def get_default_push_sink() -> PushSink:
    if settings.PUSH_WEBHOOK_URL:
        return WebhookPushSink(settings.PUSH_WEBHOOK_URL, timeout=settings.PUSH_WEBHOOK_TIMEOUT_SECONDS)
    return LoggingPushSink()


def get_default_email_sink() -> EmailSink:
    return LoggingEmailSink()
