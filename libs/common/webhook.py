"""Best-effort outbound webhook delivery.

Registrations are forwarded to a third-party automation URL after they are
stored. Delivery never affects the outcome of the caller: failures are logged
and swallowed here, and only here.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
from fastapi import Depends

from libs.common.config import Settings, get_settings
from libs.common.logging import get_logger, get_request_id

logger = get_logger(__name__)


class WebhookNotifier:
    """POSTs JSON payloads to a fixed URL."""

    def __init__(
        self,
        url: Optional[str],
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def _post(self, payload: Any) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        request_id = get_request_id()
        if request_id:
            headers["X-Request-ID"] = request_id

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            return await client.post(self.url, json=payload, headers=headers)

    async def notify(self, payload: Any) -> bool:
        """Deliver ``payload``. Returns True if the webhook accepted it."""
        if not self.url:
            logger.debug("No webhook configured, skipping delivery")
            return False

        try:
            response = await self._post(payload)
        except httpx.HTTPError as exc:
            logger.warning(
                "Webhook delivery failed",
                extra={"extra_fields": {"url": self.url, "error": str(exc)}},
            )
            return False

        if response.status_code >= 400:
            logger.warning(
                "Webhook rejected payload (http %d): %s",
                response.status_code,
                response.text,
            )
            return False
        return True


def get_webhook_notifier(
    settings: Settings = Depends(get_settings),
) -> WebhookNotifier:
    """FastAPI dependency returning the registration webhook notifier."""
    return WebhookNotifier(
        settings.REGISTRATION_WEBHOOK_URL, timeout=settings.WEBHOOK_TIMEOUT_SECONDS
    )
