"""In-process change feed for the registrations table.

Every committed insert is published as a ``RegistrationEvent``. Subscribers
(the live counter websocket, ``LiveRegistrationCounter``) each get their own
queue, so a slow consumer never blocks the publisher or other consumers.
"""

from __future__ import annotations

import asyncio
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterator

from fastapi import Request, WebSocket

from libs.common.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RegistrationEvent:
    type: str
    registration_id: uuid.UUID
    created_at: datetime


class Subscription:
    def __init__(self, maxsize: int):
        self._queue: asyncio.Queue[RegistrationEvent] = asyncio.Queue(maxsize=maxsize)

    def _offer(self, event: RegistrationEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            # Consumers only re-query the count, so one queued event is as
            # good as many.
            logger.debug("Subscriber queue full, dropping registration event")

    async def get(self) -> RegistrationEvent:
        return await self._queue.get()

    def __aiter__(self) -> AsyncIterator[RegistrationEvent]:
        return self

    async def __anext__(self) -> RegistrationEvent:
        return await self.get()


class RegistrationFeed:
    """Broadcasts registration inserts to every active subscription."""

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._subscriptions: set[Subscription] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def publish(self, event: RegistrationEvent) -> None:
        for subscription in list(self._subscriptions):
            subscription._offer(event)

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[Subscription]:
        subscription = Subscription(self.queue_size)
        self._subscriptions.add(subscription)
        try:
            yield subscription
        finally:
            self._subscriptions.discard(subscription)


def get_registration_feed(request: Request) -> RegistrationFeed:
    """FastAPI dependency returning the application's registration feed."""
    return request.app.state.registration_feed


def get_websocket_registration_feed(websocket: WebSocket) -> RegistrationFeed:
    return websocket.app.state.registration_feed
