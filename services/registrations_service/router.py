"""Public registration router: sign-up form and live counter."""

import asyncio

from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from libs.common.logging import get_logger
from libs.common.rate_limit import intake_limit
from libs.common.webhook import WebhookNotifier, get_webhook_notifier
from libs.db.session import get_async_db, get_session_factory
from services.registrations_service.events import (
    RegistrationFeed,
    get_registration_feed,
    get_websocket_registration_feed,
)
from services.registrations_service.profiles import DeploymentProfile, get_profile
from services.registrations_service.schemas import (
    RegistrationCount,
    RegistrationCreate,
    RegistrationResponse,
)
from services.registrations_service.services.intake import (
    LiveRegistrationCounter,
    count_registrations,
    submit_registration,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/registrations", tags=["registrations"])


@router.get("/profile")
async def get_registration_profile(
    profile: DeploymentProfile = Depends(get_profile),
):
    """Describe the fields the public form collects."""
    return profile.describe()


@router.post(
    "/", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED
)
@intake_limit
async def create_registration(
    request: Request,
    registration_in: RegistrationCreate,
    db: AsyncSession = Depends(get_async_db),
    profile: DeploymentProfile = Depends(get_profile),
    feed: RegistrationFeed = Depends(get_registration_feed),
    notifier: WebhookNotifier = Depends(get_webhook_notifier),
):
    """
    Submit the public registration form.
    Rejects duplicate emails and forwards the stored record to the webhook.
    """
    return await submit_registration(
        db, registration_in, profile=profile, feed=feed, notifier=notifier
    )


@router.get("/count", response_model=RegistrationCount)
async def get_registration_count(db: AsyncSession = Depends(get_async_db)):
    """Total number of registrations."""
    return RegistrationCount(count=await count_registrations(db))


async def _drain(websocket: WebSocket) -> None:
    # Clients never send anything meaningful; reading detects disconnects.
    while True:
        await websocket.receive_text()


@router.websocket("/count/live")
async def live_registration_count(
    websocket: WebSocket,
    feed: RegistrationFeed = Depends(get_websocket_registration_feed),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
):
    """Stream the registration count, re-sent after every new registration."""
    await websocket.accept()
    counter = LiveRegistrationCounter(session_factory, feed)

    async def send_count(count: int) -> None:
        await websocket.send_json({"count": count})

    stream = asyncio.create_task(counter.run(send_count))
    receiver = asyncio.create_task(_drain(websocket))
    try:
        await asyncio.wait({stream, receiver}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (stream, receiver):
            task.cancel()
        await asyncio.gather(stream, receiver, return_exceptions=True)

    # The stream only ends on its own by failing
    failure = None if stream.cancelled() else stream.exception()
    if failure is not None and not isinstance(failure, WebSocketDisconnect):
        logger.warning("Live counter stopped: %s", failure)
        if receiver.cancelled():
            # Client is still connected
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
