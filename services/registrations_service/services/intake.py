"""Registration intake: duplicate checks, insert, change feed and webhook."""

from typing import Any, Awaitable, Callable, Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from libs.common.logging import get_logger
from libs.common.webhook import WebhookNotifier
from services.registrations_service.events import RegistrationEvent, RegistrationFeed
from services.registrations_service.models import Registration
from services.registrations_service.profiles import DeploymentProfile
from services.registrations_service.schemas import RegistrationCreate

logger = get_logger(__name__)

DUPLICATE_EMAIL_MESSAGE = "This email address has already been registered."
INVALID_GENDER_MESSAGE = "Invalid gender selected."
GENERIC_FAILURE_MESSAGE = "Registration failed. Please try again."


def classify_integrity_error(exc: IntegrityError) -> str:
    """Return ``unique``, ``check`` or ``other`` for a failed insert.

    Message text is all the drivers have in common (psycopg and sqlite3).
    """
    message = str(exc.orig if exc.orig is not None else exc).lower()
    if "unique constraint" in message or "duplicate key" in message:
        return "unique"
    if "check constraint" in message:
        return "check"
    return "other"


async def find_registration_by_email(
    db: AsyncSession, email: str
) -> Optional[Registration]:
    result = await db.execute(
        select(Registration).where(func.lower(Registration.email) == email.lower())
    )
    return result.scalar_one_or_none()


async def count_registrations(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(Registration))
    return result.scalar_one()


def registration_payload(
    registration: Registration, profile: DeploymentProfile
) -> dict[str, Any]:
    """Serialise the profile's fields of ``registration`` for the webhook."""
    payload = {spec.name: getattr(registration, spec.name) for spec in profile.fields}
    payload["id"] = str(registration.id)
    payload["created_at"] = registration.created_at.isoformat()
    return payload


def _validate_against_profile(data: dict[str, Any], profile: DeploymentProfile) -> None:
    errors = [f"{label} is required" for label in profile.missing_fields(data)]
    errors.extend(profile.invalid_choices(data))
    if errors:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=errors,
        )


async def submit_registration(
    db: AsyncSession,
    registration_in: RegistrationCreate,
    *,
    profile: DeploymentProfile,
    feed: Optional[RegistrationFeed] = None,
    notifier: Optional[WebhookNotifier] = None,
) -> Registration:
    """Store a new registration.

    The email pre-check catches the common case; the unique constraint
    catches a concurrent insert between the check and the commit.
    """
    data = registration_in.model_dump()
    _validate_against_profile(data, profile)

    if await find_registration_by_email(db, registration_in.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_EMAIL_MESSAGE
        )

    # Fields outside the active profile are stored as NULL
    registration = Registration(
        **{spec.name: data.get(spec.name) for spec in profile.fields}
    )
    db.add(registration)

    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        kind = classify_integrity_error(exc)
        if kind == "unique":
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_EMAIL_MESSAGE
            ) from exc
        if kind == "check":
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=INVALID_GENDER_MESSAGE,
            ) from exc
        logger.error(
            "Registration insert failed",
            extra={"extra_fields": {"email": registration_in.email, "error": str(exc)}},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=GENERIC_FAILURE_MESSAGE,
        ) from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error(
            "Registration insert failed",
            extra={"extra_fields": {"email": registration_in.email, "error": str(exc)}},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=GENERIC_FAILURE_MESSAGE,
        ) from exc

    logger.info(
        "Registration stored",
        extra={"extra_fields": {"registration_id": str(registration.id)}},
    )

    if feed is not None:
        feed.publish(
            RegistrationEvent(
                type="INSERT",
                registration_id=registration.id,
                created_at=registration.created_at,
            )
        )

    if notifier is not None:
        try:
            await notifier.notify(registration_payload(registration, profile))
        except Exception as exc:
            logger.warning(
                "Webhook side effect failed for %s: %s", registration.id, exc
            )

    return registration


class LiveRegistrationCounter:
    """Keeps a consumer informed of the registration total.

    The count is re-queried on every insert event from the feed, whichever
    client caused it.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        feed: RegistrationFeed,
    ):
        self.session_factory = session_factory
        self.feed = feed

    async def current(self) -> int:
        async with self.session_factory() as db:
            return await count_registrations(db)

    async def run(self, on_count: Callable[[int], Awaitable[None]]) -> None:
        """Push counts to ``on_count`` until cancelled."""
        # Subscribe before the first query so no insert falls in between.
        async with self.feed.subscribe() as subscription:
            await on_count(await self.current())
            async for _event in subscription:
                await on_count(await self.current())
