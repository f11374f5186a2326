import datetime as dt
import uuid
from typing import Optional

from pydantic import BaseModel, Field


class DuesToggle(BaseModel):
    paid: bool


class DuesStatus(BaseModel):
    registration_id: uuid.UUID
    month: dt.date
    paid: bool


class PaidRegistrations(BaseModel):
    """Registrants with a dues row for the month."""

    month: dt.date
    registration_ids: list[uuid.UUID]


class YearPaymentIn(BaseModel):
    year: Optional[int] = Field(default=None, ge=2000, le=2100)


class YearPaymentResponse(BaseModel):
    registration_id: uuid.UUID
    year: int
    months: list[dt.date]
    amount: int
