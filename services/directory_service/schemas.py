import datetime as dt
from typing import Optional

from pydantic import BaseModel

from services.registrations_service.schemas import RegistrationResponse


class RegistrationPage(BaseModel):
    """One page of the admin directory."""

    items: list[RegistrationResponse]
    total: int
    page: int
    page_size: int
    filter: Optional[str] = None
    date: dt.date
