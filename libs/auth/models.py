from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from libs.common.datetime_utils import utc_now
from libs.db.base import Base


class AuthUser(BaseModel):
    """
    Represents an authenticated user from a Supabase access token.
    """

    user_id: str = Field(..., alias="sub")
    email: Optional[EmailStr] = None
    role: str = "authenticated"
    exp: Optional[int] = None

    model_config = {"populate_by_name": True}


class Admin(Base):
    """Admin registry.

    Holding a valid Supabase account is not enough to reach the dashboard: the
    account must also have a row here.
    """

    __tablename__ = "admins"

    # Supabase auth user id
    id: Mapped[str] = mapped_column(String, primary_key=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    def __repr__(self):
        return f"<Admin {self.email}>"
