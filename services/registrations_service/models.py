import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

GENDERS = ("Male", "Female")


class Registration(Base):
    """A person who submitted the public registration form.

    Only identity columns are mandatory. The remaining columns belong to one
    deployment profile or another and stay NULL elsewhere.
    """

    __tablename__ = "registrations"
    __table_args__ = (
        CheckConstraint(
            "gender IN ('Male', 'Female')", name="registrations_gender_check"
        ),
    )

    # Identity
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    full_name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    phone: Mapped[str] = mapped_column(String, nullable=False)
    gender: Mapped[str] = mapped_column(String(16), nullable=False)

    # Conference profile
    metropolitan: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    area: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    district: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    assembly: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    shirt_size: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    goals: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Youth group profile
    group_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_new_member: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, index=True
    )

    def __repr__(self):
        return f"<Registration {self.email}>"
