import datetime as dt
import uuid

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import Date, DateTime, ForeignKey, Integer, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class MonthlyDue(Base):
    """A dues row; its existence marks the registrant paid for ``month``."""

    __tablename__ = "monthly_dues"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    registration_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("registrations.id", ondelete="CASCADE"), nullable=False
    )
    # Always the first day of the month
    month: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (
        UniqueConstraint("registration_id", "month", name="uq_monthly_dues_registration_month"),
    )

    def __repr__(self):
        return f"<MonthlyDue Registration={self.registration_id} Month={self.month}>"
