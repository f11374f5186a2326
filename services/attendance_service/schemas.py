import uuid
import datetime as dt

from pydantic import BaseModel, ConfigDict

from services.attendance_service.models import AttendanceStatus


class AttendanceMarkIn(BaseModel):
    status: AttendanceStatus


class AttendanceMarkResponse(BaseModel):
    registration_id: uuid.UUID
    date: dt.date
    status: AttendanceStatus

    model_config = ConfigDict(from_attributes=True)


class AttendanceSheet(BaseModel):
    """Every mark for one date, keyed by registration id."""

    date: dt.date
    marks: dict[uuid.UUID, AttendanceStatus]


class AttendanceStats(BaseModel):
    date: dt.date
    present: int
    absent: int
