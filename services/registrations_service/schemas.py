import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

Gender = Literal["Male", "Female"]


class RegistrationFields(BaseModel):
    """Profile-dependent registrant fields; every one is optional here."""

    metropolitan: Optional[str] = None
    area: Optional[str] = None
    district: Optional[str] = None
    assembly: Optional[str] = None
    shirt_size: Optional[str] = None
    goals: Optional[str] = None
    group_number: Optional[int] = Field(default=None, ge=0)
    is_new_member: Optional[bool] = None

    model_config = ConfigDict(str_strip_whitespace=True)


class RegistrationCreate(RegistrationFields):
    full_name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=1)
    gender: Gender

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class RegistrationUpdate(RegistrationFields):
    """Edit draft saved from the admin directory."""

    full_name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, min_length=1)
    gender: Optional[Gender] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v


class RegistrationResponse(RegistrationFields):
    id: uuid.UUID
    full_name: str
    email: str
    phone: str
    gender: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RegistrationCount(BaseModel):
    count: int
