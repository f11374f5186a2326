from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class AdminLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AdminSessionResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None
    token_type: str = "bearer"
    user_id: str
    email: str


class AdminIdentity(BaseModel):
    user_id: str
    email: Optional[str] = None


class AdminRegistrationRequest(BaseModel):
    """Body of the register-admin function; field names match the web client."""

    email: Optional[str] = None
    password: Optional[str] = None
    registration_code: Optional[str] = Field(default=None, alias="registrationCode")

    model_config = ConfigDict(populate_by_name=True)
