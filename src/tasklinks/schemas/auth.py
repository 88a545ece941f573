"""Identity and session schemas."""

from datetime import datetime

from pydantic import EmailStr, Field

from tasklinks.schemas.base import BaseSchema


class SignUpRequest(BaseSchema):
    """Schema for registering a new identity."""

    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    full_name: str = Field("", max_length=255)


class SignInRequest(BaseSchema):
    """Schema for password sign-in."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class IdentityResponse(BaseSchema):
    """Schema for identity responses."""

    id: str
    email: str
    full_name: str
    created_at: datetime


class SessionResponse(BaseSchema):
    """Bearer session issued on signup and sign-in."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    identity: IdentityResponse
