"""Profile schemas."""

from typing import Any

from pydantic import Field

from tasklinks.schemas.base import BaseSchema, TimestampMixin


class ProfileUpdate(BaseSchema):
    """Schema for updating the caller's profile."""

    full_name: str | None = Field(None, max_length=255)
    avatar_url: str | None = Field(None, max_length=2048)
    preferences: dict[str, Any] | None = None


class ProfileResponse(BaseSchema, TimestampMixin):
    """Schema for profile responses."""

    id: str
    email: str | None
    full_name: str | None
    avatar_url: str | None
    preferences: dict[str, Any]


class EnsureProfileRequest(BaseSchema):
    """Arguments of the profile repair procedure."""

    user_id: str = Field(..., min_length=1, max_length=36)
    user_email: str = ""
    user_name: str = ""
