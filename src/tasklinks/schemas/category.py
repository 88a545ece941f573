"""Category schemas."""

from pydantic import Field

from tasklinks.models.category import DEFAULT_CATEGORY_COLOR
from tasklinks.schemas.base import BaseSchema, TimestampMixin

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class CategoryCreate(BaseSchema):
    """Schema for creating a category."""

    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field(DEFAULT_CATEGORY_COLOR, pattern=HEX_COLOR)


class CategoryUpdate(BaseSchema):
    """Schema for updating a category."""

    name: str | None = Field(None, min_length=1, max_length=100)
    color: str | None = Field(None, pattern=HEX_COLOR)


class CategoryResponse(BaseSchema, TimestampMixin):
    """Schema for category responses."""

    id: str
    name: str
    color: str
    user_id: str
