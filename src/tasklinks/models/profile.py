"""Profile model, one-to-one with Identity by shared primary key."""

from typing import Any

from sqlalchemy import JSON, ForeignKey, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from tasklinks.models.base import Base, TimestampMixin


class Profile(TimestampMixin, Base):
    """User-facing attributes keyed by the identity id."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("identities.id", ondelete="CASCADE"),
        primary_key=True,
    )
    email: Mapped[str | None] = mapped_column(String(255))
    full_name: Mapped[str | None] = mapped_column(Text)
    avatar_url: Mapped[str | None] = mapped_column(Text)
    preferences: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        default=lambda: {},
        server_default=text("'{}'"),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Profile(id={self.id!r}, full_name={self.full_name!r})>"
