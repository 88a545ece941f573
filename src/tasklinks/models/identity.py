"""Identity model - the registered principal behind every owned row."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from tasklinks.models.base import Base, new_uuid, utcnow


class Identity(Base):
    """Authentication record: id, email and credentials."""

    __tablename__ = "identities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    # Signup metadata, e.g. {"full_name": "Alice"}
    user_metadata: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        default=lambda: {},
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    @property
    def full_name(self) -> str:
        return (self.user_metadata or {}).get("full_name") or ""

    def __repr__(self) -> str:
        return f"<Identity(email={self.email!r})>"
