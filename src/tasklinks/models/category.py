"""Category model for organizing tasks."""

from sqlalchemy import CheckConstraint, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tasklinks.models.base import Base, TimestampMixin, new_uuid


DEFAULT_CATEGORY_COLOR = "#3B82F6"

# Seeded once for every new identity
DEFAULT_CATEGORIES: list[tuple[str, str]] = [
    ("Work", "#3B82F6"),  # Blue
    ("Personal", "#10B981"),  # Green
    ("Learning", "#F59E0B"),  # Amber
    ("Health", "#EF4444"),  # Red
    ("Finance", "#8B5CF6"),  # Violet
]


class Category(TimestampMixin, Base):
    """Owner-scoped category. Names are not unique per owner."""

    __tablename__ = "categories"
    __table_args__ = (
        CheckConstraint(
            "length(name) >= 1 AND length(name) <= 100",
            name="ck_categories_name_length",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(
        String(7),
        default=DEFAULT_CATEGORY_COLOR,
        server_default=DEFAULT_CATEGORY_COLOR,
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("identities.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Tasks keep existing with category_id = NULL when the category goes away
    tasks: Mapped[list["Task"]] = relationship(  # noqa: F821
        back_populates="category",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Category(name={self.name!r})>"
