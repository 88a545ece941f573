"""Task model - the core entity of TaskLinks."""

import enum
from datetime import date

from sqlalchemy import CheckConstraint, Date, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tasklinks.models.base import Base, TimestampMixin, new_uuid


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def _in_clause(column: str, enum_cls: type[enum.Enum]) -> str:
    values = ", ".join(f"'{member.value}'" for member in enum_cls)
    return f"{column} IN ({values})"


class Task(TimestampMixin, Base):
    """A task owned by exactly one identity."""

    __tablename__ = "tasks"
    __table_args__ = (
        CheckConstraint(
            _in_clause("priority", TaskPriority),
            name="ck_tasks_priority",
        ),
        CheckConstraint(
            _in_clause("status", TaskStatus),
            name="ck_tasks_status",
        ),
        CheckConstraint(
            "length(title) >= 1 AND length(title) <= 255",
            name="ck_tasks_title_length",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    due_date: Mapped[date | None] = mapped_column(Date, index=True)
    priority: Mapped[str] = mapped_column(
        String(20),
        default=TaskPriority.MEDIUM.value,
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=TaskStatus.PENDING.value,
        nullable=False,
        index=True,
    )

    # Foreign keys
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("identities.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("categories.id", ondelete="SET NULL"),
        index=True,
    )

    # Relationships
    category: Mapped["Category | None"] = relationship(  # noqa: F821
        back_populates="tasks",
    )

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED.value

    def is_overdue(self, today: date) -> bool:
        """Due strictly before ``today`` and not completed."""
        return (
            self.due_date is not None
            and self.due_date < today
            and not self.is_completed
        )

    def __repr__(self) -> str:
        return f"<Task(title={self.title!r}, status={self.status})>"
