"""SQLAlchemy models for TaskLinks."""

from tasklinks.models.base import Base
from tasklinks.models.identity import Identity
from tasklinks.models.profile import Profile
from tasklinks.models.category import (
    Category,
    DEFAULT_CATEGORIES,
    DEFAULT_CATEGORY_COLOR,
)
from tasklinks.models.task import Task, TaskPriority, TaskStatus

__all__ = [
    "Base",
    "Identity",
    "Profile",
    "Category",
    "DEFAULT_CATEGORIES",
    "DEFAULT_CATEGORY_COLOR",
    "Task",
    "TaskPriority",
    "TaskStatus",
]
