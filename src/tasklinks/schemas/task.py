"""Task schemas."""

import enum
from datetime import date

from pydantic import Field

from tasklinks.models.task import TaskPriority, TaskStatus
from tasklinks.schemas.base import BaseSchema, TimestampMixin
from tasklinks.schemas.category import CategoryResponse


class TaskSortField(str, enum.Enum):
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    DUE_DATE = "due_date"
    TITLE = "title"
    PRIORITY = "priority"


class SortDirection(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


class TaskCreate(BaseSchema):
    """Schema for creating a task."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=1000)
    due_date: date | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    category_id: str | None = None


class TaskUpdate(BaseSchema):
    """Schema for updating a task."""

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=1000)
    due_date: date | None = None
    priority: TaskPriority | None = None
    status: TaskStatus | None = None
    category_id: str | None = None


class TaskResponse(BaseSchema, TimestampMixin):
    """Schema for task responses."""

    id: str
    title: str
    description: str | None
    due_date: date | None
    priority: TaskPriority
    status: TaskStatus
    user_id: str
    category_id: str | None

    category: CategoryResponse | None = None


class TaskListResponse(BaseSchema):
    """Schema for paginated task list responses."""

    items: list[TaskResponse]
    total: int
    page: int = 1
    page_size: int = 50


class BulkStatusUpdate(BaseSchema):
    """Set one status on many tasks at once."""

    task_ids: list[str] = Field(..., min_length=1, max_length=500)
    status: TaskStatus


class BulkDelete(BaseSchema):
    """Delete many tasks at once."""

    task_ids: list[str] = Field(..., min_length=1, max_length=500)


class BulkResult(BaseSchema):
    affected: int
