"""Dashboard statistics schemas."""

from tasklinks.schemas.base import BaseSchema


class TaskStatistics(BaseSchema):
    total: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0
    overdue: int = 0
    completion_rate: int = 0  # Rounded percentage


class CategoryStatistics(BaseSchema):
    category_id: str
    name: str
    task_count: int = 0
    completed_count: int = 0
    pending_count: int = 0
