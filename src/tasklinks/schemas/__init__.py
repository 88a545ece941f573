"""Pydantic schemas for TaskLinks API."""

from tasklinks.schemas.auth import (
    IdentityResponse,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
)
from tasklinks.schemas.profile import (
    EnsureProfileRequest,
    ProfileResponse,
    ProfileUpdate,
)
from tasklinks.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
)
from tasklinks.schemas.task import (
    BulkDelete,
    BulkResult,
    BulkStatusUpdate,
    SortDirection,
    TaskCreate,
    TaskListResponse,
    TaskResponse,
    TaskSortField,
    TaskUpdate,
)
from tasklinks.schemas.stats import CategoryStatistics, TaskStatistics

__all__ = [
    "SignUpRequest",
    "SignInRequest",
    "IdentityResponse",
    "SessionResponse",
    "EnsureProfileRequest",
    "ProfileResponse",
    "ProfileUpdate",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryResponse",
    "TaskCreate",
    "TaskUpdate",
    "TaskResponse",
    "TaskListResponse",
    "TaskSortField",
    "SortDirection",
    "BulkStatusUpdate",
    "BulkDelete",
    "BulkResult",
    "TaskStatistics",
    "CategoryStatistics",
]
