"""Access control: principals, grants, row policies and the guard."""

from tasklinks.access.principal import Principal, Role
from tasklinks.access.policies import (
    CATEGORIES,
    PROFILES,
    TASKS,
    Operation,
    has_grant,
    is_allowed,
    row_allowed,
    row_filter,
)
from tasklinks.access.guard import AccessGuard

__all__ = [
    "AccessGuard",
    "CATEGORIES",
    "Operation",
    "PROFILES",
    "Principal",
    "Role",
    "TASKS",
    "has_grant",
    "is_allowed",
    "row_allowed",
    "row_filter",
]
