"""Business logic services for TaskLinks."""

from tasklinks.services.identity_service import IdentityService
from tasklinks.services.profile_service import ProfileService
from tasklinks.services.provisioning import ProvisioningService
from tasklinks.services.stats_service import StatsService
from tasklinks.services.task_service import (
    CategoryService,
    TaskService,
    TaskValidationError,
)

__all__ = [
    "CategoryService",
    "IdentityService",
    "ProfileService",
    "ProvisioningService",
    "StatsService",
    "TaskService",
    "TaskValidationError",
]
