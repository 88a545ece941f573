"""API router aggregation."""

from fastapi import APIRouter

from tasklinks.api.accounts import router as accounts_router
from tasklinks.api.profiles import router as profiles_router
from tasklinks.api.categories import router as categories_router
from tasklinks.api.tasks import router as tasks_router
from tasklinks.api.stats import router as stats_router

router = APIRouter(prefix="/api")

router.include_router(accounts_router)
router.include_router(profiles_router)
router.include_router(categories_router)
router.include_router(tasks_router)
router.include_router(stats_router)
