"""Business logic for task and category operations.

Every query goes through an ``AccessGuard`` bound to the calling principal,
so rows owned by someone else are invisible and writes on them are denied.
"""

import logging
from collections.abc import Sequence
from datetime import date, datetime, timezone

from sqlalchemy import case, delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tasklinks.access import AccessGuard, Operation, Principal
from tasklinks.errors import NotFoundError, ValidationFailedError
from tasklinks.models import Category, Task
from tasklinks.models.task import TaskPriority, TaskStatus
from tasklinks.schemas.task import SortDirection, TaskCreate, TaskSortField, TaskUpdate

logger = logging.getLogger(__name__)

# Sort rank for the closed priority enumeration
_PRIORITY_RANK = {
    TaskPriority.LOW.value: 1,
    TaskPriority.MEDIUM.value: 2,
    TaskPriority.HIGH.value: 3,
}


class TaskValidationError(ValidationFailedError):
    """Raised when a task write is rejected."""


def _integrity_message(exc: IntegrityError) -> str:
    detail = str(exc.orig) if exc.orig is not None else str(exc)
    return f"Rejected by storage: {detail}"


class TaskService:
    """Service for task CRUD operations."""

    def __init__(
        self,
        db: AsyncSession,
        principal: Principal,
        *,
        anon_read_grants: bool = True,
    ):
        self.db = db
        self.principal = principal
        self.guard = AccessGuard(principal, anon_read_grants=anon_read_grants)

    async def get_all(
        self,
        *,
        status: Sequence[TaskStatus] | None = None,
        priority: Sequence[TaskPriority] | None = None,
        category_ids: Sequence[str] | None = None,
        search: str | None = None,
        due_from: date | None = None,
        due_to: date | None = None,
        sort: TaskSortField = TaskSortField.CREATED_AT,
        direction: SortDirection = SortDirection.DESC,
        page: int = 1,
        page_size: int = 50,
    ) -> tuple[list[Task], int]:
        """Get the caller's tasks with filtering, sorting and pagination."""
        query = self.guard.select(Task).options(selectinload(Task.category))

        # Apply filters
        if status:
            query = query.where(Task.status.in_([s.value for s in status]))
        if priority:
            query = query.where(Task.priority.in_([p.value for p in priority]))
        if category_ids:
            query = query.where(Task.category_id.in_(list(category_ids)))
        if search:
            needle = search.lower()
            # Literal substring match; % and _ are not wildcards
            query = query.where(
                or_(
                    func.lower(Task.title).contains(needle, autoescape=True),
                    func.lower(Task.description).contains(needle, autoescape=True),
                )
            )
        if due_from:
            query = query.where(Task.due_date >= due_from)
        if due_to:
            query = query.where(Task.due_date <= due_to)

        # Count total
        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        # Paginate and order
        query = (
            query.order_by(self._sort_key(sort, direction), Task.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )

        result = await self.db.execute(query)
        return list(result.scalars().unique()), total

    @staticmethod
    def _sort_key(sort: TaskSortField, direction: SortDirection):
        if sort is TaskSortField.PRIORITY:
            column = case(_PRIORITY_RANK, value=Task.priority, else_=0)
        else:
            column = getattr(Task, sort.value)

        ordered = column.asc() if direction is SortDirection.ASC else column.desc()
        # Missing values sort last in both directions
        return ordered.nulls_last()

    async def get_by_id(self, task_id: str) -> Task | None:
        """Get a single task by ID, or None when it is not visible."""
        query = (
            self.guard.select(Task)
            .options(selectinload(Task.category))
            .where(Task.id == task_id)
            # category may have changed since the row was last loaded
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _check_category(self, category_id: str | None) -> None:
        if category_id is None:
            return
        result = await self.db.execute(
            self.guard.select(Category).where(Category.id == category_id)
        )
        if result.scalar_one_or_none() is None:
            raise TaskValidationError("Category not found")

    async def _flush(self) -> None:
        try:
            await self.db.flush()
        except IntegrityError as exc:
            raise TaskValidationError(_integrity_message(exc)) from exc

    async def create(self, data: TaskCreate) -> Task:
        """Create a new task owned by the caller."""
        self.guard.require_grant(Task, Operation.INSERT)
        await self._check_category(data.category_id)

        task = Task(
            title=data.title,
            description=data.description,
            due_date=data.due_date,
            priority=data.priority.value,
            status=data.status.value,
            category_id=data.category_id,
            user_id=self.principal.user_id,
        )
        self.guard.check_row(Task, Operation.INSERT, task)
        self.db.add(task)
        await self._flush()

        # Reload with all relationships
        return await self.get_by_id(task.id)

    async def update(self, task_id: str, data: TaskUpdate) -> Task | None:
        """Update a task."""
        result = await self.db.execute(
            self.guard.select(Task, Operation.UPDATE).where(Task.id == task_id)
        )
        task = result.scalar_one_or_none()
        if not task:
            return None

        update_data = data.model_dump(exclude_unset=True)

        for key in ("title", "priority", "status"):
            if key in update_data and update_data[key] is None:
                raise TaskValidationError(f"{key} cannot be null")

        if "category_id" in update_data:
            await self._check_category(update_data["category_id"])

        for key, value in update_data.items():
            if isinstance(value, (TaskStatus, TaskPriority)):
                value = value.value
            setattr(task, key, value)

        self.guard.check_row(Task, Operation.UPDATE, task)
        task.updated_at = datetime.now(timezone.utc)
        await self._flush()

        # Reload with all relationships
        return await self.get_by_id(task_id)

    async def delete(self, task_id: str) -> bool:
        """Delete a task."""
        stmt = self.guard.scope(Task, delete(Task), Operation.DELETE).where(
            Task.id == task_id
        )
        result = await self.db.execute(stmt)
        return result.rowcount > 0

    async def _require_visible(
        self, task_ids: Sequence[str], operation: Operation
    ) -> list[Task]:
        ids = list(dict.fromkeys(task_ids))
        result = await self.db.execute(
            self.guard.select(Task, operation).where(Task.id.in_(ids))
        )
        tasks = list(result.scalars())
        found = {t.id for t in tasks}
        missing = [i for i in ids if i not in found]
        if missing:
            raise NotFoundError(f"Tasks not found: {', '.join(missing)}")
        return tasks

    async def bulk_update_status(
        self, task_ids: Sequence[str], status: TaskStatus
    ) -> int:
        """Set ``status`` on every task in ``task_ids``, all or nothing."""
        async with self.db.begin_nested():
            tasks = await self._require_visible(task_ids, Operation.UPDATE)
            now = datetime.now(timezone.utc)
            for task in tasks:
                task.status = status.value
                task.updated_at = now
            await self._flush()
        logger.info("Bulk status %s applied to %d tasks", status.value, len(tasks))
        return len(tasks)

    async def bulk_delete(self, task_ids: Sequence[str]) -> int:
        """Delete every task in ``task_ids``, all or nothing."""
        async with self.db.begin_nested():
            tasks = await self._require_visible(task_ids, Operation.DELETE)
            for task in tasks:
                await self.db.delete(task)
            await self.db.flush()
        logger.info("Bulk deleted %d tasks", len(tasks))
        return len(tasks)


class CategoryService:
    """Service for category operations."""

    def __init__(
        self,
        db: AsyncSession,
        principal: Principal,
        *,
        anon_read_grants: bool = True,
    ):
        self.db = db
        self.principal = principal
        self.guard = AccessGuard(principal, anon_read_grants=anon_read_grants)

    async def get_all(self) -> list[Category]:
        """Get the caller's categories ordered by name."""
        result = await self.db.execute(
            self.guard.select(Category).order_by(Category.name)
        )
        return list(result.scalars())

    async def get_by_id(self, category_id: str) -> Category | None:
        """Get a category by ID."""
        result = await self.db.execute(
            self.guard.select(Category).where(Category.id == category_id)
        )
        return result.scalar_one_or_none()

    async def _flush(self) -> None:
        try:
            await self.db.flush()
        except IntegrityError as exc:
            raise ValidationFailedError(_integrity_message(exc)) from exc

    async def create(self, name: str, color: str | None = None) -> Category:
        """Create a new category. Duplicate names are allowed."""
        self.guard.require_grant(Category, Operation.INSERT)
        category = Category(name=name, user_id=self.principal.user_id)
        if color is not None:
            category.color = color
        self.guard.check_row(Category, Operation.INSERT, category)
        self.db.add(category)
        await self._flush()
        return category

    async def update(self, category_id: str, **kwargs) -> Category | None:
        """Update a category."""
        result = await self.db.execute(
            self.guard.select(Category, Operation.UPDATE).where(
                Category.id == category_id
            )
        )
        category = result.scalar_one_or_none()
        if not category:
            return None
        for key, value in kwargs.items():
            if key in ("name", "color") and value is not None:
                setattr(category, key, value)
        self.guard.check_row(Category, Operation.UPDATE, category)
        category.updated_at = datetime.now(timezone.utc)
        await self._flush()
        return category

    async def delete(self, category_id: str) -> bool:
        """Delete a category; its tasks keep existing with no category."""
        stmt = self.guard.scope(Category, delete(Category), Operation.DELETE).where(
            Category.id == category_id
        )
        result = await self.db.execute(stmt)
        return result.rowcount > 0
