"""Category API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from tasklinks.api.auth import CurrentPrincipal
from tasklinks.config import get_settings
from tasklinks.database import get_db
from tasklinks.errors import ValidationFailedError
from tasklinks.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
)
from tasklinks.services.task_service import CategoryService

router = APIRouter(prefix="/categories", tags=["categories"])


def _service(db: AsyncSession, principal) -> CategoryService:
    return CategoryService(
        db, principal, anon_read_grants=get_settings().anon_read_grants
    )


@router.get("", response_model=list[CategoryResponse])
async def list_categories(
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
):
    """List the caller's categories."""
    categories = await _service(db, principal).get_all()
    return [CategoryResponse.model_validate(c) for c in categories]


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreate,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
):
    """Create a new category."""
    try:
        category = await _service(db, principal).create(
            name=data.name,
            color=data.color,
        )
    except ValidationFailedError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.message,
        )
    return CategoryResponse.model_validate(category)


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: str,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
):
    """Get a category by ID."""
    category = await _service(db, principal).get_by_id(category_id)
    if not category:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Category not found",
        )
    return CategoryResponse.model_validate(category)


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: str,
    data: CategoryUpdate,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
):
    """Update a category."""
    update_data = data.model_dump(exclude_unset=True)
    try:
        category = await _service(db, principal).update(category_id, **update_data)
    except ValidationFailedError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.message,
        )
    if not category:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Category not found",
        )
    return CategoryResponse.model_validate(category)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: str,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
):
    """Delete a category. Its tasks are kept without a category."""
    deleted = await _service(db, principal).delete(category_id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Category not found",
        )
