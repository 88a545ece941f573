"""Profile endpoints and the RPC-style provisioning procedures."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from tasklinks.api.auth import CurrentPrincipal, RequireUser
from tasklinks.config import get_settings
from tasklinks.database import get_db
from tasklinks.schemas.profile import (
    EnsureProfileRequest,
    ProfileResponse,
    ProfileUpdate,
)
from tasklinks.services.profile_service import ProfileService
from tasklinks.services.provisioning import ProvisioningService

router = APIRouter(tags=["profiles"])


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    principal: RequireUser,
    db: AsyncSession = Depends(get_db),
):
    """Get the caller's profile."""
    profile = await ProfileService(db, principal).get_by_id(principal.user_id)
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found",
        )
    return ProfileResponse.model_validate(profile)


@router.patch("/profile", response_model=ProfileResponse)
async def update_profile(
    data: ProfileUpdate,
    principal: RequireUser,
    db: AsyncSession = Depends(get_db),
):
    """Update the caller's profile."""
    profile = await ProfileService(db, principal).update(principal.user_id, data)
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found",
        )
    return ProfileResponse.model_validate(profile)


@router.post("/rpc/ensure_user_profile", status_code=status.HTTP_204_NO_CONTENT)
async def ensure_user_profile(
    data: EnsureProfileRequest,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
):
    """Create the profile for ``user_id`` if it is missing. Idempotent."""
    service = ProvisioningService(db, anon_read_grants=get_settings().anon_read_grants)
    await service.ensure_profile(
        principal,
        data.user_id,
        email=data.user_email,
        full_name=data.user_name,
    )


@router.post("/rpc/create_default_categories", status_code=status.HTTP_204_NO_CONTENT)
async def create_default_categories(
    principal: RequireUser,
    db: AsyncSession = Depends(get_db),
):
    """Add any missing default categories for the caller. Idempotent."""
    service = ProvisioningService(db, anon_read_grants=get_settings().anon_read_grants)
    await service.seed_default_categories(principal, principal.user_id)
