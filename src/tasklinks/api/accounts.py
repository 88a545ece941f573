"""Signup, sign-in and account endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from tasklinks.api.auth import RequireUser
from tasklinks.api.limits import auth_rate_limit, limiter
from tasklinks.database import get_db
from tasklinks.errors import AuthenticationError, IdentityExistsError
from tasklinks.models import Identity
from tasklinks.schemas.auth import (
    IdentityResponse,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
)
from tasklinks.services.identity_service import IdentityService

router = APIRouter(prefix="/auth", tags=["auth"])


def _session_response(service: IdentityService, identity: Identity) -> SessionResponse:
    token, expires_in = service.issue_session(identity)
    return SessionResponse(
        access_token=token,
        expires_in=expires_in,
        identity=IdentityResponse.model_validate(identity),
    )


@router.post("/signup", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(auth_rate_limit)
async def sign_up(
    request: Request,
    data: SignUpRequest,
    db: AsyncSession = Depends(get_db),
):
    """Register an identity; its profile and default categories are provisioned."""
    service = IdentityService(db)
    try:
        identity = await service.create_identity(
            email=data.email,
            password=data.password,
            full_name=data.full_name,
        )
    except IdentityExistsError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=e.message,
        )
    return _session_response(service, identity)


@router.post("/login", response_model=SessionResponse)
@limiter.limit(auth_rate_limit)
async def sign_in(
    request: Request,
    data: SignInRequest,
    db: AsyncSession = Depends(get_db),
):
    """Exchange email and password for a session token."""
    service = IdentityService(db)
    try:
        identity = await service.authenticate(data.email, data.password)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
        )
    return _session_response(service, identity)


@router.get("/me", response_model=IdentityResponse)
async def whoami(
    principal: RequireUser,
    db: AsyncSession = Depends(get_db),
):
    """Get the signed-in identity."""
    identity = await IdentityService(db).get_by_id(principal.user_id)
    if not identity:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Identity not found",
        )
    return IdentityResponse.model_validate(identity)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account(
    principal: RequireUser,
    db: AsyncSession = Depends(get_db),
):
    """Delete the signed-in identity with its profile, categories and tasks."""
    deleted = await IdentityService(db).delete_identity(principal.user_id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Identity not found",
        )
