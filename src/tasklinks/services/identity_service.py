"""Local identity provider: registration, sign-in and session tokens."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from passlib.context import CryptContext
from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tasklinks.access import Principal, Role
from tasklinks.config import Settings, get_settings
from tasklinks.errors import (
    AuthenticationError,
    IdentityExistsError,
    ValidationFailedError,
)
from tasklinks.models import Identity
from tasklinks.services.provisioning import ProvisioningService

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 128

_email_adapter = TypeAdapter(EmailStr)


def _validate_credentials(email: str, password: str) -> str:
    """Return the normalized email, or raise ValidationFailedError."""
    email = email.strip().lower()
    try:
        _email_adapter.validate_python(email)
    except ValidationError as exc:
        raise ValidationFailedError(f"Invalid email address: {email}") from exc
    if not MIN_PASSWORD_LENGTH <= len(password) <= MAX_PASSWORD_LENGTH:
        raise ValidationFailedError(
            f"Password must be {MIN_PASSWORD_LENGTH}-{MAX_PASSWORD_LENGTH} characters"
        )
    return email


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(
    identity: Identity, settings: Settings | None = None
) -> tuple[str, int]:
    """Mint a bearer token for ``identity``; returns (token, ttl seconds)."""
    settings = settings or get_settings()
    ttl = timedelta(minutes=settings.access_token_ttl_minutes)
    now = datetime.now(timezone.utc)
    claims = {
        "sub": identity.id,
        "email": identity.email,
        "role": Role.AUTHENTICATED.value,
        "iat": now,
        "exp": now + ttl,
    }
    token = jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return token, int(ttl.total_seconds())


def decode_access_token(token: str, settings: Settings | None = None) -> Principal:
    """Turn a bearer token back into an authenticated principal."""
    settings = settings or get_settings()
    try:
        claims: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Session expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid session token")

    if claims.get("role") != Role.AUTHENTICATED.value:
        raise AuthenticationError("Invalid session token")
    return Principal.user(claims["sub"])


class IdentityService:
    """Service for identity operations."""

    def __init__(self, db: AsyncSession, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()

    async def get_by_id(self, identity_id: str) -> Identity | None:
        """Get an identity by ID."""
        result = await self.db.execute(
            select(Identity).where(Identity.id == identity_id)
        )
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Identity | None:
        """Get an identity by (case-insensitive) email."""
        result = await self.db.execute(
            select(Identity).where(Identity.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def create_identity(
        self, email: str, password: str, full_name: str = ""
    ) -> Identity:
        """Register a new identity and provision it.

        Provisioning failures are logged and swallowed; the identity is
        created regardless.
        """
        email = _validate_credentials(email, password)
        if await self.get_by_email(email):
            raise IdentityExistsError("Email already registered")

        identity = Identity(
            email=email,
            password_hash=hash_password(password),
            user_metadata={"full_name": full_name} if full_name else {},
        )
        self.db.add(identity)
        await self.db.flush()
        logger.info("Identity created: %s", identity.id)

        provisioning = ProvisioningService(
            self.db, anon_read_grants=self.settings.anon_read_grants
        )
        await provisioning.handle_new_identity(identity)
        return identity

    async def authenticate(self, email: str, password: str) -> Identity:
        """Verify credentials; the same error covers unknown email and bad password."""
        identity = await self.get_by_email(email)
        if identity is None or not verify_password(password, identity.password_hash):
            raise AuthenticationError("Invalid email or password")
        return identity

    def issue_session(self, identity: Identity) -> tuple[str, int]:
        return create_access_token(identity, self.settings)

    async def delete_identity(self, identity_id: str) -> bool:
        """Delete an identity; its profile, categories and tasks cascade."""
        result = await self.db.execute(
            delete(Identity).where(Identity.id == identity_id)
        )
        deleted = result.rowcount > 0
        if deleted:
            logger.info("Identity deleted: %s", identity_id)
        return deleted
