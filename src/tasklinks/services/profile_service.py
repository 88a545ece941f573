"""Business logic for the caller's own profile."""

from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from tasklinks.access import AccessGuard, Operation, Principal
from tasklinks.models import Profile
from tasklinks.schemas.profile import ProfileUpdate


class ProfileService:
    """Service for profile operations."""

    def __init__(self, db: AsyncSession, principal: Principal):
        self.db = db
        self.guard = AccessGuard(principal)

    async def get_by_id(self, profile_id: str) -> Profile | None:
        """Get a profile visible to the caller."""
        result = await self.db.execute(
            self.guard.select(Profile).where(Profile.id == profile_id)
        )
        return result.scalar_one_or_none()

    async def update(self, profile_id: str, data: ProfileUpdate) -> Profile | None:
        """Update the caller's profile; None when it is not visible."""
        result = await self.db.execute(
            self.guard.select(Profile, Operation.UPDATE).where(Profile.id == profile_id)
        )
        profile = result.scalar_one_or_none()
        if not profile:
            return None

        for key, value in data.model_dump(exclude_unset=True).items():
            if key == "preferences" and value is None:
                continue
            setattr(profile, key, value)

        self.guard.check_row(Profile, Operation.UPDATE, profile)
        profile.updated_at = datetime.now(timezone.utc)
        await self.db.flush()
        return profile
