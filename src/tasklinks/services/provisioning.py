"""Profile and default-category provisioning for new identities.

``handle_new_identity`` runs in the same transaction that creates the
identity, inside its own savepoint. Whatever goes wrong there is logged and
rolled back to the savepoint only, so signup itself never fails because of
provisioning. ``ensure_profile`` is the idempotent repair path that restores
a missing profile afterwards.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tasklinks.access import AccessGuard, Operation, Principal
from tasklinks.database import insert_or_ignore
from tasklinks.errors import NotFoundError
from tasklinks.models import DEFAULT_CATEGORIES, Category, Identity, Profile

logger = logging.getLogger(__name__)


class ProvisioningService:
    """Creates exactly one profile and the default categories per identity."""

    def __init__(self, db: AsyncSession, *, anon_read_grants: bool = True):
        self.db = db
        self.anon_read_grants = anon_read_grants

    def _guard(self, principal: Principal) -> AccessGuard:
        return AccessGuard(principal, anon_read_grants=self.anon_read_grants)

    async def handle_new_identity(self, identity: Identity) -> bool:
        """Provision ``identity``; returns False when provisioning failed.

        The identity row must already be flushed.
        """
        principal = Principal.provisioner(identity.id)
        try:
            async with self.db.begin_nested():
                await self._insert_profile(
                    principal,
                    identity.id,
                    identity.email or "",
                    identity.full_name,
                )
                await self._seed_categories(principal, identity.id)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Error provisioning identity %s: %s", identity.id, exc
            )
            return False

        logger.info("Profile created for identity %s", identity.id)
        return True

    async def ensure_profile(
        self,
        principal: Principal,
        user_id: str,
        email: str = "",
        full_name: str = "",
    ) -> bool:
        """Create the profile for ``user_id`` unless it already exists.

        Callable by the owner for their own id and by the service role.
        Repeated calls are no-ops. Raises NotFoundError when no identity
        with that id exists.
        """
        try:
            async with self.db.begin_nested():
                created = await self._insert_profile(
                    principal, user_id, email or "", full_name or ""
                )
        except IntegrityError as exc:
            if await self.db.get(Identity, user_id) is None:
                raise NotFoundError(f"Identity not found: {user_id}") from exc
            raise

        if created:
            logger.info("Profile repaired for identity %s", user_id)
        else:
            logger.debug("Profile already present for identity %s", user_id)
        return created

    async def seed_default_categories(
        self, principal: Principal, owner_id: str
    ) -> int:
        """Insert the missing default categories for ``owner_id``.

        A default whose name the owner already has is skipped, so seeding
        twice still leaves exactly one of each. Returns the number inserted.
        """
        return await self._seed_categories(principal, owner_id)

    async def _insert_profile(
        self,
        principal: Principal,
        user_id: str,
        email: str,
        full_name: str,
    ) -> bool:
        values = {
            "id": user_id,
            "email": email,
            "full_name": full_name,
            "preferences": {},
        }
        guard = self._guard(principal)
        guard.require_grant(Profile, Operation.INSERT)
        guard.check_row(Profile, Operation.INSERT, values)
        return await insert_or_ignore(self.db, Profile, values, key=["id"])

    async def _seed_categories(self, principal: Principal, owner_id: str) -> int:
        guard = self._guard(principal)
        guard.require_grant(Category, Operation.INSERT)
        guard.check_row(Category, Operation.INSERT, {"user_id": owner_id})

        result = await self.db.execute(
            select(Category.name).where(Category.user_id == owner_id)
        )
        existing = set(result.scalars())

        inserted = 0
        for name, color in DEFAULT_CATEGORIES:
            if name in existing:
                continue
            category = Category(name=name, color=color, user_id=owner_id)
            guard.check_row(Category, Operation.INSERT, category)
            self.db.add(category)
            existing.add(name)
            inserted += 1

        await self.db.flush()
        return inserted
