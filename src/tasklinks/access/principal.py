"""Who is asking: the principal behind a data-access call."""

import enum
from dataclasses import dataclass


class Role(str, enum.Enum):
    ANON = "anon"
    AUTHENTICATED = "authenticated"
    SERVICE_ROLE = "service_role"


@dataclass(frozen=True)
class Principal:
    """Caller identity as seen by the access policies.

    ``elevated`` is the session-level marker set only while provisioning a
    freshly created identity.
    """

    role: Role
    user_id: str | None = None
    elevated: bool = False

    @classmethod
    def anonymous(cls) -> "Principal":
        return cls(role=Role.ANON)

    @classmethod
    def user(cls, user_id: str) -> "Principal":
        return cls(role=Role.AUTHENTICATED, user_id=user_id)

    @classmethod
    def service(cls) -> "Principal":
        return cls(role=Role.SERVICE_ROLE)

    @classmethod
    def provisioner(cls, identity_id: str) -> "Principal":
        return cls(role=Role.SERVICE_ROLE, user_id=identity_id, elevated=True)

    @property
    def is_authenticated(self) -> bool:
        return self.role is Role.AUTHENTICATED and self.user_id is not None
