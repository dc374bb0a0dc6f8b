"""Auth domain types."""

from __future__ import annotations

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class Role(str, Enum):
    """User roles, from most to least privileged.

    super_admin is tenant-less: it administers tenant records but is not a
    member of any tenant.
    """

    SUPER_ADMIN = "super_admin"
    TENANT_ADMIN = "tenant_admin"
    USER = "user"

    @property
    def is_tenant_scoped(self) -> bool:
        """Whether holders of this role belong to exactly one tenant."""
        return self is not Role.SUPER_ADMIN


class Claim(BaseModel):
    """Verified identity carried by a session token."""

    model_config = ConfigDict(frozen=True)

    user_id: UUID
    tenant_id: UUID | None
    role: Role


class TokenPayload(BaseModel):
    """JWT token payload claims."""

    sub: str  # user_id
    tenant_id: str | None
    role: str
    exp: int  # expiration timestamp
    iat: int  # issued at timestamp
