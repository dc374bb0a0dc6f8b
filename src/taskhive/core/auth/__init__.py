"""Auth domain types and utilities."""

from taskhive.core.auth.jwt import TokenService
from taskhive.core.auth.password import PasswordHasher
from taskhive.core.auth.types import Claim, Role, TokenPayload

__all__ = [
    "Claim",
    "PasswordHasher",
    "Role",
    "TokenPayload",
    "TokenService",
]
