"""JWT session token creation and validation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt
from pydantic import ValidationError as PydanticValidationError

from taskhive.core.auth.types import Claim, Role, TokenPayload
from taskhive.core.exceptions import InvalidTokenError

DEFAULT_TOKEN_TTL_SECONDS = 86400  # 24h


class TokenService:
    """Issues and verifies signed, time-boxed session tokens.

    Stateless: there is no revocation list, a token stays valid until it
    expires even after the client logs out.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS,
    ) -> None:
        """Initialize the token service.

        Args:
            secret_key: Signing secret.
            algorithm: JWT algorithm.
            ttl_seconds: Token lifetime in seconds.
        """
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.ttl_seconds = ttl_seconds

    def issue(self, claim: Claim, now: datetime | None = None) -> str:
        """Create a signed token for a claim.

        Args:
            claim: Identity to encode.
            now: Issuance time, defaults to the current UTC time.

        Returns:
            Encoded JWT string.
        """
        issued_at = now or datetime.now(timezone.utc)
        expire = issued_at + timedelta(seconds=self.ttl_seconds)

        payload = {
            "sub": str(claim.user_id),
            "tenant_id": str(claim.tenant_id) if claim.tenant_id else None,
            "role": claim.role.value,
            "exp": int(expire.timestamp()),
            "iat": int(issued_at.timestamp()),
        }

        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> Claim:
        """Decode and validate a token.

        Args:
            token: Encoded JWT string.

        Returns:
            The verified claim.

        Raises:
            InvalidTokenError: If the token is malformed, forged or expired.
        """
        try:
            raw = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"require": ["sub", "role", "exp", "iat"]},
            )
            payload = TokenPayload(
                sub=raw["sub"],
                tenant_id=raw.get("tenant_id"),
                role=raw["role"],
                exp=raw["exp"],
                iat=raw["iat"],
            )
            return Claim(
                user_id=UUID(payload.sub),
                tenant_id=UUID(payload.tenant_id) if payload.tenant_id else None,
                role=Role(payload.role),
            )
        except jwt.ExpiredSignatureError:
            raise InvalidTokenError("Token has expired") from None
        except jwt.InvalidTokenError:
            raise InvalidTokenError() from None
        except (KeyError, ValueError, PydanticValidationError):
            raise InvalidTokenError() from None
