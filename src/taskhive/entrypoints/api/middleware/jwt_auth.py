"""JWT authentication middleware."""

from typing import Annotated

import structlog
from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from taskhive.core.auth.jwt import TokenService
from taskhive.core.auth.types import Claim
from taskhive.core.exceptions import InvalidTokenError, UnauthorizedError

logger = structlog.get_logger()

# Use Bearer token authentication
bearer_scheme = HTTPBearer(auto_error=False)


def get_token_service(request: Request) -> TokenService:
    """Get the token service from app state."""
    tokens: TokenService = request.app.state.tokens
    return tokens


async def verify_jwt(
    request: Request,
    tokens: Annotated[TokenService, Depends(get_token_service)],
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),  # noqa: B008
) -> Claim:
    """Verify the bearer token and return the caller's claim.

    Args:
        request: The current request.
        tokens: Token service.
        credentials: Bearer token credentials.

    Returns:
        The verified claim.

    Raises:
        UnauthorizedError: 401 if the token is missing.
        InvalidTokenError: 401 if the token is invalid or expired.
    """
    if not credentials:
        raise UnauthorizedError("Missing authentication token")

    try:
        claim = tokens.verify(credentials.credentials)
    except InvalidTokenError as e:
        logger.warning("jwt_validation_failed", reason=e.message, path=request.url.path)
        raise

    # Store in request state for downstream use
    request.state.claim = claim

    logger.debug(
        "jwt_verified",
        user_id=str(claim.user_id),
        tenant_id=str(claim.tenant_id) if claim.tenant_id else None,
        role=claim.role.value,
    )
    return claim


AuthClaim = Annotated[Claim, Depends(verify_jwt)]
