"""API middleware."""

from taskhive.entrypoints.api.middleware.jwt_auth import AuthClaim, bearer_scheme, verify_jwt

__all__ = ["AuthClaim", "bearer_scheme", "verify_jwt"]
