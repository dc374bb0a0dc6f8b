"""Auth service for login, session lookup and logout."""

from __future__ import annotations

import structlog

from taskhive.adapters.audit import AuditAction, AuditSink
from taskhive.core.auth.jwt import TokenService
from taskhive.core.auth.password import PasswordHasher
from taskhive.core.auth.types import Claim
from taskhive.core.domain_types import CurrentUser, LoginResult, Tenant, User
from taskhive.core.exceptions import InvalidCredentialsError, NotFoundError
from taskhive.core.interfaces import TenancyRepository

logger = structlog.get_logger()


class AuthService:
    """Service for authentication operations."""

    def __init__(
        self,
        repository: TenancyRepository,
        tokens: TokenService,
        hasher: PasswordHasher,
        audit: AuditSink,
    ) -> None:
        """Initialize the auth service.

        Args:
            repository: Tenancy storage holding the user accounts.
            tokens: Session token service.
            hasher: Password hasher.
            audit: Audit log sink.
        """
        self._repo = repository
        self._tokens = tokens
        self._hasher = hasher
        self._audit = audit

    async def login(
        self,
        email: str,
        password: str,
        tenant_subdomain: str | None = None,
        ip: str | None = None,
    ) -> LoginResult:
        """Authenticate a user and issue a session token.

        Without a subdomain only a super admin can log in. With one, the
        tenant must exist and be active, and the user is looked up inside it.

        Every failure raises the same InvalidCredentialsError, and a password
        check runs even when no user was found, so neither the message nor
        the timing tells the caller whether the email exists.

        Args:
            email: User's email address.
            password: Plain text password.
            tenant_subdomain: Subdomain of the tenant to log into.
            ip: Client IP address for the audit log.

        Returns:
            Token, lifetime in seconds, user and tenant.

        Raises:
            InvalidCredentialsError: If authentication fails for any reason.
        """
        email = email.strip().lower()
        tenant: Tenant | None = None
        user: User | None = None
        reason = "unknown_user"

        if tenant_subdomain:
            tenant = await self._repo.get_tenant_by_subdomain(tenant_subdomain.strip().lower())
            if tenant is None:
                reason = "unknown_tenant"
            elif not tenant.is_active:
                reason = "tenant_inactive"
            else:
                user = await self._repo.get_user_by_email(email, tenant.id)
        else:
            user = await self._repo.get_super_admin_by_email(email)

        password_ok = await self._hasher.verify_async(
            password, user.password_hash if user else None
        )

        if user is None or not password_ok or not user.is_active:
            if user is not None:
                reason = "bad_password" if not password_ok else "user_inactive"
            logger.info(
                "login_failed",
                reason=reason,
                tenant_subdomain=tenant_subdomain,
                ip=ip,
            )
            raise InvalidCredentialsError()

        claim = Claim(user_id=user.id, tenant_id=user.tenant_id, role=user.role)
        token = self._tokens.issue(claim)

        logger.info(
            "login_succeeded",
            user_id=str(user.id),
            tenant_id=str(user.tenant_id) if user.tenant_id else None,
            role=user.role.value,
        )
        await self._audit.record(
            AuditAction.LOGIN,
            tenant_id=user.tenant_id,
            user_id=user.id,
            entity_type="user",
            entity_id=user.id,
            ip=ip,
        )
        return LoginResult(
            token=token,
            expires_in=self._tokens.ttl_seconds,
            user=user,
            tenant=tenant,
        )

    async def me(self, claim: Claim) -> CurrentUser:
        """Return the caller's user record and tenant.

        Raises:
            NotFoundError: If the user was deleted after the token was issued.
        """
        user = await self._repo.get_user(claim.user_id)
        if user is None:
            raise NotFoundError("User")

        tenant = None
        if user.tenant_id is not None:
            tenant = await self._repo.get_tenant(user.tenant_id)
        return CurrentUser(user=user, tenant=tenant)

    async def logout(self, claim: Claim, ip: str | None = None) -> None:
        """Record a logout.

        Tokens are stateless: the token stays valid until it expires, the
        client is expected to discard it.
        """
        logger.info("logout", user_id=str(claim.user_id))
        await self._audit.record(
            AuditAction.LOGOUT,
            tenant_id=claim.tenant_id,
            user_id=claim.user_id,
            entity_type="user",
            entity_id=claim.user_id,
            ip=ip,
        )
