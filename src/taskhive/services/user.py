"""User management within a tenant."""

from __future__ import annotations

from uuid import UUID

import structlog

from taskhive.adapters.audit import AuditAction, AuditSink
from taskhive.core.auth.password import PasswordHasher
from taskhive.core.auth.types import Claim, Role
from taskhive.core.domain_types import Page, PageInfo, User
from taskhive.core.entitlements import Feature
from taskhive.core.entitlements.quota import enforce_quota
from taskhive.core.exceptions import ConflictError, DuplicateRecordError, NotFoundError, ValidationError
from taskhive.core.interfaces import TenancyRepository
from taskhive.core.patches import UserPatch
from taskhive.core.rbac import Action, PolicyEngine, ResourceKind, Target

logger = structlog.get_logger()

ASSIGNABLE_ROLES = frozenset({Role.TENANT_ADMIN, Role.USER})


def user_target(user: User) -> Target:
    """Policy target for an existing user record."""
    return Target(kind=ResourceKind.USER, tenant_id=user.tenant_id, id=user.id)


class UserService:
    """Service for managing the users of a tenant."""

    def __init__(
        self,
        repository: TenancyRepository,
        hasher: PasswordHasher,
        audit: AuditSink,
        policy: PolicyEngine | None = None,
    ) -> None:
        self._repo = repository
        self._hasher = hasher
        self._audit = audit
        self._policy = policy or PolicyEngine()

    async def add_user(
        self,
        claim: Claim,
        tenant_id: UUID,
        email: str,
        password: str,
        full_name: str,
        role: Role = Role.USER,
        ip: str | None = None,
    ) -> User:
        """Create a user in a tenant, subject to the tenant's user limit.

        Raises:
            ForbiddenError: Caller is not a tenant_admin of the tenant.
            ValidationError: role is super_admin.
            QuotaExceededError: Tenant is at max_users.
            ConflictError: Email already used in this tenant.
        """
        self._policy.enforce(claim, Action.CREATE, Target(kind=ResourceKind.USER, tenant_id=tenant_id))
        if role not in ASSIGNABLE_ROLES:
            raise ValidationError("Role must be tenant_admin or user")

        password_hash = await self._hasher.hash_async(password)
        try:
            async with self._repo.transaction() as tx:
                await enforce_quota(tx, tenant_id, Feature.MAX_USERS)
                user = await tx.create_user(
                    tenant_id=tenant_id,
                    email=email.strip().lower(),
                    password_hash=password_hash,
                    full_name=full_name.strip(),
                    role=role.value,
                )
        except DuplicateRecordError as e:
            raise ConflictError("Email already exists in this tenant") from e

        logger.info(
            "user_created",
            user_id=str(user.id),
            tenant_id=str(tenant_id),
            role=role.value,
            created_by=str(claim.user_id),
        )
        await self._audit.record(
            AuditAction.CREATE_USER,
            tenant_id=tenant_id,
            user_id=claim.user_id,
            entity_type="user",
            entity_id=user.id,
            ip=ip,
        )
        return user

    async def list_users(
        self,
        claim: Claim,
        tenant_id: UUID,
        role: Role | None = None,
        is_active: bool | None = None,
        search: str | None = None,
        page: Page | None = None,
    ) -> tuple[list[User], PageInfo]:
        """List the users of a tenant, newest first."""
        self._policy.enforce(claim, Action.LIST, Target(kind=ResourceKind.USER, tenant_id=tenant_id))
        page = page or Page()

        users, total = await self._repo.list_users(
            tenant_id=tenant_id,
            role=role.value if role else None,
            is_active=is_active,
            search=search or None,
            limit=page.limit,
            offset=page.offset,
        )
        return users, PageInfo(page=page.page, limit=page.limit, total=total)

    async def update_user(
        self,
        claim: Claim,
        user_id: UUID,
        patch: UserPatch,
        ip: str | None = None,
    ) -> User:
        """Apply a user patch.

        A plain user may change only their own full_name. A tenant_admin may
        change anyone in the tenant, but not their own role or active flag.
        """
        existing = await self._repo.get_user(user_id)
        if existing is None:
            raise NotFoundError("User")
        self._policy.enforce(claim, Action.UPDATE, user_target(existing), patch.present_fields)
        if patch.is_empty():
            raise ValidationError("No fields to update")

        user = await self._repo.update_user(user_id, patch.changes())
        if user is None:
            raise NotFoundError("User")

        logger.info(
            "user_updated",
            user_id=str(user_id),
            updated_fields=sorted(patch.present_fields),
            updated_by=str(claim.user_id),
        )
        await self._audit.record(
            AuditAction.UPDATE_USER,
            tenant_id=user.tenant_id,
            user_id=claim.user_id,
            entity_type="user",
            entity_id=user_id,
            ip=ip,
        )
        return user

    async def delete_user(self, claim: Claim, user_id: UUID, ip: str | None = None) -> None:
        """Delete a user. Their tasks stay, unassigned."""
        existing = await self._repo.get_user(user_id)
        if existing is None:
            raise NotFoundError("User")
        self._policy.enforce(claim, Action.DELETE, user_target(existing))

        if not await self._repo.delete_user(user_id):
            raise NotFoundError("User")

        logger.info("user_deleted", user_id=str(user_id), deleted_by=str(claim.user_id))
        await self._audit.record(
            AuditAction.DELETE_USER,
            tenant_id=existing.tenant_id,
            user_id=claim.user_id,
            entity_type="user",
            entity_id=user_id,
            ip=ip,
        )
