"""Multi-tenancy service."""

from __future__ import annotations

import re
from uuid import UUID

import structlog

from taskhive.adapters.audit import AuditAction, AuditSink
from taskhive.core.auth.password import PasswordHasher
from taskhive.core.auth.types import Claim, Role
from taskhive.core.domain_types import (
    Page,
    PageInfo,
    Tenant,
    TenantDetails,
    TenantRegistration,
    TenantStatus,
    TenantSummary,
)
from taskhive.core.entitlements import DEFAULT_PLAN, Plan, limits_for
from taskhive.core.exceptions import ConflictError, DuplicateRecordError, NotFoundError, ValidationError
from taskhive.core.interfaces import TenancyRepository
from taskhive.core.patches import TenantPatch
from taskhive.core.rbac import Action, PolicyEngine, ResourceKind, Target

logger = structlog.get_logger()

SUBDOMAIN_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9-]{1,61}[a-z0-9])?$")
SUBDOMAIN_MIN_LENGTH = 3
SUBDOMAIN_MAX_LENGTH = 63


def normalize_subdomain(subdomain: str) -> str:
    """Lowercase and validate a subdomain.

    Raises:
        ValidationError: If the subdomain is not a valid DNS label of 3-63
            characters.
    """
    value = subdomain.strip().lower()
    if not SUBDOMAIN_MIN_LENGTH <= len(value) <= SUBDOMAIN_MAX_LENGTH:
        raise ValidationError(
            f"Subdomain must be between {SUBDOMAIN_MIN_LENGTH} and "
            f"{SUBDOMAIN_MAX_LENGTH} characters"
        )
    if not SUBDOMAIN_PATTERN.match(value):
        raise ValidationError(
            "Subdomain may only contain lowercase letters, digits and hyphens, "
            "and cannot start or end with a hyphen"
        )
    return value


def tenant_target(tenant_id: UUID) -> Target:
    """Policy target for a tenant record."""
    return Target(kind=ResourceKind.TENANT, tenant_id=tenant_id, id=tenant_id)


class TenantService:
    """Service for tenant registration and administration."""

    def __init__(
        self,
        repository: TenancyRepository,
        hasher: PasswordHasher,
        audit: AuditSink,
        policy: PolicyEngine | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            repository: Tenancy storage.
            hasher: Password hasher for the first admin account.
            audit: Audit log sink.
            policy: Authorization policy engine.
        """
        self._repo = repository
        self._hasher = hasher
        self._audit = audit
        self._policy = policy or PolicyEngine()

    async def register_tenant(
        self,
        name: str,
        subdomain: str,
        admin_email: str,
        admin_password: str,
        admin_full_name: str,
        ip: str | None = None,
    ) -> TenantRegistration:
        """Create a tenant and its first tenant_admin in one transaction.

        Self-registered tenants always start active on the free plan.

        Raises:
            ValidationError: Invalid subdomain.
            ConflictError: Subdomain already taken.
        """
        subdomain = normalize_subdomain(subdomain)
        max_users, max_projects = limits_for(DEFAULT_PLAN)
        password_hash = await self._hasher.hash_async(admin_password)

        try:
            async with self._repo.transaction() as tx:
                tenant = await tx.create_tenant(
                    name=name.strip(),
                    subdomain=subdomain,
                    status=TenantStatus.ACTIVE.value,
                    subscription_plan=DEFAULT_PLAN.value,
                    max_users=max_users,
                    max_projects=max_projects,
                )
                admin = await tx.create_user(
                    tenant_id=tenant.id,
                    email=admin_email.strip().lower(),
                    password_hash=password_hash,
                    full_name=admin_full_name.strip(),
                    role=Role.TENANT_ADMIN.value,
                )
        except DuplicateRecordError as e:
            if e.field == "subdomain":
                raise ConflictError("Subdomain already exists") from e
            raise ConflictError("Email already exists in this tenant") from e

        logger.info("tenant_registered", tenant_id=str(tenant.id), subdomain=subdomain)
        await self._audit.record(
            AuditAction.REGISTER_TENANT,
            tenant_id=tenant.id,
            user_id=admin.id,
            entity_type="tenant",
            entity_id=tenant.id,
            ip=ip,
        )
        return TenantRegistration(tenant=tenant, admin_user=admin)

    async def get_tenant(self, claim: Claim, tenant_id: UUID) -> TenantDetails:
        """Get a tenant with its resource counts."""
        self._policy.enforce(claim, Action.READ, tenant_target(tenant_id))

        tenant = await self._repo.get_tenant(tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant")
        stats = await self._repo.get_tenant_stats(tenant_id)
        return TenantDetails(tenant=tenant, stats=stats)

    async def update_tenant(
        self,
        claim: Claim,
        tenant_id: UUID,
        patch: TenantPatch,
        ip: str | None = None,
    ) -> Tenant:
        """Apply a tenant patch.

        tenant_admin may change only the name; a patch naming any other field
        is rejected as a whole. When a super admin changes the plan without
        explicit limits, the limits follow the plan.
        """
        self._policy.enforce(claim, Action.UPDATE, tenant_target(tenant_id), patch.present_fields)
        if patch.is_empty():
            raise ValidationError("No fields to update")

        changes = patch.changes()
        if patch.subscription_plan is not None:
            max_users, max_projects = limits_for(Plan(patch.subscription_plan))
            changes.setdefault("max_users", max_users)
            changes.setdefault("max_projects", max_projects)

        async with self._repo.transaction() as tx:
            if await tx.lock_tenant(tenant_id) is None:
                raise NotFoundError("Tenant")
            tenant = await tx.update_tenant(tenant_id, changes)
        if tenant is None:
            raise NotFoundError("Tenant")

        logger.info(
            "tenant_updated",
            tenant_id=str(tenant_id),
            updated_fields=sorted(changes),
            user_id=str(claim.user_id),
        )
        await self._audit.record(
            AuditAction.UPDATE_TENANT,
            tenant_id=tenant_id,
            user_id=claim.user_id,
            entity_type="tenant",
            entity_id=tenant_id,
            ip=ip,
        )
        return tenant

    async def list_tenants(
        self,
        claim: Claim,
        status: TenantStatus | None = None,
        subscription_plan: Plan | None = None,
        search: str | None = None,
        page: Page | None = None,
    ) -> tuple[list[TenantSummary], PageInfo]:
        """List all tenants, newest first. Super admin only."""
        self._policy.enforce(claim, Action.LIST, Target(kind=ResourceKind.TENANT))
        page = page or Page()

        tenants, total = await self._repo.list_tenants(
            status=status.value if status else None,
            subscription_plan=subscription_plan.value if subscription_plan else None,
            search=search or None,
            limit=page.limit,
            offset=page.offset,
        )
        return tenants, PageInfo(page=page.page, limit=page.limit, total=total)
