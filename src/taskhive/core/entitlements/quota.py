"""Quota enforcement for plan-limited resources."""

from __future__ import annotations

from uuid import UUID

import structlog

from taskhive.core.domain_types import Tenant
from taskhive.core.entitlements.features import Feature
from taskhive.core.exceptions import NotFoundError, QuotaExceededError
from taskhive.core.interfaces import TenancyRepository

logger = structlog.get_logger()


async def enforce_quota(tx: TenancyRepository, tenant_id: UUID, feature: Feature) -> Tenant:
    """Lock the tenant row and check a limit before an insert.

    Must be called on a transaction-bound repository, with the insert
    following in the same transaction. The row lock is what keeps two
    concurrent creators from both seeing room for one more.

    Args:
        tx: Repository bound to an open transaction.
        tenant_id: Tenant the new record will belong to.
        feature: Which limit to check.

    Returns:
        The locked tenant.

    Raises:
        NotFoundError: If the tenant does not exist.
        QuotaExceededError: If the tenant is at its limit.
    """
    tenant = await tx.lock_tenant(tenant_id)
    if tenant is None:
        raise NotFoundError("Tenant")

    if feature == Feature.MAX_USERS:
        used, limit, resource = await tx.count_users(tenant_id), tenant.max_users, "users"
    elif feature == Feature.MAX_PROJECTS:
        used, limit, resource = await tx.count_projects(tenant_id), tenant.max_projects, "projects"
    else:
        raise ValueError(f"Not a quota feature: {feature}")

    if used >= limit:
        logger.info(
            "quota_exceeded",
            tenant_id=str(tenant_id),
            resource=resource,
            used=used,
            limit=limit,
        )
        raise QuotaExceededError(resource, limit)
    return tenant
