"""Tenant API routes."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from taskhive.core.domain_types import Page, TenantStatus
from taskhive.core.entitlements import Plan
from taskhive.core.patches import TenantPatch
from taskhive.entrypoints.api.deps import ClientIp, TenantServiceDep
from taskhive.entrypoints.api.middleware.jwt_auth import AuthClaim
from taskhive.entrypoints.api.schemas import (
    ApiResponse,
    PaginationOut,
    TenantDetailOut,
    TenantListItem,
    TenantListOut,
    TenantOut,
    TenantUpdateRequest,
)

router = APIRouter(prefix="/tenants", tags=["tenants"])


@router.get("", response_model=ApiResponse[TenantListOut])
async def list_tenants(
    claim: AuthClaim,
    tenant_service: TenantServiceDep,
    status: TenantStatus | None = None,
    subscription_plan: Annotated[Plan | None, Query(alias="subscriptionPlan")] = None,
    search: str | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> ApiResponse[TenantListOut]:
    """List all tenants. Super admin only."""
    tenants, info = await tenant_service.list_tenants(
        claim,
        status=status,
        subscription_plan=subscription_plan,
        search=search,
        page=Page(page=page, limit=limit),
    )
    return ApiResponse(
        data=TenantListOut(
            tenants=[TenantListItem.from_summary(t) for t in tenants],
            pagination=PaginationOut.from_domain(info),
        )
    )


@router.get("/{tenant_id}", response_model=ApiResponse[TenantDetailOut])
async def get_tenant(
    tenant_id: UUID,
    claim: AuthClaim,
    tenant_service: TenantServiceDep,
) -> ApiResponse[TenantDetailOut]:
    """Get a tenant with user, project and task counts."""
    details = await tenant_service.get_tenant(claim, tenant_id)
    return ApiResponse(data=TenantDetailOut.from_details(details))


@router.put("/{tenant_id}", response_model=ApiResponse[TenantOut])
async def update_tenant(
    tenant_id: UUID,
    body: TenantUpdateRequest,
    claim: AuthClaim,
    tenant_service: TenantServiceDep,
    ip: ClientIp,
) -> ApiResponse[TenantOut]:
    """Update a tenant.

    Tenant admins may change the name only. Subscription fields are reserved
    for super admins.
    """
    patch = TenantPatch(**body.model_dump(exclude_unset=True))
    tenant = await tenant_service.update_tenant(claim, tenant_id, patch, ip=ip)
    return ApiResponse(message="Tenant updated successfully", data=TenantOut.from_domain(tenant))
