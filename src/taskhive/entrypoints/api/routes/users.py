"""User management API routes."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from taskhive.core.auth.types import Role
from taskhive.core.domain_types import Page
from taskhive.core.patches import UserPatch
from taskhive.entrypoints.api.deps import ClientIp, UserServiceDep
from taskhive.entrypoints.api.middleware.jwt_auth import AuthClaim
from taskhive.entrypoints.api.schemas import (
    ApiResponse,
    CreateUserRequest,
    PaginationOut,
    UserListOut,
    UserOut,
    UserUpdateRequest,
)

router = APIRouter(tags=["users"])


@router.post(
    "/tenants/{tenant_id}/users",
    status_code=201,
    response_model=ApiResponse[UserOut],
)
async def add_user(
    tenant_id: UUID,
    body: CreateUserRequest,
    claim: AuthClaim,
    user_service: UserServiceDep,
    ip: ClientIp,
) -> ApiResponse[UserOut]:
    """Add a user to a tenant. Tenant admins only, subject to max_users."""
    user = await user_service.add_user(
        claim,
        tenant_id,
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        role=body.role,
        ip=ip,
    )
    return ApiResponse(message="User created successfully", data=UserOut.from_domain(user))


@router.get("/tenants/{tenant_id}/users", response_model=ApiResponse[UserListOut])
async def list_users(
    tenant_id: UUID,
    claim: AuthClaim,
    user_service: UserServiceDep,
    role: Role | None = None,
    is_active: Annotated[bool | None, Query(alias="isActive")] = None,
    search: str | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> ApiResponse[UserListOut]:
    """List the users of a tenant."""
    users, info = await user_service.list_users(
        claim,
        tenant_id,
        role=role,
        is_active=is_active,
        search=search,
        page=Page(page=page, limit=limit),
    )
    return ApiResponse(
        data=UserListOut(
            users=[UserOut.from_domain(u) for u in users],
            pagination=PaginationOut.from_domain(info),
        )
    )


@router.put("/users/{user_id}", response_model=ApiResponse[UserOut])
async def update_user(
    user_id: UUID,
    body: UserUpdateRequest,
    claim: AuthClaim,
    user_service: UserServiceDep,
    ip: ClientIp,
) -> ApiResponse[UserOut]:
    """Update a user."""
    patch = UserPatch(**body.model_dump(exclude_unset=True))
    user = await user_service.update_user(claim, user_id, patch, ip=ip)
    return ApiResponse(message="User updated successfully", data=UserOut.from_domain(user))


@router.delete("/users/{user_id}", response_model=ApiResponse[None])
async def delete_user(
    user_id: UUID,
    claim: AuthClaim,
    user_service: UserServiceDep,
    ip: ClientIp,
) -> ApiResponse[None]:
    """Delete a user. Their tasks are left unassigned."""
    await user_service.delete_user(claim, user_id, ip=ip)
    return ApiResponse(message="User deleted successfully")
