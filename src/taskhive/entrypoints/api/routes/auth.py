"""Auth API routes for tenant registration, login and session info."""

from fastapi import APIRouter

from taskhive.entrypoints.api.deps import AuthServiceDep, ClientIp, TenantServiceDep
from taskhive.entrypoints.api.middleware.jwt_auth import AuthClaim
from taskhive.entrypoints.api.schemas import (
    ApiResponse,
    LoginOut,
    LoginRequest,
    MeOut,
    RegisterTenantOut,
    RegisterTenantRequest,
    TenantOut,
    UserOut,
)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register-tenant",
    status_code=201,
    response_model=ApiResponse[RegisterTenantOut],
)
async def register_tenant(
    body: RegisterTenantRequest,
    tenant_service: TenantServiceDep,
    ip: ClientIp,
) -> ApiResponse[RegisterTenantOut]:
    """Register a new tenant with its first admin.

    New tenants start active on the free plan.
    """
    registration = await tenant_service.register_tenant(
        name=body.tenant_name,
        subdomain=body.subdomain,
        admin_email=body.admin_email,
        admin_password=body.admin_password,
        admin_full_name=body.admin_full_name,
        ip=ip,
    )
    tenant = registration.tenant
    return ApiResponse(
        message="Tenant registered successfully",
        data=RegisterTenantOut(
            tenant_id=tenant.id,
            subdomain=tenant.subdomain,
            tenant=TenantOut.from_domain(tenant),
            admin_user=UserOut.from_domain(registration.admin_user),
        ),
    )


@router.post("/login", response_model=ApiResponse[LoginOut])
async def login(
    body: LoginRequest,
    auth_service: AuthServiceDep,
    ip: ClientIp,
) -> ApiResponse[LoginOut]:
    """Authenticate with email and password.

    Omit tenantSubdomain to log in as a super admin.
    """
    result = await auth_service.login(
        email=body.email,
        password=body.password,
        tenant_subdomain=body.tenant_subdomain,
        ip=ip,
    )
    return ApiResponse(
        message="Login successful",
        data=LoginOut(
            token=result.token,
            expires_in=result.expires_in,
            user=UserOut.from_domain(result.user),
            tenant=TenantOut.from_domain(result.tenant) if result.tenant else None,
        ),
    )


@router.get("/me", response_model=ApiResponse[MeOut])
async def get_current_user(
    claim: AuthClaim,
    auth_service: AuthServiceDep,
) -> ApiResponse[MeOut]:
    """Get the authenticated user and their tenant."""
    current = await auth_service.me(claim)
    return ApiResponse(data=MeOut.from_current(current))


@router.post("/logout", response_model=ApiResponse[None])
async def logout(
    claim: AuthClaim,
    auth_service: AuthServiceDep,
    ip: ClientIp,
) -> ApiResponse[None]:
    """Log out. The token stays valid until expiry; clients must discard it."""
    await auth_service.logout(claim, ip=ip)
    return ApiResponse(message="Logged out successfully")
