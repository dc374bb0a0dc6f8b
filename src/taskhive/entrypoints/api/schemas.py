"""Request and response bodies for the REST API.

Bodies use camelCase on the wire; request models also accept snake_case
field names. Every response is wrapped in ApiResponse.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Generic, TypeVar
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from taskhive.core.auth.types import Role
from taskhive.core.domain_types import (
    CurrentUser,
    PageInfo,
    Project,
    ProjectStatus,
    ProjectSummary,
    TaskPriority,
    TaskStatus,
    TaskView,
    Tenant,
    TenantDetails,
    TenantStatus,
    TenantSummary,
    User,
)
from taskhive.core.entitlements import Plan

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PatchRequest(CamelModel):
    """Base for update bodies; unknown fields are rejected."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class ApiResponse(BaseModel, Generic[T]):
    """Response envelope."""

    success: bool = True
    message: str | None = None
    data: T | None = None


# Requests


class RegisterTenantRequest(CamelModel):
    """Tenant self-registration body."""

    tenant_name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        validation_alias=AliasChoices("tenantName", "tenant_name", "name"),
    )
    subdomain: str = Field(..., min_length=1, max_length=63)
    admin_email: EmailStr
    admin_password: str = Field(..., min_length=8)
    admin_full_name: str = Field(..., min_length=1, max_length=255)


class LoginRequest(CamelModel):
    """Login body. Omit tenantSubdomain to log in as super admin."""

    email: EmailStr
    password: str = Field(..., min_length=1)
    tenant_subdomain: str | None = None


class TenantUpdateRequest(PatchRequest):
    """Tenant update body. subdomain is immutable."""

    name: str | None = None
    status: TenantStatus | None = None
    subscription_plan: Plan | None = None
    max_users: int | None = None
    max_projects: int | None = None


class CreateUserRequest(CamelModel):
    """New user body."""

    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=1, max_length=255)
    role: Role = Role.USER


class UserUpdateRequest(PatchRequest):
    """User update body."""

    full_name: str | None = None
    role: Role | None = None
    is_active: bool | None = None


class CreateProjectRequest(CamelModel):
    """New project body."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    status: ProjectStatus = ProjectStatus.ACTIVE


class ProjectUpdateRequest(PatchRequest):
    """Project update body."""

    name: str | None = None
    description: str | None = None
    status: ProjectStatus | None = None


class CreateTaskRequest(CamelModel):
    """New task body."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    assigned_to: UUID | None = None
    due_date: date | None = None


class TaskStatusRequest(CamelModel):
    """Task status change body."""

    status: TaskStatus


class TaskUpdateRequest(PatchRequest):
    """Task update body. Null assignedTo or dueDate clears the field."""

    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assigned_to: UUID | None = None
    due_date: date | None = None


# Responses


class PaginationOut(CamelModel):
    """Pagination metadata."""

    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def from_domain(cls, info: PageInfo) -> PaginationOut:
        return cls(page=info.page, limit=info.limit, total=info.total, total_pages=info.total_pages)


class TenantOut(CamelModel):
    """Tenant."""

    id: UUID
    name: str
    subdomain: str
    status: TenantStatus
    subscription_plan: str
    max_users: int
    max_projects: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, tenant: Tenant) -> TenantOut:
        return cls(**tenant.model_dump())


class TenantStatsOut(CamelModel):
    """Tenant resource counts."""

    total_users: int
    total_projects: int
    total_tasks: int


class TenantDetailOut(TenantOut):
    """Tenant with resource counts."""

    stats: TenantStatsOut

    @classmethod
    def from_details(cls, details: TenantDetails) -> TenantDetailOut:
        return cls(
            **details.tenant.model_dump(),
            stats=TenantStatsOut(**details.stats.model_dump()),
        )


class TenantListItem(TenantOut):
    """Tenant row in the super admin tenant list."""

    total_users: int
    total_projects: int

    @classmethod
    def from_summary(cls, summary: TenantSummary) -> TenantListItem:
        return cls(
            **summary.tenant.model_dump(),
            total_users=summary.total_users,
            total_projects=summary.total_projects,
        )


class TenantListOut(CamelModel):
    """Page of tenants."""

    tenants: list[TenantListItem]
    pagination: PaginationOut


class UserOut(CamelModel):
    """User without credentials."""

    id: UUID
    tenant_id: UUID | None
    email: str
    full_name: str
    role: Role
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, user: User) -> UserOut:
        return cls(**user.model_dump(exclude={"password_hash"}))


class UserListOut(CamelModel):
    """Page of users."""

    users: list[UserOut]
    pagination: PaginationOut


class MeOut(UserOut):
    """The authenticated user with their tenant."""

    tenant: TenantOut | None = None

    @classmethod
    def from_current(cls, current: CurrentUser) -> MeOut:
        return cls(
            **current.user.model_dump(exclude={"password_hash"}),
            tenant=TenantOut.from_domain(current.tenant) if current.tenant else None,
        )


class RegisterTenantOut(CamelModel):
    """Result of tenant registration."""

    tenant_id: UUID
    subdomain: str
    tenant: TenantOut
    admin_user: UserOut


class LoginOut(CamelModel):
    """Successful login."""

    token: str
    expires_in: int
    user: UserOut
    tenant: TenantOut | None = None


class ProjectOut(CamelModel):
    """Project."""

    id: UUID
    tenant_id: UUID
    name: str
    description: str | None
    status: ProjectStatus
    created_by: UUID | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, project: Project) -> ProjectOut:
        return cls(**project.model_dump())


class ProjectListItem(ProjectOut):
    """Project with creator name and task progress."""

    creator_name: str | None
    task_count: int
    completed_task_count: int

    @classmethod
    def from_summary(cls, summary: ProjectSummary) -> ProjectListItem:
        return cls(
            **summary.project.model_dump(),
            creator_name=summary.creator_name,
            task_count=summary.task_count,
            completed_task_count=summary.completed_task_count,
        )


class ProjectListOut(CamelModel):
    """Page of projects."""

    projects: list[ProjectListItem]
    pagination: PaginationOut


class AssignedUserOut(CamelModel):
    """Task assignee."""

    id: UUID
    full_name: str
    email: str


class TaskOut(CamelModel):
    """Task with its assignee."""

    id: UUID
    project_id: UUID
    tenant_id: UUID
    title: str
    description: str | None
    status: TaskStatus
    priority: TaskPriority
    assigned_to: UUID | None
    due_date: date | None
    created_by: UUID | None
    created_at: datetime
    updated_at: datetime
    assigned_user: AssignedUserOut | None = None

    @classmethod
    def from_view(cls, view: TaskView) -> TaskOut:
        return cls(
            **view.task.model_dump(),
            assigned_user=(
                AssignedUserOut(**view.assigned_user.model_dump()) if view.assigned_user else None
            ),
        )


class TaskListOut(CamelModel):
    """Tasks of a project."""

    tasks: list[TaskOut]


class HealthOut(CamelModel):
    """Health check result."""

    status: str
    database: str
