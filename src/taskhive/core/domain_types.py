"""Domain types - immutable Pydantic models for the tenancy domain.

Tenants own users and projects; projects own tasks. Every tenant-scoped
record carries its tenant_id so scoping never needs a join.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from taskhive.core.auth.types import Role


class TenantStatus(str, Enum):
    """Lifecycle state of a tenant. Only active tenants accept logins."""

    ACTIVE = "active"
    SUSPENDED = "suspended"
    TRIAL = "trial"


class ProjectStatus(str, Enum):
    """Project states."""

    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class TaskStatus(str, Enum):
    """Task workflow states."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    """Task priority, ranked high=1, medium=2, low=3 for ordering."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        """Sort rank, lower sorts first."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    TaskPriority.HIGH: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.LOW: 3,
}


class Tenant(BaseModel):
    """An isolated organization workspace."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    subdomain: str
    status: TenantStatus
    subscription_plan: str
    max_users: int
    max_projects: int
    created_at: datetime
    updated_at: datetime

    @property
    def is_active(self) -> bool:
        """Whether logins scoped to this tenant are accepted."""
        return self.status == TenantStatus.ACTIVE


class User(BaseModel):
    """A user account.

    tenant_id is None only for super_admin.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID
    tenant_id: UUID | None
    email: str
    password_hash: str
    full_name: str
    role: Role
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class Project(BaseModel):
    """A project inside a tenant."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    tenant_id: UUID
    name: str
    description: str | None = None
    status: ProjectStatus = ProjectStatus.ACTIVE
    created_by: UUID | None
    created_at: datetime
    updated_at: datetime


class Task(BaseModel):
    """A task inside a project; tenant_id mirrors the project's tenant."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    project_id: UUID
    tenant_id: UUID
    title: str
    description: str | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    assigned_to: UUID | None = None
    due_date: date | None = None
    created_by: UUID | None = None
    created_at: datetime
    updated_at: datetime


# Read models


class TenantStats(BaseModel):
    """Resource counts for a tenant."""

    model_config = ConfigDict(frozen=True)

    total_users: int
    total_projects: int
    total_tasks: int


class TenantSummary(BaseModel):
    """Tenant row as shown in the super admin tenant list."""

    model_config = ConfigDict(frozen=True)

    tenant: Tenant
    total_users: int
    total_projects: int


class ProjectSummary(BaseModel):
    """Project with creator name and task progress counts."""

    model_config = ConfigDict(frozen=True)

    project: Project
    creator_name: str | None
    task_count: int
    completed_task_count: int


class AssignedUser(BaseModel):
    """Minimal public view of a task's assignee."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    full_name: str
    email: str


class TaskView(BaseModel):
    """Task joined with its assignee."""

    model_config = ConfigDict(frozen=True)

    task: Task
    assigned_user: AssignedUser | None = None


class Page(BaseModel):
    """Pagination request."""

    model_config = ConfigDict(frozen=True)

    page: int = 1
    limit: int = 20

    @property
    def offset(self) -> int:
        """Row offset for this page."""
        return (self.page - 1) * self.limit


class PageInfo(BaseModel):
    """Pagination metadata returned with list results."""

    model_config = ConfigDict(frozen=True)

    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        """Number of pages at this limit."""
        if self.limit <= 0:
            return 0
        return (self.total + self.limit - 1) // self.limit


# Service results


class TenantRegistration(BaseModel):
    """A freshly registered tenant and its first admin."""

    model_config = ConfigDict(frozen=True)

    tenant: Tenant
    admin_user: User


class TenantDetails(BaseModel):
    """A tenant with its resource counts."""

    model_config = ConfigDict(frozen=True)

    tenant: Tenant
    stats: TenantStats


class CurrentUser(BaseModel):
    """The authenticated user and, for tenant members, their tenant."""

    model_config = ConfigDict(frozen=True)

    user: User
    tenant: Tenant | None = None


class LoginResult(BaseModel):
    """Successful login."""

    model_config = ConfigDict(frozen=True)

    token: str
    expires_in: int
    user: User
    tenant: Tenant | None = None
