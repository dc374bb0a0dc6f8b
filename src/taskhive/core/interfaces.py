"""Protocol definitions for the storage layer.

Services depend only on these protocols. The asyncpg adapter and the
in-memory adapter both implement them, so the same service code runs against
PostgreSQL in production and against process memory in tests and demo mode.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from datetime import date
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable
from uuid import UUID

if TYPE_CHECKING:
    from taskhive.adapters.audit.types import AuditLogCreate, AuditLogEntry

    from .domain_types import (
        Project,
        ProjectSummary,
        Task,
        TaskView,
        Tenant,
        TenantStats,
        TenantSummary,
        User,
    )


@runtime_checkable
class TenancyRepository(Protocol):
    """Interface for tenant, user, project and task persistence.

    Implementations must provide:
    - A transaction() context yielding a repository bound to that transaction
    - Row locking of a tenant for quota checks (lock_tenant)
    - DuplicateRecordError on unique violations (subdomain, email)
    - Cascade of project deletion to its tasks
    - Nulling of assigned_to / created_by references on user deletion

    Update methods take a dict of present fields only; keys not in the dict
    are left unchanged and None values clear the column.
    """

    def transaction(self) -> AbstractAsyncContextManager[TenancyRepository]:
        """Open a transaction; roll back wholly if the block raises."""
        ...

    async def ping(self) -> None:
        """Raise if the store is unreachable."""
        ...

    # Tenants

    async def lock_tenant(self, tenant_id: UUID) -> Tenant | None:
        """Fetch a tenant and hold its row lock until the transaction ends."""
        ...

    async def create_tenant(
        self,
        name: str,
        subdomain: str,
        status: str,
        subscription_plan: str,
        max_users: int,
        max_projects: int,
    ) -> Tenant:
        """Insert a tenant. Raises DuplicateRecordError("subdomain")."""
        ...

    async def get_tenant(self, tenant_id: UUID) -> Tenant | None:
        """Get a tenant by id."""
        ...

    async def get_tenant_by_subdomain(self, subdomain: str) -> Tenant | None:
        """Get a tenant by its subdomain."""
        ...

    async def update_tenant(self, tenant_id: UUID, changes: dict[str, Any]) -> Tenant | None:
        """Apply changes to a tenant."""
        ...

    async def list_tenants(
        self,
        status: str | None,
        subscription_plan: str | None,
        search: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[TenantSummary], int]:
        """List tenants newest first with user/project counts."""
        ...

    async def get_tenant_stats(self, tenant_id: UUID) -> TenantStats:
        """Count users, projects and tasks of a tenant."""
        ...

    # Users

    async def create_user(
        self,
        tenant_id: UUID | None,
        email: str,
        password_hash: str,
        full_name: str,
        role: str,
    ) -> User:
        """Insert a user. Raises DuplicateRecordError("email")."""
        ...

    async def get_user(self, user_id: UUID) -> User | None:
        """Get a user by id."""
        ...

    async def get_user_by_email(self, email: str, tenant_id: UUID) -> User | None:
        """Get a tenant-scoped user by email."""
        ...

    async def get_super_admin_by_email(self, email: str) -> User | None:
        """Get a super admin by email."""
        ...

    async def update_user(self, user_id: UUID, changes: dict[str, Any]) -> User | None:
        """Apply changes to a user."""
        ...

    async def delete_user(self, user_id: UUID) -> bool:
        """Delete a user, nulling references to them. Returns False if absent."""
        ...

    async def list_users(
        self,
        tenant_id: UUID,
        role: str | None,
        is_active: bool | None,
        search: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[User], int]:
        """List users of a tenant newest first."""
        ...

    async def count_users(self, tenant_id: UUID) -> int:
        """Count users of a tenant."""
        ...

    # Projects

    async def create_project(
        self,
        tenant_id: UUID,
        name: str,
        description: str | None,
        status: str,
        created_by: UUID,
    ) -> Project:
        """Insert a project."""
        ...

    async def get_project(self, project_id: UUID) -> Project | None:
        """Get a project by id."""
        ...

    async def update_project(self, project_id: UUID, changes: dict[str, Any]) -> Project | None:
        """Apply changes to a project."""
        ...

    async def delete_project(self, project_id: UUID) -> bool:
        """Delete a project and its tasks. Returns False if absent."""
        ...

    async def list_projects(
        self,
        tenant_id: UUID,
        status: str | None,
        search: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[ProjectSummary], int]:
        """List projects of a tenant newest first with task counts."""
        ...

    async def count_projects(self, tenant_id: UUID) -> int:
        """Count projects of a tenant."""
        ...

    # Tasks

    async def create_task(
        self,
        project_id: UUID,
        tenant_id: UUID,
        title: str,
        description: str | None,
        status: str,
        priority: str,
        assigned_to: UUID | None,
        due_date: date | None,
        created_by: UUID,
    ) -> Task:
        """Insert a task."""
        ...

    async def get_task(self, task_id: UUID) -> Task | None:
        """Get a task by id."""
        ...

    async def get_task_view(self, task_id: UUID) -> TaskView | None:
        """Get a task with its assignee."""
        ...

    async def update_task(self, task_id: UUID, changes: dict[str, Any]) -> Task | None:
        """Apply changes to a task."""
        ...

    async def list_tasks(
        self,
        project_id: UUID,
        status: str | None,
        assigned_to: UUID | None,
        priority: str | None,
        search: str | None,
    ) -> list[TaskView]:
        """List tasks of a project by priority rank, due date (nulls last), created_at."""
        ...


@runtime_checkable
class AuditRepository(Protocol):
    """Append-only audit log storage."""

    async def record(self, entry: AuditLogCreate) -> UUID:
        """Append an entry and return its id."""
        ...

    async def list(
        self,
        tenant_id: UUID | None,
        limit: int = 50,
        offset: int = 0,
        action: str | None = None,
    ) -> tuple[list[AuditLogEntry], int]:
        """List entries newest first."""
        ...
