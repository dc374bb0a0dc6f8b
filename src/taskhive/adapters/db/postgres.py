"""PostgreSQL implementation of TenancyRepository."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, date, datetime
from typing import Any
from uuid import UUID

import asyncpg

from taskhive.adapters.db.app_db import AppDatabase, ConnectionScope, QueryRunner
from taskhive.core.domain_types import (
    AssignedUser,
    Project,
    ProjectSummary,
    Task,
    TaskView,
    Tenant,
    TenantStats,
    TenantSummary,
    User,
)
from taskhive.core.exceptions import DuplicateRecordError

# Columns that update_* may touch, per table
_UPDATABLE = {
    "tenants": frozenset({"name", "status", "subscription_plan", "max_users", "max_projects"}),
    "users": frozenset({"full_name", "role", "is_active"}),
    "projects": frozenset({"name", "description", "status"}),
    "tasks": frozenset(
        {"title", "description", "status", "priority", "assigned_to", "due_date"}
    ),
}

_UNIQUE_FIELDS = {
    "tenants_subdomain_key": "subdomain",
    "users_tenant_email_key": "email",
    "users_super_admin_email_key": "email",
}

_TASK_ORDER = """
    CASE t.priority WHEN 'high' THEN 1 WHEN 'medium' THEN 2 ELSE 3 END,
    t.due_date ASC NULLS LAST,
    t.created_at ASC
"""

_TASK_VIEW_SELECT = """
    SELECT t.*,
           u.full_name AS assignee_name,
           u.email AS assignee_email
    FROM tasks t
    LEFT JOIN users u ON u.id = t.assigned_to
"""


def _row_to_tenant(row: dict[str, Any]) -> Tenant:
    """Convert database row to Tenant model."""
    return Tenant(
        id=row["id"],
        name=row["name"],
        subdomain=row["subdomain"],
        status=row["status"],
        subscription_plan=row["subscription_plan"],
        max_users=row["max_users"],
        max_projects=row["max_projects"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_user(row: dict[str, Any]) -> User:
    """Convert database row to User model."""
    return User(
        id=row["id"],
        tenant_id=row["tenant_id"],
        email=row["email"],
        password_hash=row["password_hash"],
        full_name=row["full_name"],
        role=row["role"],
        is_active=row.get("is_active", True),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_project(row: dict[str, Any]) -> Project:
    """Convert database row to Project model."""
    return Project(
        id=row["id"],
        tenant_id=row["tenant_id"],
        name=row["name"],
        description=row.get("description"),
        status=row["status"],
        created_by=row.get("created_by"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_task(row: dict[str, Any]) -> Task:
    """Convert database row to Task model."""
    return Task(
        id=row["id"],
        project_id=row["project_id"],
        tenant_id=row["tenant_id"],
        title=row["title"],
        description=row.get("description"),
        status=row["status"],
        priority=row["priority"],
        assigned_to=row.get("assigned_to"),
        due_date=row.get("due_date"),
        created_by=row.get("created_by"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_task_view(row: dict[str, Any]) -> TaskView:
    assignee = None
    if row.get("assigned_to") and row.get("assignee_name") is not None:
        assignee = AssignedUser(
            id=row["assigned_to"],
            full_name=row["assignee_name"],
            email=row["assignee_email"],
        )
    return TaskView(task=_row_to_task(row), assigned_user=assignee)


class _Filters:
    """Accumulates WHERE conditions with positional asyncpg parameters."""

    def __init__(self) -> None:
        self.conditions: list[str] = []
        self.params: list[Any] = []

    def add(self, template: str, value: Any) -> None:
        """Add a condition; {} in the template becomes the parameter slot."""
        self.params.append(value)
        self.conditions.append(template.replace("{}", f"${len(self.params)}"))

    @property
    def where(self) -> str:
        """WHERE clause, or an empty string."""
        if not self.conditions:
            return ""
        return "WHERE " + " AND ".join(self.conditions)

    @property
    def next_index(self) -> int:
        """Index of the next positional parameter."""
        return len(self.params) + 1


class PostgresTenancyRepository:
    """PostgreSQL implementation of tenancy repository."""

    def __init__(self, db: QueryRunner) -> None:
        """Initialize with database connection.

        Args:
            db: Application database, or a connection scope inside a
                transaction.
        """
        self._db = db

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[PostgresTenancyRepository]:
        """Run the block in one database transaction."""
        if not isinstance(self._db, (AppDatabase, ConnectionScope)):
            raise RuntimeError("Underlying database does not support transactions")
        async with self._db.transaction() as scope:
            yield PostgresTenancyRepository(scope)

    async def ping(self) -> None:
        """Run a trivial query."""
        await self._db.fetch_val("SELECT 1")

    async def _insert(self, query: str, *args: Any) -> dict[str, Any]:
        try:
            row = await self._db.execute_returning(query, *args)
        except asyncpg.UniqueViolationError as e:
            field = _UNIQUE_FIELDS.get(getattr(e, "constraint_name", "") or "", "record")
            raise DuplicateRecordError(field) from e
        if row is None:
            raise RuntimeError("Insert returned no row")
        return row

    async def _update(
        self, table: str, record_id: UUID, changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        allowed = _UPDATABLE[table]
        updates: list[str] = []
        params: list[Any] = []
        param_idx = 1

        for column, value in changes.items():
            if column not in allowed:
                raise ValueError(f"Column {column} is not updatable on {table}")
            updates.append(f"{column} = ${param_idx}")
            params.append(value)
            param_idx += 1

        updates.append(f"updated_at = ${param_idx}")
        params.append(datetime.now(UTC))
        param_idx += 1

        params.append(record_id)
        query = f"""
            UPDATE {table} SET {", ".join(updates)}
            WHERE id = ${param_idx}
            RETURNING *
        """
        return await self._db.fetch_one(query, *params)

    # Tenant operations

    async def lock_tenant(self, tenant_id: UUID) -> Tenant | None:
        """Fetch a tenant with SELECT ... FOR UPDATE."""
        row = await self._db.fetch_one("SELECT * FROM tenants WHERE id = $1 FOR UPDATE", tenant_id)
        return _row_to_tenant(row) if row else None

    async def create_tenant(
        self,
        name: str,
        subdomain: str,
        status: str,
        subscription_plan: str,
        max_users: int,
        max_projects: int,
    ) -> Tenant:
        """Insert a tenant."""
        row = await self._insert(
            """INSERT INTO tenants
               (name, subdomain, status, subscription_plan, max_users, max_projects)
               VALUES ($1, $2, $3, $4, $5, $6)
               RETURNING *""",
            name,
            subdomain,
            status,
            subscription_plan,
            max_users,
            max_projects,
        )
        return _row_to_tenant(row)

    async def get_tenant(self, tenant_id: UUID) -> Tenant | None:
        """Get tenant by ID."""
        row = await self._db.fetch_one("SELECT * FROM tenants WHERE id = $1", tenant_id)
        return _row_to_tenant(row) if row else None

    async def get_tenant_by_subdomain(self, subdomain: str) -> Tenant | None:
        """Get tenant by subdomain."""
        row = await self._db.fetch_one("SELECT * FROM tenants WHERE subdomain = $1", subdomain)
        return _row_to_tenant(row) if row else None

    async def update_tenant(self, tenant_id: UUID, changes: dict[str, Any]) -> Tenant | None:
        """Update tenant fields."""
        row = await self._update("tenants", tenant_id, changes)
        return _row_to_tenant(row) if row else None

    async def list_tenants(
        self,
        status: str | None,
        subscription_plan: str | None,
        search: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[TenantSummary], int]:
        """List tenants with user and project counts."""
        filters = _Filters()
        if status:
            filters.add("t.status = {}", status)
        if subscription_plan:
            filters.add("t.subscription_plan = {}", subscription_plan)
        if search:
            filters.add("(t.name ILIKE {} OR t.subdomain ILIKE {})", f"%{search}%")

        total = await self._db.fetch_val(
            f"SELECT COUNT(*) FROM tenants t {filters.where}", *filters.params
        )
        idx = filters.next_index
        rows = await self._db.fetch_all(
            f"""
            SELECT t.*,
                   (SELECT COUNT(*) FROM users u WHERE u.tenant_id = t.id) AS total_users,
                   (SELECT COUNT(*) FROM projects p WHERE p.tenant_id = t.id) AS total_projects
            FROM tenants t
            {filters.where}
            ORDER BY t.created_at DESC
            LIMIT ${idx} OFFSET ${idx + 1}
            """,
            *filters.params,
            limit,
            offset,
        )
        summaries = [
            TenantSummary(
                tenant=_row_to_tenant(row),
                total_users=row["total_users"],
                total_projects=row["total_projects"],
            )
            for row in rows
        ]
        return summaries, int(total or 0)

    async def get_tenant_stats(self, tenant_id: UUID) -> TenantStats:
        """Count users, projects and tasks of a tenant."""
        row = await self._db.fetch_one(
            """
            SELECT
                (SELECT COUNT(*) FROM users WHERE tenant_id = $1) AS total_users,
                (SELECT COUNT(*) FROM projects WHERE tenant_id = $1) AS total_projects,
                (SELECT COUNT(*) FROM tasks WHERE tenant_id = $1) AS total_tasks
            """,
            tenant_id,
        )
        row = row or {}
        return TenantStats(
            total_users=row.get("total_users", 0),
            total_projects=row.get("total_projects", 0),
            total_tasks=row.get("total_tasks", 0),
        )

    # User operations

    async def create_user(
        self,
        tenant_id: UUID | None,
        email: str,
        password_hash: str,
        full_name: str,
        role: str,
    ) -> User:
        """Insert a user."""
        row = await self._insert(
            """INSERT INTO users (tenant_id, email, password_hash, full_name, role)
               VALUES ($1, $2, $3, $4, $5)
               RETURNING *""",
            tenant_id,
            email,
            password_hash,
            full_name,
            role,
        )
        return _row_to_user(row)

    async def get_user(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        row = await self._db.fetch_one("SELECT * FROM users WHERE id = $1", user_id)
        return _row_to_user(row) if row else None

    async def get_user_by_email(self, email: str, tenant_id: UUID) -> User | None:
        """Get tenant-scoped user by email."""
        row = await self._db.fetch_one(
            "SELECT * FROM users WHERE lower(email) = lower($1) AND tenant_id = $2",
            email,
            tenant_id,
        )
        return _row_to_user(row) if row else None

    async def get_super_admin_by_email(self, email: str) -> User | None:
        """Get super admin by email."""
        row = await self._db.fetch_one(
            """SELECT * FROM users
               WHERE lower(email) = lower($1) AND role = 'super_admin' AND tenant_id IS NULL""",
            email,
        )
        return _row_to_user(row) if row else None

    async def update_user(self, user_id: UUID, changes: dict[str, Any]) -> User | None:
        """Update user fields."""
        row = await self._update("users", user_id, changes)
        return _row_to_user(row) if row else None

    async def delete_user(self, user_id: UUID) -> bool:
        """Delete a user. Foreign keys null their task and project references."""
        result = await self._db.execute("DELETE FROM users WHERE id = $1", user_id)
        return result.endswith(" 1")

    async def list_users(
        self,
        tenant_id: UUID,
        role: str | None,
        is_active: bool | None,
        search: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[User], int]:
        """List users of a tenant."""
        filters = _Filters()
        filters.add("tenant_id = {}", tenant_id)
        if role:
            filters.add("role = {}", role)
        if is_active is not None:
            filters.add("is_active = {}", is_active)
        if search:
            filters.add("(full_name ILIKE {} OR email ILIKE {})", f"%{search}%")

        total = await self._db.fetch_val(
            f"SELECT COUNT(*) FROM users {filters.where}", *filters.params
        )
        idx = filters.next_index
        rows = await self._db.fetch_all(
            f"""
            SELECT * FROM users
            {filters.where}
            ORDER BY created_at DESC
            LIMIT ${idx} OFFSET ${idx + 1}
            """,
            *filters.params,
            limit,
            offset,
        )
        return [_row_to_user(row) for row in rows], int(total or 0)

    async def count_users(self, tenant_id: UUID) -> int:
        """Count users of a tenant."""
        count = await self._db.fetch_val("SELECT COUNT(*) FROM users WHERE tenant_id = $1", tenant_id)
        return int(count or 0)

    # Project operations

    async def create_project(
        self,
        tenant_id: UUID,
        name: str,
        description: str | None,
        status: str,
        created_by: UUID,
    ) -> Project:
        """Insert a project."""
        row = await self._insert(
            """INSERT INTO projects (tenant_id, name, description, status, created_by)
               VALUES ($1, $2, $3, $4, $5)
               RETURNING *""",
            tenant_id,
            name,
            description,
            status,
            created_by,
        )
        return _row_to_project(row)

    async def get_project(self, project_id: UUID) -> Project | None:
        """Get project by ID."""
        row = await self._db.fetch_one("SELECT * FROM projects WHERE id = $1", project_id)
        return _row_to_project(row) if row else None

    async def update_project(self, project_id: UUID, changes: dict[str, Any]) -> Project | None:
        """Update project fields."""
        row = await self._update("projects", project_id, changes)
        return _row_to_project(row) if row else None

    async def delete_project(self, project_id: UUID) -> bool:
        """Delete a project. Tasks go with it through ON DELETE CASCADE."""
        result = await self._db.execute("DELETE FROM projects WHERE id = $1", project_id)
        return result.endswith(" 1")

    async def list_projects(
        self,
        tenant_id: UUID,
        status: str | None,
        search: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[ProjectSummary], int]:
        """List projects with creator names and task counts."""
        filters = _Filters()
        filters.add("p.tenant_id = {}", tenant_id)
        if status:
            filters.add("p.status = {}", status)
        if search:
            filters.add("(p.name ILIKE {} OR p.description ILIKE {})", f"%{search}%")

        total = await self._db.fetch_val(
            f"SELECT COUNT(*) FROM projects p {filters.where}", *filters.params
        )
        idx = filters.next_index
        rows = await self._db.fetch_all(
            f"""
            SELECT p.*,
                   u.full_name AS creator_name,
                   (SELECT COUNT(*) FROM tasks t WHERE t.project_id = p.id) AS task_count,
                   (SELECT COUNT(*) FROM tasks t
                     WHERE t.project_id = p.id AND t.status = 'completed') AS completed_task_count
            FROM projects p
            LEFT JOIN users u ON u.id = p.created_by
            {filters.where}
            ORDER BY p.created_at DESC
            LIMIT ${idx} OFFSET ${idx + 1}
            """,
            *filters.params,
            limit,
            offset,
        )
        summaries = [
            ProjectSummary(
                project=_row_to_project(row),
                creator_name=row.get("creator_name"),
                task_count=row["task_count"],
                completed_task_count=row["completed_task_count"],
            )
            for row in rows
        ]
        return summaries, int(total or 0)

    async def count_projects(self, tenant_id: UUID) -> int:
        """Count projects of a tenant."""
        count = await self._db.fetch_val(
            "SELECT COUNT(*) FROM projects WHERE tenant_id = $1", tenant_id
        )
        return int(count or 0)

    # Task operations

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
        row = await self._insert(
            """INSERT INTO tasks
               (project_id, tenant_id, title, description, status, priority,
                assigned_to, due_date, created_by)
               VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
               RETURNING *""",
            project_id,
            tenant_id,
            title,
            description,
            status,
            priority,
            assigned_to,
            due_date,
            created_by,
        )
        return _row_to_task(row)

    async def get_task(self, task_id: UUID) -> Task | None:
        """Get task by ID."""
        row = await self._db.fetch_one("SELECT * FROM tasks WHERE id = $1", task_id)
        return _row_to_task(row) if row else None

    async def get_task_view(self, task_id: UUID) -> TaskView | None:
        """Get task with its assignee."""
        row = await self._db.fetch_one(f"{_TASK_VIEW_SELECT} WHERE t.id = $1", task_id)
        return _row_to_task_view(row) if row else None

    async def update_task(self, task_id: UUID, changes: dict[str, Any]) -> Task | None:
        """Update task fields."""
        row = await self._update("tasks", task_id, changes)
        return _row_to_task(row) if row else None

    async def list_tasks(
        self,
        project_id: UUID,
        status: str | None,
        assigned_to: UUID | None,
        priority: str | None,
        search: str | None,
    ) -> list[TaskView]:
        """List tasks of a project in priority order."""
        filters = _Filters()
        filters.add("t.project_id = {}", project_id)
        if status:
            filters.add("t.status = {}", status)
        if assigned_to:
            filters.add("t.assigned_to = {}", assigned_to)
        if priority:
            filters.add("t.priority = {}", priority)
        if search:
            filters.add("(t.title ILIKE {} OR t.description ILIKE {})", f"%{search}%")

        rows = await self._db.fetch_all(
            f"{_TASK_VIEW_SELECT} {filters.where} ORDER BY {_TASK_ORDER}",
            *filters.params,
        )
        return [_row_to_task_view(row) for row in rows]
