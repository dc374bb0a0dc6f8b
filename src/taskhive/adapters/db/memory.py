"""In-process implementation of TenancyRepository.

Used by the test suite and by demo mode when no PostgreSQL is available.
It gives the same observable guarantees as the PostgreSQL adapter:

- transaction() serializes writers on an asyncio.Lock, the equivalent of
  the tenant row lock, and restores a snapshot if the block raises
- unique subdomain per store and unique email per tenant
- deleting a project removes its tasks; deleting a user nulls references

Every operation yields to the event loop once, like a network round trip
would, so concurrent callers genuinely interleave.
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, date, datetime
from typing import Any, TypeVar
from uuid import UUID, uuid4

from pydantic import BaseModel

from taskhive.core.domain_types import (
    AssignedUser,
    Project,
    ProjectSummary,
    Task,
    TaskPriority,
    TaskStatus,
    TaskView,
    Tenant,
    TenantStats,
    TenantSummary,
    User,
)
from taskhive.core.exceptions import DuplicateRecordError

M = TypeVar("M", bound=BaseModel)


def _now() -> datetime:
    return datetime.now(UTC)


def _apply(model: M, changes: dict[str, Any]) -> M:
    """Return a re-validated copy of model with changes applied."""
    data = model.model_dump()
    data.update(changes)
    data["updated_at"] = _now()
    return type(model).model_validate(data)


def _matches(search: str | None, *values: str | None) -> bool:
    if not search:
        return True
    needle = search.lower()
    return any(value is not None and needle in value.lower() for value in values)


class InMemoryStore:
    """Shared state behind one or more InMemoryTenancyRepository handles.

    Attributes:
        available: Set to False to make ping() fail, as a downed database would.
    """

    def __init__(self) -> None:
        """Create an empty store."""
        self.tenants: dict[UUID, Tenant] = {}
        self.users: dict[UUID, User] = {}
        self.projects: dict[UUID, Project] = {}
        self.tasks: dict[UUID, Task] = {}
        self.lock = asyncio.Lock()
        self.available = True
        self._order: dict[UUID, int] = {}
        self._counter = itertools.count()

    def stamp(self, record_id: UUID) -> None:
        """Remember insertion order as a created_at tiebreaker."""
        self._order[record_id] = next(self._counter)

    def order(self, record_id: UUID) -> int:
        """Insertion sequence number of a record."""
        return self._order.get(record_id, 0)

    def snapshot(self) -> dict[str, Any]:
        """Copy of all tables."""
        return {
            "tenants": dict(self.tenants),
            "users": dict(self.users),
            "projects": dict(self.projects),
            "tasks": dict(self.tasks),
        }

    def restore(self, snapshot: dict[str, Any]) -> None:
        """Replace all tables with a snapshot."""
        self.tenants = snapshot["tenants"]
        self.users = snapshot["users"]
        self.projects = snapshot["projects"]
        self.tasks = snapshot["tasks"]


class InMemoryTenancyRepository:
    """In-memory tenancy repository."""

    def __init__(self, store: InMemoryStore | None = None, *, in_transaction: bool = False) -> None:
        """Initialize the repository.

        Args:
            store: Backing store; a fresh one is created if omitted.
            in_transaction: Whether this handle already holds the store lock.
        """
        self.store = store or InMemoryStore()
        self._in_transaction = in_transaction

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[InMemoryTenancyRepository]:
        """Hold the store lock for the block; roll back if it raises."""
        if self._in_transaction:
            yield self
            return

        async with self.store.lock:
            snapshot = self.store.snapshot()
            try:
                yield InMemoryTenancyRepository(self.store, in_transaction=True)
            except BaseException:
                self.store.restore(snapshot)
                raise

    @asynccontextmanager
    async def _write(self) -> AsyncIterator[None]:
        await asyncio.sleep(0)
        if self._in_transaction:
            yield
        else:
            async with self.store.lock:
                yield

    async def _read(self) -> None:
        await asyncio.sleep(0)

    async def ping(self) -> None:
        """Raise if the store has been marked unavailable."""
        await self._read()
        if not self.store.available:
            raise ConnectionError("In-memory store unavailable")

    # Tenant operations

    async def lock_tenant(self, tenant_id: UUID) -> Tenant | None:
        """Fetch a tenant; the transaction already holds the store lock."""
        if not self._in_transaction:
            raise RuntimeError("lock_tenant requires an open transaction")
        return await self.get_tenant(tenant_id)

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
        async with self._write():
            if any(t.subdomain == subdomain for t in self.store.tenants.values()):
                raise DuplicateRecordError("subdomain")
            now = _now()
            tenant = Tenant(
                id=uuid4(),
                name=name,
                subdomain=subdomain,
                status=status,
                subscription_plan=subscription_plan,
                max_users=max_users,
                max_projects=max_projects,
                created_at=now,
                updated_at=now,
            )
            self.store.tenants[tenant.id] = tenant
            self.store.stamp(tenant.id)
            return tenant

    async def get_tenant(self, tenant_id: UUID) -> Tenant | None:
        """Get tenant by ID."""
        await self._read()
        return self.store.tenants.get(tenant_id)

    async def get_tenant_by_subdomain(self, subdomain: str) -> Tenant | None:
        """Get tenant by subdomain."""
        await self._read()
        return next((t for t in self.store.tenants.values() if t.subdomain == subdomain), None)

    async def update_tenant(self, tenant_id: UUID, changes: dict[str, Any]) -> Tenant | None:
        """Update tenant fields."""
        async with self._write():
            tenant = self.store.tenants.get(tenant_id)
            if tenant is None:
                return None
            updated = _apply(tenant, changes)
            self.store.tenants[tenant_id] = updated
            return updated

    async def list_tenants(
        self,
        status: str | None,
        subscription_plan: str | None,
        search: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[TenantSummary], int]:
        """List tenants newest first with counts."""
        await self._read()
        matching = [
            t
            for t in self.store.tenants.values()
            if (status is None or t.status == status)
            and (subscription_plan is None or t.subscription_plan == subscription_plan)
            and _matches(search, t.name, t.subdomain)
        ]
        matching.sort(key=lambda t: (t.created_at, self.store.order(t.id)), reverse=True)
        page = matching[offset : offset + limit]
        summaries = [
            TenantSummary(
                tenant=t,
                total_users=self._count_users(t.id),
                total_projects=self._count_projects(t.id),
            )
            for t in page
        ]
        return summaries, len(matching)

    async def get_tenant_stats(self, tenant_id: UUID) -> TenantStats:
        """Count users, projects and tasks of a tenant."""
        await self._read()
        return TenantStats(
            total_users=self._count_users(tenant_id),
            total_projects=self._count_projects(tenant_id),
            total_tasks=sum(1 for t in self.store.tasks.values() if t.tenant_id == tenant_id),
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
        async with self._write():
            lowered = email.lower()
            if any(
                u.tenant_id == tenant_id and u.email.lower() == lowered
                for u in self.store.users.values()
            ):
                raise DuplicateRecordError("email")
            now = _now()
            user = User(
                id=uuid4(),
                tenant_id=tenant_id,
                email=email,
                password_hash=password_hash,
                full_name=full_name,
                role=role,
                is_active=True,
                created_at=now,
                updated_at=now,
            )
            self.store.users[user.id] = user
            self.store.stamp(user.id)
            return user

    async def get_user(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        await self._read()
        return self.store.users.get(user_id)

    async def get_user_by_email(self, email: str, tenant_id: UUID) -> User | None:
        """Get tenant-scoped user by email."""
        await self._read()
        lowered = email.lower()
        return next(
            (
                u
                for u in self.store.users.values()
                if u.tenant_id == tenant_id and u.email.lower() == lowered
            ),
            None,
        )

    async def get_super_admin_by_email(self, email: str) -> User | None:
        """Get super admin by email."""
        await self._read()
        lowered = email.lower()
        return next(
            (
                u
                for u in self.store.users.values()
                if u.tenant_id is None and u.role == "super_admin" and u.email.lower() == lowered
            ),
            None,
        )

    async def update_user(self, user_id: UUID, changes: dict[str, Any]) -> User | None:
        """Update user fields."""
        async with self._write():
            user = self.store.users.get(user_id)
            if user is None:
                return None
            updated = _apply(user, changes)
            self.store.users[user_id] = updated
            return updated

    async def delete_user(self, user_id: UUID) -> bool:
        """Delete a user and null their task and project references."""
        async with self._write():
            if self.store.users.pop(user_id, None) is None:
                return False
            for task_id, task in list(self.store.tasks.items()):
                cleared: dict[str, Any] = {}
                if task.assigned_to == user_id:
                    cleared["assigned_to"] = None
                if task.created_by == user_id:
                    cleared["created_by"] = None
                if cleared:
                    self.store.tasks[task_id] = task.model_copy(update=cleared)
            for project_id, project in list(self.store.projects.items()):
                if project.created_by == user_id:
                    self.store.projects[project_id] = project.model_copy(update={"created_by": None})
            return True

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
        await self._read()
        matching = [
            u
            for u in self.store.users.values()
            if u.tenant_id == tenant_id
            and (role is None or u.role == role)
            and (is_active is None or u.is_active == is_active)
            and _matches(search, u.full_name, u.email)
        ]
        matching.sort(key=lambda u: (u.created_at, self.store.order(u.id)), reverse=True)
        return matching[offset : offset + limit], len(matching)

    async def count_users(self, tenant_id: UUID) -> int:
        """Count users of a tenant."""
        await self._read()
        return self._count_users(tenant_id)

    def _count_users(self, tenant_id: UUID) -> int:
        return sum(1 for u in self.store.users.values() if u.tenant_id == tenant_id)

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
        async with self._write():
            now = _now()
            project = Project(
                id=uuid4(),
                tenant_id=tenant_id,
                name=name,
                description=description,
                status=status,
                created_by=created_by,
                created_at=now,
                updated_at=now,
            )
            self.store.projects[project.id] = project
            self.store.stamp(project.id)
            return project

    async def get_project(self, project_id: UUID) -> Project | None:
        """Get project by ID."""
        await self._read()
        return self.store.projects.get(project_id)

    async def update_project(self, project_id: UUID, changes: dict[str, Any]) -> Project | None:
        """Update project fields."""
        async with self._write():
            project = self.store.projects.get(project_id)
            if project is None:
                return None
            updated = _apply(project, changes)
            self.store.projects[project_id] = updated
            return updated

    async def delete_project(self, project_id: UUID) -> bool:
        """Delete a project and all of its tasks."""
        async with self._write():
            if self.store.projects.pop(project_id, None) is None:
                return False
            for task_id in [t.id for t in self.store.tasks.values() if t.project_id == project_id]:
                del self.store.tasks[task_id]
            return True

    async def list_projects(
        self,
        tenant_id: UUID,
        status: str | None,
        search: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[ProjectSummary], int]:
        """List projects newest first with creator name and task counts."""
        await self._read()
        matching = [
            p
            for p in self.store.projects.values()
            if p.tenant_id == tenant_id
            and (status is None or p.status == status)
            and _matches(search, p.name, p.description)
        ]
        matching.sort(key=lambda p: (p.created_at, self.store.order(p.id)), reverse=True)
        summaries = []
        for project in matching[offset : offset + limit]:
            tasks = [t for t in self.store.tasks.values() if t.project_id == project.id]
            creator = self.store.users.get(project.created_by) if project.created_by else None
            summaries.append(
                ProjectSummary(
                    project=project,
                    creator_name=creator.full_name if creator else None,
                    task_count=len(tasks),
                    completed_task_count=sum(1 for t in tasks if t.status == TaskStatus.COMPLETED),
                )
            )
        return summaries, len(matching)

    async def count_projects(self, tenant_id: UUID) -> int:
        """Count projects of a tenant."""
        await self._read()
        return self._count_projects(tenant_id)

    def _count_projects(self, tenant_id: UUID) -> int:
        return sum(1 for p in self.store.projects.values() if p.tenant_id == tenant_id)

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
        async with self._write():
            if project_id not in self.store.projects:
                raise LookupError(f"Project {project_id} does not exist")
            now = _now()
            task = Task(
                id=uuid4(),
                project_id=project_id,
                tenant_id=tenant_id,
                title=title,
                description=description,
                status=status,
                priority=priority,
                assigned_to=assigned_to,
                due_date=due_date,
                created_by=created_by,
                created_at=now,
                updated_at=now,
            )
            self.store.tasks[task.id] = task
            self.store.stamp(task.id)
            return task

    async def get_task(self, task_id: UUID) -> Task | None:
        """Get task by ID."""
        await self._read()
        return self.store.tasks.get(task_id)

    async def get_task_view(self, task_id: UUID) -> TaskView | None:
        """Get task with its assignee."""
        await self._read()
        task = self.store.tasks.get(task_id)
        return self._view(task) if task else None

    async def update_task(self, task_id: UUID, changes: dict[str, Any]) -> Task | None:
        """Update task fields."""
        async with self._write():
            task = self.store.tasks.get(task_id)
            if task is None:
                return None
            updated = _apply(task, changes)
            self.store.tasks[task_id] = updated
            return updated

    async def list_tasks(
        self,
        project_id: UUID,
        status: str | None,
        assigned_to: UUID | None,
        priority: str | None,
        search: str | None,
    ) -> list[TaskView]:
        """List tasks by priority rank, due date (nulls last), created_at."""
        await self._read()
        matching = [
            t
            for t in self.store.tasks.values()
            if t.project_id == project_id
            and (status is None or t.status == status)
            and (assigned_to is None or t.assigned_to == assigned_to)
            and (priority is None or t.priority == priority)
            and _matches(search, t.title, t.description)
        ]
        matching.sort(
            key=lambda t: (
                TaskPriority(t.priority).rank,
                t.due_date is None,
                t.due_date or date.max,
                t.created_at,
                self.store.order(t.id),
            )
        )
        return [self._view(t) for t in matching]

    def _view(self, task: Task) -> TaskView:
        assignee = self.store.users.get(task.assigned_to) if task.assigned_to else None
        return TaskView(
            task=task,
            assigned_user=(
                AssignedUser(id=assignee.id, full_name=assignee.full_name, email=assignee.email)
                if assignee
                else None
            ),
        )
