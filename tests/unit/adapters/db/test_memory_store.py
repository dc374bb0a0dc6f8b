"""Tests for the in-memory tenancy repository."""

import asyncio
from datetime import date
from uuid import UUID, uuid4

import pytest

from taskhive.adapters.audit import AuditSink, InMemoryAuditRepository
from taskhive.adapters.db import InMemoryStore, InMemoryTenancyRepository
from taskhive.core.auth.types import Claim, Role
from taskhive.core.domain_types import Tenant
from taskhive.core.exceptions import DuplicateRecordError, QuotaExceededError
from taskhive.services import ProjectService, UserService


async def _tenant(
    repo: InMemoryTenancyRepository,
    subdomain: str = "acme",
    max_users: int = 5,
    max_projects: int = 3,
) -> Tenant:
    return await repo.create_tenant(
        name=subdomain.title(),
        subdomain=subdomain,
        status="active",
        subscription_plan="free",
        max_users=max_users,
        max_projects=max_projects,
    )


async def _task(
    repo: InMemoryTenancyRepository,
    project_id: UUID,
    tenant_id: UUID,
    title: str,
    priority: str = "medium",
    due_date: date | None = None,
    assigned_to: UUID | None = None,
    created_by: UUID | None = None,
):
    return await repo.create_task(
        project_id=project_id,
        tenant_id=tenant_id,
        title=title,
        description=None,
        status="todo",
        priority=priority,
        assigned_to=assigned_to,
        due_date=due_date,
        created_by=created_by,
    )


class TestUniqueness:
    """Test unique constraints."""

    async def test_duplicate_subdomain(self, memory_repo: InMemoryTenancyRepository) -> None:
        """Subdomains are globally unique."""
        await _tenant(memory_repo)

        with pytest.raises(DuplicateRecordError) as exc_info:
            await _tenant(memory_repo)

        assert exc_info.value.field == "subdomain"

    async def test_email_unique_per_tenant_case_insensitive(
        self, memory_repo: InMemoryTenancyRepository
    ) -> None:
        """The same email cannot appear twice in one tenant."""
        tenant = await _tenant(memory_repo)
        await memory_repo.create_user(tenant.id, "a@acme.com", "h", "A", "user")

        with pytest.raises(DuplicateRecordError):
            await memory_repo.create_user(tenant.id, "A@ACME.com", "h", "A", "user")

    async def test_email_reusable_across_tenants(
        self, memory_repo: InMemoryTenancyRepository
    ) -> None:
        """Different tenants may share an email."""
        acme = await _tenant(memory_repo, "acme")
        globex = await _tenant(memory_repo, "globex")
        await memory_repo.create_user(acme.id, "a@example.com", "h", "A", "user")

        user = await memory_repo.create_user(globex.id, "a@example.com", "h", "A", "user")

        assert user.tenant_id == globex.id


class TestTransactions:
    """Test rollback and serialization."""

    async def test_rollback_on_error(self, memory_repo: InMemoryTenancyRepository) -> None:
        """Writes inside a failed transaction are undone."""
        with pytest.raises(DuplicateRecordError):
            async with memory_repo.transaction() as tx:
                tenant = await _tenant(tx, "acme")
                await tx.create_user(tenant.id, "a@acme.com", "h", "A", "tenant_admin")
                await tx.create_user(tenant.id, "a@acme.com", "h", "A", "user")

        assert await memory_repo.get_tenant_by_subdomain("acme") is None
        assert memory_repo.store.users == {}

    async def test_commit_on_success(self, memory_repo: InMemoryTenancyRepository) -> None:
        """Writes inside a clean transaction persist."""
        async with memory_repo.transaction() as tx:
            await _tenant(tx, "acme")

        assert await memory_repo.get_tenant_by_subdomain("acme") is not None

    async def test_concurrent_project_creation_respects_limit(
        self, memory_store: InMemoryStore
    ) -> None:
        """Concurrent creators at the boundary never overshoot max_projects."""
        repo = InMemoryTenancyRepository(memory_store)
        tenant = await _tenant(repo, max_projects=3)
        user = await repo.create_user(tenant.id, "u@acme.com", "h", "U", "user")
        claim = Claim(user_id=user.id, tenant_id=tenant.id, role=Role.USER)
        service = ProjectService(repo, AuditSink(InMemoryAuditRepository()))
        await service.create_project(claim, "Existing")

        results = await asyncio.gather(
            *(service.create_project(claim, f"Project {i}") for i in range(10)),
            return_exceptions=True,
        )

        created = [r for r in results if not isinstance(r, BaseException)]
        refused = [r for r in results if isinstance(r, QuotaExceededError)]
        assert len(created) == 2
        assert len(refused) == 8
        assert await repo.count_projects(tenant.id) == 3

    async def test_concurrent_user_creation_respects_limit(
        self, memory_store: InMemoryStore, hasher
    ) -> None:
        """Concurrent user additions never overshoot max_users."""
        repo = InMemoryTenancyRepository(memory_store)
        tenant = await _tenant(repo, max_users=3)
        admin = await repo.create_user(tenant.id, "admin@acme.com", "h", "Admin", "tenant_admin")
        claim = Claim(user_id=admin.id, tenant_id=tenant.id, role=Role.TENANT_ADMIN)
        service = UserService(repo, hasher, AuditSink(InMemoryAuditRepository()))

        results = await asyncio.gather(
            *(
                service.add_user(claim, tenant.id, f"u{i}@acme.com", "Password1", f"User {i}")
                for i in range(6)
            ),
            return_exceptions=True,
        )

        assert sum(1 for r in results if isinstance(r, QuotaExceededError)) == 4
        assert await repo.count_users(tenant.id) == 3


class TestCascades:
    """Test delete side effects."""

    async def test_project_delete_removes_tasks(
        self, memory_repo: InMemoryTenancyRepository
    ) -> None:
        """Deleting a project deletes its tasks."""
        tenant = await _tenant(memory_repo)
        project = await memory_repo.create_project(tenant.id, "P", None, "active", uuid4())
        task = await _task(memory_repo, project.id, tenant.id, "T")

        assert await memory_repo.delete_project(project.id) is True

        assert await memory_repo.get_task(task.id) is None
        assert (await memory_repo.get_tenant_stats(tenant.id)).total_tasks == 0

    async def test_user_delete_unassigns_tasks(
        self, memory_repo: InMemoryTenancyRepository
    ) -> None:
        """Deleting a user keeps their tasks with no assignee."""
        tenant = await _tenant(memory_repo)
        user = await memory_repo.create_user(tenant.id, "u@acme.com", "h", "U", "user")
        project = await memory_repo.create_project(tenant.id, "P", None, "active", user.id)
        task = await _task(
            memory_repo, project.id, tenant.id, "T", assigned_to=user.id, created_by=user.id
        )

        assert await memory_repo.delete_user(user.id) is True

        remaining = await memory_repo.get_task(task.id)
        assert remaining is not None
        assert remaining.assigned_to is None
        assert remaining.created_by is None
        assert (await memory_repo.get_project(project.id)).created_by is None

    async def test_delete_missing(self, memory_repo: InMemoryTenancyRepository) -> None:
        """Deleting absent records reports False."""
        assert await memory_repo.delete_user(uuid4()) is False
        assert await memory_repo.delete_project(uuid4()) is False


class TestListing:
    """Test ordering, filters and pagination."""

    async def test_tasks_ordered_by_priority_then_due_date(
        self, memory_repo: InMemoryTenancyRepository
    ) -> None:
        """High before medium before low; earlier due first; no due date last."""
        tenant = await _tenant(memory_repo)
        project = await memory_repo.create_project(tenant.id, "P", None, "active", uuid4())
        await _task(memory_repo, project.id, tenant.id, "low", "low", date(2024, 1, 1))
        await _task(memory_repo, project.id, tenant.id, "medium-undated", "medium")
        await _task(memory_repo, project.id, tenant.id, "medium-late", "medium", date(2024, 3, 1))
        await _task(memory_repo, project.id, tenant.id, "high", "high", date(2024, 5, 1))
        await _task(memory_repo, project.id, tenant.id, "medium-early", "medium", date(2024, 2, 1))

        views = await memory_repo.list_tasks(project.id, None, None, None, None)

        assert [v.task.title for v in views] == [
            "high",
            "medium-early",
            "medium-late",
            "medium-undated",
            "low",
        ]

    async def test_task_view_includes_assignee(
        self, memory_repo: InMemoryTenancyRepository
    ) -> None:
        """Task views carry the assignee's name and email."""
        tenant = await _tenant(memory_repo)
        user = await memory_repo.create_user(tenant.id, "u@acme.com", "h", "Una", "user")
        project = await memory_repo.create_project(tenant.id, "P", None, "active", user.id)
        task = await _task(memory_repo, project.id, tenant.id, "T", assigned_to=user.id)

        view = await memory_repo.get_task_view(task.id)

        assert view is not None
        assert view.assigned_user is not None
        assert view.assigned_user.full_name == "Una"

    async def test_projects_paginated_newest_first(
        self, memory_repo: InMemoryTenancyRepository
    ) -> None:
        """Projects list newest first with a total count."""
        tenant = await _tenant(memory_repo)
        for name in ["first", "second", "third"]:
            await memory_repo.create_project(tenant.id, name, None, "active", uuid4())

        page, total = await memory_repo.list_projects(tenant.id, None, None, limit=2, offset=0)

        assert total == 3
        assert [p.project.name for p in page] == ["third", "second"]

    async def test_projects_scoped_to_tenant(
        self, memory_repo: InMemoryTenancyRepository
    ) -> None:
        """Another tenant's projects never appear."""
        acme = await _tenant(memory_repo, "acme")
        globex = await _tenant(memory_repo, "globex")
        await memory_repo.create_project(globex.id, "secret", None, "active", uuid4())

        page, total = await memory_repo.list_projects(acme.id, None, None, limit=20, offset=0)

        assert page == []
        assert total == 0

    async def test_search_tenants(self, memory_repo: InMemoryTenancyRepository) -> None:
        """Tenant search matches name or subdomain."""
        await _tenant(memory_repo, "acme")
        await _tenant(memory_repo, "globex")

        page, total = await memory_repo.list_tenants(None, None, "glob", limit=20, offset=0)

        assert total == 1
        assert page[0].tenant.subdomain == "globex"

    async def test_ping_fails_when_unavailable(
        self, memory_repo: InMemoryTenancyRepository
    ) -> None:
        """A store marked unavailable fails health checks."""
        await memory_repo.ping()
        memory_repo.store.available = False

        with pytest.raises(ConnectionError):
            await memory_repo.ping()
