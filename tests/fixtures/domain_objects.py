"""Domain object fixtures for testing."""

from __future__ import annotations

from datetime import date, datetime, timezone
from uuid import UUID, uuid4

import pytest

from taskhive.core.auth.types import Claim, Role
from taskhive.core.domain_types import (
    Project,
    ProjectStatus,
    Task,
    TaskPriority,
    TaskStatus,
    Tenant,
    TenantStatus,
    User,
)

NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def make_tenant(**overrides: object) -> Tenant:
    """Build a tenant on the free plan."""
    values: dict[str, object] = {
        "id": uuid4(),
        "name": "Acme",
        "subdomain": "acme",
        "status": TenantStatus.ACTIVE,
        "subscription_plan": "free",
        "max_users": 5,
        "max_projects": 3,
        "created_at": NOW,
        "updated_at": NOW,
    }
    values.update(overrides)
    return Tenant(**values)  # type: ignore[arg-type]


def make_user(tenant_id: UUID | None, role: Role = Role.USER, **overrides: object) -> User:
    """Build a user of a tenant."""
    values: dict[str, object] = {
        "id": uuid4(),
        "tenant_id": tenant_id,
        "email": f"{uuid4().hex[:8]}@example.com",
        "password_hash": "$2b$10$notarealhashnotarealhashnotarealhashnotarealhashnot",  # pragma: allowlist secret
        "full_name": "Test User",
        "role": role,
        "is_active": True,
        "created_at": NOW,
        "updated_at": NOW,
    }
    values.update(overrides)
    return User(**values)  # type: ignore[arg-type]


def make_project(tenant_id: UUID, created_by: UUID | None, **overrides: object) -> Project:
    """Build an active project."""
    values: dict[str, object] = {
        "id": uuid4(),
        "tenant_id": tenant_id,
        "name": "Website Redesign",
        "description": None,
        "status": ProjectStatus.ACTIVE,
        "created_by": created_by,
        "created_at": NOW,
        "updated_at": NOW,
    }
    values.update(overrides)
    return Project(**values)  # type: ignore[arg-type]


def make_task(project: Project, created_by: UUID | None, **overrides: object) -> Task:
    """Build a todo task in a project."""
    values: dict[str, object] = {
        "id": uuid4(),
        "project_id": project.id,
        "tenant_id": project.tenant_id,
        "title": "Design homepage",
        "status": TaskStatus.TODO,
        "priority": TaskPriority.MEDIUM,
        "assigned_to": None,
        "due_date": date(2024, 2, 1),
        "created_by": created_by,
        "created_at": NOW,
        "updated_at": NOW,
    }
    values.update(overrides)
    return Task(**values)  # type: ignore[arg-type]


@pytest.fixture
def tenant_id() -> UUID:
    """Return the id of the caller's tenant."""
    return uuid4()


@pytest.fixture
def other_tenant_id() -> UUID:
    """Return the id of a foreign tenant."""
    return uuid4()


@pytest.fixture
def super_admin_claim() -> Claim:
    """Return a super admin claim."""
    return Claim(user_id=uuid4(), tenant_id=None, role=Role.SUPER_ADMIN)


@pytest.fixture
def admin_claim(tenant_id: UUID) -> Claim:
    """Return a tenant admin claim."""
    return Claim(user_id=uuid4(), tenant_id=tenant_id, role=Role.TENANT_ADMIN)


@pytest.fixture
def user_claim(tenant_id: UUID) -> Claim:
    """Return a plain user claim."""
    return Claim(user_id=uuid4(), tenant_id=tenant_id, role=Role.USER)
