"""Demo data seeding.

Creates a super admin and a "demo" tenant on the pro plan with an admin, two
members, a project and a few tasks. Idempotent: existing records are left
alone.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import structlog

from taskhive.core.auth.password import PasswordHasher
from taskhive.core.auth.types import Role
from taskhive.core.domain_types import (
    ProjectStatus,
    TaskPriority,
    TaskStatus,
    TenantStatus,
)
from taskhive.core.entitlements import Plan, limits_for
from taskhive.core.interfaces import TenancyRepository

logger = structlog.get_logger()

SUPER_ADMIN_EMAIL = "superadmin@system.com"
SUPER_ADMIN_PASSWORD = "Admin@123"  # pragma: allowlist secret
DEMO_SUBDOMAIN = "demo"
DEMO_ADMIN_EMAIL = "admin@demo.com"
DEMO_ADMIN_PASSWORD = "Demo@123"  # pragma: allowlist secret
DEMO_USER_PASSWORD = "User@123"  # pragma: allowlist secret

DEMO_USERS = [
    ("user1@demo.com", "Demo User One"),
    ("user2@demo.com", "Demo User Two"),
]


async def seed_demo_data(repository: TenancyRepository, hasher: PasswordHasher) -> None:
    """Seed demo accounts and data.

    Args:
        repository: Tenancy storage to seed.
        hasher: Password hasher for the demo accounts.
    """
    if await repository.get_super_admin_by_email(SUPER_ADMIN_EMAIL) is None:
        await repository.create_user(
            tenant_id=None,
            email=SUPER_ADMIN_EMAIL,
            password_hash=await hasher.hash_async(SUPER_ADMIN_PASSWORD),
            full_name="System Admin",
            role=Role.SUPER_ADMIN.value,
        )
        logger.info("demo_super_admin_created", email=SUPER_ADMIN_EMAIL)

    if await repository.get_tenant_by_subdomain(DEMO_SUBDOMAIN) is not None:
        logger.info("demo_tenant_exists", subdomain=DEMO_SUBDOMAIN)
        return

    max_users, max_projects = limits_for(Plan.PRO)
    async with repository.transaction() as tx:
        tenant = await tx.create_tenant(
            name="Demo Company",
            subdomain=DEMO_SUBDOMAIN,
            status=TenantStatus.ACTIVE.value,
            subscription_plan=Plan.PRO.value,
            max_users=max_users,
            max_projects=max_projects,
        )
        admin = await tx.create_user(
            tenant_id=tenant.id,
            email=DEMO_ADMIN_EMAIL,
            password_hash=await hasher.hash_async(DEMO_ADMIN_PASSWORD),
            full_name="Demo Admin",
            role=Role.TENANT_ADMIN.value,
        )
        user_hash = await hasher.hash_async(DEMO_USER_PASSWORD)
        members = [
            await tx.create_user(
                tenant_id=tenant.id,
                email=email,
                password_hash=user_hash,
                full_name=full_name,
                role=Role.USER.value,
            )
            for email, full_name in DEMO_USERS
        ]

        project = await tx.create_project(
            tenant_id=tenant.id,
            name="Website Redesign",
            description="Refresh the marketing site",
            status=ProjectStatus.ACTIVE.value,
            created_by=admin.id,
        )
        today = datetime.now(UTC).date()
        for title, priority, status, assignee, due_in in [
            ("Design homepage mockup", TaskPriority.HIGH, TaskStatus.IN_PROGRESS, members[0], 7),
            ("Set up staging server", TaskPriority.MEDIUM, TaskStatus.TODO, members[1], 14),
            ("Write launch announcement", TaskPriority.LOW, TaskStatus.TODO, None, None),
        ]:
            await tx.create_task(
                project_id=project.id,
                tenant_id=tenant.id,
                title=title,
                description=None,
                status=status.value,
                priority=priority.value,
                assigned_to=assignee.id if assignee else None,
                due_date=today + timedelta(days=due_in) if due_in else None,
                created_by=admin.id,
            )

    logger.info("demo_tenant_created", tenant_id=str(tenant.id), subdomain=DEMO_SUBDOMAIN)
