"""Project service."""

from __future__ import annotations

from uuid import UUID

import structlog

from taskhive.adapters.audit import AuditAction, AuditSink
from taskhive.core.auth.types import Claim
from taskhive.core.domain_types import Page, PageInfo, Project, ProjectStatus, ProjectSummary
from taskhive.core.entitlements import Feature
from taskhive.core.entitlements.quota import enforce_quota
from taskhive.core.exceptions import NotFoundError, ValidationError
from taskhive.core.interfaces import TenancyRepository
from taskhive.core.patches import ProjectPatch
from taskhive.core.rbac import Action, PolicyEngine, ResourceKind, Target

logger = structlog.get_logger()


def project_target(project: Project) -> Target:
    """Policy target for an existing project."""
    return Target(
        kind=ResourceKind.PROJECT,
        tenant_id=project.tenant_id,
        id=project.id,
        owner_id=project.created_by,
    )


class ProjectService:
    """Service for projects inside the caller's tenant."""

    def __init__(
        self,
        repository: TenancyRepository,
        audit: AuditSink,
        policy: PolicyEngine | None = None,
    ) -> None:
        self._repo = repository
        self._audit = audit
        self._policy = policy or PolicyEngine()

    async def create_project(
        self,
        claim: Claim,
        name: str,
        description: str | None = None,
        status: ProjectStatus = ProjectStatus.ACTIVE,
        ip: str | None = None,
    ) -> Project:
        """Create a project in the caller's tenant.

        The quota check and the insert run in one transaction with the tenant
        row locked, so concurrent creators cannot overshoot max_projects.

        Raises:
            ForbiddenError: Caller has no tenant (super admin).
            QuotaExceededError: Tenant is at max_projects.
        """
        target = Target(kind=ResourceKind.PROJECT, tenant_id=claim.tenant_id)
        self._policy.enforce(claim, Action.CREATE, target)
        assert claim.tenant_id is not None

        async with self._repo.transaction() as tx:
            await enforce_quota(tx, claim.tenant_id, Feature.MAX_PROJECTS)
            project = await tx.create_project(
                tenant_id=claim.tenant_id,
                name=name.strip(),
                description=description,
                status=status.value,
                created_by=claim.user_id,
            )

        logger.info(
            "project_created",
            project_id=str(project.id),
            tenant_id=str(project.tenant_id),
            created_by=str(claim.user_id),
        )
        await self._audit.record(
            AuditAction.CREATE_PROJECT,
            tenant_id=project.tenant_id,
            user_id=claim.user_id,
            entity_type="project",
            entity_id=project.id,
            ip=ip,
        )
        return project

    async def list_projects(
        self,
        claim: Claim,
        status: ProjectStatus | None = None,
        search: str | None = None,
        page: Page | None = None,
    ) -> tuple[list[ProjectSummary], PageInfo]:
        """List the caller's tenant's projects, newest first."""
        target = Target(kind=ResourceKind.PROJECT, tenant_id=claim.tenant_id)
        self._policy.enforce(claim, Action.LIST, target)
        assert claim.tenant_id is not None
        page = page or Page()

        projects, total = await self._repo.list_projects(
            tenant_id=claim.tenant_id,
            status=status.value if status else None,
            search=search or None,
            limit=page.limit,
            offset=page.offset,
        )
        return projects, PageInfo(page=page.page, limit=page.limit, total=total)

    async def get_project(self, claim: Claim, project_id: UUID) -> Project:
        """Get a project of the caller's tenant."""
        project = await self._load(project_id)
        self._policy.enforce(claim, Action.READ, project_target(project))
        return project

    async def update_project(
        self,
        claim: Claim,
        project_id: UUID,
        patch: ProjectPatch,
        ip: str | None = None,
    ) -> Project:
        """Apply a project patch. Plain users may only patch their own projects."""
        project = await self._load(project_id)
        self._policy.enforce(claim, Action.UPDATE, project_target(project), patch.present_fields)
        if patch.is_empty():
            raise ValidationError("No fields to update")

        updated = await self._repo.update_project(project_id, patch.changes())
        if updated is None:
            raise NotFoundError("Project")

        logger.info(
            "project_updated",
            project_id=str(project_id),
            updated_fields=sorted(patch.present_fields),
            updated_by=str(claim.user_id),
        )
        await self._audit.record(
            AuditAction.UPDATE_PROJECT,
            tenant_id=updated.tenant_id,
            user_id=claim.user_id,
            entity_type="project",
            entity_id=project_id,
            ip=ip,
        )
        return updated

    async def delete_project(self, claim: Claim, project_id: UUID, ip: str | None = None) -> None:
        """Delete a project together with all of its tasks."""
        project = await self._load(project_id)
        self._policy.enforce(claim, Action.DELETE, project_target(project))

        if not await self._repo.delete_project(project_id):
            raise NotFoundError("Project")

        logger.info("project_deleted", project_id=str(project_id), deleted_by=str(claim.user_id))
        await self._audit.record(
            AuditAction.DELETE_PROJECT,
            tenant_id=project.tenant_id,
            user_id=claim.user_id,
            entity_type="project",
            entity_id=project_id,
            ip=ip,
        )

    async def _load(self, project_id: UUID) -> Project:
        project = await self._repo.get_project(project_id)
        if project is None:
            raise NotFoundError("Project")
        return project
