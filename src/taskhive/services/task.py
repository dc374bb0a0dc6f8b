"""Task service."""

from __future__ import annotations

from datetime import date
from uuid import UUID

import structlog

from taskhive.adapters.audit import AuditAction, AuditSink
from taskhive.core.auth.types import Claim
from taskhive.core.domain_types import (
    Project,
    Task,
    TaskPriority,
    TaskStatus,
    TaskView,
)
from taskhive.core.exceptions import InvalidReferenceError, NotFoundError, ValidationError
from taskhive.core.interfaces import TenancyRepository
from taskhive.core.patches import TaskPatch
from taskhive.core.rbac import Action, PolicyEngine, ResourceKind, Target
from taskhive.services.project import project_target

logger = structlog.get_logger()


def task_target(task: Task) -> Target:
    """Policy target for an existing task."""
    return Target(
        kind=ResourceKind.TASK,
        tenant_id=task.tenant_id,
        id=task.id,
        owner_id=task.created_by,
        assignee_id=task.assigned_to,
    )


class TaskService:
    """Service for tasks inside projects of the caller's tenant."""

    def __init__(
        self,
        repository: TenancyRepository,
        audit: AuditSink,
        policy: PolicyEngine | None = None,
    ) -> None:
        self._repo = repository
        self._audit = audit
        self._policy = policy or PolicyEngine()

    async def create_task(
        self,
        claim: Claim,
        project_id: UUID,
        title: str,
        description: str | None = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        assigned_to: UUID | None = None,
        due_date: date | None = None,
        status: TaskStatus = TaskStatus.TODO,
        ip: str | None = None,
    ) -> TaskView:
        """Create a task in a project.

        The task's tenant_id is copied from the project, never taken from the
        caller.

        Raises:
            NotFoundError: Project absent or in another tenant.
            InvalidReferenceError: assigned_to is not a user of the project's
                tenant.
        """
        project = await self._load_project(project_id)
        target = Target(kind=ResourceKind.TASK, tenant_id=project.tenant_id)
        self._policy.enforce(claim, Action.CREATE, target)
        await self._check_assignee(project.tenant_id, assigned_to)

        task = await self._repo.create_task(
            project_id=project.id,
            tenant_id=project.tenant_id,
            title=title.strip(),
            description=description,
            status=status.value,
            priority=priority.value,
            assigned_to=assigned_to,
            due_date=due_date,
            created_by=claim.user_id,
        )

        logger.info(
            "task_created",
            task_id=str(task.id),
            project_id=str(project.id),
            tenant_id=str(task.tenant_id),
            created_by=str(claim.user_id),
        )
        await self._audit.record(
            AuditAction.CREATE_TASK,
            tenant_id=task.tenant_id,
            user_id=claim.user_id,
            entity_type="task",
            entity_id=task.id,
            ip=ip,
        )
        return await self._view(task.id)

    async def list_tasks(
        self,
        claim: Claim,
        project_id: UUID,
        status: TaskStatus | None = None,
        assigned_to: UUID | None = None,
        priority: TaskPriority | None = None,
        search: str | None = None,
    ) -> list[TaskView]:
        """List a project's tasks by priority, then due date with nulls last."""
        project = await self._load_project(project_id)
        self._policy.enforce(claim, Action.READ, project_target(project))

        return await self._repo.list_tasks(
            project_id=project_id,
            status=status.value if status else None,
            assigned_to=assigned_to,
            priority=priority.value if priority else None,
            search=search or None,
        )

    async def update_task_status(
        self,
        claim: Claim,
        task_id: UUID,
        status: TaskStatus,
        ip: str | None = None,
    ) -> TaskView:
        """Move a task to a new status. Allowed for the creator and the assignee."""
        task = await self._load_task(task_id)
        self._policy.enforce(claim, Action.UPDATE, task_target(task), {"status"})

        updated = await self._repo.update_task(task_id, {"status": status.value})
        if updated is None:
            raise NotFoundError("Task")

        logger.info(
            "task_status_updated",
            task_id=str(task_id),
            status=status.value,
            updated_by=str(claim.user_id),
        )
        await self._audit.record(
            AuditAction.UPDATE_TASK_STATUS,
            tenant_id=task.tenant_id,
            user_id=claim.user_id,
            entity_type="task",
            entity_id=task_id,
            ip=ip,
        )
        return await self._view(task_id)

    async def update_task(
        self,
        claim: Claim,
        task_id: UUID,
        patch: TaskPatch,
        ip: str | None = None,
    ) -> TaskView:
        """Apply a task patch.

        assigned_to or due_date sent as null clears them; absent fields are
        left unchanged. A new assignee must belong to the task's tenant.
        """
        task = await self._load_task(task_id)
        self._policy.enforce(claim, Action.UPDATE, task_target(task), patch.present_fields)
        if patch.is_empty():
            raise ValidationError("No fields to update")
        if "assigned_to" in patch.present_fields:
            await self._check_assignee(task.tenant_id, patch.assigned_to)

        updated = await self._repo.update_task(task_id, patch.changes())
        if updated is None:
            raise NotFoundError("Task")

        logger.info(
            "task_updated",
            task_id=str(task_id),
            updated_fields=sorted(patch.present_fields),
            updated_by=str(claim.user_id),
        )
        await self._audit.record(
            AuditAction.UPDATE_TASK,
            tenant_id=task.tenant_id,
            user_id=claim.user_id,
            entity_type="task",
            entity_id=task_id,
            ip=ip,
        )
        return await self._view(task_id)

    async def _check_assignee(self, tenant_id: UUID, assigned_to: UUID | None) -> None:
        if assigned_to is None:
            return
        assignee = await self._repo.get_user(assigned_to)
        if assignee is None or assignee.tenant_id != tenant_id:
            raise InvalidReferenceError("Assigned user does not belong to this tenant")

    async def _load_project(self, project_id: UUID) -> Project:
        project = await self._repo.get_project(project_id)
        if project is None:
            raise NotFoundError("Project")
        return project

    async def _load_task(self, task_id: UUID) -> Task:
        task = await self._repo.get_task(task_id)
        if task is None:
            raise NotFoundError("Task")
        return task

    async def _view(self, task_id: UUID) -> TaskView:
        view = await self._repo.get_task_view(task_id)
        if view is None:
            raise NotFoundError("Task")
        return view
