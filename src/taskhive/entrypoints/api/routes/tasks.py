"""Task API routes."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from taskhive.core.domain_types import TaskPriority, TaskStatus
from taskhive.core.patches import TaskPatch
from taskhive.entrypoints.api.deps import ClientIp, TaskServiceDep
from taskhive.entrypoints.api.middleware.jwt_auth import AuthClaim
from taskhive.entrypoints.api.schemas import (
    ApiResponse,
    CreateTaskRequest,
    TaskListOut,
    TaskOut,
    TaskStatusRequest,
    TaskUpdateRequest,
)

router = APIRouter(tags=["tasks"])


@router.post(
    "/projects/{project_id}/tasks",
    status_code=201,
    response_model=ApiResponse[TaskOut],
)
async def create_task(
    project_id: UUID,
    body: CreateTaskRequest,
    claim: AuthClaim,
    task_service: TaskServiceDep,
    ip: ClientIp,
) -> ApiResponse[TaskOut]:
    """Create a task in a project."""
    view = await task_service.create_task(
        claim,
        project_id,
        title=body.title,
        description=body.description,
        priority=body.priority,
        assigned_to=body.assigned_to,
        due_date=body.due_date,
        ip=ip,
    )
    return ApiResponse(message="Task created successfully", data=TaskOut.from_view(view))


@router.get("/projects/{project_id}/tasks", response_model=ApiResponse[TaskListOut])
async def list_tasks(
    project_id: UUID,
    claim: AuthClaim,
    task_service: TaskServiceDep,
    status: TaskStatus | None = None,
    assigned_to: Annotated[UUID | None, Query(alias="assignedTo")] = None,
    priority: TaskPriority | None = None,
    search: str | None = None,
) -> ApiResponse[TaskListOut]:
    """List a project's tasks, highest priority and earliest due first."""
    views = await task_service.list_tasks(
        claim,
        project_id,
        status=status,
        assigned_to=assigned_to,
        priority=priority,
        search=search,
    )
    return ApiResponse(data=TaskListOut(tasks=[TaskOut.from_view(v) for v in views]))


@router.patch("/tasks/{task_id}/status", response_model=ApiResponse[TaskOut])
async def update_task_status(
    task_id: UUID,
    body: TaskStatusRequest,
    claim: AuthClaim,
    task_service: TaskServiceDep,
    ip: ClientIp,
) -> ApiResponse[TaskOut]:
    """Move a task to a new status."""
    view = await task_service.update_task_status(claim, task_id, body.status, ip=ip)
    return ApiResponse(message="Task status updated", data=TaskOut.from_view(view))


@router.put("/tasks/{task_id}", response_model=ApiResponse[TaskOut])
async def update_task(
    task_id: UUID,
    body: TaskUpdateRequest,
    claim: AuthClaim,
    task_service: TaskServiceDep,
    ip: ClientIp,
) -> ApiResponse[TaskOut]:
    """Update a task. Send assignedTo or dueDate as null to clear them."""
    patch = TaskPatch(**body.model_dump(exclude_unset=True))
    view = await task_service.update_task(claim, task_id, patch, ip=ip)
    return ApiResponse(message="Task updated successfully", data=TaskOut.from_view(view))
