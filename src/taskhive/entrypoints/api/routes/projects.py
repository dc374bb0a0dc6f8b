"""Project API routes."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from taskhive.core.domain_types import Page, ProjectStatus
from taskhive.core.patches import ProjectPatch
from taskhive.entrypoints.api.deps import ClientIp, ProjectServiceDep
from taskhive.entrypoints.api.middleware.jwt_auth import AuthClaim
from taskhive.entrypoints.api.schemas import (
    ApiResponse,
    CreateProjectRequest,
    PaginationOut,
    ProjectListItem,
    ProjectListOut,
    ProjectOut,
    ProjectUpdateRequest,
)

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("", status_code=201, response_model=ApiResponse[ProjectOut])
async def create_project(
    body: CreateProjectRequest,
    claim: AuthClaim,
    project_service: ProjectServiceDep,
    ip: ClientIp,
) -> ApiResponse[ProjectOut]:
    """Create a project in the caller's tenant, subject to max_projects."""
    project = await project_service.create_project(
        claim,
        name=body.name,
        description=body.description,
        status=body.status,
        ip=ip,
    )
    return ApiResponse(
        message="Project created successfully",
        data=ProjectOut.from_domain(project),
    )


@router.get("", response_model=ApiResponse[ProjectListOut])
async def list_projects(
    claim: AuthClaim,
    project_service: ProjectServiceDep,
    status: ProjectStatus | None = None,
    search: str | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> ApiResponse[ProjectListOut]:
    """List the caller's tenant's projects with task progress."""
    projects, info = await project_service.list_projects(
        claim,
        status=status,
        search=search,
        page=Page(page=page, limit=limit),
    )
    return ApiResponse(
        data=ProjectListOut(
            projects=[ProjectListItem.from_summary(p) for p in projects],
            pagination=PaginationOut.from_domain(info),
        )
    )


@router.get("/{project_id}", response_model=ApiResponse[ProjectOut])
async def get_project(
    project_id: UUID,
    claim: AuthClaim,
    project_service: ProjectServiceDep,
) -> ApiResponse[ProjectOut]:
    """Get a project."""
    project = await project_service.get_project(claim, project_id)
    return ApiResponse(data=ProjectOut.from_domain(project))


@router.put("/{project_id}", response_model=ApiResponse[ProjectOut])
async def update_project(
    project_id: UUID,
    body: ProjectUpdateRequest,
    claim: AuthClaim,
    project_service: ProjectServiceDep,
    ip: ClientIp,
) -> ApiResponse[ProjectOut]:
    """Update a project. Plain users may only update projects they created."""
    patch = ProjectPatch(**body.model_dump(exclude_unset=True))
    project = await project_service.update_project(claim, project_id, patch, ip=ip)
    return ApiResponse(
        message="Project updated successfully",
        data=ProjectOut.from_domain(project),
    )


@router.delete("/{project_id}", response_model=ApiResponse[None])
async def delete_project(
    project_id: UUID,
    claim: AuthClaim,
    project_service: ProjectServiceDep,
    ip: ClientIp,
) -> ApiResponse[None]:
    """Delete a project and all of its tasks."""
    await project_service.delete_project(claim, project_id, ip=ip)
    return ApiResponse(message="Project deleted successfully")
