"""Dependency injection and application lifespan management."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Annotated

import structlog
from fastapi import Depends, Request

from taskhive.adapters.audit import (
    AuditSink,
    InMemoryAuditRepository,
    PostgresAuditRepository,
    get_client_ip,
)
from taskhive.adapters.db import AppDatabase, InMemoryTenancyRepository, PostgresTenancyRepository
from taskhive.adapters.db.schema import SCHEMA_SQL
from taskhive.config import Settings
from taskhive.core.auth import PasswordHasher, TokenService
from taskhive.core.auth.service import AuthService
from taskhive.core.interfaces import AuditRepository, TenancyRepository
from taskhive.demo.seed import seed_demo_data
from taskhive.services import ProjectService, TaskService, TenantService, UserService

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = structlog.get_logger()


def wire_services(
    app: FastAPI,
    settings: Settings,
    repository: TenancyRepository,
    audit_repository: AuditRepository,
) -> None:
    """Build the service graph and store it in app state."""
    tokens = TokenService(
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        ttl_seconds=settings.token_ttl_seconds,
    )
    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    audit = AuditSink(audit_repository)

    app.state.repository = repository
    app.state.audit_repository = audit_repository
    app.state.tokens = tokens
    app.state.hasher = hasher
    app.state.auth_service = AuthService(repository, tokens, hasher, audit)
    app.state.tenant_service = TenantService(repository, hasher, audit)
    app.state.user_service = UserService(repository, hasher, audit)
    app.state.project_service = ProjectService(repository, audit)
    app.state.task_service = TaskService(repository, audit)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - setup and teardown.

    This context manager handles:
    - Store selection (PostgreSQL pool or in-memory)
    - Schema creation
    - Service wiring
    - Demo data seeding
    """
    settings: Settings = app.state.settings
    repository: TenancyRepository | None = getattr(app.state, "repository_override", None)
    audit_repository: AuditRepository | None = getattr(app.state, "audit_repository_override", None)
    app_db: AppDatabase | None = None

    if repository is None:
        if settings.store_backend == "postgres":
            app_db = AppDatabase(settings.database_url)
            await app_db.connect()
            await app_db.apply_schema(SCHEMA_SQL)
            repository = PostgresTenancyRepository(app_db)
            audit_repository = audit_repository or PostgresAuditRepository(app_db)
        else:
            repository = InMemoryTenancyRepository()
    if audit_repository is None:
        audit_repository = InMemoryAuditRepository()

    wire_services(app, settings, repository, audit_repository)
    logger.info("app_started", store=settings.store_backend, environment=settings.environment)

    if settings.demo_mode:
        await seed_demo_data(repository, app.state.hasher)

    yield

    if app_db is not None:
        await app_db.close()
    logger.info("app_stopped")


def get_auth_service(request: Request) -> AuthService:
    """Get auth service from app state."""
    service: AuthService = request.app.state.auth_service
    return service


def get_tenant_service(request: Request) -> TenantService:
    """Get tenant service from app state."""
    service: TenantService = request.app.state.tenant_service
    return service


def get_user_service(request: Request) -> UserService:
    """Get user service from app state."""
    service: UserService = request.app.state.user_service
    return service


def get_project_service(request: Request) -> ProjectService:
    """Get project service from app state."""
    service: ProjectService = request.app.state.project_service
    return service


def get_task_service(request: Request) -> TaskService:
    """Get task service from app state."""
    service: TaskService = request.app.state.task_service
    return service


def get_repository(request: Request) -> TenancyRepository:
    """Get the tenancy repository from app state."""
    repository: TenancyRepository = request.app.state.repository
    return repository


def client_ip(request: Request) -> str | None:
    """Client IP for audit entries."""
    return get_client_ip(request)


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
TenantServiceDep = Annotated[TenantService, Depends(get_tenant_service)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
ProjectServiceDep = Annotated[ProjectService, Depends(get_project_service)]
TaskServiceDep = Annotated[TaskService, Depends(get_task_service)]
RepositoryDep = Annotated[TenancyRepository, Depends(get_repository)]
ClientIp = Annotated[str | None, Depends(client_ip)]
