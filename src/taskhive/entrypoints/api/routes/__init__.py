"""API route modules."""

from fastapi import APIRouter

from taskhive.entrypoints.api.routes.auth import router as auth_router
from taskhive.entrypoints.api.routes.health import router as health_router
from taskhive.entrypoints.api.routes.projects import router as projects_router
from taskhive.entrypoints.api.routes.tasks import router as tasks_router
from taskhive.entrypoints.api.routes.tenants import router as tenants_router
from taskhive.entrypoints.api.routes.users import router as users_router

# Create main API router
api_router = APIRouter()

# Include all route modules
api_router.include_router(auth_router)
api_router.include_router(tenants_router)
api_router.include_router(users_router)
api_router.include_router(projects_router)
api_router.include_router(tasks_router)
api_router.include_router(health_router)

__all__ = ["api_router"]
