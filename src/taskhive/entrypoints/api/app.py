"""FastAPI application definition."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskhive import __version__
from taskhive.config import Settings
from taskhive.core.interfaces import AuditRepository, TenancyRepository

from .deps import lifespan
from .errors import register_exception_handlers
from .routes import api_router


def create_app(
    settings: Settings | None = None,
    *,
    repository: TenancyRepository | None = None,
    audit_repository: AuditRepository | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        settings: Configuration; read from the environment when omitted.
        repository: Use this store instead of the one settings select.
        audit_repository: Use this audit store instead of the default.

    Returns:
        The configured FastAPI app. Services are wired during lifespan.
    """
    settings = settings or Settings.from_env()

    app = FastAPI(
        title="taskhive",
        description="Multi-tenant project and task management",
        version=__version__,
        lifespan=lifespan,
        redirect_slashes=False,  # Prevent 307 redirects that lose auth headers
    )
    app.state.settings = settings
    app.state.repository_override = repository
    app.state.audit_repository_override = audit_repository

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")
    return app
