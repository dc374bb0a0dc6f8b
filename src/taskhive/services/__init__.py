"""Resource services: tenants, users, projects and tasks."""

from taskhive.services.project import ProjectService
from taskhive.services.task import TaskService
from taskhive.services.tenant import TenantService
from taskhive.services.user import UserService

__all__ = [
    "ProjectService",
    "TaskService",
    "TenantService",
    "UserService",
]
