"""RBAC domain types."""

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID


class Action(str, Enum):
    """Operations a caller can request on a resource."""

    READ = "read"
    LIST = "list"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ResourceKind(str, Enum):
    """Kinds of resource the policy engine knows about."""

    TENANT = "tenant"
    USER = "user"
    PROJECT = "project"
    TASK = "task"

    @property
    def label(self) -> str:
        """Human-readable name used in error messages."""
        return self.value.capitalize()


class DenyReason(str, Enum):
    """Why a request was denied. Maps 1:1 onto 401/403/404."""

    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Target:
    """The resource a request acts on.

    For tenants, tenant_id is the tenant's own id. For creates and lists,
    id is None and tenant_id is the tenant the new or listed records belong
    to. owner_id is the creator of a project or task; assignee_id is a
    task's assigned user.
    """

    kind: ResourceKind
    tenant_id: UUID | None = None
    id: UUID | None = None
    owner_id: UUID | None = None
    assignee_id: UUID | None = None


@dataclass(frozen=True)
class Allow:
    """Positive decision.

    field_mask is the set of patch fields the caller may apply. It is only
    meaningful for updates and empty otherwise.
    """

    field_mask: frozenset[str] = field(default_factory=frozenset)

    @property
    def allowed(self) -> bool:
        """Always True."""
        return True


@dataclass(frozen=True)
class Deny:
    """Negative decision with a client-safe message."""

    reason: DenyReason
    message: str

    @property
    def allowed(self) -> bool:
        """Always False."""
        return False


Decision = Allow | Deny
