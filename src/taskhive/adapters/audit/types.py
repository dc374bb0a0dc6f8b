"""Audit log types."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class AuditAction(str, Enum):
    """Recorded actions."""

    REGISTER_TENANT = "REGISTER_TENANT"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    UPDATE_TENANT = "UPDATE_TENANT"
    CREATE_USER = "CREATE_USER"
    UPDATE_USER = "UPDATE_USER"
    DELETE_USER = "DELETE_USER"
    CREATE_PROJECT = "CREATE_PROJECT"
    UPDATE_PROJECT = "UPDATE_PROJECT"
    DELETE_PROJECT = "DELETE_PROJECT"
    CREATE_TASK = "CREATE_TASK"
    UPDATE_TASK = "UPDATE_TASK"
    UPDATE_TASK_STATUS = "UPDATE_TASK_STATUS"


class AuditLogCreate(BaseModel):
    """Request to create an audit log entry.

    tenant_id is None for actions by a super admin outside any tenant.
    """

    model_config = ConfigDict(frozen=True)

    tenant_id: UUID | None = None
    user_id: UUID | None = None
    action: AuditAction
    entity_type: str | None = None
    entity_id: UUID | None = None
    ip: str | None = None


class AuditLogEntry(BaseModel):
    """Audit log entry from storage."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    tenant_id: UUID | None = None
    user_id: UUID | None = None
    action: AuditAction
    entity_type: str | None = None
    entity_id: UUID | None = None
    ip: str | None = None
    created_at: datetime
