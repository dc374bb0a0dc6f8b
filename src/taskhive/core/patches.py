"""Typed partial-update models.

A patch distinguishes "absent" from "explicitly null": only fields the caller
actually sent are in ``model_fields_set``. Absent fields are left untouched;
a nullable field sent as null is cleared.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, ClassVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from taskhive.core.auth.types import Role
from taskhive.core.domain_types import ProjectStatus, TaskPriority, TaskStatus, TenantStatus
from taskhive.core.entitlements import Plan


class Patch(BaseModel):
    """Base class for partial updates."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Fields that may be explicitly set to null to clear them
    nullable_fields: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def reject_null_for_required(self) -> Patch:
        for name in self.model_fields_set:
            if name not in self.nullable_fields and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    @property
    def present_fields(self) -> frozenset[str]:
        """Names of the fields present in the patch."""
        return frozenset(self.model_fields_set)

    def changes(self) -> dict[str, Any]:
        """Present fields and their values, enums flattened to values."""
        return {
            name: value.value if isinstance(value, Enum) else value
            for name, value in self.model_dump(include=set(self.model_fields_set)).items()
        }

    def is_empty(self) -> bool:
        """Whether the patch would change nothing."""
        return not self.model_fields_set


class TenantPatch(Patch):
    """Tenant update. subdomain is immutable and therefore absent."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    status: TenantStatus | None = None
    subscription_plan: Plan | None = None
    max_users: int | None = Field(default=None, ge=1)
    max_projects: int | None = Field(default=None, ge=1)


class UserPatch(Patch):
    """User update. tenant_id is never patchable."""

    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    role: Role | None = None
    is_active: bool | None = None

    @model_validator(mode="after")
    def no_super_admin_promotion(self) -> UserPatch:
        if self.role == Role.SUPER_ADMIN:
            raise ValueError("role must be tenant_admin or user")
        return self


class ProjectPatch(Patch):
    """Project update."""

    nullable_fields: ClassVar[frozenset[str]] = frozenset({"description"})

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    status: ProjectStatus | None = None


class TaskPatch(Patch):
    """Task update. Null for assigned_to or due_date clears them."""

    nullable_fields: ClassVar[frozenset[str]] = frozenset({"description", "assigned_to", "due_date"})

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assigned_to: UUID | None = None
    due_date: date | None = None
