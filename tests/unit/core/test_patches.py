"""Tests for partial-update models."""

from uuid import uuid4

import pytest
from pydantic import ValidationError

from taskhive.core.auth.types import Role
from taskhive.core.domain_types import TaskStatus
from taskhive.core.entitlements import Plan
from taskhive.core.patches import ProjectPatch, TaskPatch, TenantPatch, UserPatch


class TestPatch:
    """Test absent versus null semantics."""

    def test_absent_fields_not_present(self) -> None:
        """Only sent fields are reported."""
        patch = TaskPatch(status=TaskStatus.COMPLETED)
        assert patch.present_fields == frozenset({"status"})
        assert patch.changes() == {"status": "completed"}

    def test_null_clears_nullable_field(self) -> None:
        """Null for assigned_to is a change, not an absence."""
        patch = TaskPatch(assigned_to=None, due_date=None)
        assert patch.changes() == {"assigned_to": None, "due_date": None}
        assert not patch.is_empty()

    def test_null_rejected_for_required_field(self) -> None:
        """Null for a non-nullable field is a validation error."""
        with pytest.raises(ValidationError, match="title cannot be null"):
            TaskPatch(title=None)

    def test_empty_patch(self) -> None:
        """A patch without fields is empty."""
        assert ProjectPatch().is_empty()

    def test_unknown_field_rejected(self) -> None:
        """Fields outside the model are refused, so tenant_id cannot be patched."""
        with pytest.raises(ValidationError):
            ProjectPatch(tenant_id=uuid4())  # type: ignore[call-arg]

    def test_enum_values_flattened(self) -> None:
        """Changes carry plain values suitable for storage."""
        patch = TenantPatch(subscription_plan=Plan.PRO, max_users=30)
        assert patch.changes() == {"subscription_plan": "pro", "max_users": 30}

    def test_limits_must_be_positive(self) -> None:
        """Limits below one are refused."""
        with pytest.raises(ValidationError):
            TenantPatch(max_projects=0)

    def test_no_super_admin_promotion(self) -> None:
        """Users cannot be promoted to super admin."""
        with pytest.raises(ValidationError):
            UserPatch(role=Role.SUPER_ADMIN)

    def test_description_may_be_cleared(self) -> None:
        """Project descriptions are nullable."""
        assert ProjectPatch(description=None).changes() == {"description": None}
