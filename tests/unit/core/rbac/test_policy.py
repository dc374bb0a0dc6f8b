"""Tests for the authorization policy engine."""

from uuid import UUID, uuid4

import pytest

from taskhive.core.auth.types import Claim, Role
from taskhive.core.exceptions import ForbiddenError, NotFoundError, UnauthorizedError
from taskhive.core.rbac import (
    Action,
    Allow,
    Deny,
    DenyReason,
    PolicyEngine,
    ResourceKind,
    Target,
)


@pytest.fixture
def policy() -> PolicyEngine:
    """Create a policy engine."""
    return PolicyEngine()


def _deny(decision: object) -> Deny:
    assert isinstance(decision, Deny), decision
    return decision


class TestAuthentication:
    """Rule 0: no claim."""

    def test_missing_claim_unauthorized(self, policy: PolicyEngine, tenant_id: UUID) -> None:
        """Unauthenticated requests are denied before anything else."""
        decision = policy.authorize(None, Action.READ, Target(ResourceKind.PROJECT, tenant_id))
        assert _deny(decision).reason == DenyReason.UNAUTHORIZED

    def test_enforce_raises_unauthorized(self, policy: PolicyEngine, tenant_id: UUID) -> None:
        """enforce maps the denial to UnauthorizedError."""
        with pytest.raises(UnauthorizedError):
            policy.enforce(None, Action.READ, Target(ResourceKind.PROJECT, tenant_id))


class TestTenantListing:
    """Rule 6: only super admins list tenants."""

    def test_super_admin_may_list(self, policy: PolicyEngine, super_admin_claim: Claim) -> None:
        """Super admins list all tenants."""
        decision = policy.authorize(super_admin_claim, Action.LIST, Target(ResourceKind.TENANT))
        assert isinstance(decision, Allow)

    @pytest.mark.parametrize("role", [Role.TENANT_ADMIN, Role.USER])
    def test_others_forbidden(self, policy: PolicyEngine, tenant_id: UUID, role: Role) -> None:
        """Tenant members may not list tenants."""
        claim = Claim(user_id=uuid4(), tenant_id=tenant_id, role=role)
        with pytest.raises(ForbiddenError):
            policy.enforce(claim, Action.LIST, Target(ResourceKind.TENANT))


class TestTenantScope:
    """Rule 1: records of other tenants are invisible."""

    @pytest.mark.parametrize("kind", [ResourceKind.USER, ResourceKind.PROJECT, ResourceKind.TASK])
    def test_cross_tenant_read_not_found(
        self,
        policy: PolicyEngine,
        admin_claim: Claim,
        other_tenant_id: UUID,
        kind: ResourceKind,
    ) -> None:
        """Another tenant's record looks absent even to an admin."""
        target = Target(kind, other_tenant_id, id=uuid4(), owner_id=admin_claim.user_id)
        decision = policy.authorize(admin_claim, Action.READ, target)
        assert _deny(decision).reason == DenyReason.NOT_FOUND

    def test_cross_tenant_update_not_found(
        self, policy: PolicyEngine, admin_claim: Claim, other_tenant_id: UUID
    ) -> None:
        """Writes across tenants fail as not found, not forbidden."""
        target = Target(ResourceKind.PROJECT, other_tenant_id, id=uuid4())
        with pytest.raises(NotFoundError) as exc_info:
            policy.enforce(admin_claim, Action.UPDATE, target, {"name"})
        assert exc_info.value.message == "Project not found"

    def test_cross_tenant_tenant_record(
        self, policy: PolicyEngine, admin_claim: Claim, other_tenant_id: UUID
    ) -> None:
        """A tenant admin cannot read another tenant."""
        target = Target(ResourceKind.TENANT, other_tenant_id, id=other_tenant_id)
        assert _deny(policy.authorize(admin_claim, Action.READ, target)).reason == (
            DenyReason.NOT_FOUND
        )

    def test_own_tenant_readable(
        self, policy: PolicyEngine, user_claim: Claim, tenant_id: UUID
    ) -> None:
        """Members read their own tenant."""
        target = Target(ResourceKind.TENANT, tenant_id, id=tenant_id)
        assert isinstance(policy.authorize(user_claim, Action.READ, target), Allow)

    def test_super_admin_reads_any_tenant(
        self, policy: PolicyEngine, super_admin_claim: Claim, other_tenant_id: UUID
    ) -> None:
        """Super admins are not scoped for tenant records."""
        target = Target(ResourceKind.TENANT, other_tenant_id, id=other_tenant_id)
        assert isinstance(policy.authorize(super_admin_claim, Action.READ, target), Allow)

    def test_super_admin_cannot_create_projects(
        self, policy: PolicyEngine, super_admin_claim: Claim, tenant_id: UUID
    ) -> None:
        """Super admins have no tenant to create records in."""
        decision = policy.authorize(
            super_admin_claim, Action.CREATE, Target(ResourceKind.PROJECT, tenant_id)
        )
        assert _deny(decision).reason == DenyReason.FORBIDDEN

    def test_super_admin_cannot_see_projects(
        self, policy: PolicyEngine, super_admin_claim: Claim, tenant_id: UUID
    ) -> None:
        """Tenant content is invisible to super admins."""
        target = Target(ResourceKind.PROJECT, tenant_id, id=uuid4())
        decision = policy.authorize(super_admin_claim, Action.READ, target)
        assert _deny(decision).reason == DenyReason.NOT_FOUND


class TestCapabilities:
    """Rules 2 and 3: role capabilities and ownership."""

    def test_user_cannot_create_users(
        self, policy: PolicyEngine, user_claim: Claim, tenant_id: UUID
    ) -> None:
        """Only tenant admins add users."""
        with pytest.raises(ForbiddenError):
            policy.enforce(user_claim, Action.CREATE, Target(ResourceKind.USER, tenant_id))

    def test_admin_creates_users(
        self, policy: PolicyEngine, admin_claim: Claim, tenant_id: UUID
    ) -> None:
        """Tenant admins add users to their tenant."""
        target = Target(ResourceKind.USER, tenant_id)
        assert isinstance(policy.authorize(admin_claim, Action.CREATE, target), Allow)

    def test_user_deletes_own_project(
        self, policy: PolicyEngine, user_claim: Claim, tenant_id: UUID
    ) -> None:
        """Creators may delete their projects."""
        target = Target(ResourceKind.PROJECT, tenant_id, id=uuid4(), owner_id=user_claim.user_id)
        assert isinstance(policy.authorize(user_claim, Action.DELETE, target), Allow)

    def test_user_cannot_delete_others_project(
        self, policy: PolicyEngine, user_claim: Claim, tenant_id: UUID
    ) -> None:
        """Plain users may not delete projects created by others."""
        target = Target(ResourceKind.PROJECT, tenant_id, id=uuid4(), owner_id=uuid4())
        with pytest.raises(ForbiddenError, match="projects you created"):
            policy.enforce(user_claim, Action.DELETE, target)

    def test_admin_deletes_any_project(
        self, policy: PolicyEngine, admin_claim: Claim, tenant_id: UUID
    ) -> None:
        """Tenant admins delete any project in their tenant."""
        target = Target(ResourceKind.PROJECT, tenant_id, id=uuid4(), owner_id=uuid4())
        assert isinstance(policy.authorize(admin_claim, Action.DELETE, target), Allow)

    def test_user_cannot_delete_users(
        self, policy: PolicyEngine, user_claim: Claim, tenant_id: UUID
    ) -> None:
        """Plain users have no delete capability on users."""
        target = Target(ResourceKind.USER, tenant_id, id=uuid4())
        assert _deny(policy.authorize(user_claim, Action.DELETE, target)).reason == (
            DenyReason.FORBIDDEN
        )


class TestSelfProtection:
    """Rule 4: admins cannot remove or demote themselves."""

    def test_admin_cannot_delete_self(
        self, policy: PolicyEngine, admin_claim: Claim, tenant_id: UUID
    ) -> None:
        """Self-deletion is refused."""
        target = Target(ResourceKind.USER, tenant_id, id=admin_claim.user_id)
        with pytest.raises(ForbiddenError, match="your own account"):
            policy.enforce(admin_claim, Action.DELETE, target)

    @pytest.mark.parametrize("field", ["role", "is_active"])
    def test_admin_cannot_demote_self(
        self, policy: PolicyEngine, admin_claim: Claim, tenant_id: UUID, field: str
    ) -> None:
        """Admins may not change their own role or active flag."""
        target = Target(ResourceKind.USER, tenant_id, id=admin_claim.user_id)
        with pytest.raises(ForbiddenError, match="own role or active status"):
            policy.enforce(admin_claim, Action.UPDATE, target, {field})

    def test_admin_renames_self(
        self, policy: PolicyEngine, admin_claim: Claim, tenant_id: UUID
    ) -> None:
        """Admins may change their own full name."""
        target = Target(ResourceKind.USER, tenant_id, id=admin_claim.user_id)
        decision = policy.authorize(admin_claim, Action.UPDATE, target, {"full_name"})
        assert decision == Allow(field_mask=frozenset({"full_name"}))


class TestFieldMasks:
    """Rule 5: patch fields must fit the caller's mask."""

    def test_tenant_admin_renames_tenant(
        self, policy: PolicyEngine, admin_claim: Claim, tenant_id: UUID
    ) -> None:
        """Tenant admins may rename their tenant."""
        target = Target(ResourceKind.TENANT, tenant_id, id=tenant_id)
        assert isinstance(policy.authorize(admin_claim, Action.UPDATE, target, {"name"}), Allow)

    @pytest.mark.parametrize(
        "field", ["subscription_plan", "max_users", "max_projects", "status"]
    )
    def test_tenant_admin_cannot_touch_subscription(
        self, policy: PolicyEngine, admin_claim: Claim, tenant_id: UUID, field: str
    ) -> None:
        """Subscription settings are reserved for super admins."""
        target = Target(ResourceKind.TENANT, tenant_id, id=tenant_id)
        with pytest.raises(ForbiddenError, match="Only super admins"):
            policy.enforce(admin_claim, Action.UPDATE, target, {"name", field})

    def test_super_admin_changes_plan(
        self, policy: PolicyEngine, super_admin_claim: Claim, tenant_id: UUID
    ) -> None:
        """Super admins may change subscription settings."""
        target = Target(ResourceKind.TENANT, tenant_id, id=tenant_id)
        decision = policy.authorize(
            super_admin_claim, Action.UPDATE, target, {"subscription_plan", "max_users"}
        )
        assert isinstance(decision, Allow)
        assert "max_projects" in decision.field_mask

    def test_user_updates_own_name_only(
        self, policy: PolicyEngine, user_claim: Claim, tenant_id: UUID
    ) -> None:
        """Plain users may not change their own role."""
        target = Target(ResourceKind.USER, tenant_id, id=user_claim.user_id)
        assert isinstance(
            policy.authorize(user_claim, Action.UPDATE, target, {"full_name"}), Allow
        )
        with pytest.raises(ForbiddenError, match="role"):
            policy.enforce(user_claim, Action.UPDATE, target, {"role"})

    def test_user_cannot_update_others(
        self, policy: PolicyEngine, user_claim: Claim, tenant_id: UUID
    ) -> None:
        """Plain users may only update their own profile."""
        target = Target(ResourceKind.USER, tenant_id, id=uuid4())
        with pytest.raises(ForbiddenError, match="your own profile"):
            policy.enforce(user_claim, Action.UPDATE, target, {"full_name"})

    def test_assignee_may_change_status(
        self, policy: PolicyEngine, user_claim: Claim, tenant_id: UUID
    ) -> None:
        """Assignees move tasks they did not create."""
        target = Target(
            ResourceKind.TASK,
            tenant_id,
            id=uuid4(),
            owner_id=uuid4(),
            assignee_id=user_claim.user_id,
        )
        decision = policy.authorize(user_claim, Action.UPDATE, target, {"status"})
        assert decision == Allow(field_mask=frozenset({"status"}))

    def test_assignee_cannot_retitle(
        self, policy: PolicyEngine, user_claim: Claim, tenant_id: UUID
    ) -> None:
        """Assignees may not edit other task fields."""
        target = Target(
            ResourceKind.TASK,
            tenant_id,
            id=uuid4(),
            owner_id=uuid4(),
            assignee_id=user_claim.user_id,
        )
        with pytest.raises(ForbiddenError, match="title"):
            policy.enforce(user_claim, Action.UPDATE, target, {"status", "title"})

    def test_stranger_cannot_update_task(
        self, policy: PolicyEngine, user_claim: Claim, tenant_id: UUID
    ) -> None:
        """Users neither creating nor assigned to a task cannot touch it."""
        target = Target(ResourceKind.TASK, tenant_id, id=uuid4(), owner_id=uuid4())
        with pytest.raises(ForbiddenError):
            policy.enforce(user_claim, Action.UPDATE, target, {"status"})
