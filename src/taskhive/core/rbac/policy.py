"""Authorization policy engine.

Every authorization decision in taskhive goes through PolicyEngine. Services
build a Target describing the record they are about to touch, pass the set of
patch fields for updates, and either inspect the Decision or call enforce()
to have the matching typed error raised.

Rules, in order (first match decides):

    0. No claim                 -> unauthorized
    6. Listing all tenants      -> super_admin only
    1. Tenant scoping           -> other tenant's records look absent;
                                   super_admin is tenant-less
    2/3. Role capabilities      -> ownership and self-service restrictions
    4. Self-deletion guard      -> tenant_admin cannot remove or demote self
    5. Field masks              -> patch fields must be a subset of the mask
"""

from __future__ import annotations

import structlog

from taskhive.core.auth.types import Claim, Role
from taskhive.core.exceptions import ForbiddenError, NotFoundError, UnauthorizedError
from taskhive.core.rbac.types import Action, Allow, Decision, Deny, DenyReason, ResourceKind, Target

logger = structlog.get_logger()

_ALL = frozenset(Action)

# What each role may attempt per resource kind, before ownership checks.
ROLE_CAPABILITIES: dict[Role, dict[ResourceKind, frozenset[Action]]] = {
    Role.SUPER_ADMIN: {
        ResourceKind.TENANT: frozenset({Action.READ, Action.LIST, Action.UPDATE}),
        ResourceKind.USER: frozenset(),
        ResourceKind.PROJECT: frozenset(),
        ResourceKind.TASK: frozenset(),
    },
    Role.TENANT_ADMIN: {
        ResourceKind.TENANT: frozenset({Action.READ, Action.UPDATE}),
        ResourceKind.USER: _ALL,
        ResourceKind.PROJECT: _ALL,
        ResourceKind.TASK: _ALL,
    },
    Role.USER: {
        ResourceKind.TENANT: frozenset({Action.READ}),
        ResourceKind.USER: frozenset({Action.READ, Action.LIST, Action.UPDATE}),
        ResourceKind.PROJECT: _ALL,
        ResourceKind.TASK: _ALL,
    },
}

TENANT_SUBSCRIPTION_FIELDS = frozenset({"status", "subscription_plan", "max_users", "max_projects"})

# Patch fields each role may apply on update, per resource kind.
FIELD_MASKS: dict[tuple[Role, ResourceKind], frozenset[str]] = {
    (Role.SUPER_ADMIN, ResourceKind.TENANT): frozenset({"name"}) | TENANT_SUBSCRIPTION_FIELDS,
    (Role.TENANT_ADMIN, ResourceKind.TENANT): frozenset({"name"}),
    (Role.TENANT_ADMIN, ResourceKind.USER): frozenset({"full_name", "role", "is_active"}),
    (Role.USER, ResourceKind.USER): frozenset({"full_name"}),
    (Role.TENANT_ADMIN, ResourceKind.PROJECT): frozenset({"name", "description", "status"}),
    (Role.USER, ResourceKind.PROJECT): frozenset({"name", "description", "status"}),
    (Role.TENANT_ADMIN, ResourceKind.TASK): frozenset(
        {"title", "description", "status", "priority", "assigned_to", "due_date"}
    ),
    (Role.USER, ResourceKind.TASK): frozenset(
        {"title", "description", "status", "priority", "assigned_to", "due_date"}
    ),
}

# Fields a tenant_admin may change on their own record
SELF_ADMIN_MASK = frozenset({"full_name"})

# Fields the assignee of a task they did not create may change
ASSIGNEE_TASK_MASK = frozenset({"status"})


class PolicyEngine:
    """Decides whether a claim may perform an action on a target."""

    def authorize(
        self,
        claim: Claim | None,
        action: Action,
        target: Target,
        fields: frozenset[str] | set[str] | None = None,
    ) -> Decision:
        """Evaluate the policy rules for one request.

        Args:
            claim: Verified caller identity, or None if unauthenticated.
            action: Requested action.
            target: Resource being acted on.
            fields: Patch fields present in an update request.

        Returns:
            Allow with the applicable field mask, or Deny with a reason.
        """
        if claim is None:
            return Deny(DenyReason.UNAUTHORIZED, "Authentication required")

        if target.kind == ResourceKind.TENANT and action == Action.LIST:
            if claim.role == Role.SUPER_ADMIN:
                return Allow()
            return Deny(DenyReason.FORBIDDEN, "Only super admins can list tenants")

        scoped = self._check_tenant_scope(claim, action, target)
        if scoped is not None:
            return scoped

        if action not in ROLE_CAPABILITIES[claim.role][target.kind]:
            return Deny(DenyReason.FORBIDDEN, _forbidden_message(action, target.kind))

        if action == Action.DELETE and target.kind == ResourceKind.USER and target.id == claim.user_id:
            return Deny(DenyReason.FORBIDDEN, "You cannot delete your own account")

        if action == Action.UPDATE:
            return self._authorize_update(claim, target, fields)

        if action == Action.DELETE and claim.role == Role.USER:
            if target.owner_id != claim.user_id:
                return Deny(
                    DenyReason.FORBIDDEN,
                    f"You can only delete {target.kind.value}s you created",
                )

        return Allow()

    def enforce(
        self,
        claim: Claim | None,
        action: Action,
        target: Target,
        fields: frozenset[str] | set[str] | None = None,
    ) -> Allow:
        """Authorize and raise the matching typed error on denial.

        Raises:
            UnauthorizedError: No claim.
            ForbiddenError: Valid claim lacking the privilege.
            NotFoundError: Target absent from the caller's view.
        """
        decision = self.authorize(claim, action, target, fields)
        if isinstance(decision, Allow):
            return decision

        logger.info(
            "authorization_denied",
            user_id=str(claim.user_id) if claim else None,
            role=claim.role.value if claim else None,
            action=action.value,
            resource=target.kind.value,
            resource_id=str(target.id) if target.id else None,
            reason=decision.reason.value,
        )
        if decision.reason == DenyReason.UNAUTHORIZED:
            raise UnauthorizedError(decision.message)
        if decision.reason == DenyReason.NOT_FOUND:
            raise NotFoundError(target.kind.label, message=decision.message)
        raise ForbiddenError(decision.message)

    def _check_tenant_scope(self, claim: Claim, action: Action, target: Target) -> Deny | None:
        not_found = Deny(DenyReason.NOT_FOUND, f"{target.kind.label} not found")

        if target.kind == ResourceKind.TENANT:
            if claim.role == Role.SUPER_ADMIN:
                return None
            if claim.tenant_id is None or claim.tenant_id != target.tenant_id:
                return not_found
            return None

        if claim.role == Role.SUPER_ADMIN:
            if action == Action.CREATE:
                return Deny(
                    DenyReason.FORBIDDEN,
                    "Super admins cannot create tenant-scoped resources",
                )
            return not_found

        if claim.tenant_id is None or claim.tenant_id != target.tenant_id:
            return not_found
        return None

    def _authorize_update(
        self,
        claim: Claim,
        target: Target,
        fields: frozenset[str] | set[str] | None,
    ) -> Decision:
        mask = FIELD_MASKS.get((claim.role, target.kind), frozenset())
        violation = "You do not have permission to update these fields"

        if target.kind == ResourceKind.TENANT:
            violation = "Only super admins can change subscription settings"

        elif target.kind == ResourceKind.USER:
            if claim.role == Role.USER:
                if target.id != claim.user_id:
                    return Deny(DenyReason.FORBIDDEN, "You can only update your own profile")
                violation = "You can only update your full name"
            elif target.id == claim.user_id:
                mask = SELF_ADMIN_MASK
                violation = "You cannot change your own role or active status"

        elif claim.role == Role.USER:
            if target.owner_id == claim.user_id:
                pass
            elif target.kind == ResourceKind.TASK and target.assignee_id == claim.user_id:
                mask = ASSIGNEE_TASK_MASK
                violation = "Assignees can only update task status"
            else:
                return Deny(
                    DenyReason.FORBIDDEN,
                    f"You can only update {target.kind.value}s you created",
                )

        requested = frozenset(fields or ())
        disallowed = requested - mask
        if disallowed:
            return Deny(DenyReason.FORBIDDEN, f"{violation}: {', '.join(sorted(disallowed))}")
        return Allow(field_mask=mask)


def _forbidden_message(action: Action, kind: ResourceKind) -> str:
    if action == Action.LIST:
        return f"You do not have permission to list {kind.value}s"
    return f"You do not have permission to {action.value} this {kind.value}"
