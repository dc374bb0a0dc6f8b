"""RBAC core domain."""

from taskhive.core.rbac.policy import (
    ASSIGNEE_TASK_MASK,
    FIELD_MASKS,
    ROLE_CAPABILITIES,
    PolicyEngine,
)
from taskhive.core.rbac.types import (
    Action,
    Allow,
    Decision,
    Deny,
    DenyReason,
    ResourceKind,
    Target,
)

__all__ = [
    "ASSIGNEE_TASK_MASK",
    "Action",
    "Allow",
    "Decision",
    "Deny",
    "DenyReason",
    "FIELD_MASKS",
    "PolicyEngine",
    "ROLE_CAPABILITIES",
    "ResourceKind",
    "Target",
]
