"""Subscription plans and the quota limits each one grants."""

from enum import Enum


class Feature(str, Enum):
    """Numeric limits that are gated by plan."""

    MAX_USERS = "max_users"
    MAX_PROJECTS = "max_projects"


class Plan(str, Enum):
    """Available subscription plans."""

    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"


# Plan limit definitions - what each plan includes
PLAN_LIMITS: dict[Plan, dict[Feature, int]] = {
    Plan.FREE: {
        Feature.MAX_USERS: 5,
        Feature.MAX_PROJECTS: 3,
    },
    Plan.PRO: {
        Feature.MAX_USERS: 25,
        Feature.MAX_PROJECTS: 15,
    },
    Plan.ENTERPRISE: {
        Feature.MAX_USERS: 100,
        Feature.MAX_PROJECTS: 50,
    },
}

# Self-registered tenants always start here
DEFAULT_PLAN = Plan.FREE


def limits_for(plan: Plan) -> tuple[int, int]:
    """Return (max_users, max_projects) for a plan."""
    limits = PLAN_LIMITS[plan]
    return limits[Feature.MAX_USERS], limits[Feature.MAX_PROJECTS]
