"""Entitlements module for plan-based quota gating."""

from taskhive.core.entitlements.features import (
    DEFAULT_PLAN,
    PLAN_LIMITS,
    Feature,
    Plan,
    limits_for,
)

__all__ = [
    "DEFAULT_PLAN",
    "Feature",
    "PLAN_LIMITS",
    "Plan",
    "limits_for",
]
