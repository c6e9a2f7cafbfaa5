"""Action records and builders for the Safety Switch."""

from safety_switch.actions.models import (
    ActionImpact,
    ActionParameter,
    ActionRequest,
    ActionResult,
    ActionStatus,
    ActionType,
    PendingAction,
    SecurityWarning,
    Severity,
)
from safety_switch.actions.builders import build_parameters, is_sensitive_parameter

__all__ = [
    "ActionImpact",
    "ActionParameter",
    "ActionRequest",
    "ActionResult",
    "ActionStatus",
    "ActionType",
    "PendingAction",
    "SecurityWarning",
    "Severity",
    "build_parameters",
    "is_sensitive_parameter",
]
