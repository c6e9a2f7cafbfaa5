"""Approval system holding risky actions until an operator confirms them.

This package provides risk classification, the pending action registry,
the result ledger and the confirmation gate tying them together.
"""

from safety_switch.approval.classifier import RiskAssessment, RiskClassifier
from safety_switch.approval.exceptions import (
    ActionCancelledError,
    ActionNotFoundError,
    ActionTimeoutError,
    DuplicateActionError,
    PendingLimitError,
    SafetySwitchError,
)
from safety_switch.approval.gate import (
    ConfirmationGate,
    DecisionOutcome,
    DecisionResult,
    GateEvent,
    GateStatus,
)
from safety_switch.approval.ledger import ResultLedger
from safety_switch.approval.registry import ActionEvent, ActionRegistry, RegistryState

__all__ = [
    "RiskAssessment",
    "RiskClassifier",
    "ActionCancelledError",
    "ActionNotFoundError",
    "ActionTimeoutError",
    "DuplicateActionError",
    "PendingLimitError",
    "SafetySwitchError",
    "ConfirmationGate",
    "DecisionOutcome",
    "DecisionResult",
    "GateEvent",
    "GateStatus",
    "ResultLedger",
    "ActionEvent",
    "ActionRegistry",
    "RegistryState",
]
