"""Data models for actions held by the Safety Switch.

This module defines the records that flow through the gate: severities,
lifecycle statuses, parameters, security warnings, impacts, the pending
action itself and the outcome reported by the executor.
"""

import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    """Ordered risk classification for a proposed action.

    Severity determines how much friction the operator faces: every action
    needs a confirmation, high and critical ones need the literal phrase.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Position of this severity in the low < critical ordering."""
        return _SEVERITY_ORDER.index(self)

    @property
    def requires_enhanced_confirmation(self) -> bool:
        """Check if confirming requires the literal confirmation phrase.

        Returns:
            bool: True for HIGH and CRITICAL
        """
        return self in (Severity.HIGH, Severity.CRITICAL)

    def __str__(self) -> str:
        """String representation of severity."""
        return self.value


_SEVERITY_ORDER = [Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL]


class ActionType(str, Enum):
    """Known kinds of side-effecting actions."""

    WRITE_FILE = "write-file"
    INSTALL_PACKAGE = "install-package"
    RUN_SHELL_COMMAND = "run-shell-command"

    @classmethod
    def parse(cls, name: str | None) -> "ActionType | None":
        """Resolve a tool name to a known action type.

        Accepts both the canonical kebab-case names and the tool names used
        by the originator (``writeFile``, ``executeShellCommand``...).

        Args:
            name: Tool or action type name

        Returns:
            ActionType | None: The action type, or None if unknown
        """
        if not name:
            return None
        try:
            return cls(name)
        except ValueError:
            return _TOOL_ALIASES.get(name)

    def __str__(self) -> str:
        return self.value


_TOOL_ALIASES = {
    "writeFile": ActionType.WRITE_FILE,
    "write_file": ActionType.WRITE_FILE,
    "installPackage": ActionType.INSTALL_PACKAGE,
    "install_package": ActionType.INSTALL_PACKAGE,
    "executeShellCommand": ActionType.RUN_SHELL_COMMAND,
    "executeTerminalCommand": ActionType.RUN_SHELL_COMMAND,
    "run_shell_command": ActionType.RUN_SHELL_COMMAND,
}


class ActionStatus(str, Enum):
    """Lifecycle status of an action.

    CONFIRMED is part of the logical lifecycle but never stored: the registry
    moves a confirmed action straight to EXECUTING.
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Check if no further transition is possible from this status."""
        return self in (ActionStatus.COMPLETED, ActionStatus.FAILED, ActionStatus.CANCELLED)

    def __str__(self) -> str:
        return self.value


class ActionParameter(BaseModel):
    """A single named parameter of a proposed action."""

    name: str = Field(..., description="Parameter name as sent by the originator")
    value: Any = Field(default=None, description="Parameter value")
    type: str = Field(..., description="Python type name of the value")
    sensitive: bool = Field(
        default=False,
        description="Whether the name or value looks credential-like",
    )
    description: str | None = Field(default=None, description="Human-readable meaning")


class SecurityWarning(BaseModel):
    """Advisory warning shown alongside an action. Never blocks execution."""

    level: Literal["warning", "danger", "critical"]
    message: str
    recommendation: str | None = None


class ActionImpact(BaseModel):
    """What an action touches and whether it can be undone."""

    description: str
    affects: list[str] = Field(default_factory=list)
    reversible: bool = False
    risk_level: Severity = Severity.MEDIUM


class ActionRequest(BaseModel):
    """Submission payload from the action originator.

    Mirrors a tool call: the tool name, a free-form parameter bag and an
    optional correlation id.
    """

    model_config = ConfigDict(populate_by_name=True)

    tool_name: str = Field(..., min_length=1, description="Action kind or originator tool name")
    parameters: dict[str, Any] = Field(default_factory=dict)
    request_id: str | None = Field(
        default=None,
        alias="requestId",
        description="Correlation id from the originator",
    )


def new_action_id() -> str:
    """Generate a unique, opaque action id."""
    return f"action_{uuid.uuid4().hex}"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


class PendingAction(BaseModel):
    """An action held by the gate.

    Instances are frozen. Status changes are applied by the registry, which
    replaces the stored instance with an updated copy. Severity and impact
    are computed once at submission and carried over unchanged.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_action_id)
    type: str
    title: str
    description: str
    parameters: list[ActionParameter] = Field(default_factory=list)
    impact: ActionImpact
    security_warnings: list[SecurityWarning] = Field(default_factory=list)
    severity: Severity
    status: ActionStatus = ActionStatus.PENDING
    created_at: datetime = Field(default_factory=utc_now)
    request_id: str | None = None
    original_request: dict[str, Any] | None = None

    decided_by: str | None = None
    decided_at: datetime | None = None
    reason: str | None = None

    @property
    def requires_enhanced_confirmation(self) -> bool:
        """Check if this action needs the literal confirmation phrase."""
        return self.severity.requires_enhanced_confirmation

    def parameter(self, *names: str) -> Any:
        """Look up the first parameter matching one of ``names``.

        Args:
            *names: Candidate parameter names, in order of preference

        Returns:
            Any: The parameter value, or None if absent
        """
        return find_parameter_value(self.parameters, *names)

    def with_status(self, status: ActionStatus, **changes: Any) -> "PendingAction":
        """Return a copy of this action with a new status.

        Args:
            status: The new status
            **changes: Decision metadata (decided_by, decided_at, reason)

        Returns:
            PendingAction: Updated copy
        """
        return self.model_copy(update={"status": status, **changes})


def find_parameter_value(parameters: list[ActionParameter], *names: str) -> Any:
    """Return the value of the first parameter whose name is in ``names``."""
    by_name = {p.name: p.value for p in parameters}
    for name in names:
        if name in by_name:
            return by_name[name]
    return None


class ActionResult(BaseModel):
    """Outcome of an action as recorded in the result ledger."""

    success: bool = Field(..., description="Whether the action succeeded")
    result: str | None = Field(default=None, description="Short result summary")
    error: str | None = Field(default=None, description="Error message if failed")
    duration: float | None = Field(default=None, description="Execution time in seconds", ge=0)
    output: dict[str, Any] | None = Field(default=None, description="Executor-specific output")

    @classmethod
    def success_result(cls, result: str | None = None, **kwargs: Any) -> "ActionResult":
        """Create a successful result.

        Args:
            result: Short result summary
            **kwargs: duration / output

        Returns:
            ActionResult: Successful result
        """
        return cls(success=True, result=result, **kwargs)

    @classmethod
    def error_result(cls, error: str, **kwargs: Any) -> "ActionResult":
        """Create a failed result.

        Args:
            error: Error message
            **kwargs: duration / output

        Returns:
            ActionResult: Failed result
        """
        return cls(success=False, error=error, **kwargs)

    def __str__(self) -> str:
        if self.success:
            return f"Success: {self.result or 'ok'}"
        return f"Error: {self.error}"
