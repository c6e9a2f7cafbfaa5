"""Risk classification for proposed actions.

This module provides the RiskClassifier which assigns a severity, an impact
description and advisory security warnings to an action before it is shown
to the operator.
"""

import logging
from typing import Any

from pydantic import BaseModel, Field

from safety_switch.actions.builders import (
    CONTENT_PARAMS,
    PACKAGE_PARAMS,
    PATH_PARAMS,
    build_parameters,
    full_command,
)
from safety_switch.actions.models import (
    ActionImpact,
    ActionParameter,
    ActionType,
    SecurityWarning,
    Severity,
    find_parameter_value,
)
from safety_switch.approval import rules

logger = logging.getLogger(__name__)

PACKAGE_INSTALL_AFFECTS = ["package.json", "package-lock.json", "node_modules/"]


class RiskAssessment(BaseModel):
    """Result of classifying an action."""

    severity: Severity = Field(..., description="Assessed severity")
    impact: ActionImpact = Field(..., description="What the action touches")
    warnings: list[SecurityWarning] = Field(
        default_factory=list,
        description="Advisory warnings shown to the operator",
    )

    @property
    def has_critical_warning(self) -> bool:
        """Check if any warning is at critical level."""
        return any(w.level == "critical" for w in self.warnings)


class RiskClassifier:
    """Classifier for assessing the risk of proposed actions.

    Classification is deterministic and never raises: unknown action types,
    and any unexpected error while inspecting parameters, degrade to a
    medium severity with a generic impact.
    """

    def __init__(self, default_severity: Severity = Severity.MEDIUM):
        """Initialize the risk classifier.

        Args:
            default_severity: Severity for unknown action types
        """
        self.default_severity = default_severity
        # Operator-facing notes per severity level
        self._severity_notes = {
            Severity.LOW: [
                "Routine change with limited scope",
            ],
            Severity.MEDIUM: [
                "Modifies project files or state",
                "Requires confirmation",
            ],
            Severity.HIGH: [
                "Touches configuration, secrets or dependencies",
                "Requires typing the confirmation phrase",
            ],
            Severity.CRITICAL: [
                "Potentially destructive or privileged operation",
                "Effects may not be recoverable",
                "Requires typing the confirmation phrase",
            ],
        }

    def classify(
        self,
        action_type: str,
        parameters: list[ActionParameter] | dict[str, Any],
    ) -> RiskAssessment:
        """Classify an action.

        Args:
            action_type: Action kind or originator tool name
            parameters: Action parameters (list or raw dict)

        Returns:
            RiskAssessment: Severity, impact and warnings
        """
        try:
            params = self._normalize(action_type, parameters)
            severity = self.classify_severity(action_type, params)
            assessment = RiskAssessment(
                severity=severity,
                impact=self.get_impact(action_type, params, severity),
                warnings=self.get_security_warnings(action_type, params),
            )
        except Exception as e:
            logger.warning(f"Failed to classify action '{action_type}', using default: {e}")
            assessment = self._fallback(action_type)

        logger.debug(
            f"Classified action '{action_type}' as {assessment.severity.value} "
            f"with {len(assessment.warnings)} warning(s)"
        )
        return assessment

    def classify_severity(
        self,
        action_type: str,
        parameters: list[ActionParameter],
    ) -> Severity:
        """Determine the severity of an action.

        Args:
            action_type: Action kind or originator tool name
            parameters: Action parameters

        Returns:
            Severity: Assessed severity
        """
        kind = ActionType.parse(action_type)

        if kind == ActionType.WRITE_FILE:
            return rules.first_match(rules.WRITE_FILE_SEVERITY_RULES, self._path(parameters))

        if kind == ActionType.INSTALL_PACKAGE:
            # Dependency graph mutations are always high, whatever the package
            return Severity.HIGH

        if kind == ActionType.RUN_SHELL_COMMAND:
            return rules.first_match(rules.SHELL_COMMAND_SEVERITY_RULES, full_command(parameters))

        return self.default_severity

    def get_security_warnings(
        self,
        action_type: str,
        parameters: list[ActionParameter],
    ) -> list[SecurityWarning]:
        """Generate advisory security warnings for an action.

        Warnings never influence severity.

        Args:
            action_type: Action kind or originator tool name
            parameters: Action parameters

        Returns:
            list[SecurityWarning]: Warnings, most specific last
        """
        kind = ActionType.parse(action_type)
        warnings: list[SecurityWarning] = []

        if kind == ActionType.WRITE_FILE:
            warnings.extend(rules.matching_warnings(rules.WRITE_FILE_PATH_WARNINGS, self._path(parameters)))
            content = find_parameter_value(parameters, *CONTENT_PARAMS)
            if isinstance(content, str):
                warnings.extend(rules.matching_warnings(rules.WRITE_FILE_CONTENT_WARNINGS, content))

        elif kind == ActionType.INSTALL_PACKAGE:
            package = find_parameter_value(parameters, *PACKAGE_PARAMS)
            warnings.extend(rules.matching_warnings(rules.INSTALL_PACKAGE_WARNINGS, str(package or "")))

        elif kind == ActionType.RUN_SHELL_COMMAND:
            warnings.extend(rules.matching_warnings(rules.SHELL_COMMAND_WARNINGS, full_command(parameters)))

        sensitive = [p.name for p in parameters if p.sensitive]
        if sensitive:
            warnings.append(
                SecurityWarning(
                    level="warning",
                    message=f"Parameters look sensitive: {', '.join(sensitive)}",
                    recommendation="Values are masked in the preview; verify them before confirming",
                )
            )

        return warnings

    def get_impact(
        self,
        action_type: str,
        parameters: list[ActionParameter],
        severity: Severity,
    ) -> ActionImpact:
        """Describe what an action affects and whether it can be undone.

        Args:
            action_type: Action kind or originator tool name
            parameters: Action parameters
            severity: Severity already assessed for the action

        Returns:
            ActionImpact: Impact description
        """
        kind = ActionType.parse(action_type)

        if kind == ActionType.WRITE_FILE:
            path = self._path(parameters) or "unknown path"
            return ActionImpact(
                description=f"Creates or overwrites {path}",
                affects=[path],
                reversible=True,
                risk_level=severity,
            )

        if kind == ActionType.INSTALL_PACKAGE:
            package = find_parameter_value(parameters, *PACKAGE_PARAMS) or "unknown package"
            return ActionImpact(
                description=f"Adds {package} to the project dependencies",
                affects=list(PACKAGE_INSTALL_AFFECTS),
                reversible=True,
                risk_level=severity,
            )

        if kind == ActionType.RUN_SHELL_COMMAND:
            return ActionImpact(
                description=f"Runs `{full_command(parameters)}` in the project shell",
                affects=["working directory", "system state"],
                reversible=False,
                risk_level=severity,
            )

        return self._generic_impact(action_type, severity)

    def should_require_enhanced_confirmation(
        self,
        action_type: str,
        parameters: list[ActionParameter] | dict[str, Any],
    ) -> bool:
        """Check if an action requires the literal confirmation phrase.

        Args:
            action_type: Action kind or originator tool name
            parameters: Action parameters

        Returns:
            bool: True for high and critical actions
        """
        return self.classify(action_type, parameters).severity.requires_enhanced_confirmation

    def get_severity_notes(self, severity: Severity) -> list[str]:
        """Get operator-facing notes explaining a severity level."""
        return list(self._severity_notes.get(severity, []))

    def get_risk_color(self, severity: Severity) -> str:
        """Get the color code for a severity.

        Args:
            severity: Severity to get color for

        Returns:
            str: Rich color code
        """
        return {
            Severity.LOW: "green",
            Severity.MEDIUM: "yellow",
            Severity.HIGH: "red",
            Severity.CRITICAL: "red bold",
        }[severity]

    def get_risk_emoji(self, severity: Severity) -> str:
        """Get an emoji representing the severity.

        Args:
            severity: Severity to get emoji for

        Returns:
            str: Emoji character
        """
        return {
            Severity.LOW: "✓",
            Severity.MEDIUM: "⚠️",
            Severity.HIGH: "⚠️",
            Severity.CRITICAL: "🚨",
        }[severity]

    def _normalize(
        self,
        action_type: str,
        parameters: list[ActionParameter] | dict[str, Any],
    ) -> list[ActionParameter]:
        if isinstance(parameters, dict):
            return build_parameters(parameters, ActionType.parse(action_type))
        return list(parameters)

    def _path(self, parameters: list[ActionParameter]) -> str:
        value = find_parameter_value(parameters, *PATH_PARAMS)
        return str(value) if value is not None else ""

    def _generic_impact(self, action_type: str, severity: Severity) -> ActionImpact:
        return ActionImpact(
            description=f"Performs {action_type or 'an unknown'} action with the supplied parameters",
            affects=[],
            reversible=False,
            risk_level=severity,
        )

    def _fallback(self, action_type: str) -> RiskAssessment:
        return RiskAssessment(
            severity=self.default_severity,
            impact=self._generic_impact(action_type, self.default_severity),
            warnings=[],
        )
