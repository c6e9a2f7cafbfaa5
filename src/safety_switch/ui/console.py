"""Rich console wrapper for the Safety Switch review surface.

This module provides the SwitchConsole class which renders pending actions,
risk assessments and the gate's partitions with consistent styling.
"""

from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from safety_switch.actions.models import ActionParameter, PendingAction, Severity
from safety_switch.approval.classifier import RiskAssessment, RiskClassifier
from safety_switch.approval.gate import DecisionOutcome, DecisionResult


SWITCH_THEME = Theme({
    "switch.primary": "cyan",
    "switch.success": "green",
    "switch.error": "red bold",
    "switch.warning": "yellow",
    "switch.info": "blue",
    "switch.dim": "dim",
})

_WARNING_STYLES = {
    "warning": "yellow",
    "danger": "red",
    "critical": "red bold",
}

_DECISION_STYLES = {
    DecisionOutcome.CONFIRMED: "switch.success",
    DecisionOutcome.COMPLETED: "switch.success",
    DecisionOutcome.CANCELLED: "switch.warning",
    DecisionOutcome.NOT_PENDING: "switch.dim",
    DecisionOutcome.NOT_EXECUTING: "switch.dim",
    DecisionOutcome.PHRASE_REJECTED: "switch.error",
    DecisionOutcome.EXECUTION_FAILED: "switch.error",
}

MASK = "********"


class SwitchConsole:
    """Rich console with Safety Switch styling.

    Attributes:
        console: The underlying Rich Console instance
        classifier: Classifier used for severity colors and notes
    """

    def __init__(
        self,
        no_color: bool = False,
        classifier: RiskClassifier | None = None,
        console: Console | None = None,
    ):
        """Initialize the console.

        Args:
            no_color: Disable colored output
            classifier: Classifier for styling helpers (creates default if None)
            console: Pre-built Rich console (mainly for tests)
        """
        self.console = console or Console(
            theme=SWITCH_THEME,
            highlight=False,
            no_color=no_color,
        )
        self.classifier = classifier or RiskClassifier()

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Print to console (passthrough to Rich Console)."""
        self.console.print(*args, **kwargs)

    def action_panel(self, action: PendingAction, phrase: str = "CONFIRM") -> Panel:
        """Format a pending action as an approval panel.

        Args:
            action: Action awaiting a decision
            phrase: Confirmation phrase to show for enhanced confirmation

        Returns:
            Panel: Formatted approval prompt
        """
        risk_color = self.classifier.get_risk_color(action.severity)
        risk_emoji = self.classifier.get_risk_emoji(action.severity)

        content = Text()
        content.append("📋 Action: ", style="bold")
        content.append(f"{action.description}\n", style="white")
        content.append(f"{risk_emoji} Severity: ", style="bold")
        content.append(f"{action.severity.value.upper()}\n", style=risk_color)
        content.append("↩ Reversible: ", style="bold")
        content.append(f"{'yes' if action.impact.reversible else 'no'}\n\n")

        if action.parameters:
            content.append("Parameters:\n", style="bold")
            for param in action.parameters:
                content.append(f"  {param.name}: ", style="cyan")
                content.append(f"{format_parameter(param)}\n", style="dim")
            content.append("\n")

        if action.impact.affects:
            content.append("Affects:\n", style="bold")
            for resource in action.impact.affects:
                content.append(f"  • {resource}\n", style="dim")
            content.append("\n")

        self._append_warnings(content, action.security_warnings)

        if action.requires_enhanced_confirmation:
            content.append(
                f"Type {phrase} to confirm this {action.severity.value} risk action\n",
                style="red bold",
            )

        border_style = "red bold" if action.severity == Severity.CRITICAL else risk_color
        return Panel(
            content,
            title=f"[bold]{risk_emoji} {action.title}[/bold]",
            subtitle=f"[dim]{action.id}[/dim]",
            border_style=border_style,
            padding=(1, 2),
        )

    def assessment_panel(self, action_type: str, assessment: RiskAssessment) -> Panel:
        """Format a bare risk assessment (no registered action).

        Args:
            action_type: Action kind that was classified
            assessment: Classifier output

        Returns:
            Panel: Formatted assessment
        """
        risk_color = self.classifier.get_risk_color(assessment.severity)

        content = Text()
        content.append("Severity: ", style="bold")
        content.append(f"{assessment.severity.value.upper()}\n", style=risk_color)
        content.append("Impact: ", style="bold")
        content.append(f"{assessment.impact.description}\n")
        content.append("Reversible: ", style="bold")
        content.append(f"{'yes' if assessment.impact.reversible else 'no'}\n\n")

        for note in self.classifier.get_severity_notes(assessment.severity):
            content.append(f"  • {note}\n", style="dim")
        content.append("\n")

        self._append_warnings(content, assessment.warnings)

        return Panel(
            content,
            title=f"[bold]Risk assessment: {action_type}[/bold]",
            border_style=risk_color,
            padding=(1, 2),
        )

    def partitions_table(
        self,
        pending: list[PendingAction],
        executing: list[PendingAction],
        completed: list[PendingAction],
    ) -> Table:
        """Format the gate's three partitions as a single table."""
        table = Table(title="Actions", box=box.ROUNDED, show_lines=False)
        table.add_column("Id", style="dim", no_wrap=True)
        table.add_column("Title", style="cyan")
        table.add_column("Severity")
        table.add_column("Status")

        for action in [*pending, *executing, *completed]:
            table.add_row(
                action.id,
                action.title,
                Text(action.severity.value, style=self.classifier.get_risk_color(action.severity)),
                action.status.value,
            )

        return table

    def decision(self, result: DecisionResult) -> None:
        """Display the outcome of a gate call."""
        style = _DECISION_STYLES.get(result.outcome, "switch.info")
        self.console.print(result.message, style=style)

    def error(self, message: str) -> None:
        self.console.print(f"✗ Error: {message}", style="switch.error")

    def warning(self, message: str) -> None:
        self.console.print(f"⚠ Warning: {message}", style="switch.warning")

    def success(self, message: str) -> None:
        self.console.print(f"✓ {message}", style="switch.success")

    def _append_warnings(self, content: Text, warnings: list) -> None:
        if not warnings:
            return
        content.append("Security warnings:\n", style="bold")
        for warning in warnings:
            style = _WARNING_STYLES.get(warning.level, "yellow")
            content.append(f"  [{warning.level.upper()}] {warning.message}\n", style=style)
            if warning.recommendation:
                content.append(f"      → {warning.recommendation}\n", style="dim")
        content.append("\n")


def format_parameter(param: ActionParameter, limit: int = 100) -> str:
    """Render a parameter value for display, masking sensitive ones.

    Args:
        param: Parameter to render
        limit: Maximum length before truncation

    Returns:
        str: Display string
    """
    if param.sensitive:
        return MASK
    value_str = str(param.value)
    if len(value_str) > limit:
        value_str = value_str[:limit] + "..."
    return value_str
