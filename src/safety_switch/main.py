"""Main entry point for the Safety Switch CLI.

This module provides a small command-line review surface using Click: it
classifies ad-hoc actions and walks an operator through a batch of proposed
tool calls, driving the confirmation gate exactly as any other UI would.
"""

import asyncio
import json
from pathlib import Path
from typing import Any

import click
from rich import box
from rich.table import Table

from safety_switch import __version__
from safety_switch.actions.models import ActionResult, PendingAction
from safety_switch.approval import (
    ConfirmationGate,
    DecisionOutcome,
    PendingLimitError,
    RiskClassifier,
)
from safety_switch.config import get_settings
from safety_switch.logging import setup_logging
from safety_switch.ui.console import SwitchConsole
from safety_switch.ui.prompts import confirm, prompt

REVIEW_ENDED = "review ended without a decision"


@click.group()
@click.option("--debug", "-d", is_flag=True, help="Enable debug logging")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.pass_context
def cli(ctx: click.Context, debug: bool, no_color: bool):
    """Safety Switch - review agent actions before they run."""
    settings = get_settings()
    setup_logging(
        level="DEBUG" if debug or settings.safety_debug_mode else settings.safety_log_level,
        log_file=settings.safety_log_file,
    )

    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["no_color"] = no_color


@cli.command()
@click.argument("action_type")
@click.option(
    "--param",
    "-p",
    "params",
    multiple=True,
    help="Action parameter as key=value (values may be JSON)",
)
@click.pass_context
def classify(ctx: click.Context, action_type: str, params: tuple[str, ...]):
    """Classify an action without submitting it."""
    console = SwitchConsole(no_color=ctx.obj["no_color"])

    try:
        parameters = parse_params(params)
    except click.BadParameter as e:
        console.error(str(e))
        raise SystemExit(2)

    assessment = console.classifier.classify(action_type, parameters)
    console.print(console.assessment_panel(action_type, assessment))


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--operator", "-o", default=None, help="Operator name recorded with decisions")
@click.pass_context
def review(ctx: click.Context, path: Path, operator: str | None):
    """Review a JSON file of proposed tool calls."""
    console = SwitchConsole(no_color=ctx.obj["no_color"])

    try:
        tool_calls = load_tool_calls(path)
    except (json.JSONDecodeError, ValueError) as e:
        console.error(f"Could not read {path}: {e}")
        raise SystemExit(1)

    asyncio.run(run_review(tool_calls, console, operator))


@cli.command()
@click.pass_context
def config(ctx: click.Context):
    """Show current configuration."""
    settings = get_settings()
    table = Table(title="Safety Switch configuration", box=box.ROUNDED)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    for key, value in settings.model_dump_safe().items():
        table.add_row(key, value)

    SwitchConsole(no_color=ctx.obj["no_color"]).print(table)


@cli.command()
def version():
    """Show version information."""
    click.echo(f"Safety Switch version {__version__}")


def parse_params(raw: tuple[str, ...]) -> dict[str, Any]:
    """Parse ``key=value`` options into a parameter dict.

    Values that parse as JSON (numbers, lists, booleans) are decoded, all
    others are kept as strings.

    Raises:
        click.BadParameter: If an option has no ``=``
    """
    params: dict[str, Any] = {}
    for item in raw:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Expected key=value, got '{item}'")
        try:
            params[key] = json.loads(value)
        except json.JSONDecodeError:
            params[key] = value
    return params


def load_tool_calls(path: Path) -> list[dict[str, Any]]:
    """Load tool calls from a JSON file.

    Accepts either a list of tool calls or an object with an ``actions`` list.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("actions", [])
    if not isinstance(data, list):
        raise ValueError("expected a list of tool calls")
    return data


def dry_run_executor(action: PendingAction) -> ActionResult:
    """Executor used by the review CLI: reports success without running anything."""
    return ActionResult.success_result(
        f"dry run: {action.title}",
        output={"type": action.type, "executed": False},
    )


async def run_review(
    tool_calls: list[dict[str, Any]],
    console: SwitchConsole,
    operator: str | None = None,
) -> ConfirmationGate:
    """Submit tool calls and ask the operator about each pending action.

    Args:
        tool_calls: Raw tool calls (tool_name, parameters, requestId)
        console: Console for display and prompts
        operator: Operator name recorded with each decision

    Returns:
        ConfirmationGate: The gate after the review, for inspection
    """
    settings = get_settings()
    gate = ConfirmationGate(settings, executor=dry_run_executor)

    for call in tool_calls:
        try:
            gate.submit(call)
        except PendingLimitError as e:
            console.warning(str(e))
            break
        except ValueError as e:
            console.error(f"Skipping invalid tool call: {e}")

    for action in gate.pending:
        console.print(console.action_panel(action, settings.confirmation_phrase))

        if not confirm("Approve this action?", default=False, console=console.console):
            console.decision(gate.cancel(action.id, cancelled_by=operator))
            continue

        phrase = None
        if action.requires_enhanced_confirmation:
            phrase = prompt(
                f"Type {settings.confirmation_phrase} to proceed",
                default="",
                console=console.console,
            )

        result = await gate.confirm(action.id, phrase=phrase, confirmed_by=operator)
        console.decision(result)
        if result.outcome == DecisionOutcome.PHRASE_REJECTED:
            console.decision(gate.cancel(action.id, reason=REVIEW_ENDED, cancelled_by=operator))

    gate.cancel_all_pending(REVIEW_ENDED)
    await gate.drain()

    console.print(console.partitions_table(gate.pending, gate.executing, gate.completed))
    status = gate.status()
    console.success(
        f"Reviewed {status.completed} action(s); {status.executing} still executing"
    )
    gate.close()
    return gate


if __name__ == "__main__":
    cli()
