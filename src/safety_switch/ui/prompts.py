"""Operator input handling for the review CLI.

This module provides functions for collecting operator decisions with
proper formatting, including yes/no confirmations and free-text prompts.
"""

from rich.console import Console
from rich.prompt import Confirm, Prompt


# Console instance for prompts
_prompt_console = Console()


def confirm(
    message: str,
    default: bool = False,
    console: Console | None = None,
) -> bool:
    """Ask the operator for yes/no confirmation.

    Args:
        message: The question to ask
        default: Default value if the operator just presses Enter
        console: Optional console instance (uses default if None)

    Returns:
        bool: True if the operator confirmed, False otherwise
    """
    console = console or _prompt_console

    return Confirm.ask(
        f"[yellow]?[/yellow] {message}",
        default=default,
        console=console,
    )


def prompt(
    message: str,
    default: str = "",
    console: Console | None = None,
) -> str:
    """Get text input from the operator.

    Args:
        message: Prompt message
        default: Default value if the operator just presses Enter
        console: Optional console instance (uses default if None)

    Returns:
        str: Operator's input
    """
    console = console or _prompt_console

    return Prompt.ask(
        f"[cyan]>[/cyan] {message}",
        default=default,
        console=console,
    )
