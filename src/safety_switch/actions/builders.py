"""Helpers for turning an originator's tool call into action fields.

Parameter descriptions, sensitivity detection, titles and descriptions are
derived here so the gate only has to stitch them together.
"""

from pathlib import PurePosixPath
from typing import Any

from safety_switch.actions.models import ActionParameter, ActionType, find_parameter_value

SENSITIVE_TOKENS = ("password", "token", "key", "secret", "auth")

PATH_PARAMS = ("filePath", "file_path", "path")
CONTENT_PARAMS = ("content",)
PACKAGE_PARAMS = ("packageName", "package_name", "package")
COMMAND_PARAMS = ("command", "cmd")
ARGS_PARAMS = ("args",)

_PARAMETER_DESCRIPTIONS: dict[ActionType, dict[str, str]] = {
    ActionType.WRITE_FILE: {
        "filePath": "Path where the file will be created or overwritten",
        "content": "Content that will be written to the file",
        "options": "Additional options for file writing",
    },
    ActionType.INSTALL_PACKAGE: {
        "packageName": "Name of the package to install",
        "version": "Requested package version",
        "options": "Additional options for package installation",
    },
    ActionType.RUN_SHELL_COMMAND: {
        "command": "Shell command to execute",
        "args": "Arguments to pass to the command",
        "options": "Additional options for command execution",
    },
}


def is_sensitive_parameter(name: str, value: Any) -> bool:
    """Check whether a parameter looks like it carries a credential.

    Args:
        name: Parameter name
        value: Parameter value (only strings are inspected)

    Returns:
        bool: True if the name or string value contains a credential token
    """
    lowered = name.lower()
    if any(token in lowered for token in SENSITIVE_TOKENS):
        return True

    if isinstance(value, str):
        value_lower = value.lower()
        return any(token in value_lower for token in SENSITIVE_TOKENS)

    return False


def describe_parameter(name: str, action_type: ActionType | None) -> str:
    """Get the default description for a parameter of a known action kind."""
    if action_type is None:
        return "Parameter for the action"
    # Accept snake_case spellings of the known camelCase names
    camel = _snake_to_camel(name)
    descriptions = _PARAMETER_DESCRIPTIONS.get(action_type, {})
    return descriptions.get(name) or descriptions.get(camel) or "Parameter for the action"


def build_parameters(
    raw_params: dict[str, Any],
    action_type: ActionType | None,
) -> list[ActionParameter]:
    """Convert a raw parameter bag into ordered ActionParameters.

    Args:
        raw_params: Parameters as sent by the originator
        action_type: Resolved action type (None if unknown)

    Returns:
        list[ActionParameter]: Parameters in submission order
    """
    return [
        ActionParameter(
            name=name,
            value=value,
            type=type(value).__name__,
            sensitive=is_sensitive_parameter(name, value),
            description=describe_parameter(name, action_type),
        )
        for name, value in raw_params.items()
    ]


def full_command(parameters: list[ActionParameter]) -> str:
    """Join the command and its args into a single command line."""
    command = find_parameter_value(parameters, *COMMAND_PARAMS) or ""
    args = find_parameter_value(parameters, *ARGS_PARAMS)
    if isinstance(args, (list, tuple)):
        args = " ".join(str(a) for a in args)
    return f"{command} {args or ''}".strip()


def action_title(tool_name: str, action_type: ActionType | None, parameters: list[ActionParameter]) -> str:
    """Build a short title for an action."""
    if action_type == ActionType.WRITE_FILE:
        file_path = find_parameter_value(parameters, *PATH_PARAMS)
        name = PurePosixPath(str(file_path)).name if file_path else "Unknown"
        return f"Write File: {name}"

    if action_type == ActionType.INSTALL_PACKAGE:
        package = find_parameter_value(parameters, *PACKAGE_PARAMS)
        return f"Install Package: {package or 'Unknown'}"

    if action_type == ActionType.RUN_SHELL_COMMAND:
        command = find_parameter_value(parameters, *COMMAND_PARAMS)
        return f"Execute Command: {command or 'Unknown'}"

    return f"{tool_name}: Action"


def action_description(
    tool_name: str,
    action_type: ActionType | None,
    parameters: list[ActionParameter],
) -> str:
    """Build a one-sentence description of what an action will do."""
    if action_type == ActionType.WRITE_FILE:
        file_path = find_parameter_value(parameters, *PATH_PARAMS)
        content = find_parameter_value(parameters, *CONTENT_PARAMS)
        length = len(content) if isinstance(content, str) else 0
        return f"Create or overwrite file at {file_path} with {length} characters of content"

    if action_type == ActionType.INSTALL_PACKAGE:
        package = find_parameter_value(parameters, *PACKAGE_PARAMS)
        return f"Install package '{package}' and update project dependencies"

    if action_type == ActionType.RUN_SHELL_COMMAND:
        return f"Execute shell command: {full_command(parameters)}"

    return f"Perform {tool_name} action with the specified parameters"


def _snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)
