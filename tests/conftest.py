"""Pytest configuration and fixtures for Safety Switch tests."""

import pytest

from safety_switch.approval import ConfirmationGate
from safety_switch.config import Settings


@pytest.fixture
def test_settings():
    """Create test settings isolated from the environment's .env file."""
    return Settings(
        _env_file=None,
        safety_switch_enabled=True,
        confirmation_phrase="CONFIRM",
        max_pending_actions=10,
        confirmation_timeout=None,
        retain_results_on_clear=False,
        safety_log_level="DEBUG",
    )


@pytest.fixture
def gate(test_settings):
    """Create a gate without an executor."""
    gate = ConfirmationGate(test_settings)
    yield gate
    gate.close()


@pytest.fixture
def write_file_call():
    """Tool call writing a source file (medium severity)."""
    return {
        "tool_name": "write-file",
        "parameters": {"filePath": "src/app.ts", "content": "export const x = 1;"},
        "requestId": "req-1",
    }


@pytest.fixture
def env_file_call():
    """Tool call writing an environment file (high severity)."""
    return {
        "tool_name": "write-file",
        "parameters": {"filePath": ".env", "content": "DEBUG=1"},
    }


@pytest.fixture
def install_call():
    """Tool call installing a package (always high severity)."""
    return {
        "tool_name": "install-package",
        "parameters": {"packageName": "left-pad"},
    }


@pytest.fixture
def destructive_shell_call():
    """Tool call running a destructive shell command (critical severity)."""
    return {
        "tool_name": "run-shell-command",
        "parameters": {"command": "sudo rm -rf node_modules"},
    }
