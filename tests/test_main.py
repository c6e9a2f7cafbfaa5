"""Tests for the command-line review surface."""

import json

import click
import pytest
from click.testing import CliRunner

from safety_switch import __version__, main
from safety_switch.actions.models import ActionStatus


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_cli(monkeypatch, test_settings):
    """Run commands against test settings without reconfiguring logging."""
    monkeypatch.setattr(main, "get_settings", lambda: test_settings)
    monkeypatch.setattr(main, "setup_logging", lambda **kwargs: None)


@pytest.fixture
def tool_calls_file(tmp_path):
    """A batch with one medium, one high and one low action."""
    path = tmp_path / "calls.json"
    path.write_text(
        json.dumps(
            {
                "actions": [
                    {"tool_name": "writeFile", "parameters": {"filePath": "src/app.ts", "content": "x"}},
                    {"tool_name": "installPackage", "parameters": {"packageName": "left-pad"}},
                    {"tool_name": "writeFile", "parameters": {"filePath": "README.md", "content": "hi"}},
                ]
            }
        )
    )
    return path


class TestCommands:
    """Test simple commands."""

    def test_version(self, runner):
        """Test the version command."""
        result = runner.invoke(main.cli, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_config(self, runner):
        """Test the config command."""
        result = runner.invoke(main.cli, ["config"])

        assert result.exit_code == 0
        assert "confirmation_phrase" in result.output
        assert "CONFIRM" in result.output

    def test_config_honours_no_color(self, runner, monkeypatch):
        """Test that --no-color reaches the config table's console."""
        created = []

        class RecordingConsole(main.SwitchConsole):
            def __init__(self, *args, **kwargs):
                created.append(kwargs)
                super().__init__(*args, **kwargs)

        monkeypatch.setattr(main, "SwitchConsole", RecordingConsole)

        result = runner.invoke(main.cli, ["--no-color", "config"])

        assert result.exit_code == 0
        assert created == [{"no_color": True}]

    def test_classify(self, runner):
        """Test classifying an ad-hoc action."""
        result = runner.invoke(
            main.cli,
            ["--no-color", "classify", "run-shell-command", "-p", "command=rm -rf build"],
        )

        assert result.exit_code == 0
        assert "CRITICAL" in result.output

    def test_classify_bad_param(self, runner):
        """Test that malformed parameters are rejected."""
        result = runner.invoke(main.cli, ["classify", "write-file", "-p", "filePath"])

        assert result.exit_code == 2
        assert "key=value" in result.output


class TestReview:
    """Test the interactive review command."""

    def test_review_batch(self, runner, tool_calls_file):
        """Test approving, phrase-confirming and denying actions."""
        result = runner.invoke(
            main.cli,
            ["--no-color", "review", str(tool_calls_file), "-o", "alice"],
            input="y\ny\nCONFIRM\nn\n",
        )

        assert result.exit_code == 0
        assert "Reviewed 3 action(s); 0 still executing" in result.output
        assert "Action cancelled" in result.output

    def test_review_wrong_phrase(self, runner, tool_calls_file):
        """Test that a wrong phrase ends in cancellation."""
        result = runner.invoke(
            main.cli,
            ["--no-color", "review", str(tool_calls_file)],
            input="y\ny\nconfirm\ny\n",
        )

        assert result.exit_code == 0
        assert "Confirmation rejected" in result.output
        assert main.REVIEW_ENDED in result.output

    def test_review_invalid_file(self, runner, tmp_path):
        """Test that unreadable files exit with an error."""
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        result = runner.invoke(main.cli, ["review", str(path)])

        assert result.exit_code == 1
        assert "Could not read" in result.output


class TestHelpers:
    """Test CLI helper functions."""

    def test_parse_params(self):
        """Test that JSON values are decoded and others kept as strings."""
        params = main.parse_params(("command=git", 'args=["status"]', "timeout=5"))

        assert params == {"command": "git", "args": ["status"], "timeout": 5}

    def test_parse_params_requires_equals(self):
        """Test the error for options without a value."""
        with pytest.raises(click.BadParameter):
            main.parse_params(("oops",))

    def test_load_tool_calls_list(self, tmp_path):
        """Test loading a plain list."""
        path = tmp_path / "calls.json"
        path.write_text(json.dumps([{"tool_name": "deploy"}]))

        assert main.load_tool_calls(path) == [{"tool_name": "deploy"}]

    def test_load_tool_calls_rejects_scalar(self, tmp_path):
        """Test that a non-list payload is rejected."""
        path = tmp_path / "calls.json"
        path.write_text("42")

        with pytest.raises(ValueError):
            main.load_tool_calls(path)

    @pytest.mark.asyncio
    async def test_run_review_skips_invalid_calls(self, monkeypatch, test_settings):
        """Test that invalid tool calls are skipped and the rest reviewed."""
        monkeypatch.setattr(main, "confirm", lambda *args, **kwargs: True)
        console = main.SwitchConsole(no_color=True)

        gate = await main.run_review(
            [{"parameters": {}}, {"tool_name": "write-file", "parameters": {"filePath": "a.md"}}],
            console,
            operator="bob",
        )

        assert len(gate.completed) == 1
        action = gate.completed[0]
        assert action.status == ActionStatus.COMPLETED
        assert action.decided_by == "bob"
        assert gate.get_result(action.id).output == {"type": "write-file", "executed": False}
