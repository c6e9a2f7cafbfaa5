"""Tests for classifier predicates and rule tables."""

import pytest

from safety_switch.actions.models import Severity
from safety_switch.approval import rules


class TestPathPredicates:
    """Test file path predicates."""

    @pytest.mark.parametrize(
        "path",
        ["package.json", "frontend/package.json", ".env", ".env.local", "config/app.yml", "tsconfig.json"],
    )
    def test_sensitive_paths(self, path):
        """Test paths that match a sensitive fragment."""
        assert rules.is_sensitive_path(path) is True

    def test_sensitive_path_case_insensitive(self):
        """Test that fragment matching ignores case."""
        assert rules.is_sensitive_path("src/Config.ts") is True

    @pytest.mark.parametrize("path", ["src/app.ts", "main.py", "lib/util.JS", "App.tsx"])
    def test_source_files(self, path):
        """Test recognised source code extensions."""
        assert rules.is_source_file(path) is True

    @pytest.mark.parametrize("path", ["README.md", "notes.txt", "image.png", ".env", "Makefile"])
    def test_non_source_files(self, path):
        """Test files that are not source code."""
        assert rules.is_source_file(path) is False

    def test_windows_separators(self):
        """Test that backslash paths still resolve their extension."""
        assert rules.is_source_file("src\\app.ts") is True

    def test_credentials_in_content(self):
        """Test credential detection in file content."""
        assert rules.looks_like_credentials("DB_PASSWORD=hunter2") is True
        assert rules.looks_like_credentials("console.log('hi')") is False


class TestCommandPredicates:
    """Test shell command predicates."""

    @pytest.mark.parametrize("command", ["rm -rf build", "sudo apt update", "git branch --delete x"])
    def test_destructive(self, command):
        """Test destructive command tokens."""
        assert rules.is_destructive_command(command) is True

    @pytest.mark.parametrize("command", ["git status", "npm test"])
    def test_tooling(self, command):
        """Test package/VCS tool detection."""
        assert rules.invokes_tooling(command) is True
        assert rules.is_destructive_command(command) is False

    def test_plain_command(self):
        """Test a harmless command."""
        assert rules.is_destructive_command("ls -la") is False
        assert rules.invokes_tooling("ls -la") is False


class TestRuleTables:
    """Test rule evaluation helpers."""

    def test_first_match_order(self):
        """Test that the first matching rule wins."""
        assert rules.first_match(rules.SHELL_COMMAND_SEVERITY_RULES, "git rm file") == Severity.CRITICAL
        assert rules.first_match(rules.WRITE_FILE_SEVERITY_RULES, "config.ts") == Severity.HIGH

    def test_first_match_default(self):
        """Test the default when nothing matches."""
        assert rules.first_match(rules.SHELL_COMMAND_SEVERITY_RULES, "ls") == Severity.LOW
        assert rules.first_match([], "anything", default=Severity.MEDIUM) == Severity.MEDIUM

    def test_matching_warnings_are_copies(self):
        """Test that returned warnings do not alias the table entries."""
        first = rules.matching_warnings(rules.SHELL_COMMAND_WARNINGS, "ls")
        first[0].message = "changed"

        second = rules.matching_warnings(rules.SHELL_COMMAND_WARNINGS, "ls")

        assert second[0].message != "changed"

    def test_shell_warnings_accumulate(self):
        """Test that every matching warning is collected."""
        warnings = rules.matching_warnings(rules.SHELL_COMMAND_WARNINGS, "sudo rm -rf /tmp/x")

        assert [w.level for w in warnings] == ["warning", "critical", "danger"]
