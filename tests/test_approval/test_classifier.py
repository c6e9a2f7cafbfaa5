"""Tests for the risk classifier."""

import pytest

from safety_switch.actions.builders import build_parameters
from safety_switch.actions.models import ActionType, Severity
from safety_switch.approval.classifier import PACKAGE_INSTALL_AFFECTS, RiskClassifier


class TestWriteFileSeverity:
    """Test severity rules for file writes."""

    @pytest.mark.parametrize(
        "path, expected",
        [
            ("package.json", Severity.HIGH),
            (".env", Severity.HIGH),
            ("src/config/db.ts", Severity.HIGH),
            ("src/app.ts", Severity.MEDIUM),
            ("src/App.tsx", Severity.MEDIUM),
            ("server.js", Severity.MEDIUM),
            ("README.md", Severity.LOW),
            ("notes.txt", Severity.LOW),
        ],
    )
    def test_paths(self, path, expected):
        """Test severity by target path."""
        classifier = RiskClassifier()

        assessment = classifier.classify("write-file", {"filePath": path})

        assert assessment.severity == expected

    def test_tool_name_alias(self):
        """Test that the originator's tool name is classified the same way."""
        classifier = RiskClassifier()

        assessment = classifier.classify("writeFile", {"filePath": ".env"})

        assert assessment.severity == Severity.HIGH


class TestInstallPackageSeverity:
    """Test severity rules for package installs."""

    @pytest.mark.parametrize("package", ["left-pad", "react", "", "sudo-exploit"])
    def test_always_high(self, package):
        """Test that installs are high regardless of package name."""
        classifier = RiskClassifier()

        assessment = classifier.classify("install-package", {"packageName": package})

        assert assessment.severity == Severity.HIGH

    def test_impact(self):
        """Test install impact lists manifest, lock file and dependency dir."""
        classifier = RiskClassifier()

        assessment = classifier.classify("install-package", {"packageName": "left-pad"})

        assert assessment.impact.affects == PACKAGE_INSTALL_AFFECTS
        assert assessment.impact.reversible is True
        assert any("supply" in w.message.lower() or "third-party" in w.message.lower()
                   for w in assessment.warnings)


class TestShellCommandSeverity:
    """Test severity rules for shell commands."""

    @pytest.mark.parametrize(
        "command, expected",
        [
            ("rm -rf dist", Severity.CRITICAL),
            ("sudo apt-get install curl", Severity.CRITICAL),
            ("git branch --delete old", Severity.CRITICAL),
            ("git status", Severity.MEDIUM),
            ("npm run build", Severity.MEDIUM),
            ("ls -la", Severity.LOW),
            ("echo hello", Severity.LOW),
        ],
    )
    def test_commands(self, command, expected):
        """Test severity by command string."""
        classifier = RiskClassifier()

        assessment = classifier.classify("run-shell-command", {"command": command})

        assert assessment.severity == expected

    def test_args_are_inspected(self):
        """Test that destructive tokens in args are detected."""
        classifier = RiskClassifier()

        assessment = classifier.classify(
            "executeShellCommand",
            {"command": "git", "args": ["rm", "file.txt"]},
        )

        assert assessment.severity == Severity.CRITICAL

    def test_irreversible(self):
        """Test that shell commands are never marked reversible."""
        classifier = RiskClassifier()

        assessment = classifier.classify("run-shell-command", {"command": "ls"})

        assert assessment.impact.reversible is False

    def test_general_caution_always_present(self):
        """Test that any shell command yields a general warning."""
        classifier = RiskClassifier()

        assessment = classifier.classify("run-shell-command", {"command": "echo hi"})

        assert [w.level for w in assessment.warnings] == ["warning"]


class TestWarnings:
    """Test security warning generation."""

    def test_env_file_critical_warning(self):
        """Test that writing .env yields a critical warning."""
        classifier = RiskClassifier()

        assessment = classifier.classify("write-file", {"filePath": ".env", "content": "A=1"})

        assert assessment.has_critical_warning
        critical = [w for w in assessment.warnings if w.level == "critical"]
        assert critical[0].recommendation

    def test_package_json_warning(self):
        """Test that writing package.json yields a warning-level note."""
        classifier = RiskClassifier()

        assessment = classifier.classify("write-file", {"filePath": "package.json"})

        assert [w.level for w in assessment.warnings] == ["warning"]

    def test_source_file_has_no_warnings(self):
        """Test that a routine source write carries no warnings."""
        classifier = RiskClassifier()

        assessment = classifier.classify("write-file", {"filePath": "src/app.ts", "content": "x"})

        assert assessment.warnings == []

    def test_credential_content(self):
        """Test that credential-like content is flagged without changing severity."""
        classifier = RiskClassifier()

        assessment = classifier.classify(
            "write-file",
            {"filePath": "notes.txt", "content": "api_key: 123"},
        )

        assert assessment.severity == Severity.LOW
        assert any(w.level == "danger" for w in assessment.warnings)

    def test_sensitive_parameter_warning(self):
        """Test that sensitive parameter names produce a warning."""
        classifier = RiskClassifier()

        assessment = classifier.classify("deploy", {"apiToken": "x"})

        assert any("apiToken" in w.message for w in assessment.warnings)

    def test_sudo_and_rm_warnings(self):
        """Test that both destructive signals are reported, severity once."""
        classifier = RiskClassifier()

        assessment = classifier.classify("run-shell-command", {"command": "sudo rm -rf node_modules"})

        levels = [w.level for w in assessment.warnings]
        assert assessment.severity == Severity.CRITICAL
        assert "critical" in levels
        assert "danger" in levels


class TestUnknownTypes:
    """Test degradation for unknown action kinds."""

    def test_unknown_type_is_medium(self):
        """Test that unknown types default to medium."""
        classifier = RiskClassifier()

        assessment = classifier.classify("deploy-to-production", {"target": "prod"})

        assert assessment.severity == Severity.MEDIUM
        assert "deploy-to-production" in assessment.impact.description
        assert assessment.impact.affects == []

    def test_never_raises(self):
        """Test that malformed parameters degrade instead of raising."""
        classifier = RiskClassifier()

        assessment = classifier.classify("write-file", None)  # type: ignore[arg-type]

        assert assessment.severity == Severity.MEDIUM

    def test_custom_default(self):
        """Test a custom default severity."""
        classifier = RiskClassifier(default_severity=Severity.HIGH)

        assert classifier.classify("mystery", {}).severity == Severity.HIGH


class TestDeterminism:
    """Test that classification is stable."""

    @pytest.mark.parametrize(
        "action_type, params",
        [
            ("write-file", {"filePath": ".env"}),
            ("install-package", {"packageName": "lodash"}),
            ("run-shell-command", {"command": "rm -rf /"}),
            ("unknown", {}),
        ],
    )
    def test_repeated_calls(self, action_type, params):
        """Test that repeated calls give identical assessments."""
        classifier = RiskClassifier()

        first = classifier.classify(action_type, params)
        results = [classifier.classify(action_type, params) for _ in range(5)]

        assert all(r == first for r in results)

    def test_accepts_parameter_list(self):
        """Test that prebuilt ActionParameters are accepted."""
        classifier = RiskClassifier()
        params = build_parameters({"command": "rm -rf x"}, ActionType.RUN_SHELL_COMMAND)

        assert classifier.classify("run-shell-command", params).severity == Severity.CRITICAL


class TestHelpers:
    """Test display helpers."""

    def test_should_require_enhanced_confirmation(self):
        """Test enhanced confirmation check."""
        classifier = RiskClassifier()

        assert classifier.should_require_enhanced_confirmation("install-package", {}) is True
        assert classifier.should_require_enhanced_confirmation("write-file", {"filePath": "a.md"}) is False

    def test_get_risk_color(self):
        """Test getting risk colors."""
        classifier = RiskClassifier()

        assert classifier.get_risk_color(Severity.LOW) == "green"
        assert classifier.get_risk_color(Severity.MEDIUM) == "yellow"
        assert classifier.get_risk_color(Severity.HIGH) == "red"
        assert "red" in classifier.get_risk_color(Severity.CRITICAL)

    def test_get_risk_emoji(self):
        """Test getting risk emojis."""
        classifier = RiskClassifier()

        assert classifier.get_risk_emoji(Severity.LOW) == "✓"
        assert classifier.get_risk_emoji(Severity.CRITICAL) == "🚨"

    def test_severity_notes(self):
        """Test that critical notes mention the confirmation phrase."""
        classifier = RiskClassifier()

        notes = classifier.get_severity_notes(Severity.CRITICAL)

        assert any("phrase" in n for n in notes)
