"""Pure predicates and rule tables used by the risk classifier.

Every predicate takes a plain string (a file path or a command line) and
returns a bool. The tables pair predicates with the severity or warning they
trigger, and are evaluated in order.
"""

from pathlib import PurePosixPath
from typing import Callable

from safety_switch.actions.models import SecurityWarning, Severity

Predicate = Callable[[str], bool]

SENSITIVE_PATH_FRAGMENTS = ("package.json", ".env", "config")

SOURCE_CODE_EXTENSIONS = frozenset({
    ".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs",
    ".py", ".java", ".cpp", ".c", ".h", ".php", ".rb",
    ".go", ".rs", ".swift", ".kt", ".dart", ".vue",
})

DESTRUCTIVE_COMMAND_TOKENS = ("rm", "delete", "sudo")
TOOLING_COMMAND_TOKENS = ("git", "npm")

CREDENTIAL_CONTENT_TOKENS = ("password=", "secret=", "api_key", "apikey", "token=", "private key")


def contains_any(subject: str, fragments: tuple[str, ...]) -> bool:
    """Case-insensitive substring test against a list of fragments."""
    lowered = subject.lower()
    return any(fragment in lowered for fragment in fragments)


# Path predicates

def is_sensitive_path(path: str) -> bool:
    return contains_any(path, SENSITIVE_PATH_FRAGMENTS)


def is_source_file(path: str) -> bool:
    return PurePosixPath(path.replace("\\", "/")).suffix.lower() in SOURCE_CODE_EXTENSIONS


def is_env_file(path: str) -> bool:
    return contains_any(path, (".env",))


def is_package_manifest(path: str) -> bool:
    return contains_any(path, ("package.json",))


def looks_like_credentials(content: str) -> bool:
    """Check whether file content appears to embed a secret."""
    return contains_any(content, CREDENTIAL_CONTENT_TOKENS)


# Command predicates

def is_destructive_command(command: str) -> bool:
    return contains_any(command, DESTRUCTIVE_COMMAND_TOKENS)


def invokes_tooling(command: str) -> bool:
    """Check whether a command runs a package manager or VCS tool."""
    return contains_any(command, TOOLING_COMMAND_TOKENS)


def removes_files(command: str) -> bool:
    return contains_any(command, ("rm",))


def uses_sudo(command: str) -> bool:
    return contains_any(command, ("sudo",))


def always(_: str) -> bool:
    return True


# Severity tables: first matching predicate wins

WRITE_FILE_SEVERITY_RULES: list[tuple[Predicate, Severity]] = [
    (is_sensitive_path, Severity.HIGH),
    (is_source_file, Severity.MEDIUM),
]

SHELL_COMMAND_SEVERITY_RULES: list[tuple[Predicate, Severity]] = [
    (is_destructive_command, Severity.CRITICAL),
    (invokes_tooling, Severity.MEDIUM),
]


def first_match(
    rules: list[tuple[Predicate, Severity]],
    subject: str,
    default: Severity = Severity.LOW,
) -> Severity:
    """Return the severity of the first rule whose predicate matches.

    Args:
        rules: Ordered (predicate, severity) pairs
        subject: String the predicates are applied to
        default: Severity when no rule matches

    Returns:
        Severity: The matched or default severity
    """
    for predicate, severity in rules:
        if predicate(subject):
            return severity
    return default


# Warning tables: every matching predicate contributes its warning

WRITE_FILE_PATH_WARNINGS: list[tuple[Predicate, SecurityWarning]] = [
    (
        is_env_file,
        SecurityWarning(
            level="critical",
            message="Writing to an environment file that usually holds secrets",
            recommendation="Check the content for credentials before confirming",
        ),
    ),
    (
        is_package_manifest,
        SecurityWarning(
            level="warning",
            message="Modifying the package manifest changes project dependencies",
            recommendation="Review dependency and script changes",
        ),
    ),
]

WRITE_FILE_CONTENT_WARNINGS: list[tuple[Predicate, SecurityWarning]] = [
    (
        looks_like_credentials,
        SecurityWarning(
            level="danger",
            message="File content appears to contain credentials",
            recommendation="Store secrets in a secret manager instead of source files",
        ),
    ),
]

INSTALL_PACKAGE_WARNINGS: list[tuple[Predicate, SecurityWarning]] = [
    (
        always,
        SecurityWarning(
            level="warning",
            message="Installing a third-party package runs code from the registry",
            recommendation="Verify the package name, publisher and download count",
        ),
    ),
]

SHELL_COMMAND_WARNINGS: list[tuple[Predicate, SecurityWarning]] = [
    (
        always,
        SecurityWarning(
            level="warning",
            message="Shell commands run with your user's permissions",
            recommendation="Read the full command before confirming",
        ),
    ),
    (
        removes_files,
        SecurityWarning(
            level="critical",
            message="Command may delete files permanently",
            recommendation="Make sure the target paths are correct and backed up",
        ),
    ),
    (
        uses_sudo,
        SecurityWarning(
            level="danger",
            message="Command requests elevated privileges",
            recommendation="Avoid sudo unless the operation truly needs root",
        ),
    ),
]


def matching_warnings(
    rules: list[tuple[Predicate, SecurityWarning]],
    subject: str,
) -> list[SecurityWarning]:
    """Collect the warnings of every rule whose predicate matches."""
    return [warning.model_copy() for predicate, warning in rules if predicate(subject)]
