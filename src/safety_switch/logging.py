"""Logging configuration for the Safety Switch with structlog.

Operator-facing logs go to stderr through the console renderer. When a log
file is configured, every event is also written there as one JSON object per
line, so decisions can be audited after the fact.
"""

import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import structlog

# Fields every audit line carries, in this order, ahead of the event details
AUDIT_FIELDS = ("timestamp", "level", "logger", "event", "action_id")


def setup_logging(
    level: str | None = "INFO",
    log_file: Path | None = None,
    show_timestamps: bool = True,
) -> None:
    """Configure structlog for console output and an optional audit file.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR), or None to use INFO
        log_file: Optional JSON-lines audit file
        show_timestamps: Include timestamps in console output
    """
    level = level or "INFO"
    log_level = getattr(logging, level.upper(), logging.INFO)

    # The classifier logs through the stdlib
    logging.basicConfig(
        level=log_level,
        handlers=[logging.StreamHandler(sys.stderr)],
        format="%(name)s: %(message)s",
        force=True,
    )

    shared = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
    ]

    console_chain: list[Any] = list(shared)
    if show_timestamps:
        console_chain.append(structlog.processors.TimeStamper(fmt="%H:%M:%S", utc=False))
    console_chain.append(structlog.dev.set_exc_info)
    console_renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    audit_renderer = None
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        audit_renderer = AuditFileRenderer(log_file)

    def render(logger: Any, method_name: str, event_dict: dict[str, Any]) -> str:
        if audit_renderer is not None:
            audit_renderer(logger, method_name, dict(event_dict))
        return console_renderer(logger, method_name, event_dict)

    console_chain.append(render)

    structlog.configure(
        processors=console_chain,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


class AuditFileRenderer:
    """Append each event to a JSON-lines file with UTC ISO timestamps.

    Runs inside the console processor chain on a copy of the event, so the
    file gets full tracebacks as data while the console keeps its own format.
    """

    def __init__(self, path: Path):
        self.path = path
        self._stamp = structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp")
        self._tracebacks = structlog.processors.dict_tracebacks
        self._json = structlog.processors.JSONRenderer(sort_keys=False)

    def __call__(self, logger: Any, method_name: str, event_dict: dict[str, Any]) -> None:
        event_dict = self._stamp(logger, method_name, event_dict)
        event_dict = self._tracebacks(logger, method_name, event_dict)
        line = self._json(logger, method_name, order_audit_fields(event_dict))
        with self.path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")


def order_audit_fields(event_dict: dict[str, Any]) -> dict[str, Any]:
    """Put the audit fields first so lines line up when read by eye."""
    ordered = {key: event_dict[key] for key in AUDIT_FIELDS if key in event_dict}
    ordered.update((k, v) for k, v in event_dict.items() if k not in ordered)
    return ordered


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger for a module.

    Args:
        name: Module name (e.g., "safety_switch.approval.gate")

    Returns:
        Configured structlog logger, bound with ``logger=name``
    """
    return structlog.get_logger().bind(logger=name)


@contextmanager
def action_context(action_id: str, **fields: Any) -> Iterator[None]:
    """Bind an action's id (and extra fields) to every log line in the block.

    Executors that log through structlog inherit the context, so their lines
    can be matched to the gate's decision lines in the audit file.
    """
    with structlog.contextvars.bound_contextvars(action_id=action_id, **fields):
        yield


class AsyncTimer:
    """Async context manager for timing operations.

    Usage:
        async with AsyncTimer("executor hand-off", logger) as timer:
            await hand_off(action)
        print(f"Took {timer.elapsed:.3f}s")
    """

    def __init__(self, name: str, logger: Any | None = None):
        """Initialize async timer.

        Args:
            name: Operation name for logging
            logger: Logger instance (uses default if None)
        """
        self.name = name
        self.logger = logger or get_logger("safety_switch.timer")
        self.start_time: float = 0
        self.elapsed: float = 0

    async def __aenter__(self) -> "AsyncTimer":
        """Start timing."""
        self.start_time = time.perf_counter()
        self.logger.debug(f"Starting: {self.name}")
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Stop timing and log result."""
        self.elapsed = time.perf_counter() - self.start_time
        self.logger.debug(f"Completed: {self.name}", elapsed_s=f"{self.elapsed:.3f}")
