"""Result ledger: final outcomes keyed by action id.

The ledger is independent of the registry partitions, so an outcome stays
queryable after the action has left the completed partition (unless the
clearing policy drops it too).
"""

from collections.abc import Iterable
from threading import RLock

from safety_switch.actions.models import ActionResult
from safety_switch.logging import get_logger

logger = get_logger("safety_switch.approval.ledger")


class ResultLedger:
    """Append/overwrite map from action id to ActionResult."""

    def __init__(self):
        """Initialize an empty ledger."""
        self._results: dict[str, ActionResult] = {}
        self._lock = RLock()

    def record(self, action_id: str, result: ActionResult) -> None:
        """Store the outcome of an action, replacing any earlier row.

        Args:
            action_id: Action the result belongs to
            result: Final outcome
        """
        with self._lock:
            if action_id in self._results:
                logger.debug("Overwriting ledger row", action_id=action_id)
            self._results[action_id] = result

    def get(self, action_id: str) -> ActionResult | None:
        """Get the recorded outcome of an action, or None."""
        return self._results.get(action_id)

    def all(self) -> dict[str, ActionResult]:
        """Get a copy of every recorded outcome."""
        with self._lock:
            return dict(self._results)

    def discard(self, action_ids: Iterable[str]) -> int:
        """Drop the rows of the given actions.

        Args:
            action_ids: Actions whose rows should be removed

        Returns:
            int: Number of rows removed
        """
        removed = 0
        with self._lock:
            for action_id in action_ids:
                if self._results.pop(action_id, None) is not None:
                    removed += 1
        return removed

    def clear(self) -> None:
        """Remove every row."""
        with self._lock:
            self._results.clear()

    def __contains__(self, action_id: object) -> bool:
        return action_id in self._results

    def __len__(self) -> int:
        return len(self._results)
