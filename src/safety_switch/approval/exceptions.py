"""Custom exceptions for the confirmation gate."""


class SafetySwitchError(Exception):
    """Base exception for Safety Switch errors."""

    pass


class ActionNotFoundError(SafetySwitchError):
    """Exception raised when an action id is not known to the registry."""

    def __init__(self, action_id: str):
        """Initialize with action ID.

        Args:
            action_id: The ID of the action that was not found
        """
        self.action_id = action_id
        super().__init__(f"Action not found: {action_id}")


class DuplicateActionError(SafetySwitchError):
    """Exception raised when an action id is registered twice."""

    def __init__(self, action_id: str):
        self.action_id = action_id
        super().__init__(f"Action already registered: {action_id}")


class ActionCancelledError(SafetySwitchError):
    """Raised to the originator when the operator cancels an action.

    Distinguishes a user decision from an execution failure, so callers can
    branch on ``except ActionCancelledError``.
    """

    def __init__(self, action_id: str, reason: str = "cancelled by user"):
        """Initialize with action ID and reason.

        Args:
            action_id: The ID of the cancelled action
            reason: Why the action was cancelled
        """
        self.action_id = action_id
        self.reason = reason
        super().__init__(f"Action {action_id} {reason}")


class ActionTimeoutError(ActionCancelledError):
    """Raised when an action is cancelled because nobody answered in time."""

    def __init__(self, action_id: str, reason: str = "confirmation timed out"):
        super().__init__(action_id, reason)


class PendingLimitError(SafetySwitchError):
    """Exception raised when too many actions are awaiting confirmation."""

    def __init__(self, limit: int):
        """Initialize with the configured limit.

        Args:
            limit: Maximum number of pending actions
        """
        self.limit = limit
        super().__init__(
            f"Maximum pending actions reached ({limit}). "
            f"Please confirm or cancel existing actions."
        )
