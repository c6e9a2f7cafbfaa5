"""Pending action registry and lifecycle state machine.

The registry is the authoritative store of every action the gate knows
about. Actions live in exactly one of three partitions:

- pending: awaiting an operator decision
- executing: confirmed and handed to the executor
- completed: completed, failed or cancelled

All moves go through ``apply_transition``, a pure function over an
immutable ``RegistryState``. ``ActionRegistry`` swaps the state under a lock,
so a move between partitions is atomic for any reader.
"""

from enum import Enum
from threading import RLock
from typing import Any

from pydantic import BaseModel, ConfigDict

from safety_switch.actions.models import ActionStatus, PendingAction
from safety_switch.approval.exceptions import DuplicateActionError, PendingLimitError
from safety_switch.logging import get_logger

logger = get_logger("safety_switch.approval.registry")


class ActionEvent(str, Enum):
    """Events that drive an action through its lifecycle."""

    START = "start"  # operator confirmed, hand-off begins
    CANCEL = "cancel"
    SUCCEED = "succeed"
    FAIL = "fail"


# (current status, event) -> next status. Anything else is rejected.
TRANSITIONS: dict[tuple[ActionStatus, ActionEvent], ActionStatus] = {
    (ActionStatus.PENDING, ActionEvent.START): ActionStatus.EXECUTING,
    (ActionStatus.PENDING, ActionEvent.CANCEL): ActionStatus.CANCELLED,
    (ActionStatus.EXECUTING, ActionEvent.SUCCEED): ActionStatus.COMPLETED,
    (ActionStatus.EXECUTING, ActionEvent.FAIL): ActionStatus.FAILED,
}

PARTITIONS = ("pending", "executing", "completed")

_PARTITION_FOR_STATUS = {
    ActionStatus.PENDING: "pending",
    ActionStatus.EXECUTING: "executing",
    ActionStatus.COMPLETED: "completed",
    ActionStatus.FAILED: "completed",
    ActionStatus.CANCELLED: "completed",
}


class RegistryState(BaseModel):
    """Immutable snapshot of the registry."""

    model_config = ConfigDict(frozen=True)

    pending: tuple[PendingAction, ...] = ()
    executing: tuple[PendingAction, ...] = ()
    completed: tuple[PendingAction, ...] = ()
    enabled: bool = True

    def find(self, action_id: str) -> tuple[str, PendingAction] | None:
        """Locate an action.

        Args:
            action_id: Action to look up

        Returns:
            tuple[str, PendingAction] | None: (partition name, action) or None
        """
        for name in PARTITIONS:
            for action in getattr(self, name):
                if action.id == action_id:
                    return name, action
        return None


def add_action(state: RegistryState, action: PendingAction) -> RegistryState:
    """Insert a new pending action at the end of the pending partition.

    Raises:
        DuplicateActionError: If the id is already present
        ValueError: If the action is not pending
    """
    if state.find(action.id) is not None:
        raise DuplicateActionError(action.id)
    if action.status != ActionStatus.PENDING:
        raise ValueError(f"New actions must be pending, got {action.status.value}")
    return state.model_copy(update={"pending": state.pending + (action,)})


def apply_transition(
    state: RegistryState,
    action_id: str,
    event: ActionEvent,
    **changes: Any,
) -> tuple[RegistryState, PendingAction | None]:
    """Apply an event to one action.

    Args:
        state: Current registry state
        action_id: Action the event targets
        event: Lifecycle event
        **changes: Decision metadata stored on the updated action

    Returns:
        tuple: (new state, updated action). When the action is unknown or the
        event is not valid from its current status, the original state is
        returned with None.
    """
    located = state.find(action_id)
    if located is None:
        return state, None

    source, action = located
    target = TRANSITIONS.get((action.status, event))
    if target is None:
        return state, None

    updated = action.with_status(target, **changes)
    destination = _PARTITION_FOR_STATUS[target]

    partitions = {name: getattr(state, name) for name in PARTITIONS}
    partitions[source] = tuple(a for a in partitions[source] if a.id != action_id)
    partitions[destination] = partitions[destination] + (updated,)

    return state.model_copy(update=partitions), updated


def clear_completed(state: RegistryState) -> tuple[RegistryState, list[str]]:
    """Drop every action from the completed partition.

    Returns:
        tuple: (new state, ids of the removed actions)
    """
    removed = [a.id for a in state.completed]
    return state.model_copy(update={"completed": ()}), removed


class ActionRegistry:
    """Registry holding the gate's actions and its enable flag.

    Every mutation is a single read-validate-write step under a lock, so two
    near-simultaneous calls for the same id cannot both succeed.
    """

    def __init__(self, enabled: bool = True):
        """Initialize an empty registry.

        Args:
            enabled: Initial value of the safety switch flag
        """
        self._state = RegistryState(enabled=enabled)
        self._lock = RLock()

    @property
    def state(self) -> RegistryState:
        """Current immutable snapshot."""
        return self._state

    def add(self, action: PendingAction, max_pending: int | None = None) -> PendingAction:
        """Register a new pending action.

        Args:
            action: Action to add (status must be pending)
            max_pending: Reject the action if this many are already pending

        Returns:
            PendingAction: The stored action

        Raises:
            DuplicateActionError: If the id is already registered
            PendingLimitError: If the pending partition is full
        """
        with self._lock:
            if max_pending is not None and len(self._state.pending) >= max_pending:
                raise PendingLimitError(max_pending)
            self._state = add_action(self._state, action)
        logger.debug("Registered pending action", action_id=action.id, severity=action.severity.value)
        return action

    def transition(
        self,
        action_id: str,
        event: ActionEvent,
        **changes: Any,
    ) -> PendingAction | None:
        """Move an action according to an event.

        Args:
            action_id: Action to move
            event: Lifecycle event
            **changes: Decision metadata

        Returns:
            PendingAction | None: The updated action, or None if the
            transition was not valid (unknown id or wrong status)
        """
        with self._lock:
            new_state, updated = apply_transition(self._state, action_id, event, **changes)
            self._state = new_state

        if updated is not None:
            logger.debug(
                "Action transitioned",
                action_id=action_id,
                transition_event=event.value,
                status=updated.status.value,
            )
        return updated

    def clear_completed(self) -> list[str]:
        """Remove terminal actions from the completed partition.

        Returns:
            list[str]: Ids of the removed actions
        """
        with self._lock:
            self._state, removed = clear_completed(self._state)
        return removed

    def set_enabled(self, enabled: bool) -> None:
        """Set the safety switch flag."""
        with self._lock:
            self._state = self._state.model_copy(update={"enabled": enabled})

    @property
    def enabled(self) -> bool:
        return self._state.enabled

    def get(self, action_id: str) -> PendingAction | None:
        """Get an action by id from any partition."""
        located = self._state.find(action_id)
        return located[1] if located else None

    def partition_of(self, action_id: str) -> str | None:
        """Get the name of the partition holding an action."""
        located = self._state.find(action_id)
        return located[0] if located else None

    @property
    def pending(self) -> list[PendingAction]:
        """Pending actions in submission order."""
        return list(self._state.pending)

    @property
    def executing(self) -> list[PendingAction]:
        """Executing actions in confirmation order."""
        return list(self._state.executing)

    @property
    def completed(self) -> list[PendingAction]:
        """Terminal actions in settlement order."""
        return list(self._state.completed)

    def counts(self) -> dict[str, int]:
        """Number of actions per partition."""
        state = self._state
        return {name: len(getattr(state, name)) for name in PARTITIONS}

    def __contains__(self, action_id: object) -> bool:
        return isinstance(action_id, str) and self._state.find(action_id) is not None

    def __len__(self) -> int:
        return sum(self.counts().values())
