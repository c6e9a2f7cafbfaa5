"""Confirmation gate: the async boundary between originator and operator.

This module provides the ConfirmationGate which accepts candidate actions,
classifies them, holds them in the registry until the operator decides, and
hands confirmed actions to the executor.

Submitting returns an action id immediately. An originator that needs to
block until the decision obtains a future keyed by that id: it resolves to
True on confirmation and raises ActionCancelledError on cancellation.
"""

import asyncio
import inspect
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Coroutine

from pydantic import BaseModel, Field

from safety_switch.actions.builders import action_description, action_title, build_parameters
from safety_switch.actions.models import (
    ActionRequest,
    ActionResult,
    ActionStatus,
    ActionType,
    PendingAction,
    utc_now,
)
from safety_switch.approval.classifier import RiskClassifier
from safety_switch.approval.exceptions import (
    ActionCancelledError,
    ActionNotFoundError,
    ActionTimeoutError,
)
from safety_switch.approval.ledger import ResultLedger
from safety_switch.approval.registry import ActionEvent, ActionRegistry
from safety_switch.config import Settings, get_settings
from safety_switch.logging import AsyncTimer, action_context, get_logger

logger = get_logger("safety_switch.approval.gate")

CANCELLED_BY_USER = "cancelled by user"
CONFIRMATION_TIMED_OUT = "confirmation timed out"
EMERGENCY_CLEANUP = "emergency cleanup of all pending actions"
HANDOFF_CANCELLED = "executor hand-off was cancelled"

# The executor receives the confirmed action. It may return None (it will
# report back through complete_action), an ActionResult, or an awaitable of
# either.
Executor = Callable[[PendingAction], ActionResult | None | Awaitable[ActionResult | None]]


class GateEvent(str, Enum):
    """Lifecycle notifications published to listeners."""

    ACTION_PENDING = "action_pending"
    ACTION_CONFIRMED = "action_confirmed"
    ACTION_CANCELLED = "action_cancelled"
    ACTION_TIMEOUT = "action_timeout"
    ACTION_COMPLETED = "action_completed"
    SWITCH_TOGGLED = "switch_toggled"
    COMPLETED_CLEARED = "completed_cleared"


Listener = Callable[[GateEvent, dict[str, Any]], None]


class DecisionOutcome(str, Enum):
    """Outcome of an operator or executor call on the gate."""

    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NOT_PENDING = "not_pending"
    NOT_EXECUTING = "not_executing"
    PHRASE_REJECTED = "phrase_rejected"
    EXECUTION_FAILED = "execution_failed"


class DecisionResult(BaseModel):
    """Result of confirm / cancel / complete_action.

    Gate calls never raise for stale ids or wrong phrases. The outcome tells
    the presentation surface which message to show.
    """

    outcome: DecisionOutcome = Field(..., description="What the gate did")
    action_id: str = Field(..., description="Action the call targeted")
    message: str = Field(..., description="Operator-facing explanation")

    @property
    def accepted(self) -> bool:
        """Check if the call changed the action's state."""
        return self.outcome not in (
            DecisionOutcome.NOT_PENDING,
            DecisionOutcome.NOT_EXECUTING,
            DecisionOutcome.PHRASE_REJECTED,
        )

    @classmethod
    def not_pending(cls, action_id: str) -> "DecisionResult":
        return cls(
            outcome=DecisionOutcome.NOT_PENDING,
            action_id=action_id,
            message="Nothing happened: this action was already resolved",
        )


class GateStatus(BaseModel):
    """Summary of the gate for display."""

    enabled: bool
    pending: int
    executing: int
    completed: int
    results: int
    max_pending_actions: int | None
    confirmation_timeout: float | None


class ConfirmationGate:
    """Holds side-effecting actions until an operator confirms them.

    The gate owns the registry (lifecycle partitions), the result ledger,
    the table of confirmation futures and the optional timeout timers. All
    state changes go through the registry's atomic transitions, so a second
    decision on the same action is always a logged no-op.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        executor: Executor | None = None,
        classifier: RiskClassifier | None = None,
        registry: ActionRegistry | None = None,
        ledger: ResultLedger | None = None,
    ):
        """Initialize the confirmation gate.

        Args:
            settings: Gate configuration (uses global settings if None)
            executor: Callback that performs confirmed actions
            classifier: Risk classifier (creates default if None)
            registry: Action registry (creates one from settings if None)
            ledger: Result ledger (creates empty one if None)
        """
        self.settings = settings or get_settings()
        self.executor = executor
        self.classifier = classifier or RiskClassifier()
        self.registry = registry or ActionRegistry(enabled=self.settings.safety_switch_enabled)
        self.ledger = ledger or ResultLedger()

        self._waiters: dict[str, asyncio.Future[bool]] = {}
        self._timeouts: dict[str, asyncio.TimerHandle] = {}
        self._handoff_tasks: set[asyncio.Task] = set()
        self._listeners: list[Listener] = []

    # Submission

    def create_action(self, request: ActionRequest) -> PendingAction:
        """Build a classified PendingAction from a submission payload.

        Args:
            request: Originator's tool call

        Returns:
            PendingAction: New pending action (not yet registered)
        """
        kind = ActionType.parse(request.tool_name)
        parameters = build_parameters(request.parameters, kind)
        assessment = self.classifier.classify(request.tool_name, parameters)

        return PendingAction(
            type=kind.value if kind else request.tool_name,
            title=action_title(request.tool_name, kind, parameters),
            description=action_description(request.tool_name, kind, parameters),
            parameters=parameters,
            impact=assessment.impact,
            security_warnings=assessment.warnings,
            severity=assessment.severity,
            request_id=request.request_id,
            original_request=request.model_dump(),
        )

    def submit(self, request: ActionRequest | dict[str, Any]) -> str:
        """Submit a candidate action.

        The action is visible in the pending partition when this returns.
        While the safety switch is disabled it is immediately moved to
        executing and handed to the executor instead.

        Args:
            request: Originator's tool call (model or raw dict)

        Returns:
            str: The new action's id

        Raises:
            PendingLimitError: If max_pending_actions are already waiting
            ValidationError: If a raw dict is not a valid request
        """
        if not isinstance(request, ActionRequest):
            request = ActionRequest.model_validate(request)

        action = self.create_action(request)
        enabled = self.registry.enabled
        self.registry.add(
            action,
            max_pending=self.settings.max_pending_actions if enabled else None,
        )

        logger.info(
            "New action pending confirmation",
            action_id=action.id,
            type=action.type,
            severity=action.severity.value,
            parameters=len(action.parameters),
            request_id=action.request_id,
        )
        self._emit(GateEvent.ACTION_PENDING, action)

        if enabled:
            self._schedule_timeout(action.id)
        else:
            self._bypass(action)

        return action.id

    # Originator side: waiting for the decision

    def confirmation_future(self, action_id: str) -> asyncio.Future[bool]:
        """Get the future that settles when the operator decides.

        Must be called from a running event loop. Repeated calls for a
        pending action return the same future. For an action that has
        already been decided, an already-settled future is returned.

        Args:
            action_id: Action to wait for

        Returns:
            asyncio.Future[bool]: Resolves True on confirmation, raises
            ActionCancelledError on cancellation

        Raises:
            ActionNotFoundError: If the action is unknown (or was cleared)
        """
        loop = asyncio.get_running_loop()

        waiter = self._waiters.get(action_id)
        if waiter is not None:
            return waiter

        action = self.registry.get(action_id)
        if action is None:
            raise ActionNotFoundError(action_id)

        future: asyncio.Future[bool] = loop.create_future()
        future.add_done_callback(_mark_retrieved)

        if action.status == ActionStatus.PENDING:
            self._waiters[action_id] = future
        elif action.status == ActionStatus.CANCELLED:
            future.set_exception(self._cancellation_error(action))
        else:
            future.set_result(True)

        return future

    async def wait_for_confirmation(self, action_id: str) -> bool:
        """Wait until the operator confirms or cancels an action.

        The shared future is shielded: if the caller stops waiting, the
        future still settles on the operator's decision.

        Args:
            action_id: Action to wait for

        Returns:
            bool: True once confirmed

        Raises:
            ActionCancelledError: If the action was cancelled
            ActionTimeoutError: If the action timed out
        """
        return await asyncio.shield(self.confirmation_future(action_id))

    async def request_confirmation(
        self,
        request: ActionRequest | dict[str, Any],
    ) -> PendingAction | None:
        """Submit an action and wait for the operator's decision.

        Args:
            request: Originator's tool call

        Returns:
            PendingAction | None: The action's current record once confirmed

        Raises:
            ActionCancelledError: If the operator cancelled the action
        """
        action_id = self.submit(request)
        await self.wait_for_confirmation(action_id)
        return self.registry.get(action_id)

    # Operator side

    async def confirm(
        self,
        action_id: str,
        phrase: str | None = None,
        confirmed_by: str | None = None,
    ) -> DecisionResult:
        """Confirm a pending action and hand it to the executor.

        High and critical actions require ``phrase`` to match the configured
        confirmation phrase exactly. A rejected phrase leaves the action
        pending and its future unsettled.

        Args:
            action_id: Action to confirm
            phrase: Confirmation phrase typed by the operator
            confirmed_by: Operator identifier for the audit trail

        Returns:
            DecisionResult: Outcome of the confirmation
        """
        action = self.registry.get(action_id)
        if action is None or action.status != ActionStatus.PENDING:
            logger.warning(
                "Action not pending, confirmation ignored",
                action_id=action_id,
                status=action.status.value if action else None,
            )
            return DecisionResult.not_pending(action_id)

        expected = self.settings.confirmation_phrase
        if action.requires_enhanced_confirmation and phrase != expected:
            logger.warning(
                "Confirmation phrase rejected",
                action_id=action_id,
                severity=action.severity.value,
            )
            return DecisionResult(
                outcome=DecisionOutcome.PHRASE_REJECTED,
                action_id=action_id,
                message=(
                    f"Confirmation rejected: this {action.severity.value} risk action "
                    f"requires typing '{expected}' exactly"
                ),
            )

        started = self.registry.transition(
            action_id,
            ActionEvent.START,
            decided_by=confirmed_by,
            decided_at=utc_now(),
        )
        if started is None:
            # Another decision won the race between lookup and transition
            logger.warning("Action settled concurrently, confirmation ignored", action_id=action_id)
            return DecisionResult.not_pending(action_id)

        self._cancel_timeout(action_id)
        self._settle(action_id)

        logger.info(
            "User confirmed action",
            action_id=action_id,
            type=started.type,
            severity=started.severity.value,
            confirmed_by=confirmed_by,
        )
        self._emit(GateEvent.ACTION_CONFIRMED, started, confirmed_by=confirmed_by)

        return await self._hand_off(started)

    def cancel(
        self,
        action_id: str,
        reason: str = CANCELLED_BY_USER,
        cancelled_by: str | None = None,
    ) -> DecisionResult:
        """Cancel a pending action.

        The action moves to the completed partition with status cancelled,
        the ledger records the reason, and the originator's future raises
        ActionCancelledError.

        Args:
            action_id: Action to cancel
            reason: Reason recorded in the ledger
            cancelled_by: Operator identifier for the audit trail

        Returns:
            DecisionResult: Outcome of the cancellation
        """
        return self._cancel(action_id, reason, cancelled_by, timed_out=False)

    def cancel_all_pending(self, reason: str = EMERGENCY_CLEANUP) -> list[DecisionResult]:
        """Cancel every pending action.

        Args:
            reason: Reason recorded for each action

        Returns:
            list[DecisionResult]: One result per cancelled action
        """
        pending_ids = [a.id for a in self.registry.pending]
        logger.info("Cancelling all pending actions", count=len(pending_ids))
        return [self._cancel(action_id, reason, "system", timed_out=False) for action_id in pending_ids]

    # Executor side

    def complete_action(
        self,
        action_id: str,
        result: ActionResult | dict[str, Any],
    ) -> DecisionResult:
        """Record the executor's outcome for an executing action.

        Calls for actions that are not executing are logged and ignored:
        the executor and the registry can race during teardown.

        Args:
            action_id: Action that finished
            result: Outcome reported by the executor

        Returns:
            DecisionResult: COMPLETED, EXECUTION_FAILED or NOT_EXECUTING
        """
        if not isinstance(result, ActionResult):
            result = ActionResult.model_validate(result)

        event = ActionEvent.SUCCEED if result.success else ActionEvent.FAIL
        updated = self.registry.transition(action_id, event)
        if updated is None:
            logger.warning("Completed action not found in executing actions", action_id=action_id)
            return DecisionResult(
                outcome=DecisionOutcome.NOT_EXECUTING,
                action_id=action_id,
                message="Nothing happened: this action is not executing",
            )

        self.ledger.record(action_id, result)
        logger.info(
            "Action completed",
            action_id=action_id,
            success=result.success,
            duration=result.duration,
            error=result.error,
        )
        self._emit(GateEvent.ACTION_COMPLETED, updated, result=result)

        if result.success:
            return DecisionResult(
                outcome=DecisionOutcome.COMPLETED,
                action_id=action_id,
                message=f"Action completed: {result.result or 'ok'}",
            )
        return DecisionResult(
            outcome=DecisionOutcome.EXECUTION_FAILED,
            action_id=action_id,
            message=f"Action failed during execution: {result.error}",
        )

    # Housekeeping and switch

    def clear_completed(self) -> list[str]:
        """Remove terminal actions from the completed partition.

        Their ledger rows are dropped as well unless
        ``retain_results_on_clear`` is set.

        Returns:
            list[str]: Ids of the cleared actions
        """
        removed = self.registry.clear_completed()
        if not self.settings.retain_results_on_clear:
            self.ledger.discard(removed)

        logger.info(
            "Cleared completed actions",
            count=len(removed),
            results_retained=self.settings.retain_results_on_clear,
        )
        self._emit(GateEvent.COMPLETED_CLEARED, None, action_ids=removed)
        return removed

    @property
    def enabled(self) -> bool:
        """Whether actions are held for confirmation."""
        return self.registry.enabled

    def set_enabled(self, enabled: bool) -> None:
        """Turn the safety switch on or off.

        Disabling only affects actions submitted afterwards: they bypass
        confirmation. Actions already pending keep waiting for a decision.

        Args:
            enabled: New switch state
        """
        self.registry.set_enabled(enabled)
        logger.info("Safety switch toggled", enabled=enabled, pending=len(self.registry.pending))
        self._emit(GateEvent.SWITCH_TOGGLED, None, enabled=enabled)

    def toggle(self) -> bool:
        """Flip the safety switch.

        Returns:
            bool: The new switch state
        """
        self.set_enabled(not self.enabled)
        return self.enabled

    # Read access

    @property
    def pending(self) -> list[PendingAction]:
        return self.registry.pending

    @property
    def executing(self) -> list[PendingAction]:
        return self.registry.executing

    @property
    def completed(self) -> list[PendingAction]:
        return self.registry.completed

    def get_action(self, action_id: str) -> PendingAction | None:
        """Get an action from any partition."""
        return self.registry.get(action_id)

    def get_result(self, action_id: str) -> ActionResult | None:
        """Get the recorded outcome of an action."""
        return self.ledger.get(action_id)

    def get_action_results(self) -> dict[str, ActionResult]:
        """Get a copy of every recorded outcome."""
        return self.ledger.all()

    def status(self) -> GateStatus:
        """Get a summary of the gate."""
        counts = self.registry.counts()
        return GateStatus(
            enabled=self.enabled,
            pending=counts["pending"],
            executing=counts["executing"],
            completed=counts["completed"],
            results=len(self.ledger),
            max_pending_actions=self.settings.max_pending_actions,
            confirmation_timeout=self.settings.confirmation_timeout,
        )

    # Listeners

    def subscribe(self, listener: Listener) -> None:
        """Register a listener for gate events."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        """Remove a previously registered listener."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    # Lifecycle

    async def drain(self) -> None:
        """Wait for executor hand-offs scheduled by bypassed submissions."""
        while self._handoff_tasks:
            await asyncio.gather(*list(self._handoff_tasks), return_exceptions=True)

    def close(self) -> None:
        """Cancel outstanding timeout timers."""
        for handle in self._timeouts.values():
            handle.cancel()
        self._timeouts.clear()

    # Internals

    def _cancel(
        self,
        action_id: str,
        reason: str,
        cancelled_by: str | None,
        timed_out: bool,
    ) -> DecisionResult:
        cancelled = self.registry.transition(
            action_id,
            ActionEvent.CANCEL,
            decided_by=cancelled_by,
            decided_at=utc_now(),
            reason=reason,
        )
        if cancelled is None:
            logger.warning("Action not pending, cancellation ignored", action_id=action_id)
            return DecisionResult.not_pending(action_id)

        self._cancel_timeout(action_id)
        self.ledger.record(action_id, ActionResult.error_result(reason))
        self._settle(action_id, self._cancellation_error(cancelled))

        logger.info(
            "Action cancelled",
            action_id=action_id,
            type=cancelled.type,
            severity=cancelled.severity.value,
            reason=reason,
            cancelled_by=cancelled_by,
        )
        event = GateEvent.ACTION_TIMEOUT if timed_out else GateEvent.ACTION_CANCELLED
        self._emit(event, cancelled, reason=reason, cancelled_by=cancelled_by)

        return DecisionResult(
            outcome=DecisionOutcome.CANCELLED,
            action_id=action_id,
            message=f"Action cancelled: {reason}",
        )

    def _cancellation_error(self, action: PendingAction) -> ActionCancelledError:
        if action.reason == CONFIRMATION_TIMED_OUT:
            return ActionTimeoutError(action.id)
        return ActionCancelledError(action.id, action.reason or CANCELLED_BY_USER)

    def _settle(self, action_id: str, error: Exception | None = None) -> None:
        """Resolve or reject the action's future and drop it from the table."""
        waiter = self._waiters.pop(action_id, None)
        if waiter is None or waiter.done():
            return
        if error is None:
            waiter.set_result(True)
        else:
            waiter.set_exception(error)

    def _bypass(self, action: PendingAction) -> None:
        started = self.registry.transition(
            action.id,
            ActionEvent.START,
            decided_by="system:bypass",
            decided_at=utc_now(),
        )
        if started is None:
            return

        logger.warning("Safety switch disabled, auto-approving action", action_id=action.id)
        self._settle(action.id)
        self._emit(GateEvent.ACTION_CONFIRMED, started, confirmed_by="system:bypass")

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._hand_off_inline(started)
            return

        if self.executor is not None:
            self._track(loop, self._run_executor(started))

    async def _hand_off(self, action: PendingAction) -> DecisionResult:
        """Invoke the executor for a confirmed action.

        The executor runs in a task owned by the gate. A caller that stops
        waiting on ``confirm`` does not stop the hand-off; the outcome is
        still recorded and ``drain`` waits for it.
        """
        if self.executor is None:
            logger.debug("No executor configured, awaiting complete_action", action_id=action.id)
            return self._handed_off(action)

        task = self._track(asyncio.get_running_loop(), self._run_executor(action))
        return await asyncio.shield(task)

    def _track(
        self,
        loop: asyncio.AbstractEventLoop,
        coro: Coroutine[Any, Any, DecisionResult],
    ) -> asyncio.Task:
        task = loop.create_task(coro)
        self._handoff_tasks.add(task)
        task.add_done_callback(self._handoff_tasks.discard)
        return task

    async def _run_executor(self, action: PendingAction) -> DecisionResult:
        timer = AsyncTimer(f"executor hand-off {action.id}", logger)
        try:
            with action_context(action.id, type=action.type, severity=action.severity.value):
                async with timer:
                    outcome = self.executor(action)
                    if inspect.isawaitable(outcome):
                        outcome = await outcome
        except asyncio.CancelledError:
            self._fail_hand_off(action, RuntimeError(HANDOFF_CANCELLED))
            raise
        except Exception as e:
            return self._fail_hand_off(action, e)

        return self._after_hand_off(action, outcome, timer.elapsed)

    def _hand_off_inline(self, action: PendingAction) -> None:
        """Invoke the executor without an event loop (sync executors only)."""
        if self.executor is None:
            return

        start = time.perf_counter()
        try:
            outcome = self.executor(action)
        except Exception as e:
            self._fail_hand_off(action, e)
            return

        if inspect.isawaitable(outcome):
            if inspect.iscoroutine(outcome):
                outcome.close()
            self._fail_hand_off(
                action,
                RuntimeError("Async executor requires a running event loop"),
            )
            return

        self._after_hand_off(action, outcome, time.perf_counter() - start)

    def _after_hand_off(self, action: PendingAction, outcome: Any, elapsed: float) -> DecisionResult:
        if isinstance(outcome, ActionResult):
            if outcome.duration is None:
                outcome = outcome.model_copy(update={"duration": elapsed})
            return self.complete_action(action.id, outcome)
        return self._handed_off(action)

    def _fail_hand_off(self, action: PendingAction, error: Exception) -> DecisionResult:
        message = str(error) or type(error).__name__
        logger.error("Executor hand-off failed", action_id=action.id, error=message, exc_info=error)
        result = self.complete_action(action.id, ActionResult.error_result(message))
        if result.outcome == DecisionOutcome.NOT_EXECUTING:
            # The executor already reported an outcome before raising
            recorded = self.ledger.get(action.id)
            if recorded is not None and recorded.success:
                return DecisionResult(
                    outcome=DecisionOutcome.COMPLETED,
                    action_id=action.id,
                    message=f"Action completed: {recorded.result or 'ok'}",
                )
            return DecisionResult(
                outcome=DecisionOutcome.EXECUTION_FAILED,
                action_id=action.id,
                message=f"Action failed during execution: {message}",
            )
        return result

    def _handed_off(self, action: PendingAction) -> DecisionResult:
        return DecisionResult(
            outcome=DecisionOutcome.CONFIRMED,
            action_id=action.id,
            message="Action confirmed and handed to the executor",
        )

    def _schedule_timeout(self, action_id: str) -> None:
        timeout = self.settings.confirmation_timeout
        if timeout is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, confirmation timeout not scheduled", action_id=action_id)
            return
        self._timeouts[action_id] = loop.call_later(timeout, self._expire, action_id)

    def _cancel_timeout(self, action_id: str) -> None:
        handle = self._timeouts.pop(action_id, None)
        if handle is not None:
            handle.cancel()

    def _expire(self, action_id: str) -> None:
        self._timeouts.pop(action_id, None)
        logger.warning("Action confirmation timed out", action_id=action_id)
        self._cancel(action_id, CONFIRMATION_TIMED_OUT, "system:timeout", timed_out=True)

    def _emit(self, event: GateEvent, action: PendingAction | None, **details: Any) -> None:
        payload = {"action": action, **details}
        for listener in list(self._listeners):
            try:
                listener(event, payload)
            except Exception:
                logger.exception("Gate listener failed", gate_event=event.value)


def _mark_retrieved(future: asyncio.Future) -> None:
    """Consume a settled future's exception so unawaited rejections stay quiet."""
    if not future.cancelled():
        future.exception()
