"""End-to-end flows and randomized lifecycle properties for the gate."""

import random

import pytest

from safety_switch.actions.models import ActionResult, ActionStatus, Severity
from safety_switch.approval import ActionCancelledError, ConfirmationGate
from safety_switch.approval.gate import DecisionOutcome

TERMINAL = {ActionStatus.COMPLETED, ActionStatus.FAILED, ActionStatus.CANCELLED}


class TestEndToEnd:
    """Test complete submit -> decide -> complete flows."""

    @pytest.mark.asyncio
    async def test_source_file_write(self, gate):
        """Test a medium write confirmed without a phrase and completed."""
        action_id = gate.submit({"tool_name": "write-file", "parameters": {"filePath": "src/app.ts"}})
        action = gate.get_action(action_id)

        assert action.severity == Severity.MEDIUM
        assert not any(w.level == "critical" for w in action.security_warnings)
        assert action in gate.pending

        assert (await gate.confirm(action_id)).outcome == DecisionOutcome.CONFIRMED
        assert gate.registry.partition_of(action_id) == "executing"

        gate.complete_action(action_id, {"success": True})
        assert gate.registry.partition_of(action_id) == "completed"
        assert gate.get_action(action_id).status == ActionStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_env_file_write(self, gate):
        """Test a high write that needs the confirmation phrase."""
        action_id = gate.submit({"tool_name": "write-file", "parameters": {"filePath": ".env"}})
        action = gate.get_action(action_id)

        assert action.severity == Severity.HIGH
        assert any(w.level == "critical" for w in action.security_warnings)

        assert (await gate.confirm(action_id)).outcome == DecisionOutcome.PHRASE_REJECTED
        assert gate.get_action(action_id).status == ActionStatus.PENDING

        assert (await gate.confirm(action_id, "CONFIRM")).outcome == DecisionOutcome.CONFIRMED
        assert gate.get_action(action_id).status == ActionStatus.EXECUTING

    @pytest.mark.asyncio
    async def test_package_install_cancelled(self, gate):
        """Test cancelling a package install."""
        action_id = gate.submit({"tool_name": "install-package", "parameters": {"packageName": "left-pad"}})
        future = gate.confirmation_future(action_id)

        assert gate.get_action(action_id).severity == Severity.HIGH

        gate.cancel(action_id)

        assert gate.get_action(action_id).status == ActionStatus.CANCELLED
        assert gate.get_result(action_id).success is False
        with pytest.raises(ActionCancelledError):
            await future

    def test_destructive_shell_command(self, gate):
        """Test that sudo plus rm is critical exactly once."""
        action_id = gate.submit(
            {"tool_name": "run-shell-command", "parameters": {"command": "sudo rm -rf node_modules"}}
        )
        action = gate.get_action(action_id)

        assert action.severity == Severity.CRITICAL
        assert any(w.level == "critical" for w in action.security_warnings)
        assert action.requires_enhanced_confirmation


class TestLifecycleProperties:
    """Randomized sequences of gate operations."""

    CALLS = [
        {"tool_name": "write-file", "parameters": {"filePath": "src/app.ts"}},
        {"tool_name": "write-file", "parameters": {"filePath": "README.md"}},
        {"tool_name": "write-file", "parameters": {"filePath": ".env"}},
        {"tool_name": "install-package", "parameters": {"packageName": "lodash"}},
        {"tool_name": "run-shell-command", "parameters": {"command": "rm -rf dist"}},
        {"tool_name": "run-shell-command", "parameters": {"command": "ls"}},
        {"tool_name": "deploy", "parameters": {}},
    ]

    def check_partitions(self, gate: ConfirmationGate, seen: dict[str, ActionStatus]) -> None:
        pending = [a.id for a in gate.pending]
        executing = [a.id for a in gate.executing]
        completed = [a.id for a in gate.completed]
        all_ids = pending + executing + completed

        # Every id lives in exactly one partition
        assert len(all_ids) == len(set(all_ids))
        assert all(gate.get_action(i).status == ActionStatus.PENDING for i in pending)
        assert all(gate.get_action(i).status == ActionStatus.EXECUTING for i in executing)
        assert all(gate.get_action(i).status in TERMINAL for i in completed)

        for action_id in all_ids:
            status = gate.get_action(action_id).status
            previous = seen.get(action_id)
            if previous in TERMINAL:
                assert status == previous
            if previous == ActionStatus.EXECUTING:
                assert status != ActionStatus.PENDING
            seen[action_id] = status

    @pytest.mark.asyncio
    @pytest.mark.parametrize("seed", range(20))
    async def test_random_operations(self, test_settings, seed):
        """Test exclusivity and monotonicity over random operation sequences."""
        settings = test_settings.model_copy(update={"max_pending_actions": None})
        gate = ConfirmationGate(settings)
        rng = random.Random(seed)
        ids: list[str] = []
        seen: dict[str, ActionStatus] = {}

        for _ in range(60):
            op = rng.choice(["submit", "confirm", "confirm_phrase", "cancel", "complete", "fail"])
            target = rng.choice(ids) if ids else None

            if op == "submit" or target is None:
                ids.append(gate.submit(rng.choice(self.CALLS)))
            elif op == "confirm":
                await gate.confirm(target)
            elif op == "confirm_phrase":
                await gate.confirm(target, "CONFIRM")
            elif op == "cancel":
                gate.cancel(target)
            elif op == "complete":
                gate.complete_action(target, ActionResult.success_result())
            else:
                gate.complete_action(target, ActionResult.error_result("boom"))

            self.check_partitions(gate, seen)

        assert len(gate.registry) == len(ids)
