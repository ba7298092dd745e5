"""Tests for the timer condition and the built-in actions."""
from __future__ import annotations

import pytest

from macro_core import ActionError, RunContext, TimerCondition
from macro_core import conditions as conditions_module
from macro_core.actions import RunAction, WaitAction, tokenize_keys


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock(monkeypatch):
    fake = FakeClock()
    monkeypatch.setattr(conditions_module.time, "monotonic", fake)
    return fake


class TestTimerCondition:
    def test_first_check_starts_the_timer(self, ctx, clock):
        timer = TimerCondition(seconds=5)
        assert timer.check_condition(ctx) is False
        clock.now += 4
        assert timer.check_condition(ctx) is False
        clock.now += 1
        assert timer.check_condition(ctx) is True

    def test_auto_reset_restarts_after_match(self, ctx, clock):
        timer = TimerCondition(seconds=2, auto_reset=True)
        timer.check_condition(ctx)
        clock.now += 2
        assert timer.check_condition(ctx) is True
        assert timer.check_condition(ctx) is False
        clock.now += 2
        assert timer.check_condition(ctx) is True

    def test_without_auto_reset_keeps_matching(self, ctx, clock):
        timer = TimerCondition(seconds=1, auto_reset=False)
        timer.check_condition(ctx)
        clock.now += 1
        assert timer.check_condition(ctx) is True
        assert timer.check_condition(ctx) is True

        timer.reset()
        assert timer.check_condition(ctx) is False

    def test_save_and_load(self):
        timer = TimerCondition(seconds=2.5, auto_reset=False)
        data = timer.to_dict()
        assert data["id"] == "timer"
        assert data["seconds"] == 2.5
        assert data["autoReset"] is False

        restored = TimerCondition()
        restored.load(data)
        assert restored.seconds == 2.5
        assert restored.auto_reset is False
        assert restored.get_short_desc() == "2.5s"


class TestActions:
    def test_wait_sleeps_through_the_context(self):
        slept = []
        WaitAction(milliseconds=250).perform_action(RunContext(sleep_hook=slept.append))
        assert slept == [0.25]

    def test_wait_never_sleeps_negative(self):
        slept = []
        WaitAction(milliseconds=-10).perform_action(RunContext(sleep_hook=slept.append))
        assert slept == [0.0]

    def test_run_without_command_raises(self, ctx):
        with pytest.raises(ActionError):
            RunAction().perform_action(ctx)

    def test_run_save_and_load(self):
        action = RunAction(command="notify-send", args=["done"], wait=0.5)
        restored = RunAction()
        restored.load(action.to_dict())
        assert restored.command == "notify-send"
        assert restored.args == ["done"]
        assert restored.wait == 0.5

    def test_key_sequence_tokens(self):
        assert tokenize_keys("hello <ENTER> world") == ["hello", "<ENTER>", "world"]
        assert tokenize_keys("a<TAB>b") == ["a", "<TAB>", "b"]
