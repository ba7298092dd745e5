from __future__ import annotations

import pytest

from macro_core import ActionError, MacroAction, MacroCondition, RunContext


class CountingCondition(MacroCondition):
    """Returns a fixed value and counts how often it was checked."""

    id = "counting"

    def __init__(self, value: bool = True) -> None:
        super().__init__()
        self.value = value
        self.calls = 0

    def check_condition(self, ctx: RunContext) -> bool:
        self.calls += 1
        return self.value


class RecordingAction(MacroAction):
    """Records every run into a shared list; optionally fails."""

    id = "recording"

    def __init__(self, label: str = "", log: list | None = None, fail: bool = False) -> None:
        super().__init__()
        self.label = label
        self.log = log if log is not None else []
        self.fail = fail
        self.runs = 0

    def perform_action(self, ctx: RunContext) -> None:
        self.runs += 1
        self.log.append(self.label)
        if self.fail:
            raise ActionError(f"{self.label} failed")


@pytest.fixture
def counting_condition():
    return CountingCondition


@pytest.fixture
def recording_action():
    return RecordingAction


@pytest.fixture
def errors():
    return []


@pytest.fixture
def ctx(errors):
    return RunContext(error_logger=errors.append, sleep_hook=lambda _s: None, interval_ms=300)
