"""Tests for the evaluation loop."""
from __future__ import annotations

import threading
import time

import pytest

from macro_core import (
    EngineState,
    FileCondition,
    Macro,
    MacroAction,
    MacroCondition,
    MacroEngine,
    MacroStore,
    MacroStoreError,
    RegistryEntry,
    TypeRegistry,
)
from macro_core.editor import SegmentEditor
from macro_core.engine import MIN_INTERVAL_MS


def _store() -> MacroStore:
    return MacroStore(conditions=TypeRegistry("condition"), actions=TypeRegistry("action"))


def test_end_to_end_file_macro(tmp_path, recording_action):
    target = tmp_path / "status.txt"
    store = _store()
    macro = Macro("ready")
    condition = FileCondition()
    condition.path = str(target)
    condition.text = "READY"
    action = recording_action("go")
    macro.add_condition(condition)
    macro.add_action(action)
    store.add_macro(macro)
    engine = MacroEngine(store)

    target.write_text("READY", encoding="utf-8")
    assert engine.tick() == ["ready"]
    assert action.runs == 1

    assert engine.tick() == []
    assert macro.last_matched is True
    assert action.runs == 1

    target.write_text("NOTREADY", encoding="utf-8")
    assert engine.tick() == []
    assert macro.last_matched is False
    assert action.runs == 1
    assert engine.get_ticks_executed() == 3


def test_macros_evaluate_in_store_order(counting_condition, recording_action):
    store = _store()
    order = []
    for name in ("first", "second", "third"):
        macro = Macro(name)
        macro.add_condition(counting_condition(True))
        macro.add_action(recording_action(name, order))
        store.add_macro(macro)
    store.move_macro("third", 0)
    store.set_paused("second", True)

    assert MacroEngine(store).tick() == ["third", "first"]
    assert order == ["third", "first"]


def test_action_failure_is_reported(counting_condition, recording_action):
    store = _store()
    macro = Macro("m")
    macro.add_condition(counting_condition(True))
    macro.add_action(recording_action("bad", fail=True))
    store.add_macro(macro)
    engine = MacroEngine(store)
    errors = []
    engine.register_error_callback(errors.append)

    engine.tick()
    assert len(errors) == 1
    assert "bad failed" in errors[0]


def test_interval_is_clamped():
    engine = MacroEngine(_store(), interval_ms=0)
    assert engine.interval_ms == MIN_INTERVAL_MS
    engine.interval_ms = 750
    assert engine.interval_ms == 750
    engine.interval_ms = -5
    assert engine.interval_ms == MIN_INTERVAL_MS


def test_start_runs_ticks_and_stop_interrupts_sleep(counting_condition):
    store = _store()
    macro = Macro("m")
    condition = counting_condition(False)
    macro.add_condition(condition)
    store.add_macro(macro)
    engine = MacroEngine(store, interval_ms=10)

    assert engine.start() is True
    assert engine.start() is False
    assert engine.get_state() == EngineState.RUNNING

    deadline = time.monotonic() + 5
    while condition.calls < 2 and time.monotonic() < deadline:
        time.sleep(0.01)
    assert condition.calls >= 2

    engine.interval_ms = 60_000
    time.sleep(0.05)
    started = time.monotonic()
    engine.stop()
    assert time.monotonic() - started < 2
    assert engine.get_state() == EngineState.STOPPED
    assert not engine.is_running()


def test_start_seals_registries(counting_condition):
    store = _store()
    engine = MacroEngine(store, interval_ms=60_000)
    engine.start()
    try:
        assert store.condition_registry.is_sealed()
        assert store.action_registry.is_sealed()
    finally:
        engine.stop()


def test_corrupt_store_refuses_to_start(tmp_path):
    path = tmp_path / "macros.json"
    path.write_text("[]", encoding="utf-8")
    store = _store()
    with pytest.raises(MacroStoreError):
        store.load_file(path)
    engine = MacroEngine(store)
    errors = []
    engine.register_error_callback(errors.append)

    assert engine.start() is False
    assert engine.get_state() == EngineState.STOPPED
    assert errors


def test_start_refused_while_lock_is_held():
    store = _store()
    engine = MacroEngine(store, lock_timeout=0.05)
    holder_ready = threading.Event()
    release = threading.Event()

    def hold():
        with store.locked():
            holder_ready.set()
            release.wait(5)

    worker = threading.Thread(target=hold)
    worker.start()
    holder_ready.wait(5)
    try:
        assert engine.start() is False
    finally:
        release.set()
        worker.join()
    assert engine.get_state() == EngineState.STOPPED


def test_registry_entries_still_construct_after_start(counting_condition):
    conditions = TypeRegistry("condition")
    conditions.register("counting", RegistryEntry(counting_condition, SegmentEditor, "counting"))
    store = MacroStore(conditions=conditions, actions=TypeRegistry("action"))
    engine = MacroEngine(store, interval_ms=60_000)
    engine.start()
    try:
        assert store.create_condition("counting").calls == 0
    finally:
        engine.stop()


def test_restart_after_stop_from_worker_keeps_one_evaluator():
    store = _store()
    checked_by = []
    stopped_from_worker = threading.Event()

    class ThreadRecordingCondition(MacroCondition):
        def check_condition(self, ctx):
            checked_by.append(threading.current_thread())
            return True

    class StopEngineAction(MacroAction):
        def perform_action(self, ctx):
            engine.stop()
            stopped_from_worker.set()

    macro = Macro("self-stopping")
    macro.add_condition(ThreadRecordingCondition())
    macro.add_action(StopEngineAction())
    store.add_macro(macro)
    engine = MacroEngine(store, interval_ms=10)

    assert engine.start() is True
    first_worker = engine._worker_thread
    assert stopped_from_worker.wait(5)
    assert engine.get_state() == EngineState.STOPPED

    assert engine.start() is True
    second_worker = engine._worker_thread
    first_worker.join(timeout=5)
    assert not first_worker.is_alive()

    restart_index = len(checked_by)
    deadline = time.monotonic() + 5
    while len(checked_by) < restart_index + 3 and time.monotonic() < deadline:
        time.sleep(0.01)
    engine.stop()

    assert len(checked_by) >= restart_index + 3
    assert set(checked_by[restart_index:]) == {second_worker}
