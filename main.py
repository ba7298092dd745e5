"""
Main entry point for the macro switcher.

Usage:
    python main.py [--start] [path/to/settings.json]

Loads settings and macros, wires the engine to the status log and the
global hotkeys, then runs until interrupted.
"""

from __future__ import annotations

import sys
import threading
from pathlib import Path
from typing import List, Optional

from hotkey_manager import HotkeyManager
from logger import StatusLogger
from macro_core import ACTIONS, CONDITIONS, MacroEngine, MacroStore, MacroStoreError
from models import SwitcherSettings
from settings_manager import SettingsManager


def build_engine(
    settings_manager: SettingsManager,
    settings: SwitcherSettings,
    status_logger: StatusLogger,
) -> Optional[MacroEngine]:
    """Load macros and wire the engine; returns None if the macro file is unusable."""
    for registry in (CONDITIONS, ACTIONS):
        for type_id in registry.rejected_ids():
            status_logger.log_error(f"Duplicate {registry.kind} type id '{type_id}' ignored")

    store = MacroStore()
    store.on_error(status_logger.log_warning)
    macros_path = settings_manager.macros_path(settings)
    try:
        store.load_file(macros_path)
    except MacroStoreError as e:
        status_logger.log_error(str(e))
        return None
    status_logger.log_info(f"Loaded {len(store)} macro(s) from {macros_path}")

    engine = MacroEngine(store, interval_ms=settings.interval_ms)
    status_logger.bind_engine(engine)
    return engine


def main(argv: Optional[List[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    start_now = "--start" in args
    paths = [a for a in args if not a.startswith("--")]
    settings_manager = SettingsManager(Path(paths[0]) if paths else None)
    settings = settings_manager.load()

    status_logger = StatusLogger(max_entries=settings.log_max_entries)
    status_logger.register_listener(print)
    engine = build_engine(settings_manager, settings, status_logger)
    if engine is None:
        return 1

    hotkeys = HotkeyManager(settings.start_hotkey, settings.stop_hotkey)
    hotkeys.bind_engine(engine)
    hotkeys.register_status_callback(status_logger.log_warning)
    hotkeys.enable_hotkeys()

    if start_now or settings.start_on_launch:
        engine.start()

    print(f"Macro switcher ready ({settings.start_hotkey} start, {settings.stop_hotkey} stop, Ctrl+C quit)")
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        pass
    finally:
        hotkeys.disable_hotkeys()
        engine.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
