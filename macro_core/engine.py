"""
Macro Engine - the background evaluation loop.

The engine owns one worker thread. Each tick it sleeps for the poll
interval, takes the store lock and evaluates every macro in order.
It doesn't know about settings files, hotkeys or the status log; those are
wired in through callbacks.
"""

from __future__ import annotations

from enum import Enum
import threading
from typing import Callable, List, Optional

from .context import RunContext
from .store import MacroStore, MacroStoreError

DEFAULT_INTERVAL_MS = 300
MIN_INTERVAL_MS = 1


class EngineState(Enum):
    """Enumeration of engine states."""
    STOPPED = "stopped"
    RUNNING = "running"


class MacroEngine:
    """
    Periodically evaluates all macros of a MacroStore.

    Only one tick runs at a time. Stopping interrupts the pending sleep
    immediately; a tick already in progress finishes first.
    """

    def __init__(
        self,
        store: MacroStore,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        lock_timeout: float = 5.0,
    ):
        """
        Initialize the engine.

        Args:
            store: Macro collection shared with the control thread
            interval_ms: Poll interval in milliseconds
            lock_timeout: Seconds to wait for the store lock when starting
        """
        self._store = store
        self._interval_ms = max(MIN_INTERVAL_MS, int(interval_ms))
        self._lock_timeout = lock_timeout
        self._state = EngineState.STOPPED
        self._worker_thread: Optional[threading.Thread] = None
        self._stop_flag = threading.Event()
        self._control_lock = threading.RLock()
        self._ticks_executed = 0
        self._status_callback: Optional[Callable[[str], None]] = None
        self._error_callback: Optional[Callable[[str], None]] = None

    def register_status_callback(self, callback: Callable[[str], None]) -> None:
        """Register a callback for status updates."""
        self._status_callback = callback

    def register_error_callback(self, callback: Callable[[str], None]) -> None:
        """Register a callback for action failures and other reported errors."""
        self._error_callback = callback

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    @interval_ms.setter
    def interval_ms(self, value: int) -> None:
        """Takes effect on the next sleep."""
        self._interval_ms = max(MIN_INTERVAL_MS, int(value))

    def start(self) -> bool:
        """
        Start evaluating macros in a separate thread.

        Seals the type registries so no new condition or action types can be
        added while macros are being evaluated. Each run gets its own stop
        event, so a worker left over from a previous run never ticks again.

        Returns:
            bool: True if started successfully, False otherwise
        """
        with self._control_lock:
            if self._state == EngineState.RUNNING:
                self._notify_status("Already running")
                return False

            if self._store.is_corrupted():
                self._notify_error("Macro store failed to load; refusing to start")
                return False

            try:
                with self._store.locked(timeout=self._lock_timeout):
                    pass
            except MacroStoreError as e:
                self._notify_error(f"{e}; refusing to start")
                return False

            self._store.condition_registry.seal()
            self._store.action_registry.seal()

            self._stop_flag = threading.Event()
            self._ticks_executed = 0
            self._state = EngineState.RUNNING

            self._worker_thread = threading.Thread(
                target=self._evaluation_worker, args=(self._stop_flag,), daemon=True
            )
            self._worker_thread.start()

        self._notify_status("Macro engine started")
        return True

    def stop(self) -> None:
        """Stop the engine; waits for a running tick to finish."""
        with self._control_lock:
            if self._state != EngineState.RUNNING:
                return

            self._stop_flag.set()
            self._state = EngineState.STOPPED
            worker = self._worker_thread

        # Called from an action on the worker itself: the loop exits after this tick
        if worker and worker.is_alive() and worker is not threading.current_thread():
            worker.join()

        self._notify_status(f"Macro engine stopped. Ticks: {self._ticks_executed}")

    def get_state(self) -> EngineState:
        """Returns the current state of the engine."""
        return self._state

    def get_ticks_executed(self) -> int:
        return self._ticks_executed

    def is_running(self) -> bool:
        return self._state == EngineState.RUNNING

    def tick(self) -> List[str]:
        """
        Evaluate every macro once.

        Returns:
            Names of the macros whose actions ran during this tick
        """
        ctx = RunContext(
            logger=self._notify_status,
            error_logger=self._notify_error,
            interval_ms=self._interval_ms,
        )
        triggered: List[str] = []
        with self._store.locked():
            for macro in self._store.macros():
                was_matched = macro.last_matched
                if macro.evaluate(ctx) and not was_matched:
                    triggered.append(macro.name)
            self._ticks_executed += 1
        return triggered

    def _evaluation_worker(self, stop_flag: threading.Event) -> None:
        """
        Worker thread running the poll loop.

        The interval is read again before every sleep so runtime changes
        apply to the next wait. The stop flag is checked again under the
        store lock so a stopped run never starts another tick.
        """
        while not stop_flag.wait(self._interval_ms / 1000.0):
            try:
                with self._store.locked():
                    if stop_flag.is_set():
                        break
                    self.tick()
            except Exception as e:
                self._notify_error(f"Evaluation tick failed: {e}")

    def _notify_status(self, message: str) -> None:
        if self._status_callback:
            self._status_callback(message)

    def _notify_error(self, message: str) -> None:
        if self._error_callback:
            self._error_callback(message)
        else:
            self._notify_status(message)
