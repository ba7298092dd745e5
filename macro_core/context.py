"""
Runtime context handed to conditions and actions during a tick.
"""

from __future__ import annotations

import time
from typing import Callable, Optional


class RunContext:
    """Small helper object passed to conditions and actions at runtime."""

    def __init__(
        self,
        logger: Optional[Callable[[str], None]] = None,
        error_logger: Optional[Callable[[str], None]] = None,
        sleep_hook: Optional[Callable[[float], None]] = None,
        interval_ms: int = 300,
    ):
        self._logger = logger
        self._error_logger = error_logger
        self._sleep = sleep_hook
        self.interval_ms = interval_ms

    def log(self, msg: str) -> None:
        if self._logger:
            try:
                self._logger(msg)
            except Exception:
                pass

    def error(self, msg: str) -> None:
        target = self._error_logger or self._logger
        if target:
            try:
                target(msg)
            except Exception:
                pass

    def sleep(self, seconds: float) -> None:
        if self._sleep:
            self._sleep(seconds)
        else:
            time.sleep(seconds)

    def sleep_ms(self, ms: int) -> None:
        self.sleep(max(ms, 0) / 1000.0)
