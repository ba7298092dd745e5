"""
Domain models for the macro switcher application.
"""

from dataclasses import dataclass
from typing import Any, Dict

from macro_core.engine import DEFAULT_INTERVAL_MS, MIN_INTERVAL_MS


@dataclass
class SwitcherSettings:
    """
    Persisted application preferences.

    The poll interval is kept in milliseconds and never drops below 1.
    """

    interval_ms: int = DEFAULT_INTERVAL_MS
    start_on_launch: bool = False
    start_hotkey: str = "F6"
    stop_hotkey: str = "F7"
    macros_path: str = "macros.json"
    log_max_entries: int = 100

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.interval_ms < MIN_INTERVAL_MS:
            self.interval_ms = MIN_INTERVAL_MS

        if self.log_max_entries < 1:
            raise ValueError("Log history must keep at least one entry")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize settings to primitive types for JSON storage."""
        return {
            "interval_ms": self.interval_ms,
            "start_on_launch": self.start_on_launch,
            "start_hotkey": self.start_hotkey,
            "stop_hotkey": self.stop_hotkey,
            "macros_path": self.macros_path,
            "log_max_entries": self.log_max_entries,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "SwitcherSettings":
        """Create settings instance from JSON dictionary."""
        return SwitcherSettings(
            interval_ms=int(data.get("interval_ms", DEFAULT_INTERVAL_MS) or DEFAULT_INTERVAL_MS),
            start_on_launch=bool(data.get("start_on_launch", False)),
            start_hotkey=str(data.get("start_hotkey", "F6")),
            stop_hotkey=str(data.get("stop_hotkey", "F7")),
            macros_path=str(data.get("macros_path", "macros.json") or "macros.json"),
            log_max_entries=int(data.get("log_max_entries", 100) or 100),
        )
