"""Global start/stop hotkeys for the macro engine, built on top of pynput."""

from __future__ import annotations

from typing import Callable, Dict, Optional

try:
    from pynput import keyboard  # type: ignore
except Exception as _e:  # pragma: no cover - environment dependent
    keyboard = None  # type: ignore

_SPECIAL_KEY_ALIASES: Dict[str, str] = {
    "ctrl": "ctrl",
    "control": "ctrl",
    "alt": "alt",
    "option": "alt",
    "shift": "shift",
    "win": "cmd",
    "cmd": "cmd",
    "command": "cmd",
    "super": "cmd",
}


def to_pynput_hotkey(hotkey: str) -> str:
    """Translate a hotkey like 'Ctrl+Shift+F6' into pynput's '<ctrl>+<shift>+<f6>'."""
    if not hotkey:
        raise ValueError("Empty hotkey string")

    tokens = [token.strip() for token in hotkey.replace("+", " ").split() if token.strip()]
    if not tokens:
        raise ValueError("Hotkey contains no tokens")

    parsed: list[str] = []
    for token in tokens:
        lower_token = token.lower()
        if lower_token in _SPECIAL_KEY_ALIASES:
            parsed.append(f"<{_SPECIAL_KEY_ALIASES[lower_token]}>")
        elif lower_token.startswith("f") and lower_token[1:].isdigit():
            parsed.append(f"<{lower_token}>")
        else:
            parsed.append(lower_token)
    return "+".join(parsed)


class HotkeyManager:
    """Starts and stops the macro engine from global hotkeys."""

    def __init__(self, start_hotkey: str = "F6", stop_hotkey: str = "F7") -> None:
        self._start_hotkey = start_hotkey
        self._stop_hotkey = stop_hotkey
        self._start_callback: Optional[Callable[[], None]] = None
        self._stop_callback: Optional[Callable[[], None]] = None
        self._status_callback: Optional[Callable[[str], None]] = None
        self._listener: Optional[object] = None
        self._is_registered = False

    def bind_engine(self, engine) -> None:
        """Use engine.start / engine.stop as the hotkey callbacks."""
        self._start_callback = engine.start
        self._stop_callback = engine.stop

    def register_status_callback(self, callback: Callable[[str], None]) -> None:
        self._status_callback = callback

    def build_hotkey_map(self) -> Dict[str, Callable[[], None]]:
        hotkey_map: Dict[str, Callable[[], None]] = {}
        if self._start_callback:
            hotkey_map[to_pynput_hotkey(self._start_hotkey)] = self._start_callback
        if self._stop_callback:
            hotkey_map[to_pynput_hotkey(self._stop_hotkey)] = self._stop_callback
        return hotkey_map

    def enable_hotkeys(self) -> bool:
        if self._is_registered:
            return True

        try:
            hotkey_map = self.build_hotkey_map()
        except ValueError as exc:
            self._notify(f"Invalid hotkey definition: {exc}")
            return False

        if not hotkey_map:
            return False

        if keyboard is None:
            self._notify("pynput/keyboard backend not available; global hotkeys disabled")
            return False
        try:
            self._listener = keyboard.GlobalHotKeys(hotkey_map)
            self._listener.start()
            self._is_registered = True
            return True
        except Exception as exc:  # pragma: no cover - system specific
            self._notify(f"Failed to register hotkeys: {exc}")
            self._listener = None
            self._is_registered = False
            return False

    def disable_hotkeys(self) -> None:
        if not self._is_registered:
            return

        if self._listener is not None:
            try:
                self._listener.stop()  # type: ignore[attr-defined]
            except Exception as exc:  # pragma: no cover - system specific
                self._notify(f"Failed to stop hotkey listener: {exc}")
            self._listener = None

        self._is_registered = False

    def is_enabled(self) -> bool:
        return self._is_registered

    def update_hotkeys(self, start_hotkey: str, stop_hotkey: str) -> bool:
        was_registered = self._is_registered
        if was_registered:
            self.disable_hotkeys()

        self._start_hotkey = start_hotkey
        self._stop_hotkey = stop_hotkey

        if was_registered:
            return self.enable_hotkeys()
        return True

    def _notify(self, message: str) -> None:
        if self._status_callback:
            self._status_callback(message)
