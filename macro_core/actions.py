"""
Macro actions: small, composable building blocks run when a macro triggers.

Registered action types:
- run:             start an application in background
- wait:            sleep for milliseconds
- send_keys:       send key combinations to OS (background when possible)
- type_text:       type literal text (no cursor movement)
- window_activate: bring a window to foreground by title (best-effort)
- mouse_click:     click mouse at (x,y) or current position
- scroll:          mouse wheel scroll (vertical or horizontal)

Notes
-----
- On Windows, we use pywinauto for reliable background key dispatch and
  window activation. On other platforms, we fallback to pynput to send
  keystrokes to the currently focused window.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import subprocess
import sys
from typing import Any, Dict, List, Optional, Tuple

from .context import RunContext
from .editor import SegmentEditor
from .registry import ACTIONS, RegistryEntry
from .segment import MacroSegment


class ActionError(Exception):
    pass


class MacroAction(MacroSegment):
    """Common interface for all actions."""

    def perform_action(self, ctx: RunContext) -> None:  # pragma: no cover - runtime behavior
        raise NotImplementedError


@dataclass(eq=False)
class RunAction(MacroAction):
    id = "run"

    command: str = ""
    args: List[str] = field(default_factory=list)
    cwd: Optional[str] = None
    wait: float = 0.0

    def __post_init__(self) -> None:
        MacroAction.__init__(self)

    def perform_action(self, ctx: RunContext) -> None:
        if not self.command:
            raise ActionError("run: 'command' is required")
        try:
            subprocess.Popen([self.command, *self.args], cwd=self.cwd or None)
        except OSError as e:
            raise ActionError(f"Failed to start process '{self.command}': {e}")
        if self.wait > 0:
            ctx.sleep(self.wait)

    def get_short_desc(self) -> str:
        return self.command

    def save(self, obj: Dict[str, Any]) -> bool:
        super().save(obj)
        obj["command"] = self.command
        obj["args"] = list(self.args)
        obj["cwd"] = self.cwd
        obj["wait"] = self.wait
        return True

    def load(self, obj: Dict[str, Any]) -> bool:
        super().load(obj)
        self.command = str(obj.get("command", "") or "")
        self.args = [str(a) for a in obj.get("args", []) or []]
        self.cwd = obj.get("cwd") or None
        self.wait = float(obj.get("wait", 0.0) or 0.0)
        return True


@dataclass(eq=False)
class WaitAction(MacroAction):
    id = "wait"

    milliseconds: int = 0

    def __post_init__(self) -> None:
        MacroAction.__init__(self)

    def perform_action(self, ctx: RunContext) -> None:
        ctx.sleep_ms(self.milliseconds)

    def get_short_desc(self) -> str:
        return f"{self.milliseconds} ms"

    def save(self, obj: Dict[str, Any]) -> bool:
        super().save(obj)
        obj["milliseconds"] = self.milliseconds
        return True

    def load(self, obj: Dict[str, Any]) -> bool:
        super().load(obj)
        self.milliseconds = int(obj.get("milliseconds", 0) or 0)
        return True


@dataclass(eq=False)
class SendKeysAction(MacroAction):
    id = "send_keys"

    sequence: str = ""

    def __post_init__(self) -> None:
        MacroAction.__init__(self)

    def perform_action(self, ctx: RunContext) -> None:
        if not self.sequence:
            return
        # Try Windows backend first
        if sys.platform.startswith("win"):
            if _try_pywinauto_send_keys(self.sequence, ctx, pause=0.02):
                ctx.sleep(0.05)
                return
        kb_cls, key_mod = _get_pynput()
        if kb_cls is None or key_mod is None:
            raise ActionError("No keyboard backend available (install pynput)")
        kb = kb_cls()
        token_map = {
            "<ENTER>": getattr(key_mod, "enter", None),
            "<TAB>": getattr(key_mod, "tab", None),
            "<ESC>": getattr(key_mod, "esc", None),
            "<BACKSPACE>": getattr(key_mod, "backspace", None),
            "<DELETE>": getattr(key_mod, "delete", None),
            "<HOME>": getattr(key_mod, "home", None),
            "<END>": getattr(key_mod, "end", None),
            "<UP>": getattr(key_mod, "up", None),
            "<DOWN>": getattr(key_mod, "down", None),
            "<LEFT>": getattr(key_mod, "left", None),
            "<RIGHT>": getattr(key_mod, "right", None),
            "<SPACE>": " ",
        }
        for token in tokenize_keys(self.sequence):
            mapped = token_map.get(token)
            if mapped is None:
                for ch in token:
                    kb.press(ch)
                    kb.release(ch)
            else:
                kb.press(mapped)
                kb.release(mapped)
        # Give the target app a moment to process
        ctx.sleep(0.05)

    def get_short_desc(self) -> str:
        return self.sequence

    def save(self, obj: Dict[str, Any]) -> bool:
        super().save(obj)
        obj["sequence"] = self.sequence
        return True

    def load(self, obj: Dict[str, Any]) -> bool:
        super().load(obj)
        self.sequence = str(obj.get("sequence", "") or "")
        return True


def tokenize_keys(sequence: str) -> List[str]:
    """Split a key sequence, keeping bracketed tokens like <ENTER> whole."""
    out: List[str] = []
    buf = ""
    in_tag = False
    for ch in sequence:
        if ch == "<":
            if buf:
                out.append(buf)
                buf = ""
            in_tag = True
            buf += ch
        elif ch == ">" and in_tag:
            buf += ch
            out.append(buf)
            buf = ""
            in_tag = False
        else:
            buf += ch
    if buf:
        out.append(buf)
    flat: List[str] = []
    for part in out:
        if part.startswith("<") and part.endswith(">"):
            flat.append(part)
        else:
            flat.extend([p for p in part.split(" ") if p])
    return flat


@dataclass(eq=False)
class TypeTextAction(MacroAction):
    id = "type_text"

    text: str = ""

    def __post_init__(self) -> None:
        MacroAction.__init__(self)

    def perform_action(self, ctx: RunContext) -> None:
        if not self.text:
            return
        if sys.platform.startswith("win"):
            if _try_pywinauto_send_keys(self.text, ctx, pause=0.015):
                ctx.sleep(0.1)
                return
        kb_cls, key_mod = _get_pynput()
        if kb_cls is None or key_mod is None:
            raise ActionError("No keyboard backend available (install pynput)")
        kb = kb_cls()
        for ch in self.text:
            kb.press(ch)
            kb.release(ch)
            ctx.sleep(0.01)
        ctx.sleep(0.1)

    def get_short_desc(self) -> str:
        return self.text

    def save(self, obj: Dict[str, Any]) -> bool:
        super().save(obj)
        obj["text"] = self.text
        return True

    def load(self, obj: Dict[str, Any]) -> bool:
        super().load(obj)
        self.text = str(obj.get("text", "") or "")
        return True


@dataclass(eq=False)
class WindowActivateAction(MacroAction):
    id = "window_activate"

    title: str = ""

    def __post_init__(self) -> None:
        MacroAction.__init__(self)

    def perform_action(self, ctx: RunContext) -> None:
        if not self.title:
            return
        if not sys.platform.startswith("win"):
            ctx.log("window_activate is only fully supported on Windows")
            return
        try:
            from pywinauto import Application  # type: ignore
            app = Application(backend="uia").connect(title_re=self.title)
            app.top_window().set_focus()
        except Exception as e:  # pragma: no cover
            raise ActionError(f"window_activate failed: {e}")

    def get_short_desc(self) -> str:
        return self.title

    def save(self, obj: Dict[str, Any]) -> bool:
        super().save(obj)
        obj["title"] = self.title
        return True

    def load(self, obj: Dict[str, Any]) -> bool:
        super().load(obj)
        self.title = str(obj.get("title", "") or "")
        return True


@dataclass(eq=False)
class MouseClickAction(MacroAction):
    id = "mouse_click"

    x: Optional[int] = None
    y: Optional[int] = None
    button: str = "left"  # left|right|middle
    clicks: int = 1

    def __post_init__(self) -> None:
        MacroAction.__init__(self)

    def perform_action(self, ctx: RunContext) -> None:
        m_ctrl_cls, m_btn_mod = _get_pynput_mouse()
        btn_name = self.button if self.button in ("left", "right", "middle") else "left"
        count = max(1, int(self.clicks or 1))
        ctx.log(f"mouse_click: x={self.x}, y={self.y}, button={btn_name}, clicks={count}")
        if m_ctrl_cls is not None and m_btn_mod is not None:
            try:
                controller = m_ctrl_cls()
                btn = getattr(m_btn_mod, btn_name)
                if self.x is not None and self.y is not None:
                    controller.position = (int(self.x), int(self.y))
                for _ in range(count):
                    controller.click(btn)
                return
            except Exception as e:  # pragma: no cover
                ctx.log(f"pynput mouse_click failed, fallback to pyautogui: {e}")
        try:
            import pyautogui  # local import to avoid hard dep at import time
            for _ in range(count):
                if self.x is not None and self.y is not None:
                    pyautogui.click(x=int(self.x), y=int(self.y), button=btn_name)
                else:
                    pyautogui.click(button=btn_name)
        except Exception as e:  # pragma: no cover
            raise ActionError(f"mouse_click failed: {e}")

    def get_short_desc(self) -> str:
        if self.x is None or self.y is None:
            return self.button
        return f"{self.button} ({self.x}, {self.y})"

    def save(self, obj: Dict[str, Any]) -> bool:
        super().save(obj)
        obj["x"] = self.x
        obj["y"] = self.y
        obj["button"] = self.button
        obj["clicks"] = self.clicks
        return True

    def load(self, obj: Dict[str, Any]) -> bool:
        super().load(obj)
        x, y = obj.get("x"), obj.get("y")
        self.x = int(x) if x is not None else None
        self.y = int(y) if y is not None else None
        self.button = str(obj.get("button", "left") or "left")
        self.clicks = int(obj.get("clicks", 1) or 1)
        return True


@dataclass(eq=False)
class ScrollAction(MacroAction):
    id = "scroll"

    amount: int = 0
    horizontal: bool = False

    def __post_init__(self) -> None:
        MacroAction.__init__(self)

    def perform_action(self, ctx: RunContext) -> None:
        amt = int(self.amount or 0)
        ctx.log(f"scroll: amount={amt}, horizontal={self.horizontal}")
        m_ctrl_cls, _m_btn_mod = _get_pynput_mouse()
        if m_ctrl_cls is not None:
            try:
                controller = m_ctrl_cls()
                if self.horizontal:
                    controller.scroll(amt, 0)
                else:
                    controller.scroll(0, amt)
                return
            except Exception as e:  # pragma: no cover
                ctx.log(f"pynput scroll failed, fallback to pyautogui: {e}")
        try:
            import pyautogui  # local import
            if self.horizontal:
                pyautogui.hscroll(amt)
            else:
                pyautogui.scroll(amt)
        except Exception as e:  # pragma: no cover
            raise ActionError(f"scroll failed: {e}")

    def get_short_desc(self) -> str:
        return f"{self.amount}"

    def save(self, obj: Dict[str, Any]) -> bool:
        super().save(obj)
        obj["amount"] = self.amount
        obj["horizontal"] = self.horizontal
        return True

    def load(self, obj: Dict[str, Any]) -> bool:
        super().load(obj)
        self.amount = int(obj.get("amount", 0) or 0)
        self.horizontal = bool(obj.get("horizontal", False))
        return True


def _get_pynput() -> Tuple[Optional[Any], Optional[Any]]:
    """Import pynput lazily and return (KeyboardControllerClass, KeyModule)."""
    try:
        from pynput.keyboard import Controller as KeyboardController, Key as KeyModule  # type: ignore
        return KeyboardController, KeyModule
    except Exception:
        return None, None


def _get_pynput_mouse() -> Tuple[Optional[Any], Optional[Any]]:
    """Import pynput.mouse lazily and return (MouseControllerClass, ButtonModule)."""
    try:
        from pynput.mouse import Controller as MouseController, Button as MouseButton  # type: ignore
        return MouseController, MouseButton
    except Exception:
        return None, None


def _try_pywinauto_send_keys(text: str, ctx: RunContext, *, pause: float = 0.0) -> bool:
    """Try to send keys via pywinauto on Windows; return True on success."""
    try:
        from pywinauto.keyboard import send_keys as pw_send_keys  # type: ignore
        pw_send_keys(text, with_spaces=True, pause=max(0.0, float(pause)))
        return True
    except Exception as e:  # pragma: no cover
        ctx.log(f"pywinauto send_keys failed: {e}")
        return False


for _cls, _name in (
    (RunAction, "Macro.action.run"),
    (WaitAction, "Macro.action.wait"),
    (SendKeysAction, "Macro.action.sendKeys"),
    (TypeTextAction, "Macro.action.typeText"),
    (WindowActivateAction, "Macro.action.windowActivate"),
    (MouseClickAction, "Macro.action.mouseClick"),
    (ScrollAction, "Macro.action.scroll"),
):
    ACTIONS.register(_cls.id, RegistryEntry(_cls, SegmentEditor, _name))
