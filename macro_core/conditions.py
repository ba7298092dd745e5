"""
Condition base class, logic types and simple built-in conditions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import time
from typing import Any, Dict, Optional

from .context import RunContext
from .editor import SegmentEditor
from .registry import CONDITIONS, RegistryEntry
from .segment import MacroSegment


class LogicType(Enum):
    """How a condition combines with the result accumulated before it."""
    ROOT_NONE = "root_none"
    ROOT_NOT = "root_not"
    AND = "and"
    OR = "or"
    AND_NOT = "and_not"
    OR_NOT = "or_not"

    def is_root(self) -> bool:
        return self in (LogicType.ROOT_NONE, LogicType.ROOT_NOT)

    def is_and(self) -> bool:
        return self in (LogicType.AND, LogicType.AND_NOT)

    def is_or(self) -> bool:
        return self in (LogicType.OR, LogicType.OR_NOT)

    def is_negated(self) -> bool:
        return self in (LogicType.ROOT_NOT, LogicType.AND_NOT, LogicType.OR_NOT)

    @staticmethod
    def parse(raw: Any, default: "LogicType") -> "LogicType":
        try:
            return LogicType(str(raw))
        except ValueError:
            return default


class MacroCondition(MacroSegment):
    """Common interface for all conditions."""

    def __init__(self) -> None:
        super().__init__()
        self.logic = LogicType.AND

    def check_condition(self, ctx: RunContext) -> bool:  # pragma: no cover - overridden
        raise NotImplementedError

    def save(self, obj: Dict[str, Any]) -> bool:
        super().save(obj)
        obj["logic"] = self.logic.value
        return True

    def load(self, obj: Dict[str, Any]) -> bool:
        super().load(obj)
        self.logic = LogicType.parse(obj.get("logic"), LogicType.AND)
        return True


@dataclass(eq=False)
class TimerCondition(MacroCondition):
    """Matches once `seconds` have passed since the timer was last reset."""

    id = "timer"

    seconds: float = 0.0
    auto_reset: bool = True

    def __post_init__(self) -> None:
        MacroCondition.__init__(self)
        self._started: Optional[float] = None

    def reset(self) -> None:
        self._started = time.monotonic()

    def check_condition(self, ctx: RunContext) -> bool:
        now = time.monotonic()
        if self._started is None:
            self._started = now
        if now - self._started < self.seconds:
            return False
        if self.auto_reset:
            self._started = now
        return True

    def get_short_desc(self) -> str:
        return f"{self.seconds:g}s"

    def save(self, obj: Dict[str, Any]) -> bool:
        super().save(obj)
        obj["seconds"] = self.seconds
        obj["autoReset"] = self.auto_reset
        return True

    def load(self, obj: Dict[str, Any]) -> bool:
        super().load(obj)
        self.seconds = float(obj.get("seconds", 0.0) or 0.0)
        self.auto_reset = bool(obj.get("autoReset", True))
        return True


_registered = CONDITIONS.register(
    TimerCondition.id,
    RegistryEntry(TimerCondition, SegmentEditor, "Macro.condition.timer"),
)
