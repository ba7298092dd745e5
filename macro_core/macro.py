"""
Macro: an ordered condition chain and an ordered action chain.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, Optional

from .actions import MacroAction
from .conditions import LogicType, MacroCondition
from .context import RunContext
from .registry import ACTIONS, CONDITIONS, TypeRegistry, UnknownTypeError


class Macro:
    """A named automation rule.

    Conditions are evaluated left to right with short-circuiting; actions run
    left to right when the combined result changes from False to True.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.paused = False
        self.last_matched = False
        self._conditions: List[MacroCondition] = []
        self._actions: List[MacroAction] = []
        # Replaced by the store lock once the macro is added to a MacroStore
        self._lock: Any = threading.RLock()

    def bind_lock(self, lock: Any) -> None:
        self._lock = lock

    @property
    def conditions(self) -> List[MacroCondition]:
        with self._lock:
            return list(self._conditions)

    @property
    def actions(self) -> List[MacroAction]:
        with self._lock:
            return list(self._actions)

    # --- segment management -------------------------------------------------

    def add_condition(self, condition: MacroCondition, index: Optional[int] = None) -> None:
        with self._lock:
            _insert(self._conditions, condition, index)
            self._update_indexes()

    def add_action(self, action: MacroAction, index: Optional[int] = None) -> None:
        with self._lock:
            _insert(self._actions, action, index)
            self._update_indexes()

    def remove_condition(self, index: int) -> MacroCondition:
        with self._lock:
            condition = self._conditions.pop(index)
            condition.attach(None, 0)
            self._update_indexes()
            return condition

    def remove_action(self, index: int) -> MacroAction:
        with self._lock:
            action = self._actions.pop(index)
            action.attach(None, 0)
            self._update_indexes()
            return action

    def move_condition(self, from_index: int, to_index: int) -> None:
        with self._lock:
            self._conditions.insert(to_index, self._conditions.pop(from_index))
            self._update_indexes()

    def move_action(self, from_index: int, to_index: int) -> None:
        with self._lock:
            self._actions.insert(to_index, self._actions.pop(from_index))
            self._update_indexes()

    def _update_indexes(self) -> None:
        for idx, condition in enumerate(self._conditions):
            condition.attach(self, idx)
            # The first condition has nothing to combine with
            if idx == 0 and not condition.logic.is_root():
                condition.logic = LogicType.ROOT_NOT if condition.logic.is_negated() else LogicType.ROOT_NONE
            elif idx > 0 and condition.logic.is_root():
                condition.logic = LogicType.AND_NOT if condition.logic.is_negated() else LogicType.AND
        for idx, action in enumerate(self._actions):
            action.attach(self, idx)

    # --- evaluation -----------------------------------------------------------

    def evaluate(self, ctx: RunContext) -> bool:
        with self._lock:
            if self.paused:
                return self.last_matched

            result = self._check_conditions(ctx)
            if result and not self.last_matched:
                self._perform_actions(ctx)
            self.last_matched = result
            return result

    def _check_conditions(self, ctx: RunContext) -> bool:
        result = False
        for idx, condition in enumerate(self._conditions):
            logic = condition.logic
            if idx > 0:
                if logic.is_and() and not result:
                    continue
                if logic.is_or() and result:
                    continue
            value = self._check_condition(condition, ctx)
            result = not value if logic.is_negated() else value
        return result

    def _check_condition(self, condition: MacroCondition, ctx: RunContext) -> bool:
        try:
            return bool(condition.check_condition(ctx))
        except Exception as e:
            ctx.error(f"[{self.name}] condition {condition.get_index() + 1} ({condition.type_id}) failed: {e}")
            return False

    def _perform_actions(self, ctx: RunContext) -> None:
        total = len(self._actions)
        for idx, action in enumerate(self._actions):
            ctx.log(f"[{self.name}] [{idx + 1}/{total}] {action.type_id}")
            try:
                action.perform_action(ctx)
            except Exception as e:
                ctx.error(f"[{self.name}] action {idx + 1} ({action.type_id}) failed: {e}")

    # --- persistence ------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "name": self.name,
                "paused": self.paused,
                "conditions": [c.to_dict() for c in self._conditions],
                "actions": [a.to_dict() for a in self._actions],
            }

    @staticmethod
    def from_dict(
        data: Dict[str, Any],
        conditions: TypeRegistry = CONDITIONS,
        actions: TypeRegistry = ACTIONS,
        on_error: Optional[Callable[[str], None]] = None,
    ) -> "Macro":
        """Build a macro; segments of unknown type are skipped and reported."""
        macro = Macro(str(data.get("name", "Unnamed Macro")))
        macro.paused = bool(data.get("paused", False))
        for raw in data.get("conditions", []) or []:
            segment = _load_segment(raw, conditions, macro.name, on_error)
            if segment is not None:
                macro.add_condition(segment)
        for raw in data.get("actions", []) or []:
            segment = _load_segment(raw, actions, macro.name, on_error)
            if segment is not None:
                macro.add_action(segment)
        return macro

    def __repr__(self) -> str:
        return f"Macro({self.name!r}, conditions={len(self._conditions)}, actions={len(self._actions)})"


def _insert(items: List[Any], item: Any, index: Optional[int]) -> None:
    if index is None:
        items.append(item)
    else:
        items.insert(index, item)


def _load_segment(
    raw: Any,
    registry: TypeRegistry,
    macro_name: str,
    on_error: Optional[Callable[[str], None]],
) -> Any:
    if not isinstance(raw, dict):
        return None
    type_id = str(raw.get("id", ""))
    try:
        segment = registry.construct(type_id)
    except UnknownTypeError:
        if on_error:
            on_error(f"[{macro_name}] skipping unknown {registry.kind} type '{type_id}'")
        return None
    try:
        loaded = segment.load(raw)
    except (TypeError, ValueError) as e:
        if on_error:
            on_error(f"[{macro_name}] skipping {registry.kind} '{type_id}' with invalid settings: {e}")
        return None
    if not loaded:
        if on_error:
            on_error(f"[{macro_name}] failed to load {registry.kind} '{type_id}'")
        return None
    return segment
