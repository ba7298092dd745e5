"""
MacroStore: the shared macro collection and the single lock guarding it.

Lock discipline
---------------
- The evaluator holds the lock for a whole tick.
- Every public mutator below holds it for its full duration.
- Macros added to the store share the lock, so their segment add/remove/move
  methods hold it too.
- Editors and other callers touching segment fields use ``with store.locked():``.
The lock is re-entrant so a caller already inside ``locked()`` may call the
mutators.
"""

from __future__ import annotations

from contextlib import contextmanager
import json
from pathlib import Path
import threading
from typing import Any, Callable, Dict, Iterator, List, Optional

from .macro import Macro
from .registry import ACTIONS, CONDITIONS, TypeRegistry


class MacroStoreError(Exception):
    pass


class MacroStore:
    def __init__(
        self,
        conditions: TypeRegistry = CONDITIONS,
        actions: TypeRegistry = ACTIONS,
    ) -> None:
        self._lock = threading.RLock()
        self._macros: List[Macro] = []
        self._conditions = conditions
        self._actions = actions
        self._corrupted = False
        self._on_error: Optional[Callable[[str], None]] = None

    @property
    def condition_registry(self) -> TypeRegistry:
        return self._conditions

    @property
    def action_registry(self) -> TypeRegistry:
        return self._actions

    def on_error(self, cb: Callable[[str], None]) -> None:
        self._on_error = cb

    def is_corrupted(self) -> bool:
        return self._corrupted

    @contextmanager
    def locked(self, timeout: float = -1) -> Iterator["MacroStore"]:
        """Hold the store lock for the body of the with block."""
        if not self._lock.acquire(timeout=timeout):
            raise MacroStoreError("Timed out waiting for the macro lock")
        try:
            yield self
        finally:
            self._lock.release()

    # --- macro collection -------------------------------------------------------

    def add_macro(self, macro: Macro) -> bool:
        with self.locked():
            if self._find(macro.name) is not None:
                return False
            macro.bind_lock(self._lock)
            self._macros.append(macro)
            return True

    def remove_macro(self, name: str) -> bool:
        with self.locked():
            macro = self._find(name)
            if macro is None:
                return False
            self._macros.remove(macro)
            macro.bind_lock(threading.RLock())
            return True

    def rename_macro(self, old_name: str, new_name: str) -> bool:
        with self.locked():
            macro = self._find(old_name)
            if macro is None or not new_name or self._find(new_name) is not None:
                return False
            macro.name = new_name
            return True

    def move_macro(self, name: str, index: int) -> bool:
        with self.locked():
            macro = self._find(name)
            if macro is None:
                return False
            self._macros.remove(macro)
            self._macros.insert(max(0, min(index, len(self._macros))), macro)
            return True

    def set_paused(self, name: str, paused: bool) -> bool:
        with self.locked():
            macro = self._find(name)
            if macro is None:
                return False
            macro.paused = bool(paused)
            return True

    def get_macro(self, name: str) -> Optional[Macro]:
        with self.locked():
            return self._find(name)

    def macros(self) -> List[Macro]:
        with self.locked():
            return list(self._macros)

    def names(self) -> List[str]:
        with self.locked():
            return [m.name for m in self._macros]

    def __len__(self) -> int:
        with self.locked():
            return len(self._macros)

    def _find(self, name: str) -> Optional[Macro]:
        for macro in self._macros:
            if macro.name == name:
                return macro
        return None

    # --- segments -----------------------------------------------------------------

    def create_condition(self, type_id: str) -> Any:
        return self._conditions.construct(type_id)

    def create_action(self, type_id: str) -> Any:
        return self._actions.construct(type_id)

    def create_editor(self, segment: Any) -> Any:
        registry = self._conditions if segment.type_id in self._conditions else self._actions
        return registry.create_editor(segment.type_id, self, segment)

    # --- persistence ----------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        with self.locked():
            return {"macros": [m.to_dict() for m in self._macros]}

    def load_dict(self, data: Dict[str, Any]) -> List[str]:
        """Replace the collection with the macros in data.

        Returns the configuration errors encountered; the offending macros or
        segments are skipped and everything else is loaded.
        """
        if not isinstance(data, dict) or not isinstance(data.get("macros", []), list):
            self._corrupted = True
            raise MacroStoreError("Macro data has invalid structure")

        errors: List[str] = []
        loaded: List[Macro] = []
        for raw in data.get("macros", []):
            if not isinstance(raw, dict):
                errors.append("skipping malformed macro entry")
                continue
            macro = Macro.from_dict(raw, self._conditions, self._actions, on_error=errors.append)
            if any(m.name == macro.name for m in loaded):
                errors.append(f"skipping duplicate macro name '{macro.name}'")
                continue
            loaded.append(macro)

        with self.locked():
            for macro in loaded:
                macro.bind_lock(self._lock)
            self._macros = loaded
            self._corrupted = False
        for msg in errors:
            self._report(msg)
        return errors

    def load_file(self, path: Path) -> List[str]:
        """Load macros from a JSON file; a missing file yields an empty store."""
        if not path.exists():
            with self.locked():
                self._macros = []
            return []
        try:
            raw_data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            self._corrupted = True
            raise MacroStoreError(f"Failed to read macros from {path}: {e}")
        return self.load_dict(raw_data)

    def save_file(self, path: Path) -> None:
        """Persist macros atomically to disk."""
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".tmp")
        payload = json.dumps(self.to_dict(), indent=2, ensure_ascii=False)
        tmp_path.write_text(payload, encoding="utf-8")
        tmp_path.replace(path)

    def _report(self, msg: str) -> None:
        if self._on_error:
            self._on_error(msg)
