"""
Common base for macro conditions and actions.
"""

from __future__ import annotations

import weakref
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from .macro import Macro


class MacroSegment:
    """State shared by every condition and action.

    The owning Macro keeps the segment alive; the segment only holds a weak
    reference back to it.
    """

    id = ""

    def __init__(self) -> None:
        self.collapsed = False
        self._index = 0
        self._macro_ref: Optional["weakref.ReferenceType[Macro]"] = None

    @property
    def type_id(self) -> str:
        return type(self).id

    @property
    def macro(self) -> Optional["Macro"]:
        return self._macro_ref() if self._macro_ref is not None else None

    def attach(self, macro: Optional["Macro"], index: int) -> None:
        self._macro_ref = weakref.ref(macro) if macro is not None else None
        self._index = index

    def get_index(self) -> int:
        return self._index

    def get_short_desc(self) -> str:
        return ""

    def save(self, obj: Dict[str, Any]) -> bool:
        obj["id"] = self.type_id
        obj["collapsed"] = bool(self.collapsed)
        return True

    def load(self, obj: Dict[str, Any]) -> bool:
        self.collapsed = bool(obj.get("collapsed", False))
        return True

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        self.save(data)
        return data

    def __repr__(self) -> str:
        return f"{type(self).__name__}(index={self._index}, desc={self.get_short_desc()!r})"
