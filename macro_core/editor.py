"""
Editors bound to a live segment.

Editors run on the control thread. Every setter holds the store lock only for
the duration of the field assignment, so the evaluator never observes a
half-applied edit.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Optional

from .regex_config import RegexConfig

if TYPE_CHECKING:
    from .store import MacroStore


class SegmentEditor:
    """Generic editor for any condition or action."""

    def __init__(self, store: "MacroStore", segment: Any) -> None:
        self._store = store
        self._segment = segment
        self._header_callback: Optional[Callable[[str], None]] = None

    @property
    def segment(self) -> Any:
        return self._segment

    def on_header_info_changed(self, cb: Callable[[str], None]) -> None:
        self._header_callback = cb

    def header_info(self) -> str:
        with self._store.locked():
            return self._segment.get_short_desc()

    def set_collapsed(self, collapsed: bool) -> None:
        with self._store.locked():
            self._segment.collapsed = bool(collapsed)

    def update(self, **fields: Any) -> None:
        """Assign configuration fields; unknown names raise AttributeError."""
        with self._store.locked():
            for name in fields:
                if name.startswith("_") or not hasattr(self._segment, name):
                    raise AttributeError(f"{type(self._segment).__name__} has no field '{name}'")
            for name, value in fields.items():
                setattr(self._segment, name, value)
        self._emit_header_info()

    def _emit_header_info(self) -> None:
        if self._header_callback:
            self._header_callback(self.header_info())


class FileConditionEditor(SegmentEditor):
    """Editor for FileCondition."""

    def set_file_type(self, file_type: Any) -> None:
        with self._store.locked():
            self._segment.file_type = file_type

    def set_path(self, path: str) -> None:
        with self._store.locked():
            self._segment.path = path
        self._emit_header_info()

    def set_match_text(self, text: str) -> None:
        with self._store.locked():
            self._segment.text = text

    def set_regex(self, regex: RegexConfig) -> None:
        with self._store.locked():
            self._segment.regex = regex

    def set_use_modification_time(self, value: bool) -> None:
        with self._store.locked():
            self._segment.use_modification_time = bool(value)

    def set_only_match_if_changed(self, value: bool) -> None:
        with self._store.locked():
            self._segment.only_match_if_changed = bool(value)

    def modification_time_available(self) -> bool:
        """The modification time check only applies to local files."""
        with self._store.locked():
            return self._segment.is_local()
