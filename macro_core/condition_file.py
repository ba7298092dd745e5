"""
File content condition.

Matches when a local file or a remote document contains the configured text
or matches the configured regular expression. Optionally only reports a match
when the content or the modification time changed since the previous check.
"""

from __future__ import annotations

from enum import Enum
import hashlib
from typing import Any, Dict, Optional

from .conditions import MacroCondition
from .context import RunContext
from .editor import FileConditionEditor
from .fetch import get_remote_data, read_local_file, remote_timeout
from .regex_config import RegexConfig
from .registry import CONDITIONS, RegistryEntry


class FileType(Enum):
    LOCAL = 0
    REMOTE = 1


def compare_ignoring_line_ending(expected: str, actual: str) -> bool:
    return _normalize_line_endings(expected) == _normalize_line_endings(actual)


def _normalize_line_endings(text: str) -> str:
    return text.replace("\r\n", "\n")


def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8", errors="replace")).hexdigest()


class FileCondition(MacroCondition):
    id = "file"

    def __init__(self) -> None:
        super().__init__()
        self.file_type = FileType.LOCAL
        self.path = ""
        self.text = ""
        self.regex = RegexConfig()
        self.use_modification_time = False
        self.only_match_if_changed = False
        # Runtime cache, never persisted
        self._last_hash: Optional[str] = None
        self._last_mod_time: Optional[float] = None

    def is_local(self) -> bool:
        return self.file_type == FileType.LOCAL

    def check_condition(self, ctx: RunContext) -> bool:
        if self.file_type == FileType.REMOTE:
            return self._check_remote_file_content(ctx)
        return self._check_local_file_content()

    def _check_remote_file_content(self, ctx: RunContext) -> bool:
        data = get_remote_data(self.path, remote_timeout(ctx.interval_ms))
        if data is None:
            return False
        return self.match_file_content(data)

    def _check_local_file_content(self) -> bool:
        last_mod = self._last_mod_time if self.use_modification_time else None
        result = read_local_file(self.path, last_mod)
        if result is None:
            return False
        if self.use_modification_time:
            if result.unchanged:
                return False
            self._last_mod_time = result.modified
        return self.match_file_content(result.content or "")

    def match_file_content(self, content: str) -> bool:
        if self.only_match_if_changed:
            new_hash = content_hash(content)
            previous = self._last_hash
            self._last_hash = new_hash
            if new_hash == previous:
                return False

        if self.regex.enabled:
            return self.regex.matches(self.text, content)
        return compare_ignoring_line_ending(self.text, content)

    def get_short_desc(self) -> str:
        return self.path

    def save(self, obj: Dict[str, Any]) -> bool:
        super().save(obj)
        self.regex.save(obj)
        obj["file"] = self.path
        obj["text"] = self.text
        obj["fileType"] = self.file_type.value
        obj["useTime"] = self.use_modification_time
        obj["onlyMatchIfChanged"] = self.only_match_if_changed
        return True

    def load(self, obj: Dict[str, Any]) -> bool:
        super().load(obj)
        self.regex.load(obj)
        self.path = str(obj.get("file", "") or "")
        self.text = str(obj.get("text", "") or "")
        try:
            self.file_type = FileType(int(obj.get("fileType", 0) or 0))
        except (TypeError, ValueError):
            self.file_type = FileType.LOCAL
        self.use_modification_time = bool(obj.get("useTime", False))
        self.only_match_if_changed = bool(obj.get("onlyMatchIfChanged", False))
        return True


_registered = CONDITIONS.register(
    FileCondition.id,
    RegistryEntry(FileCondition, FileConditionEditor, "Macro.condition.file"),
)
