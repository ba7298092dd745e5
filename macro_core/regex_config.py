"""
Regular expression settings shared by text matching conditions.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Any, Dict, Optional, Pattern


@dataclass
class RegexConfig:
    enabled: bool = False
    partial_match: bool = True  # search anywhere instead of matching the whole text
    case_insensitive: bool = False
    dot_matches_newline: bool = False
    multiline: bool = False

    def flags(self) -> int:
        value = 0
        if self.case_insensitive:
            value |= re.IGNORECASE
        if self.dot_matches_newline:
            value |= re.DOTALL
        if self.multiline:
            value |= re.MULTILINE
        return value

    def compile(self, pattern: str) -> Optional[Pattern[str]]:
        """Compile pattern with the configured options; None if it is invalid."""
        try:
            return re.compile(pattern, self.flags())
        except re.error:
            return None

    def matches(self, pattern: str, text: str) -> bool:
        expr = self.compile(pattern)
        if expr is None:
            return False
        if self.partial_match:
            return expr.search(text) is not None
        return expr.fullmatch(text) is not None

    def save(self, obj: Dict[str, Any]) -> None:
        obj["regexConfig"] = {
            "enable": self.enabled,
            "partialMatch": self.partial_match,
            "caseInsensitive": self.case_insensitive,
            "dotMatchesNewline": self.dot_matches_newline,
            "multiline": self.multiline,
        }

    def load(self, obj: Dict[str, Any]) -> None:
        data = obj.get("regexConfig") or {}
        if not isinstance(data, dict):
            data = {}
        self.enabled = bool(data.get("enable", False))
        self.partial_match = bool(data.get("partialMatch", True))
        self.case_insensitive = bool(data.get("caseInsensitive", False))
        self.dot_matches_newline = bool(data.get("dotMatchesNewline", False))
        self.multiline = bool(data.get("multiline", False))
        # Older files stored a plain "useRegex" flag
        if "useRegex" in obj:
            self.enabled = bool(obj.get("useRegex"))
