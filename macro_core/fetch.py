"""
Synchronous data sources used by stateful conditions.

Both helpers return None on failure; callers treat that as "no match" for
the current tick and retry on the next one.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Optional

import requests


@dataclass
class LocalFileData:
    modified: float
    content: Optional[str] = None  # None when the read was skipped as unchanged

    @property
    def unchanged(self) -> bool:
        return self.content is None


def remote_timeout(interval_ms: int) -> int:
    """Timeout in seconds for a remote fetch, never below one second."""
    return max(1, int(interval_ms) // 1000)


def get_remote_data(url: str, timeout_seconds: float) -> Optional[str]:
    """Fetch the full response body of url with a single GET request."""
    if not url:
        return None
    try:
        response = requests.get(url, timeout=timeout_seconds)
    except requests.RequestException:
        return None
    return response.text


def read_local_file(path: str, last_modified: Optional[float] = None) -> Optional[LocalFileData]:
    """Open path read-only and return its text content.

    When last_modified is given and the file's modification time still equals
    it, the content is not read and the result is marked unchanged.
    Text mode normalizes line endings to '\\n'.
    """
    if not path:
        return None
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            modified = os.fstat(f.fileno()).st_mtime
            if last_modified is not None and modified == last_modified:
                return LocalFileData(modified=modified)
            return LocalFileData(modified=modified, content=f.read())
    except OSError:
        return None
