"""
Type registry for condition and action implementations.

Each segment module registers its types when it is imported. Once the
evaluator starts the registries are sealed and further registration fails.
"""

from __future__ import annotations

from dataclasses import dataclass
import threading
from typing import Any, Callable, Dict, List, Optional


class UnknownTypeError(KeyError):
    pass


class RegistrySealedError(RuntimeError):
    pass


@dataclass(frozen=True)
class RegistryEntry:
    """Constructors and display key for one segment type."""

    create: Callable[[], Any]
    create_editor: Callable[..., Any]
    display_name: str


class TypeRegistry:
    """Maps a type id to the RegistryEntry used to build segments of that type."""

    def __init__(self, kind: str) -> None:
        self._kind = kind
        self._entries: Dict[str, RegistryEntry] = {}
        self._rejected: List[str] = []
        self._sealed = False
        self._lock = threading.Lock()

    @property
    def kind(self) -> str:
        return self._kind

    def register(self, type_id: str, entry: RegistryEntry) -> bool:
        """Register a type; returns False if the id is already taken."""
        with self._lock:
            if self._sealed:
                raise RegistrySealedError(
                    f"Cannot register {self._kind} '{type_id}' after evaluation started"
                )
            if type_id in self._entries:
                self._rejected.append(type_id)
                return False
            self._entries[type_id] = entry
            return True

    def construct(self, type_id: str) -> Any:
        entry = self.get(type_id)
        if entry is None:
            raise UnknownTypeError(f"Unknown {self._kind} type: {type_id}")
        return entry.create()

    def create_editor(self, type_id: str, store: Any, segment: Any) -> Any:
        entry = self.get(type_id)
        if entry is None:
            raise UnknownTypeError(f"Unknown {self._kind} type: {type_id}")
        return entry.create_editor(store, segment)

    def get(self, type_id: str) -> Optional[RegistryEntry]:
        with self._lock:
            return self._entries.get(type_id)

    def display_name(self, type_id: str) -> str:
        entry = self.get(type_id)
        return entry.display_name if entry else type_id

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def rejected_ids(self) -> List[str]:
        """Ids whose registration failed because they were already taken."""
        with self._lock:
            return list(self._rejected)

    def seal(self) -> None:
        with self._lock:
            self._sealed = True

    def is_sealed(self) -> bool:
        return self._sealed

    def __contains__(self, type_id: object) -> bool:
        with self._lock:
            return type_id in self._entries


CONDITIONS = TypeRegistry("condition")
ACTIONS = TypeRegistry("action")
