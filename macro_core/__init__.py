"""
Macro core: condition/action macros evaluated by a background polling loop.

Key parts
---------
- registry:       Type registries mapping ids to condition/action constructors
- segment:        Base class shared by conditions and actions
- conditions:     Condition base, logic types and the timer condition
- condition_file: File content condition (local file or remote URL)
- actions:        Action classes
- context:        RunContext passed to conditions and actions during a tick
- macro:          Macro with its condition chain and action chain
- store:          Shared macro collection guarded by one lock
- engine:         Evaluation loop with start/stop and runtime interval
- editor:         Lock-guarded editors bound to live segments
- fetch:          Local file and HTTP helpers
"""

from .registry import ACTIONS, CONDITIONS, RegistryEntry, TypeRegistry, UnknownTypeError
from .actions import ActionError, MacroAction
from .context import RunContext
from .conditions import LogicType, MacroCondition, TimerCondition
from .condition_file import FileCondition, FileType
from .macro import Macro
from .store import MacroStore, MacroStoreError
from .engine import EngineState, MacroEngine

__all__ = [
    "ACTIONS",
    "CONDITIONS",
    "RegistryEntry",
    "TypeRegistry",
    "UnknownTypeError",
    "ActionError",
    "MacroAction",
    "RunContext",
    "LogicType",
    "MacroCondition",
    "TimerCondition",
    "FileCondition",
    "FileType",
    "Macro",
    "MacroStore",
    "MacroStoreError",
    "EngineState",
    "MacroEngine",
]
