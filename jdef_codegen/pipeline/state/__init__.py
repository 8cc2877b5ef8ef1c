"""
Build state module.

Contains the build state model, the rename diff and persistence.
"""

from __future__ import annotations

from .build_state import BuildState, BuildStateEntry, StructuralKind, build_state
from .diff import RenameOp, StateDiff, diff_build_states
from .store import load_build_state, save_build_state

__all__ = [
    "BuildState",
    "BuildStateEntry",
    "StructuralKind",
    "build_state",
    "RenameOp",
    "StateDiff",
    "diff_build_states",
    "load_build_state",
    "save_build_state",
]
