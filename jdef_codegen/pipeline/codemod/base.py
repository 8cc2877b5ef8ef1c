"""
Base classes for codemods.

A codemod rewrites the consumer source tree in memory, given the build
state of the previous run and the build state of this run.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from ..diagnostics import Diagnostics
from ..state.build_state import BuildState
from .project import SourceProject


@dataclass
class CodemodReport:
    """What a codemod changed.

    Attributes:
        files_changed: Files whose text was edited
        replacements: Number of tokens replaced
        removed_declarations: Generated names whose declaration was removed
        removed_state_keys: Canonical keys deleted from the build state
    """

    files_changed: list[Path] = field(default_factory=list)
    replacements: int = 0
    removed_declarations: list[str] = field(default_factory=list)
    removed_state_keys: list[str] = field(default_factory=list)

    def mark_changed(self, path: Path) -> None:
        if path not in self.files_changed:
            self.files_changed.append(path)

    def merge(self, other: CodemodReport) -> CodemodReport:
        """Fold another report into this one and return self."""
        for path in other.files_changed:
            self.mark_changed(path)
        self.replacements += other.replacements
        self.removed_declarations.extend(other.removed_declarations)
        self.removed_state_keys.extend(other.removed_state_keys)
        return self

    def is_empty(self) -> bool:
        return not self.files_changed and not self.removed_state_keys


class Codemod(ABC):
    """Abstract base class for codemods.

    Subclasses implement process(), which edits the project in place and
    may update the new build state. Codemods never touch the filesystem.
    """

    def __init__(self, project: SourceProject, diagnostics: Diagnostics | None = None):
        """
        Initialize the codemod.

        Args:
            project: The consumer source tree to edit
            diagnostics: Batch receiving source parse errors
        """
        self.project = project
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    @abstractmethod
    def process(self, old_state: BuildState, new_state: BuildState) -> CodemodReport:
        """
        Apply the codemod.

        Args:
            old_state: Build state of the previous run
            new_state: Build state of this run

        Returns:
            CodemodReport describing the edits
        """
        pass
