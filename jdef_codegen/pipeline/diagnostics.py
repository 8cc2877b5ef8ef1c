"""
Non-fatal problems collected during a run.

Each problem is logged when it is recorded and kept in a batch that is
returned to the caller at the end of the run.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)


class DiagnosticKind(str, Enum):
    """Kind of a non-fatal problem."""

    UNRESOLVED_REFERENCE = "unresolved_reference"
    STRUCTURAL_KIND_CHANGED = "structural_kind_changed"
    AMBIGUOUS_RENAME_COLLISION = "ambiguous_rename_collision"
    BUILD_STATE_PARSE_ERROR = "build_state_parse_error"
    SOURCE_PARSE_ERROR = "source_parse_error"


@dataclass(frozen=True)
class Diagnostic:
    """A single non-fatal problem."""

    kind: DiagnosticKind
    message: str
    subject: str = ""  # Qualified name, canonical key or file path concerned

    def __str__(self) -> str:
        if self.subject:
            return f"[{self.kind.value}] {self.subject}: {self.message}"
        return f"[{self.kind.value}] {self.message}"


@dataclass
class Diagnostics:
    """An ordered batch of diagnostics."""

    items: list[Diagnostic] = field(default_factory=list)

    def add(self, kind: DiagnosticKind, message: str, subject: str = "") -> Diagnostic:
        diagnostic = Diagnostic(kind=kind, message=message, subject=subject)
        logger.warning("%s", diagnostic)
        self.items.append(diagnostic)
        return diagnostic

    def extend(self, diagnostics: Diagnostics | list[Diagnostic]) -> None:
        """Append already-logged diagnostics without logging them again."""
        self.items.extend(diagnostics)

    def of_kind(self, kind: DiagnosticKind) -> list[Diagnostic]:
        return [d for d in self.items if d.kind == kind]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __bool__(self) -> bool:
        return bool(self.items)
