"""
Rename diff between two build states.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..diagnostics import DiagnosticKind, Diagnostics
from .build_state import BuildState, BuildStateEntry, StructuralKind, kind_tag

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenameOp:
    """A generated identifier that changed name between two runs."""

    old_name: str
    new_name: str
    structural_kind: StructuralKind | str
    canonical_key: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "canonicalKey": self.canonical_key,
            "oldName": self.old_name,
            "newName": self.new_name,
            "structuralKind": kind_tag(self.structural_kind),
        }


@dataclass
class StateDiff:
    """Rename operations and warnings produced by a diff."""

    renames: list[RenameOp] = field(default_factory=list)
    warnings: Diagnostics = field(default_factory=Diagnostics)


def _diff_section(
    old: dict[str, BuildStateEntry],
    new: dict[str, BuildStateEntry],
    diagnostics: Diagnostics,
) -> list[RenameOp]:
    renames = []
    for key, old_entry in old.items():
        new_entry = new.get(key)
        if new_entry is None:
            continue

        if old_entry.structural_kind != new_entry.structural_kind:
            diagnostics.add(
                DiagnosticKind.STRUCTURAL_KIND_CHANGED,
                f"declared as {kind_tag(new_entry.structural_kind)} instead of {kind_tag(old_entry.structural_kind)}; "
                f"{old_entry.generated_identifier_name!r} will not be renamed",
                subject=key,
            )
            continue

        if old_entry.generated_identifier_name != new_entry.generated_identifier_name:
            renames.append(
                RenameOp(
                    old_name=old_entry.generated_identifier_name,
                    new_name=new_entry.generated_identifier_name,
                    structural_kind=new_entry.structural_kind,
                    canonical_key=key,
                )
            )
    return renames


def _check_collisions(renames: list[RenameOp], diagnostics: Diagnostics) -> None:
    """Warn when renames away from one old name disagree on the new name."""
    first_by_old_name: dict[str, RenameOp] = {}
    for op in renames:
        first = first_by_old_name.setdefault(op.old_name, op)
        if first is not op and first.new_name != op.new_name:
            diagnostics.add(
                DiagnosticKind.AMBIGUOUS_RENAME_COLLISION,
                f"{op.old_name!r} is renamed to {first.new_name!r} (from {first.canonical_key!r}) "
                f"and to {op.new_name!r}; occurrences take {first.new_name!r}",
                subject=op.canonical_key,
            )


def diff_build_states(old: BuildState, new: BuildState) -> StateDiff:
    """
    Compute rename operations from one build state to the next.

    A rename is proposed for every canonical key present in both states whose
    generated name changed while its structural kind did not. A changed
    structural kind is reported as a warning instead.

    Args:
        old: Build state of the previous run
        new: Build state of this run

    Returns:
        StateDiff with schema renames first, then function renames
    """
    diff = StateDiff()
    diff.renames.extend(_diff_section(old.schemas, new.schemas, diff.warnings))
    diff.renames.extend(_diff_section(old.functions, new.functions, diff.warnings))
    _check_collisions(diff.renames, diff.warnings)

    logger.info("Found %d rename(s) between build states", len(diff.renames))
    return diff
