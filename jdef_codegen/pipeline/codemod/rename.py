"""
Rename codemod.

Replaces every occurrence of a renamed generated identifier in the
consumer source tree. Only whole tokens match: an identifier token equal to
the old name, or a plain string literal whose whole body is the old name.
"""

from __future__ import annotations

import logging
import tokenize

from ..diagnostics import DiagnosticKind
from ..errors import CodemodError
from ..state.build_state import BuildState
from ..state.diff import RenameOp, diff_build_states
from .base import Codemod, CodemodReport
from .project import Edit, SourceFile, parse_string_literal

logger = logging.getLogger(__name__)


class RenameCodemod(Codemod):
    """Applies rename operations to the consumer source tree."""

    def process(self, old_state: BuildState, new_state: BuildState) -> CodemodReport:
        diff = diff_build_states(old_state, new_state)
        self.diagnostics.extend(diff.warnings)
        return self.apply(diff.renames)

    def apply(self, renames: list[RenameOp]) -> CodemodReport:
        """
        Apply renames to every file of the project.

        When several renames share an old name, the first one wins.

        Args:
            renames: Rename operations, in priority order

        Returns:
            CodemodReport with the files changed and tokens replaced
        """
        targets: dict[str, str] = {}
        for op in renames:
            if op.old_name != op.new_name:
                targets.setdefault(op.old_name, op.new_name)

        report = CodemodReport()
        if not targets:
            return report

        for source_file in self.project:
            try:
                count = self._rename_in_file(source_file, targets)
            except CodemodError as e:
                self.diagnostics.add(DiagnosticKind.SOURCE_PARSE_ERROR, str(e), subject=str(source_file.path))
                continue

            if count:
                report.mark_changed(source_file.path)
                report.replacements += count
                logger.info("Renamed %d occurrence(s) in %s", count, source_file.path)

        return report

    def _rename_in_file(self, source_file: SourceFile, targets: dict[str, str]) -> int:
        edits: list[Edit] = []

        for token in source_file.tokens():
            if token.type == tokenize.NAME:
                new_name = targets.get(token.string)
                if new_name is not None:
                    edits.append((token.start, token.end, new_name))

            elif token.type == tokenize.STRING:
                literal = parse_string_literal(token.string)
                if literal is None:
                    continue
                new_name = targets.get(literal.body)
                if new_name is not None:
                    edits.append((token.start, token.end, literal.with_body(new_name)))

        if not edits:
            return 0
        return source_file.apply_edits(edits)
