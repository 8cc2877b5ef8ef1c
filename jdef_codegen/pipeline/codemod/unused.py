"""
Unused schema codemod.

Removes module-level declarations of generated schema names that nothing
in the consumer source tree refers to any more, together with their build
state entries. Runs once per regeneration; a declaration that only becomes
unreferenced because of a removal in this pass is left for the next run.
"""

from __future__ import annotations

import logging
import re
import tokenize
from collections import Counter

from ..diagnostics import DiagnosticKind
from ..errors import CodemodError
from ..state.build_state import BuildState
from .base import Codemod, CodemodReport
from .project import Declaration, SourceFile, parse_string_literal

logger = logging.getLogger(__name__)


class UnusedSchemaCodemod(Codemod):
    """Removes unreferenced generated declarations."""

    def process(self, old_state: BuildState, new_state: BuildState) -> CodemodReport:
        """
        Remove unreferenced declarations and their entries from new_state.

        A reference is an identifier token or a plain string literal equal to
        the generated name, anywhere in the project, other than the
        declaring name itself. Files that cannot be parsed still count
        towards references (by whole-word match on their text) but have
        nothing removed from them.
        """
        keys_by_name = new_state.schema_keys_by_name()
        report = CodemodReport()
        if not keys_by_name:
            return report

        references: Counter[str] = Counter()
        declaration_count: Counter[str] = Counter()
        declarations: list[tuple[SourceFile, list[Declaration]]] = []

        for source_file in self.project:
            try:
                file_declarations = [d for d in source_file.declarations() if d.name in keys_by_name]
                references.update(self._count_references(source_file, keys_by_name))
            except CodemodError as e:
                self.diagnostics.add(DiagnosticKind.SOURCE_PARSE_ERROR, str(e), subject=str(source_file.path))
                references.update(self._count_words(source_file.text, keys_by_name))
                continue

            declarations.append((source_file, file_declarations))
            declaration_count.update(d.name for d in file_declarations)

        unused = {name for name in declaration_count if references[name] - declaration_count[name] <= 0}
        if not unused:
            return report

        for source_file, file_declarations in declarations:
            removed = [d for d in file_declarations if d.name in unused]
            # Bottom-up so earlier line numbers stay valid
            for declaration in sorted(removed, key=lambda d: d.start_line, reverse=True):
                source_file.remove_lines(declaration.start_line, declaration.end_line)
                report.removed_declarations.append(declaration.name)
                logger.info("Removed unused declaration %s from %s", declaration.name, source_file.path)
            if removed:
                report.mark_changed(source_file.path)

        for name in sorted(unused):
            for key in keys_by_name[name]:
                if new_state.remove_schema(key) is not None:
                    report.removed_state_keys.append(key)

        return report

    @staticmethod
    def _count_references(source_file: SourceFile, names: dict[str, list[str]]) -> Counter[str]:
        counts: Counter[str] = Counter()
        for token in source_file.tokens():
            if token.type == tokenize.NAME:
                if token.string in names:
                    counts[token.string] += 1
            elif token.type == tokenize.STRING:
                literal = parse_string_literal(token.string)
                if literal is not None and literal.body in names:
                    counts[literal.body] += 1
        return counts

    @staticmethod
    def _count_words(text: str, names: dict[str, list[str]]) -> Counter[str]:
        counts: Counter[str] = Counter()
        for name in names:
            found = len(re.findall(rf"\b{re.escape(name)}\b", text))
            if found:
                counts[name] = found
        return counts
