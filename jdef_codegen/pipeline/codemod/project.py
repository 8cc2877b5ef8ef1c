"""
In-memory view of the consumer source tree.

Codemods edit SourceFile text in place through token spans; reading the
files in and writing them back out is left to the caller (from_globs and
save).
"""

from __future__ import annotations

import ast
import io
import logging
import re
import tokenize
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from ..atomic_writer import AtomicWriter
from ..errors import CodemodError

logger = logging.getLogger(__name__)

# String prefixes that make a literal something other than plain text
_NON_TEXT_PREFIXES = frozenset("bBfFtT")

_STRING_PREFIX = re.compile(r"^[A-Za-z]*")

# (start, end, replacement), with start/end as tokenize (row, col) positions
Edit = tuple[tuple[int, int], tuple[int, int], str]


@dataclass(frozen=True)
class StringLiteral:
    """A plain string literal token split into its parts."""

    prefix: str
    quote: str
    body: str

    def with_body(self, body: str) -> str:
        return f"{self.prefix}{self.quote}{body}{self.quote}"


def parse_string_literal(token_string: str) -> StringLiteral | None:
    """
    Split a STRING token into prefix, quote and body.

    Returns:
        The parts, or None for bytes and formatted literals
    """
    prefix = _STRING_PREFIX.match(token_string).group(0)
    if any(c in _NON_TEXT_PREFIXES for c in prefix):
        return None

    rest = token_string[len(prefix) :]
    for quote in ('"""', "'''", '"', "'"):
        if rest.startswith(quote) and rest.endswith(quote) and len(rest) >= 2 * len(quote):
            return StringLiteral(prefix=prefix, quote=quote, body=rest[len(quote) : -len(quote)])
    return None


@dataclass
class Declaration:
    """A module-level declaration of a name."""

    name: str
    start_line: int  # First line, decorators included
    end_line: int


@dataclass
class SourceFile:
    """One consumer source file, held in memory."""

    path: Path
    text: str
    original_text: str = ""

    def __post_init__(self) -> None:
        if not self.original_text:
            self.original_text = self.text

    @property
    def changed(self) -> bool:
        return self.text != self.original_text

    def tokens(self) -> list[tokenize.TokenInfo]:
        """
        Tokenize the current text.

        Raises:
            CodemodError: If the text cannot be tokenized
        """
        try:
            return list(tokenize.generate_tokens(io.StringIO(self.text).readline))
        except (tokenize.TokenError, SyntaxError) as e:
            raise CodemodError(f"Cannot tokenize {self.path}: {e}") from e

    def parse(self) -> ast.Module:
        """
        Parse the current text.

        Raises:
            CodemodError: If the text is not valid Python
        """
        try:
            return ast.parse(self.text, filename=str(self.path))
        except SyntaxError as e:
            raise CodemodError(f"Cannot parse {self.path}: {e}") from e

    def declarations(self) -> list[Declaration]:
        """Module-level classes, assignments and type aliases, in source order."""
        found = []
        for node in self.parse().body:
            name = None
            if isinstance(node, ast.ClassDef):
                name = node.name
            elif isinstance(node, ast.Assign) and len(node.targets) == 1 and isinstance(node.targets[0], ast.Name):
                name = node.targets[0].id
            elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
                name = node.target.id
            elif isinstance(node, ast.TypeAlias) and isinstance(node.name, ast.Name):
                name = node.name.id

            if name is None:
                continue

            decorators = getattr(node, "decorator_list", [])
            start = min([node.lineno] + [d.lineno for d in decorators])
            found.append(Declaration(name=name, start_line=start, end_line=node.end_lineno or node.lineno))
        return found

    def _line_offsets(self) -> list[int]:
        """Offset of the start of every line (row 1 is index 0)."""
        return [0] + [m.end() for m in re.finditer("\n", self.text)]

    def apply_edits(self, edits: Iterable[Edit]) -> int:
        """
        Replace token spans in the text.

        Args:
            edits: Non-overlapping (start, end, replacement) spans

        Returns:
            Number of edits applied
        """
        offsets = self._line_offsets()
        spans = sorted(((offsets[start[0] - 1] + start[1], offsets[end[0] - 1] + end[1], new) for start, end, new in edits), reverse=True)

        text = self.text
        for start, end, new in spans:
            text = text[:start] + new + text[end:]
        self.text = text
        return len(spans)

    def remove_lines(self, start_line: int, end_line: int) -> None:
        """Remove a 1-based inclusive line range and the blank lines following it."""
        # Split on "\n" only, matching the line numbers of ast and tokenize
        lines = re.split(r"(?<=\n)", self.text)
        end = end_line
        while end < len(lines) and not lines[end].strip():
            end += 1
        self.text = "".join(lines[: start_line - 1] + lines[end:])


@dataclass
class SourceProject:
    """A set of consumer source files, keyed by path."""

    files: dict[Path, SourceFile] = field(default_factory=dict)

    @classmethod
    def from_globs(cls, patterns: Iterable[str], root: Path | str = ".") -> SourceProject:
        """
        Load every file matching the glob patterns under a root directory.

        Args:
            patterns: Glob patterns relative to root (e.g. "src/**/*.py")
            root: Directory the patterns are relative to

        Returns:
            The loaded project
        """
        root = Path(root)
        project = cls()
        for pattern in patterns:
            matches = sorted(path for path in root.glob(pattern) if path.is_file())
            if not matches:
                logger.warning("No source files match %r under %s", pattern, root)
            for path in matches:
                if path not in project.files:
                    project.add(path, path.read_text(encoding="utf-8"))

        logger.info("Loaded %d source file(s)", len(project.files))
        return project

    @classmethod
    def from_sources(cls, sources: dict[str, str]) -> SourceProject:
        """Build a project from in-memory path -> text pairs."""
        project = cls()
        for path, text in sources.items():
            project.add(Path(path), text)
        return project

    def add(self, path: Path, text: str) -> SourceFile:
        source_file = SourceFile(path=path, text=text)
        self.files[path] = source_file
        return source_file

    def __iter__(self) -> Iterator[SourceFile]:
        return iter(self.files.values())

    def __len__(self) -> int:
        return len(self.files)

    def __getitem__(self, path: Path | str) -> SourceFile:
        return self.files[Path(path)]

    def changed_files(self) -> list[SourceFile]:
        return [f for f in self if f.changed]

    def save(self, writer: AtomicWriter | None = None, dry_run: bool = False) -> list[Path]:
        """
        Write every changed file back atomically.

        Args:
            writer: Writer to use; a default AtomicWriter when omitted
            dry_run: Report what would be written without writing

        Returns:
            Paths of the changed files
        """
        writer = writer or AtomicWriter()
        written = []
        for source_file in self.changed_files():
            if dry_run:
                logger.info("Dry run: not writing %s", source_file.path)
            else:
                writer.write(source_file.path, source_file.text, language="python")
                source_file.original_text = source_file.text
                logger.info("Wrote %s", source_file.path)
            written.append(source_file.path)
        return written
