"""
Atomic file writer for build state and consumer sources.

Ensures that file writes are atomic so an interrupted run never leaves a
half-written build state or source file behind.
"""

from __future__ import annotations

import ast
import json
import tempfile
from collections.abc import Callable
from pathlib import Path

from .errors import WriteValidationError


class AtomicWriter:
    """Handles atomic file writes with validation.

    Uses a two-phase commit approach:
    1. Write to a temporary file in the same directory
    2. Validate the content
    3. Atomically replace the target file
    """

    def __init__(
        self,
        validate_python: Callable[[str], None] | None = None,
        validate_json: Callable[[str], None] | None = None,
    ):
        """Initialize the atomic writer.

        Args:
            validate_python: Optional validation function for Python sources
            validate_json: Optional validation function for JSON documents
        """
        self._validate_python = validate_python or self._default_validate_python
        self._validate_json = validate_json or self._default_validate_json

    def write(
        self,
        path: Path,
        content: str,
        language: str | None = None,
        validate: bool = True,
    ) -> None:
        """Write content to file atomically.

        Args:
            path: Target file path
            content: Content to write
            language: "python" or "json"; guessed from the suffix when omitted
            validate: Whether to validate before finalizing

        Raises:
            WriteValidationError: If validation fails
            OSError: If file operations fail
        """
        path.parent.mkdir(parents=True, exist_ok=True)

        # Same directory ensures atomic rename on the same filesystem
        temp_fd, temp_path_str = tempfile.mkstemp(
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            text=True,
        )

        temp_path = Path(temp_path_str)

        try:
            with open(temp_fd, "w", encoding="utf-8") as f:
                f.write(content)

            if validate:
                self._validate_content(content, language or self._language_of(path))

            temp_path.replace(path)

        except Exception:
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    pass  # Best effort cleanup
            raise

    @staticmethod
    def _language_of(path: Path) -> str:
        return {".py": "python", ".pyi": "python", ".json": "json"}.get(path.suffix, "")

    def _validate_content(self, content: str, language: str) -> None:
        if language == "python":
            self._validate_python(content)
        elif language == "json":
            self._validate_json(content)

    def _default_validate_python(self, content: str) -> None:
        """Default Python validation.

        Raises:
            WriteValidationError: If the source does not parse
        """
        try:
            ast.parse(content)
        except SyntaxError as e:
            raise WriteValidationError(f"Rewritten Python source is not valid: {e}") from e

    def _default_validate_json(self, content: str) -> None:
        """Default JSON validation.

        Raises:
            WriteValidationError: If the document does not decode
        """
        try:
            json.loads(content)
        except json.JSONDecodeError as e:
            raise WriteValidationError(f"JSON document is not valid: {e}") from e
