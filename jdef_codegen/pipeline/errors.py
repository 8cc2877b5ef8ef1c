"""
Exceptions raised by the regeneration pipeline.

Only problems with the input as a whole are raised. Problems confined to
one schema or one consumer file are recorded as diagnostics instead
(see diagnostics.py) so that the rest of the run can proceed.
"""

from __future__ import annotations


class CodegenError(Exception):
    """Base class for all pipeline errors."""

    pass


class InvalidRegistryError(CodegenError):
    """Raised when the schema registry cannot be built.

    This can happen when:
    - The source contains no schemas at all
    - A registry key does not match the qualified name of its node
    """

    pass


class BuildStateParseError(CodegenError):
    """Raised when a persisted build state document is malformed."""

    pass


class CodemodError(CodegenError):
    """Raised when a codemod cannot be applied to a source file."""

    pass


class WriteValidationError(CodegenError):
    """Raised when content fails validation before an atomic write."""

    pass
