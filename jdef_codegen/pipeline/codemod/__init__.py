"""
Codemod module.

Rewrites consumer source files after a regeneration, renaming identifiers
that changed and removing generated declarations nothing uses.
"""

from __future__ import annotations

from .base import Codemod, CodemodReport
from .project import SourceFile, SourceProject
from .rename import RenameCodemod
from .unused import UnusedSchemaCodemod

__all__ = [
    "Codemod",
    "CodemodReport",
    "SourceFile",
    "SourceProject",
    "RenameCodemod",
    "UnusedSchemaCodemod",
]
