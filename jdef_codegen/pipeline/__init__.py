"""
Pipeline - regeneration core for API client generators.

This module provides the language-neutral core of a client generator:

1. Phase 1 (Registry): Index normalized schemas by qualified name
2. Phase 2 (Analyzer): Resolve references and propagate generic requirements
3. Phase 3 (Renderer): Assign generated identifier names
4. Phase 4 (Build state): Record names and diff them against the previous run
5. Phase 5 (Codemod): Rename and prune identifiers in consumer code
"""

from __future__ import annotations

from .atomic_writer import AtomicWriter
from .config import CodemodConfig, EnumType, GeneratorConfig, StateConfig
from .diagnostics import Diagnostic, DiagnosticKind, Diagnostics
from .errors import BuildStateParseError, CodegenError, CodemodError, InvalidRegistryError, WriteValidationError
from .generator import RegenerationPipeline, RunResult
from .renderer import NamingRenderer, RenderContext, RenderedFunction, RenderedSchema, Renderer, RenderResult

__all__ = [
    "RegenerationPipeline",
    "RunResult",
    "GeneratorConfig",
    "StateConfig",
    "CodemodConfig",
    "EnumType",
    "Renderer",
    "RenderContext",
    "RenderResult",
    "RenderedSchema",
    "RenderedFunction",
    "NamingRenderer",
    "Diagnostic",
    "DiagnosticKind",
    "Diagnostics",
    "CodegenError",
    "InvalidRegistryError",
    "BuildStateParseError",
    "CodemodError",
    "WriteValidationError",
    "AtomicWriter",
]
