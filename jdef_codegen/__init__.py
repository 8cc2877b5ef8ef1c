"""jdef codegen

The regeneration core of an API client generator: schema registry, cyclic
Ref resolution, generic requirement propagation, build state diffing and
codemods that keep consumer code in step with renamed identifiers.
"""

__version__ = "1.0.0"

from .pipeline import (
    AtomicWriter,
    GeneratorConfig,
    NamingRenderer,
    RegenerationPipeline,
    Renderer,
    RunResult,
)

__all__ = [
    "RegenerationPipeline",
    "RunResult",
    "GeneratorConfig",
    "Renderer",
    "NamingRenderer",
    "AtomicWriter",
]
