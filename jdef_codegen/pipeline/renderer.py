"""
Renderer interface.

A renderer turns the analyzed source into identifiers. It decides every
generated name and declaration form; the pipeline only records what it
reports. NamingRenderer assigns names without emitting any target syntax.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from .analyzer.generics import (
    GenericPropagator,
    GenericRequirement,
    GenericValueResolver,
    ListCapability,
    all_generics_for_children,
    emit_type_arguments,
)
from .analyzer.name_resolver import NameResolver
from .analyzer.reference_resolver import ReferenceResolver
from .analyzer.registry import SchemaRegistry
from .config import GeneratorConfig
from .diagnostics import Diagnostics
from .schema_ast.nodes import ParsedSource
from .state.build_state import StructuralKind

logger = logging.getLogger(__name__)


@dataclass
class RenderContext:
    """Everything a renderer may consult.

    Attributes:
        source: The source with every resolvable Ref inlined; schemas that
            failed to resolve are absent
        registry: Registry built from the normalized source
        resolver: Resolver for dereferencing further subtrees on demand
        generics: Propagated generic requirements
        values: Resolver of generic values per use site
        config: Run configuration
        diagnostics: Batch for non-fatal problems
    """

    source: ParsedSource
    registry: SchemaRegistry
    resolver: ReferenceResolver
    generics: GenericPropagator
    values: GenericValueResolver
    config: GeneratorConfig = field(default_factory=GeneratorConfig)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


@dataclass
class RenderedSchema:
    """A generated type declaration."""

    canonical_key: str
    generated_name: str
    structural_kind: StructuralKind | str
    type_parameters: list[GenericRequirement] = field(default_factory=list)


@dataclass
class RenderedFunction:
    """A generated client function."""

    canonical_key: str
    generated_name: str
    capability_enums: dict[ListCapability, str] = field(default_factory=dict)
    # Qualified name of the request/response schema -> emitted type arguments (None when omitted)
    type_arguments: dict[str, list[str] | None] = field(default_factory=dict)


@dataclass
class RenderResult:
    """Everything a renderer generated."""

    schemas: list[RenderedSchema] = field(default_factory=list)
    functions: list[RenderedFunction] = field(default_factory=list)


class Renderer(ABC):
    """Abstract base class for renderers."""

    @abstractmethod
    def render(self, context: RenderContext) -> RenderResult:
        """
        Generate identifiers for the analyzed source.

        Args:
            context: The analyzed source

        Returns:
            RenderResult listing every generated schema and function
        """
        pass


class NamingRenderer(Renderer):
    """Assigns identifier names and declaration forms."""

    def __init__(self, name_resolver: NameResolver | None = None):
        """
        Initialize the renderer.

        Args:
            name_resolver: Naming rules; defaults to NameResolver with the
                run's enum type
        """
        self.name_resolver = name_resolver

    def render(self, context: RenderContext) -> RenderResult:
        names = self.name_resolver or NameResolver(enum_type=context.config.enum_type)
        methods = list(context.source.iter_methods())

        # Declaration forms come from the registry entries, so an alias of a record stays an alias
        schemas = {name: context.registry[name] for name in context.source.schemas if name in context.registry}
        mapping = names.resolve_names(schemas, methods)

        result = RenderResult()
        for qualified_name, (generated_name, kind) in mapping.schemas.items():
            result.schemas.append(
                RenderedSchema(
                    canonical_key=qualified_name,
                    generated_name=generated_name,
                    structural_kind=kind,
                    type_parameters=all_generics_for_children(context.generics.generics_for_schema(qualified_name)),
                )
            )

        for method in methods:
            function_name = mapping.functions.get(method.qualified_name)
            if function_name is None:
                continue

            capability_enums = mapping.capability_enums.get(method.qualified_name, {})
            for capability, enum_name in capability_enums.items():
                result.schemas.append(
                    RenderedSchema(
                        canonical_key=f"{method.qualified_name}.{capability.value}",
                        generated_name=enum_name,
                        structural_kind=StructuralKind.ENUMERATION,
                    )
                )

            type_arguments: dict[str, list[str] | None] = {}
            for body in (method.request_body, method.response_body):
                body_name = context.registry.follow(body)
                if body_name:
                    resolved = context.values.resolve(body_name, method, capability_enums)
                    type_arguments[body_name] = emit_type_arguments(resolved)

            result.functions.append(
                RenderedFunction(
                    canonical_key=method.qualified_name,
                    generated_name=function_name,
                    capability_enums=dict(capability_enums),
                    type_arguments=type_arguments,
                )
            )

        logger.info("Rendered %d schema(s) and %d function(s)", len(result.schemas), len(result.functions))
        return result
