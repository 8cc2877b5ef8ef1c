"""
Name resolver for generated identifiers.

Turns qualified names into identifier names and decides the structural
kind each schema is declared as. Naming belongs to the renderer; this is
the default naming used by the reference renderer.
"""

from __future__ import annotations

import keyword
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from ...utils import capitalize_parts, to_camel_case, to_pascal_case
from ..schema_ast.nodes import EnumNode, Method, ObjectNode, OneOfNode, PolymorphNode, SchemaNode
from ..state.build_state import StructuralKind
from .generics import ListCapability

logger = logging.getLogger(__name__)

_UNSAFE_CHARACTER = re.compile(r"\W")

NameWriter = Callable[[str], str]
MethodNameWriter = Callable[[Method], str]


class EnumType(str, Enum):
    """How enums are declared by the renderer."""

    ENUM = "enum"  # Default: a named enumeration
    UNION = "union"  # A type alias over the literal values


def default_name_writer(qualified_name: str) -> str:
    """Default type naming: capitalize each dotted part and join."""
    return capitalize_parts(qualified_name)


def default_method_name_writer(method: Method) -> str:
    """Default function naming: camelCase of the method's qualified name."""
    return to_camel_case(method.qualified_name or method.name)


@dataclass
class NameMapping:
    """Result of name resolution."""

    # qualified name -> (generated name, structural kind)
    schemas: dict[str, tuple[str, StructuralKind]] = field(default_factory=dict)

    # method qualified name -> generated function name
    functions: dict[str, str] = field(default_factory=dict)

    # method qualified name -> capability -> generated enumeration name
    capability_enums: dict[str, dict[ListCapability, str]] = field(default_factory=dict)


class NameResolver:
    """Resolves identifier names and structural kinds."""

    def __init__(
        self,
        enum_type: EnumType = EnumType.ENUM,
        name_writer: NameWriter = default_name_writer,
        method_name_writer: MethodNameWriter = default_method_name_writer,
    ):
        """
        Initialize the resolver.

        Args:
            enum_type: Whether enums are declared as enumerations or aliases
            name_writer: Maps a qualified name to a type name
            method_name_writer: Maps a method to a function name
        """
        self.enum_type = enum_type
        self.name_writer = name_writer
        self.method_name_writer = method_name_writer

    def type_name(self, qualified_name: str) -> str:
        """Generated type name for a qualified name."""
        name = self.name_writer(qualified_name)
        if not name:
            logger.warning("Unable to generate a valid type name for %r", qualified_name)
            return ""
        return self.escape_identifier(name)

    def function_name(self, method: Method) -> str:
        """Generated function name for a method."""
        return self.escape_identifier(self.method_name_writer(method))

    def structural_kind(self, node: SchemaNode) -> StructuralKind:
        """How a schema is declared."""
        if isinstance(node, (ObjectNode, OneOfNode, PolymorphNode)):
            return StructuralKind.RECORD
        if isinstance(node, EnumNode):
            return StructuralKind.ENUMERATION if self.enum_type == EnumType.ENUM else StructuralKind.ALIAS
        return StructuralKind.ALIAS

    def capability_enum_names(self, method: Method) -> dict[ListCapability, str]:
        """Names of the enumerations generated for a method's list capabilities."""
        options = method.list_options
        if options is None:
            return {}

        function_name = to_pascal_case(self.function_name(method))
        fields_by_capability = {
            ListCapability.FILTER: options.filterable_fields,
            ListCapability.SEARCH: options.searchable_fields,
            ListCapability.SORT: options.sortable_fields,
        }
        return {capability: self.escape_identifier(f"{function_name}{to_pascal_case(capability.value)}") for capability, fields in fields_by_capability.items() if fields}

    def resolve_names(self, schemas: dict[str, SchemaNode], methods: list[Method]) -> NameMapping:
        """
        Resolve all names.

        Args:
            schemas: Registry entries, in source order
            methods: Every method of the source

        Returns:
            NameMapping with resolved names
        """
        mapping = NameMapping()

        for qualified_name, node in schemas.items():
            name = self.type_name(qualified_name)
            if name:
                mapping.schemas[qualified_name] = (name, self.structural_kind(node))

        for method in methods:
            if not method.qualified_name:
                continue
            mapping.functions[method.qualified_name] = self.function_name(method)
            enums = self.capability_enum_names(method)
            if enums:
                mapping.capability_enums[method.qualified_name] = enums

        return mapping

    @staticmethod
    def escape_identifier(name: str) -> str:
        """Make a name a valid, non-keyword identifier."""
        if not name:
            return name
        name = _UNSAFE_CHARACTER.sub("_", name)
        if name[0].isdigit() or keyword.iskeyword(name) or keyword.issoftkeyword(name):
            name = f"_{name}"
        return name
