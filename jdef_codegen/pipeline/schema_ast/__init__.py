"""
Schema AST module.

Contains the canonical node definitions of a normalized API description.
"""

from __future__ import annotations

from .nodes import (
    ArrayNode,
    EntityKey,
    EnumNode,
    EnumOption,
    KeyNode,
    ListOptions,
    MapNode,
    Method,
    ObjectNode,
    ObjectProperty,
    OneOfNode,
    Package,
    ParsedSource,
    PolymorphNode,
    RefNode,
    ScalarNode,
    SchemaKind,
    SchemaNode,
    Service,
)

__all__ = [
    "SchemaKind",
    "SchemaNode",
    "ScalarNode",
    "KeyNode",
    "EnumNode",
    "EnumOption",
    "RefNode",
    "ArrayNode",
    "MapNode",
    "ObjectNode",
    "OneOfNode",
    "PolymorphNode",
    "ObjectProperty",
    "EntityKey",
    "ListOptions",
    "Method",
    "Service",
    "Package",
    "ParsedSource",
]
