"""
Analyzer module.

Contains the schema registry, reference resolution, generic propagation
and name resolution.
"""

from __future__ import annotations

from .registry import SchemaRegistry
from .reference_resolver import ReferenceResolver, resolve
from .generics import (
    GenericPropagator,
    GenericRequirement,
    GenericValueResolver,
    GenericValueState,
    ListCapability,
    ResolvedGeneric,
    emit_type_arguments,
    populate_generics,
)
from .name_resolver import EnumType, NameMapping, NameResolver

__all__ = [
    "SchemaRegistry",
    "ReferenceResolver",
    "resolve",
    "GenericPropagator",
    "GenericRequirement",
    "GenericValueResolver",
    "GenericValueState",
    "ListCapability",
    "ResolvedGeneric",
    "emit_type_arguments",
    "populate_generics",
    "EnumType",
    "NameMapping",
    "NameResolver",
]
