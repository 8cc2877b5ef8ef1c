"""
Generic requirement propagation.

A schema exposes generic type parameters to stay reusable across call
sites. Requirements are seeded on a few well-known schemas (by default the
list helper messages) and propagate to every schema that reaches them
through a property, scoped under that property's name:

    j5.list.v1.Field    {"name": TFilterField}
    j5.list.v1.Filter   {"field": {"name": TFilterField}}
    pkg.ListFooRequest  {"query": {"filters": {"field": {"name": TFilterField}}}}

For a method with list capabilities, the built-in filter/search/sort
requirements of schemas under that method are resolved to the
per-method generated enumeration instead of being left open.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from ..schema_ast.nodes import (
    ArrayNode,
    MapNode,
    Method,
    RefNode,
    SchemaNode,
    properties_of,
    qualified_name_of,
)
from .registry import SchemaRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class GenericRequirement:
    """A named, boundable, defaultable type parameter.

    Equality and hashing are by identity: two requirements sharing a name
    but declared separately are distinct.
    """

    name: str
    extends: str | None = None
    default: str | None = None


# property name -> requirement, or nested map for deeper property paths
GenericOverrideMap = dict[str, Union[GenericRequirement, "GenericOverrideMap"]]


class ListCapability(str, Enum):
    """List capabilities of a method that produce a generated enumeration."""

    FILTER = "filterableFields"
    SEARCH = "searchableFields"
    SORT = "sortableFields"


LIST_FIELD_QUALIFIED_NAME = "j5.list.v1.Field"
LIST_SEARCH_QUALIFIED_NAME = "j5.list.v1.Search"
LIST_SORT_QUALIFIED_NAME = "j5.list.v1.Sort"

FILTER_FIELD_REQUIREMENT = GenericRequirement(name="TFilterField", extends="string", default="never")
SEARCH_FIELD_REQUIREMENT = GenericRequirement(name="TSearchField", extends="string", default="never")
SORT_FIELD_REQUIREMENT = GenericRequirement(name="TSortField", extends="string", default="never")

# Keyed by identity: a user requirement that merely shares a name stays open
LIST_CAPABILITY_BY_REQUIREMENT: dict[GenericRequirement, ListCapability] = {
    FILTER_FIELD_REQUIREMENT: ListCapability.FILTER,
    SEARCH_FIELD_REQUIREMENT: ListCapability.SEARCH,
    SORT_FIELD_REQUIREMENT: ListCapability.SORT,
}


def default_generic_overrides() -> dict[str, GenericOverrideMap]:
    """Seed requirements for the list helper messages."""
    return {
        LIST_FIELD_QUALIFIED_NAME: {"name": FILTER_FIELD_REQUIREMENT},
        LIST_SEARCH_QUALIFIED_NAME: {"field": SEARCH_FIELD_REQUIREMENT},
        LIST_SORT_QUALIFIED_NAME: {"field": SORT_FIELD_REQUIREMENT},
    }


def iter_generics(override_map: GenericOverrideMap | None) -> Iterator[GenericRequirement]:
    """Yield every requirement in a nested map, depth first, in property order.

    Nested maps are shared between owners and may form cycles, so each map
    is entered once.
    """
    if not override_map:
        return

    seen_maps: set[int] = {id(override_map)}
    stack = [iter(override_map.values())]

    while stack:
        for value in stack[-1]:
            if isinstance(value, GenericRequirement):
                yield value
            elif id(value) not in seen_maps:
                seen_maps.add(id(value))
                stack.append(iter(value.values()))
                break
        else:
            stack.pop()


def all_generics_for_children(override_map: GenericOverrideMap | None) -> list[GenericRequirement]:
    """Flatten a nested map into distinct requirements, in first-seen order."""
    # dict keys keep insertion order and compare requirements by identity
    return list(dict.fromkeys(iter_generics(override_map)))


class GenericPropagator:
    """Computes generic requirements for every schema reachable from a root."""

    def __init__(
        self,
        registry: SchemaRegistry,
        overrides: Mapping[str, GenericOverrideMap] | None = None,
    ):
        """
        Initialize the propagator.

        Args:
            registry: The populated schema registry
            overrides: Seed requirements per qualified name. Defaults to the
                list helper requirements.
        """
        self.registry = registry
        if overrides is None:
            overrides = default_generic_overrides()
        self.overrides = overrides

        self._result: dict[str, GenericOverrideMap] = {name: dict(seed) for name, seed in overrides.items()}
        self._done: set[str] = set()

    @property
    def result(self) -> dict[str, GenericOverrideMap]:
        """Requirements discovered so far, keyed by owner qualified name."""
        return {name: found for name, found in self._result.items() if found}

    def populate(self, root: SchemaNode | str | None = None) -> dict[str, GenericOverrideMap]:
        """
        Walk the graph from a root and record requirements.

        Args:
            root: A node, a qualified name, or None for every registry entry

        Returns:
            Mapping from qualified name to per-property requirements
        """
        visiting: set[str] = set()

        if root is None:
            for name, node in self.registry.items():
                self._walk(name, node, visiting)
        elif isinstance(root, str):
            target = self.registry.follow(root)
            if target is not None:
                self._walk(target, self.registry[target], visiting)
        else:
            self._child_requirements(root, visiting)

        self._prune()
        return self.result

    def generics_for_schema(self, schema: SchemaNode | str | None) -> GenericOverrideMap | None:
        """Requirements recorded for a schema (following Refs), if any."""
        if isinstance(schema, (str, RefNode)):
            name = self.registry.follow(schema)
        else:
            name = qualified_name_of(schema)
        if not name:
            return None
        return self._result.get(name) or None

    def _walk(self, name: str, node: SchemaNode, visiting: set[str]) -> GenericOverrideMap | None:
        """Record requirements for one named schema and return them."""
        if name in visiting:
            # Entered higher up this walk: share its map, which is still being filled
            return self._result[name]
        if name in self._done:
            return self._result.get(name) or None

        if isinstance(node, RefNode):
            target = self.registry.follow(node)
            if target is None:
                return None
            return self._walk(target, self.registry[target], visiting)

        visiting.add(name)
        found = self._result.setdefault(name, {})

        for prop_name, prop in properties_of(node).items():
            if prop_name in found:
                # Seeded overrides win over discovered requirements
                continue
            child = self._child_requirements(prop.schema, visiting)
            if child is not None:
                found[prop_name] = child

        visiting.discard(name)
        self._done.add(name)

        return found or None

    def _prune(self) -> None:
        """Drop properties whose nested maps ended up holding no requirement."""
        for found in self._result.values():
            empty = [
                prop_name
                for prop_name, value in found.items()
                if isinstance(value, dict) and next(iter_generics(value), None) is None
            ]
            for prop_name in empty:
                del found[prop_name]

    def _child_requirements(self, schema: SchemaNode | None, visiting: set[str]) -> GenericOverrideMap | None:
        """Requirements contributed by a property schema."""
        if schema is None:
            return None

        if isinstance(schema, ArrayNode):
            return self._child_requirements(schema.items, visiting)

        if isinstance(schema, MapNode):
            return self._child_requirements(schema.item_schema, visiting)

        if isinstance(schema, RefNode):
            target = self.registry.follow(schema)
            if target is None:
                logger.debug("Ref %r does not resolve, no generics propagated", schema.target_name)
                return None
            return self._walk(target, self.registry[target], visiting)

        name = qualified_name_of(schema)
        if name and properties_of(schema):
            return self._walk(name, schema, visiting)

        return None


def populate_generics(
    root: SchemaNode | str | None,
    registry: SchemaRegistry,
    overrides: Mapping[str, GenericOverrideMap] | None = None,
) -> dict[str, GenericOverrideMap]:
    """Compute requirements reachable from a root with a fresh propagator."""
    return GenericPropagator(registry, overrides).populate(root)


class GenericValueState(str, Enum):
    """How a requirement is resolved for one use of a schema."""

    CONCRETE = "concrete"  # Bound to a value other than the default
    DEFAULT = "default"  # Bound to its default; can be omitted
    OPEN = "open"  # Unbound, emitted as a type parameter


@dataclass(frozen=True)
class ResolvedGeneric:
    """A requirement with the value it takes for one use of a schema."""

    requirement: GenericRequirement
    state: GenericValueState
    value: str | None = None

    @classmethod
    def open(cls, requirement: GenericRequirement) -> ResolvedGeneric:
        return cls(requirement=requirement, state=GenericValueState.OPEN)

    @classmethod
    def with_value(cls, requirement: GenericRequirement, value: str | None) -> ResolvedGeneric:
        """Bind a value; a missing value or one equal to the default collapses to the default."""
        if value is None or value == requirement.default:
            return cls(requirement=requirement, state=GenericValueState.DEFAULT, value=requirement.default)
        return cls(requirement=requirement, state=GenericValueState.CONCRETE, value=value)


@dataclass
class MethodGenericContext:
    """The method a schema is being resolved under."""

    method: Method
    # Generated enumeration name per list capability of the method
    capability_enums: dict[ListCapability, str] = field(default_factory=dict)


GenericValueDeterminer = Callable[[list[GenericRequirement], MethodGenericContext | None], list[ResolvedGeneric]]


def list_generic_value_determiner(
    generics: list[GenericRequirement],
    context: MethodGenericContext | None,
) -> list[ResolvedGeneric]:
    """Bind the list helper requirements to the method's generated enumerations."""
    if context is None or context.method.list_options is None:
        return [ResolvedGeneric.open(generic) for generic in generics]

    resolved = []
    for generic in generics:
        capability = LIST_CAPABILITY_BY_REQUIREMENT.get(generic)
        if capability is None:
            resolved.append(ResolvedGeneric.open(generic))
        else:
            resolved.append(ResolvedGeneric.with_value(generic, context.capability_enums.get(capability)))

    return resolved


class GenericValueResolver:
    """Resolves the requirements of a schema for one use site."""

    def __init__(
        self,
        propagator: GenericPropagator,
        determiner: GenericValueDeterminer = list_generic_value_determiner,
    ):
        self.propagator = propagator
        self.registry = propagator.registry
        self.determiner = determiner
        self._descendants: dict[str, frozenset[str]] = {}

    def resolve(
        self,
        schema: SchemaNode | str,
        method: Method | None = None,
        capability_enums: Mapping[ListCapability, str] | None = None,
    ) -> list[ResolvedGeneric]:
        """
        Resolve every requirement of a schema.

        The method context only applies when the schema is a descendant of
        the method's request/response construction.

        Args:
            schema: Schema node or qualified name
            method: The method the schema is used under, if any
            capability_enums: Generated enumeration names of the method

        Returns:
            Resolved requirements in declared order
        """
        generics = all_generics_for_children(self.propagator.generics_for_schema(schema))
        if not generics:
            return []

        context = None
        if method is not None and self.is_descendant(schema, method):
            context = MethodGenericContext(method=method, capability_enums=dict(capability_enums or {}))

        return self.determiner(generics, context)

    def is_descendant(self, schema: SchemaNode | str, method: Method) -> bool:
        """Whether a schema is reachable from a method's request or response construction."""
        if isinstance(schema, (str, RefNode)):
            name = self.registry.follow(schema)
        else:
            name = qualified_name_of(schema)
        if not name:
            return False
        return name in self._method_descendants(method)

    def _method_descendants(self, method: Method) -> frozenset[str]:
        key = method.qualified_name or str(id(method))
        if key not in self._descendants:
            roots: list[SchemaNode | None] = [method.request_body, method.response_body, method.root_entity_schema]
            for parameters in (method.path_parameters, method.query_parameters):
                if parameters:
                    roots.extend(prop.schema for prop in parameters.values())
            self._descendants[key] = frozenset(self._reachable(roots))
        return self._descendants[key]

    def _reachable(self, roots: list[SchemaNode | None]) -> set[str]:
        """Qualified names reachable from the given nodes through properties and Refs."""
        names: set[str] = set()
        stack = [root for root in roots if root is not None]

        while stack:
            node = stack.pop()

            if isinstance(node, RefNode):
                target = self.registry.follow(node)
                if target is None or target in names:
                    continue
                names.add(target)
                stack.append(self.registry[target])
                continue

            if isinstance(node, ArrayNode):
                if node.items is not None:
                    stack.append(node.items)
            elif isinstance(node, MapNode):
                stack.extend(child for child in (node.key_schema, node.item_schema) if child is not None)

            name = qualified_name_of(node)
            if name:
                names.add(name)
            stack.extend(prop.schema for prop in properties_of(node).values() if prop.schema is not None)

        return names


def emit_type_arguments(resolved: list[ResolvedGeneric]) -> list[str] | None:
    """
    Build the type argument list for one use of a schema.

    Returns:
        None when every argument equals its default (the list is omitted
        entirely); otherwise the non-default arguments in declared order,
        concrete values verbatim and open parameters by name.
    """
    if all(generic.state == GenericValueState.DEFAULT for generic in resolved):
        return None

    arguments = []
    for generic in resolved:
        if generic.state == GenericValueState.CONCRETE:
            arguments.append(generic.value)
        elif generic.state == GenericValueState.OPEN:
            arguments.append(generic.requirement.name)
    return arguments
