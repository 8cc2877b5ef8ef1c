"""
Reference resolver for Ref dereferencing.

Replaces Ref nodes with the schemas they point to, recursively, producing
self-contained trees. Cyclic schemas terminate: a qualified name is marked
as visited before its target is entered, so a second encounter during the
same pass returns the node seen the first time instead of recursing.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from ..diagnostics import DiagnosticKind, Diagnostics
from ..schema_ast.nodes import (
    ArrayNode,
    MapNode,
    Method,
    ObjectNode,
    ObjectProperty,
    OneOfNode,
    Package,
    ParsedSource,
    PolymorphNode,
    RefNode,
    SchemaNode,
    Service,
)
from .registry import SchemaRegistry

logger = logging.getLogger(__name__)

# qualified name -> provisional or resolved node, shared by one resolution pass
VisitedMap = dict[str, SchemaNode]


class ReferenceResolver:
    """Resolves Refs to their target schemas."""

    def __init__(self, registry: SchemaRegistry, diagnostics: Diagnostics | None = None):
        """
        Initialize the resolver.

        Args:
            registry: The populated schema registry
            diagnostics: Batch receiving unresolved reference warnings
        """
        self.registry = registry
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    def resolve(self, node: SchemaNode | None, visited: VisitedMap | None = None) -> SchemaNode | None:
        """
        Resolve a node, inlining every Ref reachable from it.

        Args:
            node: The node to resolve (may itself be a Ref)
            visited: Cycle-protection map shared by nested calls of one pass.
                A fresh map is used when omitted.

        Returns:
            The resolved node, or None if resolution failed
        """
        if visited is None:
            visited = {}

        if node is None:
            return None

        if isinstance(node, RefNode):
            return self._resolve_ref(node, visited)

        if isinstance(node, ArrayNode):
            items = self.resolve(node.items, visited)
            if items is None:
                return None
            return replace(node, items=items)

        if isinstance(node, MapNode):
            key_schema = self.resolve(node.key_schema, visited)
            item_schema = self.resolve(node.item_schema, visited)
            if key_schema is None or item_schema is None:
                return None
            return replace(node, key_schema=key_schema, item_schema=item_schema)

        if isinstance(node, (ObjectNode, OneOfNode, PolymorphNode)):
            return replace(node, properties=self.resolve_properties(node.properties, visited))

        # Scalars, keys and enums have no children to resolve
        return node

    def _resolve_ref(self, ref: RefNode, visited: VisitedMap) -> SchemaNode | None:
        """Resolve a Ref through the registry."""
        name = ref.target_name
        target = self.registry.get(name)

        if target is None:
            self.diagnostics.add(
                DiagnosticKind.UNRESOLVED_REFERENCE,
                f"schema for ref {name!r} not found, dereferencing failed",
                subject=name,
            )
            return None

        if name in visited:
            return visited[name]

        # Provisional entry: a nested encounter of the same name stops here
        visited[name] = target

        resolved = self.resolve(target, visited)

        if resolved is not None:
            visited[name] = resolved

        return resolved

    def resolve_properties(
        self,
        properties: dict[str, ObjectProperty],
        visited: VisitedMap | None = None,
    ) -> dict[str, ObjectProperty]:
        """
        Resolve the schema of every property.

        Properties whose schema fails to resolve are dropped; the rest keep
        their order.
        """
        if visited is None:
            visited = {}

        resolved_properties: dict[str, ObjectProperty] = {}
        for key, prop in properties.items():
            schema = self.resolve(prop.schema, visited)
            if schema is None:
                logger.info("Dropping property %r: its schema could not be resolved", key)
                continue
            resolved_properties[key] = replace(prop, schema=schema)

        return resolved_properties

    def resolve_method(self, method: Method) -> Method:
        """Resolve every schema attached to a method, with a fresh visited map."""
        visited: VisitedMap = {}

        return replace(
            method,
            request_body=self.resolve(method.request_body, visited),
            response_body=self.resolve(method.response_body, visited),
            path_parameters=(self.resolve_properties(method.path_parameters, visited) if method.path_parameters is not None else None),
            query_parameters=(self.resolve_properties(method.query_parameters, visited) if method.query_parameters is not None else None),
            root_entity_schema=self.resolve(method.root_entity_schema, visited),
        )

    def resolve_service(self, service: Service, visited_methods: dict[str, Method] | None = None) -> Service:
        """Resolve every method of a service."""
        if visited_methods is None:
            visited_methods = {}

        methods = []
        for method in service.methods:
            if method.qualified_name and method.qualified_name in visited_methods:
                methods.append(visited_methods[method.qualified_name])
                continue

            resolved = self.resolve_method(method)
            if method.qualified_name:
                visited_methods[method.qualified_name] = resolved
            methods.append(resolved)

        return replace(service, methods=methods)

    def resolve_package(self, package: Package, visited_methods: dict[str, Method] | None = None) -> Package:
        """Resolve every service of a package."""
        if visited_methods is None:
            visited_methods = {}

        return replace(
            package,
            services=[self.resolve_service(service, visited_methods) for service in package.services],
        )

    def resolve_source(self, source: ParsedSource) -> ParsedSource:
        """
        Resolve a whole source.

        All schemas share one visited map for the pass, so repeated
        references to one qualified name resolve to the same instance.
        Schemas that fail to resolve are omitted from the result.

        Args:
            source: The normalized source

        Returns:
            A new source with dereferenced schemas and packages
        """
        visited: VisitedMap = {}
        schemas: dict[str, SchemaNode] = {}

        for name, schema in source.schemas.items():
            resolved = self.resolve(schema, visited)
            if resolved is None:
                logger.info("Skipping schema %r: it could not be resolved", name)
                continue
            schemas[name] = resolved

        visited_methods: dict[str, Method] = {}
        packages = [self.resolve_package(package, visited_methods) for package in source.packages]

        return replace(source, schemas=schemas, packages=packages)


def resolve(node: SchemaNode | None, registry: SchemaRegistry, visited: VisitedMap | None = None) -> SchemaNode | None:
    """Resolve a node against a registry (convenience wrapper)."""
    return ReferenceResolver(registry).resolve(node, visited)
