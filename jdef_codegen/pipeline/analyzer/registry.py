"""
Schema registry.

A read-only store of canonical schema nodes keyed by qualified name.
The graph formed by Ref edges may be cyclic; the naming space is not:
every qualified name maps to exactly one node.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType

from ..errors import InvalidRegistryError
from ..schema_ast.nodes import ParsedSource, RefNode, SchemaNode, clean_ref_name, qualified_name_of


class SchemaRegistry(Mapping[str, SchemaNode]):
    """Immutable mapping of qualified name to schema node."""

    def __init__(self, schemas: Mapping[str, SchemaNode]):
        """
        Initialize the registry.

        Args:
            schemas: Mapping from qualified name to node, in source order

        Raises:
            InvalidRegistryError: If the mapping is empty or a key does not
                match the qualified name carried by its node
        """
        if not schemas:
            raise InvalidRegistryError("Source contains no schemas")

        for name, node in schemas.items():
            node_name = qualified_name_of(node)
            if node_name and node_name != name:
                raise InvalidRegistryError(f"Registry key {name!r} does not match the qualified name {node_name!r} of its schema")

        self._schemas: Mapping[str, SchemaNode] = MappingProxyType(dict(schemas))

    @classmethod
    def from_source(cls, source: ParsedSource) -> SchemaRegistry:
        """Build a registry from a normalized source."""
        return cls(source.schemas)

    def __getitem__(self, name: str) -> SchemaNode:
        return self._schemas[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._schemas)

    def __len__(self) -> int:
        return len(self._schemas)

    def lookup(self, ref: RefNode) -> SchemaNode | None:
        """Look up the direct target of a Ref, or None if it is absent."""
        return self._schemas.get(ref.target_name)

    def follow(self, node: SchemaNode | str | None) -> str | None:
        """Follow a chain of Refs to the qualified name of the final schema.

        Registry entries may themselves be Refs (aliases); those are followed
        too. A Ref loop or a missing target yields None.

        Args:
            node: A Ref, a named node, or a qualified name

        Returns:
            Qualified name of the final, non-Ref schema, or None
        """
        if isinstance(node, str):
            name = clean_ref_name(node)
        elif isinstance(node, RefNode):
            name = node.target_name
        else:
            return qualified_name_of(node) or None

        seen: set[str] = set()
        while True:
            if name in seen:
                return None
            seen.add(name)

            target = self._schemas.get(name)
            if target is None:
                return None
            if not isinstance(target, RefNode):
                return name
            name = target.target_name
