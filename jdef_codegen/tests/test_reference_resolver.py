"""
Tests for Ref resolution.

Covers cycle termination, dropping of unresolvable properties and the
shared visited map of a whole-source pass.
"""

from __future__ import annotations

from conftest import GET_FOO, LIST_FOOS, obj, prop, ref, string

from jdef_codegen.pipeline.analyzer.reference_resolver import ReferenceResolver, resolve
from jdef_codegen.pipeline.analyzer.registry import SchemaRegistry
from jdef_codegen.pipeline.diagnostics import DiagnosticKind, Diagnostics
from jdef_codegen.pipeline.schema_ast.nodes import ArrayNode, MapNode, ObjectNode, ParsedSource, RefNode, ScalarNode


def _contains_ref(node, seen=None) -> bool:
    """Whether a Ref is reachable from node (without following provisional cycles twice)."""
    if seen is None:
        seen = set()
    if id(node) in seen or node is None:
        return False
    seen.add(id(node))
    if isinstance(node, RefNode):
        return True
    if isinstance(node, ArrayNode):
        return _contains_ref(node.items, seen)
    if isinstance(node, MapNode):
        return _contains_ref(node.key_schema, seen) or _contains_ref(node.item_schema, seen)
    return any(_contains_ref(p.schema, seen) for p in getattr(node, "properties", {}).values())


class TestCycles:
    """Tests for recursive schemas."""

    def test_self_reference_terminates(self):
        """Test that a schema whose only property refers to itself resolves."""
        registry = SchemaRegistry({"pkg.Node": obj("pkg.Node", next=ref("pkg.Node"))})

        resolved = resolve(ref("pkg.Node"), registry)

        assert isinstance(resolved, ObjectNode)
        assert resolved.qualified_name == "pkg.Node"
        inner = resolved.properties["next"].schema
        assert isinstance(inner, ObjectNode)
        assert inner.qualified_name == "pkg.Node"

    def test_mutual_recursion_terminates(self):
        registry = SchemaRegistry(
            {
                "pkg.A": obj("pkg.A", b=ref("pkg.B")),
                "pkg.B": obj("pkg.B", a=ref("pkg.A")),
            }
        )

        resolved = resolve(ref("pkg.A"), registry)

        b = resolved.properties["b"].schema
        assert b.qualified_name == "pkg.B"
        assert b.properties["a"].schema.qualified_name == "pkg.A"

    def test_fresh_visited_map_per_call(self):
        """Test that separate calls don't share cycle markers."""
        registry = SchemaRegistry({"pkg.Node": obj("pkg.Node", next=ref("pkg.Node"))})
        resolver = ReferenceResolver(registry)

        first = resolver.resolve(ref("pkg.Node"))
        second = resolver.resolve(ref("pkg.Node"))

        assert first is not second
        assert first == second


class TestUnresolved:
    """Tests for missing Ref targets."""

    def test_missing_ref_fails(self):
        diagnostics = Diagnostics()
        resolver = ReferenceResolver(SchemaRegistry({"pkg.Foo": obj("pkg.Foo")}), diagnostics)

        assert resolver.resolve(ref("pkg.Missing")) is None
        assert [d.subject for d in diagnostics.of_kind(DiagnosticKind.UNRESOLVED_REFERENCE)] == ["pkg.Missing"]

    def test_property_with_missing_ref_is_dropped(self):
        """Test that the object survives without the failing property."""
        diagnostics = Diagnostics()
        registry = SchemaRegistry({"pkg.Foo": obj("pkg.Foo", ok=string(), broken=ref("pkg.Missing"), after=string())})
        resolver = ReferenceResolver(registry, diagnostics)

        resolved = resolver.resolve(ref("pkg.Foo"))

        assert list(resolved.properties) == ["ok", "after"]
        assert len(diagnostics) == 1

    def test_array_of_missing_ref_fails(self):
        registry = SchemaRegistry({"pkg.Foo": obj("pkg.Foo")})
        assert resolve(ArrayNode(items=ref("pkg.Missing")), registry) is None

    def test_map_with_missing_item_fails(self):
        registry = SchemaRegistry({"pkg.Foo": obj("pkg.Foo")})
        node = MapNode(key_schema=string(), item_schema=ref("pkg.Missing"))
        assert resolve(node, registry) is None

    def test_resolve_source_skips_failing_schemas(self):
        """Test that a registry entry which is a dangling alias is omitted."""
        diagnostics = Diagnostics()
        schemas = {
            "pkg.Foo": obj("pkg.Foo", name=string()),
            "pkg.Dangling": RefNode(target="pkg.Missing"),
        }

        source = ParsedSource(schemas=schemas)
        resolved = ReferenceResolver(SchemaRegistry(schemas), diagnostics).resolve_source(source)

        assert list(resolved.schemas) == ["pkg.Foo"]
        assert diagnostics.of_kind(DiagnosticKind.UNRESOLVED_REFERENCE)


class TestReferenceIntegrity:
    """Tests over the shared fixture source, where every Ref exists."""

    def test_every_schema_resolves(self, source, registry):
        diagnostics = Diagnostics()
        resolver = ReferenceResolver(registry, diagnostics)

        for schema in source.schemas.values():
            assert resolver.resolve(schema) is not None

        assert not diagnostics

    def test_non_cyclic_schema_has_no_refs_left(self, registry):
        resolved = resolve(registry["pkg.v1.ListFoosRequest"], registry)
        assert not _contains_ref(resolved)

    def test_scalars_are_returned_unchanged(self, registry):
        node = string()
        assert resolve(node, registry) is node
        assert isinstance(resolve(node, registry), ScalarNode)

    def test_input_nodes_are_not_mutated(self, registry):
        resolve(registry["pkg.v1.ListFoosRequest"], registry)
        assert isinstance(registry["pkg.v1.ListFoosRequest"].properties["query"].schema, RefNode)

    def test_repeated_references_share_an_instance(self, source, registry):
        """Test that one whole-source pass resolves a qualified name once."""
        resolved = ReferenceResolver(registry).resolve_source(source)

        from_list = resolved.schemas["pkg.v1.ListFoosRequest"].properties["query"].schema
        from_get = resolved.schemas["pkg.v1.GetFooResponse"].properties["query"].schema
        assert from_list is from_get


class TestResolveMethods:
    """Tests for resolving method schemas."""

    def test_resolve_method(self, registry, list_foos):
        resolved = ReferenceResolver(registry).resolve_method(list_foos)

        assert resolved.request_body.qualified_name == "pkg.v1.ListFoosRequest"
        assert resolved.response_body.qualified_name == "pkg.v1.ListFoosResponse"
        assert resolved.list_options is list_foos.list_options

    def test_resolve_method_parameters(self, registry, get_foo):
        resolved = ReferenceResolver(registry).resolve_method(get_foo)
        assert list(resolved.path_parameters) == ["id"]
        assert resolved.query_parameters is None

    def test_resolve_source_packages(self, source, registry):
        resolved = ReferenceResolver(registry).resolve_source(source)

        methods = {m.qualified_name: m for m in resolved.iter_methods()}
        assert set(methods) == {LIST_FOOS, GET_FOO}
        assert isinstance(methods[GET_FOO].request_body, ObjectNode)

    def test_parameter_with_missing_ref_is_dropped(self, registry, get_foo):
        get_foo.query_parameters = {"bad": prop("bad", ref("pkg.v1.Missing")), "page": prop("page", string())}
        resolved = ReferenceResolver(registry).resolve_method(get_foo)
        assert list(resolved.query_parameters) == ["page"]
