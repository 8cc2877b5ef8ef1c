"""
Tests for the schema registry.
"""

from __future__ import annotations

import pytest
from conftest import obj, ref, string

from jdef_codegen.pipeline.analyzer.registry import SchemaRegistry
from jdef_codegen.pipeline.errors import InvalidRegistryError
from jdef_codegen.pipeline.schema_ast.nodes import ParsedSource, RefNode, clean_ref_name


class TestSchemaRegistry:
    """Tests for SchemaRegistry."""

    def test_from_source_keeps_order(self, source):
        """Test that entries keep source order."""
        registry = SchemaRegistry.from_source(source)
        assert list(registry) == list(source.schemas)
        assert len(registry) == len(source.schemas)

    def test_empty_source_is_invalid(self):
        """Test that a source without schemas is fatal."""
        with pytest.raises(InvalidRegistryError):
            SchemaRegistry.from_source(ParsedSource())

    def test_key_must_match_qualified_name(self):
        """Test that a key naming a different schema is rejected."""
        with pytest.raises(InvalidRegistryError, match="pkg.Other"):
            SchemaRegistry({"pkg.Foo": obj("pkg.Other", name=string())})

    def test_registry_is_read_only(self, registry):
        """Test that the registry cannot be mutated."""
        with pytest.raises(TypeError):
            registry["pkg.New"] = obj("pkg.New")  # type: ignore[index]

    def test_changes_to_input_do_not_leak(self):
        """Test that the registry copies its input mapping."""
        schemas = {"pkg.Foo": obj("pkg.Foo", name=string())}
        registry = SchemaRegistry(schemas)
        schemas["pkg.Bar"] = obj("pkg.Bar")
        assert "pkg.Bar" not in registry

    def test_lookup(self, registry):
        """Test direct Ref lookup."""
        assert registry.lookup(ref("pkg.v1.Foo")) is registry["pkg.v1.Foo"]
        assert registry.lookup(ref("pkg.v1.Missing")) is None


class TestFollow:
    """Tests for following Ref chains."""

    def test_follow_ref(self, registry):
        assert registry.follow(ref("pkg.v1.Foo")) == "pkg.v1.Foo"

    def test_follow_name(self, registry):
        assert registry.follow("pkg.v1.Foo") == "pkg.v1.Foo"
        assert registry.follow("#/definitions/pkg.v1.Foo") == "pkg.v1.Foo"

    def test_follow_named_node(self, registry):
        assert registry.follow(registry["pkg.v1.FooStatus"]) == "pkg.v1.FooStatus"

    def test_follow_alias_chain(self):
        """Test that registry entries which are Refs are followed to the final schema."""
        registry = SchemaRegistry(
            {
                "pkg.Foo": obj("pkg.Foo", name=string()),
                "pkg.FooAlias": RefNode(target="pkg.Foo"),
                "pkg.FooAliasAlias": RefNode(target="#/definitions/pkg.FooAlias"),
            }
        )
        assert registry.follow("pkg.FooAliasAlias") == "pkg.Foo"

    def test_follow_ref_loop_returns_none(self):
        """Test that a loop of aliases does not hang."""
        registry = SchemaRegistry(
            {
                "pkg.A": RefNode(target="pkg.B"),
                "pkg.B": RefNode(target="pkg.A"),
            }
        )
        assert registry.follow("pkg.A") is None

    def test_follow_missing(self, registry):
        assert registry.follow(ref("pkg.v1.Missing")) is None
        assert registry.follow(None) is None


class TestCleanRefName:
    """Tests for clean_ref_name."""

    @pytest.mark.parametrize(
        "target,expected",
        [
            ("#/definitions/pkg.Foo", "pkg.Foo"),
            ("#/$defs/pkg.Foo", "pkg.Foo"),
            ("#/components/schemas/pkg.Foo", "pkg.Foo"),
            ("pkg.Foo", "pkg.Foo"),
        ],
    )
    def test_prefixes(self, target, expected):
        assert clean_ref_name(target) == expected
