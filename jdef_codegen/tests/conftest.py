"""
Shared fixtures: a small normalized source with a list method.

pkg.v1.ListFoosRequest reaches the list helper messages through
j5.list.v1.QueryRequest, so it carries the filter, search and sort
generic requirements. pkg.v1.Foo refers to itself through "parent".
"""

from __future__ import annotations

import pytest

from jdef_codegen.pipeline.analyzer.registry import SchemaRegistry
from jdef_codegen.pipeline.schema_ast.nodes import (
    ArrayNode,
    EnumNode,
    EnumOption,
    KeyNode,
    ListOptions,
    Method,
    ObjectNode,
    ObjectProperty,
    Package,
    ParsedSource,
    RefNode,
    ScalarNode,
    SchemaKind,
    Service,
)

LIST_FOOS = "/pkg.v1.FooService/ListFoos"
GET_FOO = "/pkg.v1.FooService/GetFoo"


def prop(name: str, schema, required: bool = False) -> ObjectProperty:
    return ObjectProperty(name=name, schema=schema, required=required)


def obj(qualified_name: str, **properties) -> ObjectNode:
    return ObjectNode(
        qualified_name=qualified_name,
        display_name=qualified_name.rsplit(".", 1)[-1],
        properties={name: prop(name, schema) for name, schema in properties.items()},
    )


def ref(target: str) -> RefNode:
    return RefNode(target=f"#/definitions/{target}")


def string() -> ScalarNode:
    return ScalarNode(scalar_kind=SchemaKind.STRING)


def build_schemas() -> dict:
    schemas = [
        obj("j5.list.v1.Field", name=string()),
        obj("j5.list.v1.Filter", field=ref("j5.list.v1.Field")),
        obj("j5.list.v1.Search", field=string(), value=string()),
        obj("j5.list.v1.Sort", field=string()),
        obj(
            "j5.list.v1.QueryRequest",
            filters=ArrayNode(items=ref("j5.list.v1.Filter")),
            searches=ArrayNode(items=ref("j5.list.v1.Search")),
            sorts=ArrayNode(items=ref("j5.list.v1.Sort")),
        ),
        obj(
            "pkg.v1.Foo",
            id=KeyNode(format="uuid", primary=True),
            status=ref("pkg.v1.FooStatus"),
            parent=ref("pkg.v1.Foo"),
        ),
        EnumNode(
            qualified_name="pkg.v1.FooStatus",
            display_name="FooStatus",
            options=[EnumOption(name="ACTIVE", number=1), EnumOption(name="DELETED", number=2)],
        ),
        obj("pkg.v1.ListFoosRequest", query=ref("j5.list.v1.QueryRequest")),
        obj("pkg.v1.ListFoosResponse", foos=ArrayNode(items=ref("pkg.v1.Foo"))),
        obj("pkg.v1.GetFooRequest", id=string()),
        obj("pkg.v1.GetFooResponse", foo=ref("pkg.v1.Foo"), query=ref("j5.list.v1.QueryRequest")),
    ]
    return {schema.qualified_name: schema for schema in schemas}


def build_source() -> ParsedSource:
    list_foos = Method(
        name="ListFoos",
        qualified_name=LIST_FOOS,
        http_method="get",
        http_path="/pkg/v1/foos",
        request_body=ref("pkg.v1.ListFoosRequest"),
        response_body=ref("pkg.v1.ListFoosResponse"),
        list_options=ListOptions(filterable_fields=["status"], sortable_fields=["id"]),
    )
    get_foo = Method(
        name="GetFoo",
        qualified_name=GET_FOO,
        http_method="get",
        http_path="/pkg/v1/foo/{id}",
        request_body=ref("pkg.v1.GetFooRequest"),
        response_body=ref("pkg.v1.GetFooResponse"),
        path_parameters={"id": prop("id", string(), required=True)},
    )
    service = Service(name="FooService", qualified_name="pkg.v1.FooService", methods=[list_foos, get_foo])
    return ParsedSource(schemas=build_schemas(), packages=[Package(name="pkg.v1", services=[service])])


@pytest.fixture
def source() -> ParsedSource:
    return build_source()


@pytest.fixture
def registry(source) -> SchemaRegistry:
    return SchemaRegistry.from_source(source)


@pytest.fixture
def list_foos(source) -> Method:
    return next(m for m in source.iter_methods() if m.qualified_name == LIST_FOOS)


@pytest.fixture
def get_foo(source) -> Method:
    return next(m for m in source.iter_methods() if m.qualified_name == GET_FOO)
