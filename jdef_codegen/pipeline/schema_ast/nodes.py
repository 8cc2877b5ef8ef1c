"""
Canonical node definitions for a normalized API description.

These nodes are the output of the normalization step: both source
dialects are reduced to this closed set of schema kinds before any
reference resolution or generic propagation happens.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar


class SchemaKind(str, Enum):
    """Kind of a schema node."""

    ENUM = "enum"
    BOOL = "bool"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    DATE = "date"
    TIMESTAMP = "timestamp"
    DECIMAL = "decimal"
    BYTES = "bytes"
    KEY = "key"
    ANY = "any"
    MAP = "map"
    ARRAY = "array"
    OBJECT = "object"
    ONE_OF = "oneOf"
    POLYMORPH = "polymorph"
    REF = "ref"


SCALAR_KINDS = frozenset(
    {
        SchemaKind.BOOL,
        SchemaKind.INTEGER,
        SchemaKind.FLOAT,
        SchemaKind.STRING,
        SchemaKind.DATE,
        SchemaKind.TIMESTAMP,
        SchemaKind.DECIMAL,
        SchemaKind.BYTES,
        SchemaKind.KEY,
        SchemaKind.ANY,
    }
)

# Prefixes stripped from $ref targets before registry lookup
REF_PREFIXES = ("#/definitions/", "#/$defs/", "#/components/schemas/")


class DerivedEnumHelper(str, Enum):
    """Marks enums derived by the generator rather than declared in the source."""

    ONE_OF_TYPES = "oneOfTypes"
    FILTER_FIELDS = "filterFields"
    SEARCH_FIELDS = "searchFields"
    SORT_FIELDS = "sortFields"


@dataclass
class SchemaNode:
    """Base class for all schema nodes."""

    kind: ClassVar[SchemaKind]

    # Raw schema metadata (descriptions, examples, rules, x-* extensions)
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class ScalarNode(SchemaNode):
    """A leaf value: bool, integer, float, string, date, timestamp, decimal, bytes or any."""

    scalar_kind: SchemaKind = SchemaKind.STRING
    format: str | None = None

    def __post_init__(self) -> None:
        if self.scalar_kind not in SCALAR_KINDS or self.scalar_kind == SchemaKind.KEY:
            raise ValueError(f"{self.scalar_kind!r} is not a scalar kind")

    @property
    def kind(self) -> SchemaKind:  # type: ignore[override]
        return self.scalar_kind


@dataclass
class KeyNode(SchemaNode):
    """An entity key (a scalar carrying key metadata)."""

    kind: ClassVar[SchemaKind] = SchemaKind.KEY

    format: str = ""
    primary: bool = False
    entity: str | None = None


@dataclass
class EnumOption:
    """One value of an enum."""

    name: str = ""
    number: int | None = None
    description: str | None = None


@dataclass
class EnumNode(SchemaNode):
    """An enumeration."""

    kind: ClassVar[SchemaKind] = SchemaKind.ENUM

    qualified_name: str = ""
    display_name: str = ""
    options: list[EnumOption] = field(default_factory=list)
    prefix: str = ""
    derived_helper: DerivedEnumHelper | None = None


@dataclass
class RefNode(SchemaNode):
    """A reference to another schema, by qualified name."""

    kind: ClassVar[SchemaKind] = SchemaKind.REF

    target: str = ""

    @property
    def target_name(self) -> str:
        """The target with any JSON-pointer prefix removed."""
        return clean_ref_name(self.target)


@dataclass
class ArrayNode(SchemaNode):
    """A list of items."""

    kind: ClassVar[SchemaKind] = SchemaKind.ARRAY

    items: SchemaNode | None = None
    qualified_name: str = ""
    display_name: str = ""


@dataclass
class MapNode(SchemaNode):
    """A mapping from keys to items."""

    kind: ClassVar[SchemaKind] = SchemaKind.MAP

    key_schema: SchemaNode | None = None
    item_schema: SchemaNode | None = None
    qualified_name: str = ""
    display_name: str = ""


@dataclass
class EntityKey:
    """Entity key markers on a property, used by entity-aware renderers."""

    primary: bool = False
    shard: bool = False
    tenant: str | None = None
    foreign: str | None = None


@dataclass
class ObjectProperty:
    """A property of an object, oneOf or polymorph."""

    name: str = ""
    schema: SchemaNode | None = None
    required: bool = False
    read_only: bool = False
    write_only: bool = False
    description: str | None = None
    entity_key: EntityKey | None = None


@dataclass
class ObjectNode(SchemaNode):
    """A record with named properties."""

    kind: ClassVar[SchemaKind] = SchemaKind.OBJECT

    qualified_name: str = ""
    display_name: str = ""
    properties: dict[str, ObjectProperty] = field(default_factory=dict)


@dataclass
class OneOfNode(SchemaNode):
    """A record of which exactly one property is set."""

    kind: ClassVar[SchemaKind] = SchemaKind.ONE_OF

    qualified_name: str = ""
    display_name: str = ""
    properties: dict[str, ObjectProperty] = field(default_factory=dict)


@dataclass
class PolymorphNode(SchemaNode):
    """A wrapper holding a value of one of several member types."""

    kind: ClassVar[SchemaKind] = SchemaKind.POLYMORPH

    qualified_name: str = ""
    display_name: str = ""
    properties: dict[str, ObjectProperty] = field(default_factory=dict)
    members: list[str] = field(default_factory=list)


# Nodes carrying an ordered property mapping
PropertyContainer = ObjectNode | OneOfNode | PolymorphNode

# Nodes that carry a qualified name and can be declared on their own
NamedNode = EnumNode | ObjectNode | OneOfNode | PolymorphNode | ArrayNode | MapNode


@dataclass
class ListOptions:
    """List capabilities of a method (filtering, searching, sorting)."""

    filterable_fields: list[str] = field(default_factory=list)
    searchable_fields: list[str] = field(default_factory=list)
    sortable_fields: list[str] = field(default_factory=list)
    default_filters: dict[str, list[str]] = field(default_factory=dict)
    default_sorts: dict[str, str] = field(default_factory=dict)


@dataclass
class Method:
    """An API method."""

    name: str = ""
    qualified_name: str = ""
    http_method: str = "get"
    http_path: str = ""
    request_body: SchemaNode | None = None
    response_body: SchemaNode | None = None
    path_parameters: dict[str, ObjectProperty] | None = None
    query_parameters: dict[str, ObjectProperty] | None = None
    list_options: ListOptions | None = None
    root_entity_schema: SchemaNode | None = None


@dataclass
class Service:
    """A group of methods."""

    name: str = ""
    qualified_name: str = ""
    methods: list[Method] = field(default_factory=list)


@dataclass
class Package:
    """A group of services."""

    name: str = ""
    label: str | None = None
    hidden: bool = False
    introduction: str | None = None
    services: list[Service] = field(default_factory=list)


@dataclass
class SourceMetadata:
    """Metadata of the source document."""

    built_at: datetime | None = None
    version: str | None = None


@dataclass
class ParsedSource:
    """Root of a normalized API description."""

    schemas: dict[str, SchemaNode] = field(default_factory=dict)
    packages: list[Package] = field(default_factory=list)
    metadata: SourceMetadata = field(default_factory=SourceMetadata)

    def iter_methods(self):
        """Yield every method of every service of every package."""
        for package in self.packages:
            for service in package.services:
                yield from service.methods


def clean_ref_name(target: str) -> str:
    """Strip a JSON-pointer prefix from a $ref target.

    Examples:
        "#/definitions/pkg.Foo" -> "pkg.Foo"
        "#/$defs/pkg.Foo" -> "pkg.Foo"
        "pkg.Foo" -> "pkg.Foo"
    """
    for prefix in REF_PREFIXES:
        if target.startswith(prefix):
            return target[len(prefix) :]
    return target


def qualified_name_of(node: SchemaNode | None) -> str:
    """Return the qualified name a node carries, or an empty string."""
    return getattr(node, "qualified_name", "") or ""


def properties_of(node: SchemaNode | None) -> dict[str, ObjectProperty]:
    """Return the ordered property mapping of a property container, or an empty dict."""
    if isinstance(node, (ObjectNode, OneOfNode, PolymorphNode)):
        return node.properties
    return {}
