"""
Build state: the identifier names assigned by one generation run.

The build state is the only artifact that outlives a run. It records, for
every schema and every method, the identifier the renderer generated and
the declaration form it used, so the next run can tell what was renamed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from ..errors import BuildStateParseError

if TYPE_CHECKING:
    from ..renderer import RenderResult


class StructuralKind(str, Enum):
    """Declaration form of a generated identifier."""

    RECORD = "record"
    ENUMERATION = "enumeration"
    ALIAS = "alias"
    FUNCTION = "function"

    @classmethod
    def coerce(cls, tag: str | StructuralKind) -> StructuralKind | str:
        """Known tags become members; unknown tags are kept verbatim."""
        try:
            return cls(tag)
        except ValueError:
            return tag


def kind_tag(kind: StructuralKind | str) -> str:
    """The persisted tag of a structural kind."""
    return kind.value if isinstance(kind, StructuralKind) else kind


@dataclass(frozen=True)
class BuildStateEntry:
    """One generated identifier."""

    canonical_key: str
    generated_identifier_name: str
    structural_kind: StructuralKind | str

    def to_dict(self) -> dict[str, str]:
        return {
            "generatedIdentifierName": self.generated_identifier_name,
            "structuralKind": kind_tag(self.structural_kind),
        }

    @classmethod
    def from_dict(cls, canonical_key: str, d: Any) -> BuildStateEntry:
        """
        Read an entry from its persisted form.

        Raises:
            BuildStateParseError: If the entry is not an object with string
                generatedIdentifierName and structuralKind fields
        """
        if not isinstance(d, dict):
            raise BuildStateParseError(f"Entry {canonical_key!r} must be an object, got {type(d).__name__}")

        name = d.get("generatedIdentifierName")
        kind = d.get("structuralKind")
        if not isinstance(name, str) or not name:
            raise BuildStateParseError(f"Entry {canonical_key!r} has no generatedIdentifierName")
        if not isinstance(kind, str) or not kind:
            raise BuildStateParseError(f"Entry {canonical_key!r} has no structuralKind")

        return cls(
            canonical_key=canonical_key,
            generated_identifier_name=name,
            structural_kind=StructuralKind.coerce(kind),
        )


@dataclass
class BuildState:
    """Generated identifiers of one run, keyed by canonical key."""

    schemas: dict[str, BuildStateEntry] = field(default_factory=dict)
    functions: dict[str, BuildStateEntry] = field(default_factory=dict)

    def add_schema(self, canonical_key: str, name: str, kind: StructuralKind | str) -> None:
        self.schemas[canonical_key] = BuildStateEntry(canonical_key, name, kind)

    def add_function(self, canonical_key: str, name: str) -> None:
        self.functions[canonical_key] = BuildStateEntry(canonical_key, name, StructuralKind.FUNCTION)

    def remove_schema(self, canonical_key: str) -> BuildStateEntry | None:
        """Delete a schema entry, returning it if it existed."""
        return self.schemas.pop(canonical_key, None)

    def schema_keys_by_name(self) -> dict[str, list[str]]:
        """Canonical keys of the schema entries, grouped by generated name."""
        keys: dict[str, list[str]] = {}
        for key, entry in self.schemas.items():
            keys.setdefault(entry.generated_identifier_name, []).append(key)
        return keys

    def to_dict(self) -> dict[str, dict[str, dict[str, str]]]:
        """Persisted form, with keys sorted for byte-stable output."""
        return {
            "schemas": {key: self.schemas[key].to_dict() for key in sorted(self.schemas)},
            "functions": {key: self.functions[key].to_dict() for key in sorted(self.functions)},
        }

    @classmethod
    def from_dict(cls, d: Any) -> BuildState:
        """
        Read a build state from its persisted form.

        Args:
            d: Decoded JSON document

        Returns:
            The build state

        Raises:
            BuildStateParseError: If the document does not have the expected shape
        """
        if not isinstance(d, dict):
            raise BuildStateParseError(f"Build state must be an object, got {type(d).__name__}")

        state = cls()
        for section in ("schemas", "functions"):
            entries = d.get(section)
            if not isinstance(entries, dict):
                raise BuildStateParseError(f"Build state is missing the {section!r} object")
            target = getattr(state, section)
            for key, value in entries.items():
                target[key] = BuildStateEntry.from_dict(key, value)

        return state


def build_state(result: RenderResult) -> BuildState:
    """Compute a fresh build state from a renderer's output."""
    state = BuildState()
    for schema in result.schemas:
        state.add_schema(schema.canonical_key, schema.generated_name, schema.structural_kind)
    for function in result.functions:
        state.add_function(function.canonical_key, function.generated_name)
    return state
