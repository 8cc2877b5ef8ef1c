"""
Configuration for the regeneration pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .analyzer.generics import (
    LIST_CAPABILITY_BY_REQUIREMENT,
    GenericOverrideMap,
    GenericRequirement,
    default_generic_overrides,
)
from .analyzer.name_resolver import EnumType

__all__ = ["CodemodConfig", "EnumType", "GeneratorConfig", "StateConfig"]


@dataclass
class CodemodConfig:
    """Configuration for rewriting consumer code.

    Attributes:
        rename: Whether to rename identifiers that changed since the last run
        remove_unused_schemas: Whether to remove unreferenced generated declarations
        source_globs: Glob patterns selecting the consumer source files
    """

    rename: bool = True
    remove_unused_schemas: bool = False
    source_globs: list[str] = field(default_factory=list)


@dataclass
class StateConfig:
    """Configuration for the persisted build state."""

    # Path of the build state document; empty disables state tracking
    file_name: str = ""

    codemod: CodemodConfig = field(default_factory=CodemodConfig)


@dataclass
class GeneratorConfig:
    """Configuration options for a regeneration run."""

    # Don't persist anything (build state, codemod edits)
    dry_run: bool = False

    # Log progress at INFO level
    verbose: bool = False

    # How enums are declared
    enum_type: EnumType = EnumType.ENUM

    # Build state tracking and codemods
    state: StateConfig = field(default_factory=StateConfig)

    # Seed generic requirements: qualified name -> property -> requirement or nested map
    generic_overrides: dict[str, GenericOverrideMap] = field(default_factory=default_generic_overrides)

    @staticmethod
    def from_dict(d: dict) -> GeneratorConfig:
        """Create a config from a dictionary."""
        config = GeneratorConfig()
        for k, v in d.items():
            if k == "state" and isinstance(v, dict):
                codemod = v.get("codemod", {})
                config.state = StateConfig(
                    file_name=v.get("file_name", ""),
                    codemod=CodemodConfig(
                        rename=codemod.get("rename", True),
                        remove_unused_schemas=codemod.get("remove_unused_schemas", False),
                        source_globs=list(codemod.get("source_globs", [])),
                    ),
                )
            elif k == "enum_type":
                config.enum_type = EnumType(v)
            elif k == "generic_overrides" and isinstance(v, dict):
                config.generic_overrides = {name: _override_map_from_dict(m) for name, m in v.items()}
            elif hasattr(config, k):
                setattr(config, k, v)
        return config

    def to_dict(self) -> dict:
        """Convert config to a dictionary."""
        return {
            "dry_run": self.dry_run,
            "verbose": self.verbose,
            "enum_type": self.enum_type.value,
            "state": {
                "file_name": self.state.file_name,
                "codemod": {
                    "rename": self.state.codemod.rename,
                    "remove_unused_schemas": self.state.codemod.remove_unused_schemas,
                    "source_globs": self.state.codemod.source_globs,
                },
            },
            "generic_overrides": {name: _override_map_to_dict(m) for name, m in self.generic_overrides.items()},
        }


# Built-in list requirements by name; a requirement dict marked "builtin" refers to one of these
BUILTIN_REQUIREMENTS: dict[str, GenericRequirement] = {
    requirement.name: requirement for requirement in LIST_CAPABILITY_BY_REQUIREMENT
}


def _is_requirement_dict(d: dict[str, Any]) -> bool:
    """A dict whose values are all non-dicts describes a requirement."""
    return "name" in d and not any(isinstance(v, dict) for v in d.values())


def _requirement_from_dict(d: dict[str, Any]) -> GenericRequirement:
    if d.get("builtin"):
        requirement = BUILTIN_REQUIREMENTS.get(d["name"])
        if requirement is None:
            raise ValueError(f"Unknown built-in generic {d['name']!r}")
        return requirement
    return GenericRequirement(name=d["name"], extends=d.get("extends"), default=d.get("default"))


def _override_map_from_dict(d: dict[str, Any]) -> GenericOverrideMap:
    result: GenericOverrideMap = {}
    for prop_name, value in d.items():
        if not isinstance(value, dict):
            raise ValueError(f"Generic override for {prop_name!r} must be an object, got {value!r}")
        if _is_requirement_dict(value):
            result[prop_name] = _requirement_from_dict(value)
        else:
            result[prop_name] = _override_map_from_dict(value)
    return result


def _override_map_to_dict(override_map: GenericOverrideMap) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for prop_name, value in override_map.items():
        if isinstance(value, GenericRequirement):
            result[prop_name] = {"name": value.name, "extends": value.extends, "default": value.default}
            if BUILTIN_REQUIREMENTS.get(value.name) is value:
                result[prop_name]["builtin"] = True
        else:
            result[prop_name] = _override_map_to_dict(value)
    return result
