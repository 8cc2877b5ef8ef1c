"""
Tests for the build state model, its persistence and the rename diff.
"""

from __future__ import annotations

import json

import pytest

from jdef_codegen.pipeline.diagnostics import DiagnosticKind, Diagnostics
from jdef_codegen.pipeline.errors import BuildStateParseError
from jdef_codegen.pipeline.state.build_state import BuildState, BuildStateEntry, StructuralKind
from jdef_codegen.pipeline.state.diff import RenameOp, diff_build_states
from jdef_codegen.pipeline.state.store import dump_build_state, load_build_state, parse_build_state, save_build_state


def state_of(schemas: dict | None = None, functions: dict | None = None) -> BuildState:
    """Build a state from {key: (name, kind)} and {key: name}."""
    state = BuildState()
    for key, (name, kind) in (schemas or {}).items():
        state.add_schema(key, name, kind)
    for key, name in (functions or {}).items():
        state.add_function(key, name)
    return state


class TestBuildState:
    """Tests for BuildState serialization."""

    def test_to_dict_format(self):
        state = state_of({"pkg.Foo": ("Foo", StructuralKind.RECORD)}, {"/pkg.Svc/Get": "get"})
        assert state.to_dict() == {
            "schemas": {"pkg.Foo": {"generatedIdentifierName": "Foo", "structuralKind": "record"}},
            "functions": {"/pkg.Svc/Get": {"generatedIdentifierName": "get", "structuralKind": "function"}},
        }

    def test_keys_sorted(self):
        state = state_of({"pkg.B": ("B", "record"), "pkg.A": ("A", "record")})
        assert list(state.to_dict()["schemas"]) == ["pkg.A", "pkg.B"]

    def test_from_dict_round_trip(self):
        state = state_of({"pkg.Foo": ("Foo", StructuralKind.ENUMERATION)}, {"/pkg.Svc/Get": "get"})
        assert BuildState.from_dict(state.to_dict()) == state

    def test_unknown_kind_kept_verbatim(self):
        data = {"schemas": {"pkg.Foo": {"generatedIdentifierName": "Foo", "structuralKind": "interface"}}, "functions": {}}
        state = BuildState.from_dict(data)
        assert state.schemas["pkg.Foo"].structural_kind == "interface"
        assert state.to_dict() == data

    def test_known_kind_becomes_member(self):
        entry = BuildStateEntry.from_dict("pkg.Foo", {"generatedIdentifierName": "Foo", "structuralKind": "alias"})
        assert entry.structural_kind is StructuralKind.ALIAS

    @pytest.mark.parametrize(
        "data",
        [
            [],
            {"schemas": {}},
            {"schemas": [], "functions": {}},
            {"schemas": {"pkg.Foo": "Foo"}, "functions": {}},
            {"schemas": {"pkg.Foo": {"structuralKind": "record"}}, "functions": {}},
            {"schemas": {"pkg.Foo": {"generatedIdentifierName": "Foo", "structuralKind": 3}}, "functions": {}},
        ],
    )
    def test_malformed(self, data):
        with pytest.raises(BuildStateParseError):
            BuildState.from_dict(data)

    def test_remove_schema(self):
        state = state_of({"pkg.Foo": ("Foo", "record")})
        assert state.remove_schema("pkg.Foo").generated_identifier_name == "Foo"
        assert state.remove_schema("pkg.Foo") is None


class TestStore:
    """Tests for loading and saving build state files."""

    def test_dump_is_byte_stable(self):
        a = state_of({"pkg.B": ("B", "record"), "pkg.A": ("A", "alias")})
        b = state_of({"pkg.A": ("A", "alias"), "pkg.B": ("B", "record")})
        assert dump_build_state(a) == dump_build_state(b)

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "state" / "build-state.json"
        state = state_of({"pkg.Foo": ("Foo", "record")}, {"/pkg.Svc/Get": "get"})

        assert save_build_state(path, state)
        assert load_build_state(path) == state
        assert list(tmp_path.joinpath("state").iterdir()) == [path]

    def test_dry_run_does_not_write(self, tmp_path):
        path = tmp_path / "build-state.json"
        assert not save_build_state(path, BuildState(), dry_run=True)
        assert not path.exists()

    def test_missing_file(self, tmp_path):
        diagnostics = Diagnostics()
        assert load_build_state(tmp_path / "absent.json", diagnostics) is None
        assert not diagnostics

    def test_malformed_file_is_no_prior_state(self, tmp_path):
        path = tmp_path / "build-state.json"
        path.write_text("{not json", encoding="utf-8")
        diagnostics = Diagnostics()

        assert load_build_state(path, diagnostics) is None
        assert [d.kind for d in diagnostics] == [DiagnosticKind.BUILD_STATE_PARSE_ERROR]

    def test_undecodable_file_is_no_prior_state(self, tmp_path):
        path = tmp_path / "build-state.json"
        path.write_bytes(b'{"schemas": {"\xff": {}}, "functions": {}}')
        diagnostics = Diagnostics()

        assert load_build_state(path, diagnostics) is None
        assert [d.kind for d in diagnostics] == [DiagnosticKind.BUILD_STATE_PARSE_ERROR]

    def test_parse_error(self):
        with pytest.raises(BuildStateParseError):
            parse_build_state("[1, 2")

    def test_file_format(self, tmp_path):
        path = tmp_path / "build-state.json"
        save_build_state(path, state_of({"pkg.Foo": ("Foo", "record")}))
        assert json.loads(path.read_text(encoding="utf-8")) == {
            "functions": {},
            "schemas": {"pkg.Foo": {"generatedIdentifierName": "Foo", "structuralKind": "record"}},
        }


class TestDiff:
    """Tests for diff_build_states."""

    def test_concrete_rename(self):
        old = state_of({"pkg.Foo": ("Foo", "record")})
        new = state_of({"pkg.Foo": ("FooV2", "record")})

        diff = diff_build_states(old, new)

        assert diff.renames == [RenameOp(old_name="Foo", new_name="FooV2", structural_kind=StructuralKind.RECORD, canonical_key="pkg.Foo")]
        assert not diff.warnings

    def test_kind_change_is_not_a_rename(self):
        old = state_of({"pkg.Foo": ("Foo", "record")})
        new = state_of({"pkg.Foo": ("FooV2", "enumeration")})

        diff = diff_build_states(old, new)

        assert diff.renames == []
        assert [w.kind for w in diff.warnings] == [DiagnosticKind.STRUCTURAL_KIND_CHANGED]
        assert diff.warnings.items[0].subject == "pkg.Foo"

    def test_unchanged_names(self):
        state = state_of({"pkg.Foo": ("Foo", "record")}, {"/pkg.Svc/Get": "get"})
        diff = diff_build_states(state, state_of({"pkg.Foo": ("Foo", "record")}, {"/pkg.Svc/Get": "get"}))
        assert diff.renames == []
        assert not diff.warnings

    def test_added_and_removed_keys_are_ignored(self):
        old = state_of({"pkg.Gone": ("Gone", "record")})
        new = state_of({"pkg.New": ("New", "record")})
        assert diff_build_states(old, new).renames == []

    def test_schemas_before_functions(self):
        old = state_of({"pkg.Foo": ("Foo", "record")}, {"/pkg.Svc/Get": "get"})
        new = state_of({"pkg.Foo": ("Foo2", "record")}, {"/pkg.Svc/Get": "getFoo"})

        renames = diff_build_states(old, new).renames

        assert [(op.old_name, op.new_name) for op in renames] == [("Foo", "Foo2"), ("get", "getFoo")]
        assert renames[1].structural_kind == StructuralKind.FUNCTION

    def test_ambiguous_collision_warns(self):
        """Test that two keys renaming away from one old name are both kept and reported."""
        old = state_of({"pkg.a.Foo": ("Foo", "record"), "pkg.b.Foo": ("Foo", "record")})
        new = state_of({"pkg.a.Foo": ("PkgAFoo", "record"), "pkg.b.Foo": ("PkgBFoo", "record")})

        diff = diff_build_states(old, new)

        assert [op.canonical_key for op in diff.renames] == ["pkg.a.Foo", "pkg.b.Foo"]
        assert [w.kind for w in diff.warnings] == [DiagnosticKind.AMBIGUOUS_RENAME_COLLISION]

    def test_same_target_is_not_ambiguous(self):
        old = state_of({"pkg.a.Foo": ("Foo", "record"), "pkg.b.Foo": ("Foo", "alias")})
        new = state_of({"pkg.a.Foo": ("Bar", "record"), "pkg.b.Foo": ("Bar", "alias")})
        assert not diff_build_states(old, new).warnings

    def test_rename_op_to_dict(self):
        op = RenameOp(old_name="Foo", new_name="FooV2", structural_kind=StructuralKind.RECORD, canonical_key="pkg.Foo")
        assert op.to_dict() == {"canonicalKey": "pkg.Foo", "oldName": "Foo", "newName": "FooV2", "structuralKind": "record"}
