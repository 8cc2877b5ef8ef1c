import json
import logging
from pathlib import Path

import click

from .pipeline import CodegenError, Diagnostics
from .pipeline.codemod import CodemodReport, RenameCodemod, SourceProject, UnusedSchemaCodemod
from .pipeline.state import BuildState, diff_build_states, load_build_state, save_build_state


def _load_state(path: str, diagnostics: Diagnostics) -> BuildState:
    state = load_build_state(path, diagnostics)
    if state is None:
        raise click.ClickException(f"Unable to read build state {path}")
    return state


def _print_warning_count(diagnostics: Diagnostics) -> None:
    # Each diagnostic has already been logged when recorded
    if diagnostics:
        click.echo(f"{len(diagnostics)} warning(s)", err=True)


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log progress")
def jdef_codegen(verbose):
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@jdef_codegen.command()
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the renames as JSON")
@click.argument("old_state", type=click.Path(exists=True, dir_okay=False))
@click.argument("new_state", type=click.Path(exists=True, dir_okay=False))
def diff(as_json, old_state, new_state):
    """Print the renames between two build state files."""
    diagnostics = Diagnostics()
    old = _load_state(old_state, diagnostics)
    new = _load_state(new_state, diagnostics)

    result = diff_build_states(old, new)

    if as_json:
        out = {
            "renames": [op.to_dict() for op in result.renames],
            "warnings": [{"kind": w.kind.value, "subject": w.subject, "message": w.message} for w in result.warnings],
        }
        click.echo(json.dumps(out, indent=2))
        return

    for op in result.renames:
        click.echo(f"{op.canonical_key}: {op.old_name} -> {op.new_name}")
    _print_warning_count(result.warnings)


@jdef_codegen.command()
@click.option("--source", "-s", "sources", multiple=True, required=True, help="Glob of consumer source files (repeatable)")
@click.option("--root", default=".", type=click.Path(exists=True, file_okay=False), help="Directory the globs are relative to")
@click.option("--no-rename", is_flag=True, default=False, help="Don't rename identifiers")
@click.option("--remove-unused", is_flag=True, default=False, help="Remove unreferenced generated declarations")
@click.option("--dry-run", is_flag=True, default=False, help="Report changes without writing")
@click.option("--write-state", default=None, type=click.Path(dir_okay=False), help="Write the pruned new build state here")
@click.argument("old_state", type=click.Path(exists=True, dir_okay=False))
@click.argument("new_state", type=click.Path(exists=True, dir_okay=False))
def codemod(sources, root, no_rename, remove_unused, dry_run, write_state, old_state, new_state):
    """Apply the renames between two build states to consumer sources."""
    diagnostics = Diagnostics()
    old = _load_state(old_state, diagnostics)
    new = _load_state(new_state, diagnostics)

    project = SourceProject.from_globs(sources, Path(root))

    report = CodemodReport()
    if not no_rename:
        report.merge(RenameCodemod(project, diagnostics).process(old, new))
    if remove_unused:
        report.merge(UnusedSchemaCodemod(project, diagnostics).process(old, new))

    try:
        written = project.save(dry_run=dry_run)
    except CodegenError as e:
        raise click.ClickException(str(e)) from e

    if write_state:
        save_build_state(write_state, new, dry_run=dry_run)

    prefix = "would change" if dry_run else "changed"
    for path in written:
        click.echo(f"{prefix} {path}")
    for name in report.removed_declarations:
        click.echo(f"removed {name}")
    click.echo(f"{report.replacements} replacement(s) in {len(report.files_changed)} file(s)")
    _print_warning_count(diagnostics)
