"""
Regeneration pipeline.

Orchestrates one run:

1. Registry: index the normalized source by qualified name
2. Resolution: inline Refs, dropping what cannot be resolved
3. Propagation: compute generic requirements for every schema
4. Rendering: assign generated names (Renderer)
5. Build state: record the generated names
6. Diff: compare with the previous run's build state
7. Codemods: rename identifiers, then remove unused declarations
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .analyzer.generics import GenericPropagator, GenericValueResolver
from .analyzer.reference_resolver import ReferenceResolver
from .analyzer.registry import SchemaRegistry
from .codemod.base import CodemodReport
from .codemod.project import SourceProject
from .codemod.rename import RenameCodemod
from .codemod.unused import UnusedSchemaCodemod
from .config import GeneratorConfig
from .diagnostics import Diagnostics
from .renderer import NamingRenderer, RenderContext, Renderer
from .schema_ast.nodes import ParsedSource
from .state.build_state import BuildState, build_state
from .state.diff import RenameOp, diff_build_states
from .state.store import load_build_state, save_build_state

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outcome of one regeneration run.

    Attributes:
        state: Build state of this run, minus entries removed as unused
        renames: Renames detected against the previous build state
        report: Edits made to the consumer source tree
        diagnostics: Every non-fatal problem of the run
        project: The consumer source tree, when one was loaded
    """

    state: BuildState
    renames: list[RenameOp] = field(default_factory=list)
    report: CodemodReport = field(default_factory=CodemodReport)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    project: SourceProject | None = None


class RegenerationPipeline:
    """Runs the regeneration pipeline over a normalized source."""

    def __init__(
        self,
        source: ParsedSource,
        config: GeneratorConfig | None = None,
        renderer: Renderer | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            source: The normalized source
            config: Run configuration (defaults to GeneratorConfig())
            renderer: Renderer assigning names (defaults to NamingRenderer())
        """
        self.source = source
        self.config = config or GeneratorConfig()
        self.renderer = renderer or NamingRenderer()

    def analyze(self, diagnostics: Diagnostics | None = None) -> RenderContext:
        """
        Build the registry, resolve Refs and propagate generics.

        Raises:
            InvalidRegistryError: If the source has no usable schemas
        """
        diagnostics = diagnostics if diagnostics is not None else Diagnostics()

        registry = SchemaRegistry.from_source(self.source)
        logger.info("Registry holds %d schema(s)", len(registry))

        resolver = ReferenceResolver(registry, diagnostics)
        resolved = resolver.resolve_source(self.source)

        propagator = GenericPropagator(registry, self.config.generic_overrides)
        propagator.populate()

        return RenderContext(
            source=resolved,
            registry=registry,
            resolver=resolver,
            generics=propagator,
            values=GenericValueResolver(propagator),
            config=self.config,
            diagnostics=diagnostics,
        )

    def run(
        self,
        previous_state: BuildState | None = None,
        project: SourceProject | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> RunResult:
        """
        Run the pipeline in memory.

        Codemods run only when both a previous state and a project are
        given, and only those enabled in the codemod configuration.

        Args:
            previous_state: Build state of the previous run, if any
            project: Consumer source tree to rewrite, if any
            diagnostics: Batch to record problems into

        Returns:
            RunResult with the new build state, renames and edits
        """
        diagnostics = diagnostics if diagnostics is not None else Diagnostics()

        context = self.analyze(diagnostics)
        state = build_state(self.renderer.render(context))
        result = RunResult(state=state, diagnostics=diagnostics, project=project)

        if previous_state is None:
            return result

        diff = diff_build_states(previous_state, state)
        diagnostics.extend(diff.warnings)
        result.renames = diff.renames

        if project is None:
            return result

        codemod_config = self.config.state.codemod
        if codemod_config.rename:
            result.report.merge(RenameCodemod(project, diagnostics).apply(diff.renames))
        if codemod_config.remove_unused_schemas:
            result.report.merge(UnusedSchemaCodemod(project, diagnostics).process(previous_state, state))

        return result

    def run_with_state_file(self, root: Path | str = ".") -> RunResult:
        """
        Run the pipeline against the configured build state file and sources.

        Loads the previous build state and the consumer sources, runs, then
        writes back the edited sources and the new build state unless the
        run is a dry run. Without a configured state file this is run().

        Args:
            root: Directory the state file and source globs are relative to

        Returns:
            RunResult of the run
        """
        root = Path(root)
        diagnostics = Diagnostics()

        if not self.config.state.file_name:
            return self.run(diagnostics=diagnostics)

        state_path = root / self.config.state.file_name
        previous_state = load_build_state(state_path, diagnostics)

        project = None
        globs = self.config.state.codemod.source_globs
        if previous_state is not None and globs:
            project = SourceProject.from_globs(globs, root)

        result = self.run(previous_state, project, diagnostics)

        if project is not None:
            project.save(dry_run=self.config.dry_run)
        save_build_state(state_path, result.state, dry_run=self.config.dry_run)

        return result
