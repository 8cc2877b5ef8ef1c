"""
Loading and saving the build state document.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from ..atomic_writer import AtomicWriter
from ..diagnostics import DiagnosticKind, Diagnostics
from ..errors import BuildStateParseError
from .build_state import BuildState

logger = logging.getLogger(__name__)


def dump_build_state(state: BuildState) -> str:
    """Serialize a build state to its byte-stable JSON form."""
    return json.dumps(state.to_dict(), indent=2, sort_keys=True) + "\n"


def parse_build_state(text: str) -> BuildState:
    """
    Parse a build state document.

    Raises:
        BuildStateParseError: If the text is not valid JSON or has the wrong shape
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise BuildStateParseError(f"Build state is not valid JSON: {e}") from e
    return BuildState.from_dict(data)


def load_build_state(path: Path | str, diagnostics: Diagnostics | None = None) -> BuildState | None:
    """
    Load the build state of the previous run.

    A missing file means there is no previous run. A malformed file is
    treated the same way, with a diagnostic, so the run proceeds clean.

    Args:
        path: Path of the build state document
        diagnostics: Batch receiving a parse error diagnostic

    Returns:
        The previous build state, or None
    """
    path = Path(path)
    if not path.exists():
        logger.info("No build state at %s", path)
        return None

    try:
        state = parse_build_state(path.read_text(encoding="utf-8"))
    except (BuildStateParseError, UnicodeDecodeError) as e:
        if diagnostics is not None:
            diagnostics.add(DiagnosticKind.BUILD_STATE_PARSE_ERROR, f"{e}; ignoring previous state", subject=str(path))
        else:
            logger.warning("Ignoring malformed build state %s: %s", path, e)
        return None

    logger.info("Loaded build state from %s (%d schemas, %d functions)", path, len(state.schemas), len(state.functions))
    return state


def save_build_state(
    path: Path | str,
    state: BuildState,
    dry_run: bool = False,
    writer: AtomicWriter | None = None,
) -> bool:
    """
    Persist a build state atomically.

    Args:
        path: Path of the build state document
        state: The state to persist
        dry_run: Skip the write
        writer: Writer to use; a default AtomicWriter when omitted

    Returns:
        True if the file was written
    """
    path = Path(path)
    if dry_run:
        logger.info("Dry run: not writing build state to %s", path)
        return False

    (writer or AtomicWriter()).write(path, dump_build_state(state), language="json")
    logger.info("Wrote build state to %s", path)
    return True
