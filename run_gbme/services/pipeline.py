"""GBME run orchestration.

A run walks a fixed sequence and stops at the first failure::

    validate inputs -> ensure output dir -> [metadata step] -> analysis step

There is no retry, and nothing created before a failure is cleaned up.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Callable

from run_gbme.config import RunConfig
from run_gbme.errors import (
    CollaboratorExecutionError,
    DirectoryCreationError,
    InvalidFileReferenceError,
)
from run_gbme.infrastructure.observability import get_logger, log_context

from .collaborators import (
    ANALYSIS_STEP,
    METADATA_STEP,
    analysis_args,
    metadata_args,
    resolve_executable,
    run_collaborator,
)
from .dto import RunReportDTO, StepReportDTO

_logger = get_logger(__name__)

StatusCallback = Callable[[str], None]


def _log_status(message: str) -> None:
    _logger.info(message)


def ensure_out_dir(out_dir: Path) -> Path:
    """Create ``out_dir`` and its parents unless it already is a directory."""
    if out_dir.is_dir():
        return out_dir
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DirectoryCreationError(
            f'Cannot create output directory "{out_dir}": {exc}'
        ) from exc
    _logger.debug("Created output directory %s", out_dir)
    return out_dir


def check_matrix(matrix: str) -> None:
    """Fail unless ``matrix`` names an existing regular file."""
    if not Path(matrix).is_file():
        raise InvalidFileReferenceError(f'-f "{matrix}" is not a file')


def _planned_step(name: str, executable: str, args: list[str]) -> StepReportDTO:
    _logger.info("Dry run, would execute: %s", " ".join([executable, *args]))
    return StepReportDTO(name=name, executable=executable, args=args, skipped=True)


def run_metadata_step(config: RunConfig, *, dry_run: bool = False) -> StepReportDTO:
    """Run ``make_metadata_dir`` for the configured metadata file."""
    executable = resolve_executable(config.metadata_tool, config.bin_dir)
    args = metadata_args(config)
    if dry_run:
        return _planned_step(METADATA_STEP, executable, args)

    step = run_collaborator(METADATA_STEP, executable, args, capture_output=True)
    if not step.ok:
        if config.strict_metadata:
            raise CollaboratorExecutionError(executable, step.returncode)
        _logger.warning(
            "%s exited with status %s; continuing with the analysis",
            executable,
            step.returncode,
        )
    return step


def run_analysis_step(config: RunConfig, *, dry_run: bool = False) -> StepReportDTO:
    """Run ``sna`` on the distance matrix and require a zero exit status."""
    executable = resolve_executable(config.analysis_tool, config.bin_dir)
    args = analysis_args(config)
    if dry_run:
        return _planned_step(ANALYSIS_STEP, executable, args)

    step = run_collaborator(ANALYSIS_STEP, executable, args)
    if not step.ok:
        raise CollaboratorExecutionError(executable, step.returncode)
    return step


def run_pipeline(
    config: RunConfig,
    *,
    dry_run: bool = False,
    on_status: StatusCallback | None = None,
) -> RunReportDTO:
    """Execute a GBME run described by ``config``.

    Args:
        config: Validated run parameters.
        dry_run: Resolve and report the collaborator commands without
            launching them. The output directory is still created and the
            matrix still checked.
        on_status: Receives the user-facing status lines. Defaults to logging
            them at INFO level.

    Returns:
        A report listing each collaborator step in execution order.

    Raises:
        RunGbmeError: Any subclass, on the first failing step.
    """
    announce = on_status or _log_status
    t0 = time.time()

    with log_context(matrix=config.matrix):
        announce(f'Using input matrix "{config.matrix}"')
        ensure_out_dir(config.out_dir)
        check_matrix(config.matrix)

        report = RunReportDTO(
            matrix=config.matrix, out_dir=str(config.out_dir), dry_run=dry_run
        )

        if config.metadata is not None:
            announce(f'Processing metadata "{config.metadata}"')
            report.steps.append(run_metadata_step(config, dry_run=dry_run))

        report.steps.append(run_analysis_step(config, dry_run=dry_run))

    _logger.debug(
        "Run finished in %.2fs with %d step(s)", time.time() - t0, len(report.steps)
    )
    return report


__all__ = [
    "check_matrix",
    "ensure_out_dir",
    "run_analysis_step",
    "run_metadata_step",
    "run_pipeline",
]
