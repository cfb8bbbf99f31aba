"""Invocation of the external GBME collaborators.

The metadata preparation and the network analysis are performed by separate
executables. This module resolves their paths, builds their argument lists and
runs them as blocking child processes.
"""

from __future__ import annotations

import shutil
import subprocess
import time
from decimal import Decimal
from pathlib import Path

from run_gbme.config import RunConfig
from run_gbme.errors import CollaboratorLaunchError
from run_gbme.infrastructure.observability import get_logger, log_context

from .dto import StepReportDTO

logger = get_logger(__name__)

METADATA_STEP = "metadata"
ANALYSIS_STEP = "analysis"


def resolve_executable(name: str, bin_dir: str | Path | None = None) -> str:
    """Return the path used to launch the collaborator ``name``.

    With ``bin_dir`` the executable is expected directly inside it. Otherwise
    ``PATH`` is searched; an unresolved name is returned unchanged so that the
    launch itself reports the failure.
    """
    if bin_dir:
        return str(Path(bin_dir) / name)
    found = shutil.which(name)
    if found is None:
        logger.debug("%s not found on PATH", name)
        return name
    return found


def format_number(value: float | int) -> str:
    """Render a number without exponent notation or a trailing ``.0``."""
    if isinstance(value, int):
        return str(value)
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def metadata_args(config: RunConfig) -> list[str]:
    """Arguments for ``make_metadata_dir``; requires ``config.metadata``."""
    if config.metadata is None:
        raise ValueError("metadata_args requires a metadata file")
    args = ["-f", config.metadata, "-o", str(config.meta_dir)]
    if config.distance > 0:
        args += ["-s", str(config.distance)]
    if config.euc_dist_percent > 0.0:
        args += ["-e", format_number(config.euc_dist_percent)]
    return args


def analysis_args(config: RunConfig) -> list[str]:
    """Arguments for ``sna``: matrix, output directory and scan count."""
    return [
        "-f",
        config.matrix,
        "-o",
        str(config.out_dir),
        "-n",
        str(config.num_scans),
    ]


def run_collaborator(
    name: str,
    executable: str,
    args: list[str],
    *,
    capture_output: bool = False,
) -> StepReportDTO:
    """Run one collaborator to completion and report how it went.

    The exit status is recorded but not judged here; callers decide whether a
    non-zero status is fatal.

    Raises:
        CollaboratorLaunchError: If the process could not be started.
    """
    with log_context(step=name):
        logger.info("Running %s", " ".join([executable, *args]))
        t0 = time.time()
        try:
            completed = subprocess.run(
                [executable, *args],
                capture_output=capture_output,
                text=capture_output,
                check=False,
            )
        except OSError as exc:
            raise CollaboratorLaunchError(executable, exc) from exc
        duration = time.time() - t0
        logger.info(
            "%s exited with status %d after %.2fs",
            executable,
            completed.returncode,
            duration,
        )
        if capture_output:
            if completed.stdout:
                logger.debug("stdout:\n%s", completed.stdout.rstrip())
            if completed.stderr:
                logger.debug("stderr:\n%s", completed.stderr.rstrip())

    return StepReportDTO(
        name=name,
        executable=executable,
        args=list(args),
        returncode=completed.returncode,
        duration_sec=duration,
        ok=completed.returncode == 0,
        stdout=completed.stdout if capture_output else None,
        stderr=completed.stderr if capture_output else None,
    )


__all__ = [
    "ANALYSIS_STEP",
    "METADATA_STEP",
    "analysis_args",
    "format_number",
    "metadata_args",
    "resolve_executable",
    "run_collaborator",
]
