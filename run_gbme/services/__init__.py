"""Service layer modules for run_gbme."""

from .collaborators import (  # noqa: F401
    analysis_args,
    metadata_args,
    resolve_executable,
    run_collaborator,
)
from .dto import RunReportDTO, StepReportDTO  # noqa: F401
from .pipeline import run_pipeline  # noqa: F401

__all__ = [
    "RunReportDTO",
    "StepReportDTO",
    "analysis_args",
    "metadata_args",
    "resolve_executable",
    "run_collaborator",
    "run_pipeline",
]
