"""
Report models returned by the run_gbme services.
"""

from __future__ import annotations

from pydantic import BaseModel
from pydantic import ConfigDict


class StepReportDTO(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    executable: str
    args: list[str]
    returncode: int | None = None
    duration_sec: float = 0.0
    ok: bool = True
    skipped: bool = False
    stdout: str | None = None
    stderr: str | None = None

    @property
    def command(self) -> list[str]:
        return [self.executable, *self.args]


class RunReportDTO(BaseModel):
    model_config = ConfigDict(extra="forbid")

    matrix: str
    out_dir: str
    dry_run: bool = False
    steps: list[StepReportDTO] = []

    def step(self, name: str) -> StepReportDTO | None:
        """Return the report of the step called ``name``, if it ran."""
        for step in self.steps:
            if step.name == name:
                return step
        return None
