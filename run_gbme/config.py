"""Run configuration for run_gbme.

Builds the immutable :class:`RunConfig` consumed by the pipeline from the raw
option strings delivered by the CLI, and loads optional JSON files holding
option defaults.

Numeric options are parsed leniently: input that does not parse falls back to
``0``/``0.0`` instead of aborting the run.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from run_gbme.errors import ConfigFileError, MissingRequiredArgumentError
from run_gbme.infrastructure.observability import get_logger

logger = get_logger(__name__)

DEFAULT_OUT_DIR_NAME = "gbme-out"
DEFAULT_METADATA_TOOL = "make_metadata_dir"
DEFAULT_ANALYSIS_TOOL = "sna"

DEFAULT_EUC_DIST_PERCENT = 0.1
DEFAULT_NUM_SCANS = 100_000

MAX_COUNT = 2**32 - 1
MAX_THREADS = 64

_COUNT_RE = re.compile(r"^\+?[0-9]+$")
_FLOAT_RE = re.compile(r"^[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?$")


@dataclass(frozen=True)
class RunConfig:
    """Validated parameters of a single GBME run."""

    matrix: str
    out_dir: Path
    metadata: str | None = None
    bin_dir: str | None = None
    distance: int = 0
    euc_dist_percent: float = DEFAULT_EUC_DIST_PERCENT
    num_threads: int = 0
    num_scans: int = DEFAULT_NUM_SCANS
    metadata_tool: str = DEFAULT_METADATA_TOOL
    analysis_tool: str = DEFAULT_ANALYSIS_TOOL
    strict_metadata: bool = True

    @property
    def meta_dir(self) -> Path:
        """Directory the metadata tool writes into."""
        return self.out_dir / "meta"


# ---------------------------------------------------------------------------
# Numeric coercion
# ---------------------------------------------------------------------------


def parse_count(raw: str | int | None) -> int:
    """Parse a non-negative integer, returning 0 for anything unparsable."""
    if raw is None:
        return 0
    text = str(raw).strip()
    if not _COUNT_RE.match(text):
        return 0
    value = int(text)
    if value > MAX_COUNT:
        return 0
    return value


def parse_thread_count(raw: str | int | None) -> int:
    """Parse a thread count, coercing values outside ``(0, 64)`` to 0."""
    value = parse_count(raw)
    if 0 < value < MAX_THREADS:
        return value
    return 0


def normalize_percent(value: float) -> float:
    """Treat values above 1 as percentages and scale them to a fraction."""
    if value > 1.0:
        return value / 100.0
    return value


def parse_fraction(raw: str | float | None) -> float:
    """Parse the Euclidean distance fraction, returning 0.0 on failure."""
    if raw is None:
        return 0.0
    text = str(raw).strip()
    if not _FLOAT_RE.match(text):
        return 0.0
    value = float(text)
    if not math.isfinite(value):
        return 0.0
    return normalize_percent(value)


def resolve_out_dir(raw: str | Path | None, cwd: Path | None = None) -> Path:
    """Return an absolute output directory, defaulting to ``<cwd>/gbme-out``."""
    base = cwd if cwd is not None else Path.cwd()
    if raw is None or str(raw) == "":
        return base / DEFAULT_OUT_DIR_NAME
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = base / path
    return path


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


def build_run_config(
    *,
    matrix: str | None,
    metadata: str | None = None,
    out_dir: str | Path | None = None,
    euc_dist_percent: str | float | None = DEFAULT_EUC_DIST_PERCENT,
    distance: str | int | None = None,
    num_scans: str | int | None = DEFAULT_NUM_SCANS,
    num_threads: str | int | None = None,
    bin_dir: str | None = None,
    metadata_tool: str | None = None,
    analysis_tool: str | None = None,
    strict_metadata: bool = True,
    cwd: Path | None = None,
) -> RunConfig:
    """Build a :class:`RunConfig` from raw option values.

    Only the matrix path is mandatory. Numeric values are coerced with the
    ``parse_*`` helpers, so malformed input silently becomes 0. No cross-field
    checks are applied.

    Raises:
        MissingRequiredArgumentError: If ``matrix`` is missing or empty.
    """
    if not matrix:
        raise MissingRequiredArgumentError(
            "Missing required option '-f' / '--file' (distance matrix)"
        )

    config = RunConfig(
        matrix=matrix,
        out_dir=resolve_out_dir(out_dir, cwd),
        metadata=metadata or None,
        bin_dir=bin_dir or None,
        distance=parse_count(distance),
        euc_dist_percent=parse_fraction(euc_dist_percent),
        num_threads=parse_thread_count(num_threads),
        num_scans=parse_count(num_scans),
        metadata_tool=metadata_tool or DEFAULT_METADATA_TOOL,
        analysis_tool=analysis_tool or DEFAULT_ANALYSIS_TOOL,
        strict_metadata=strict_metadata,
    )
    logger.debug("Built run config: %s", config)
    return config


# ---------------------------------------------------------------------------
# Config files
# ---------------------------------------------------------------------------


def load_config(path: Path | str) -> Dict[str, Any]:
    """Load option defaults from a JSON file.

    The file must hold a JSON object whose keys are CLI parameter names such
    as ``bin_dir`` or ``num_scans``.

    Raises:
        ConfigFileError: If the file cannot be read, is not valid JSON or does
            not contain an object.
    """
    config_path = Path(path).expanduser()
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as exc:
        raise ConfigFileError(f'Cannot read config file "{config_path}": {exc}') from exc
    except json.JSONDecodeError as exc:
        raise ConfigFileError(f'Invalid JSON in config file "{config_path}": {exc}') from exc

    if not isinstance(data, dict):
        raise ConfigFileError(f'Config file "{config_path}" must contain a JSON object')
    return data


__all__ = [
    "DEFAULT_ANALYSIS_TOOL",
    "DEFAULT_METADATA_TOOL",
    "DEFAULT_OUT_DIR_NAME",
    "RunConfig",
    "build_run_config",
    "load_config",
    "normalize_percent",
    "parse_count",
    "parse_fraction",
    "parse_thread_count",
    "resolve_out_dir",
]
