"""CLI command that validates a GBME run and drives its collaborators.

Example::

    run-gbme -f distances.csv -m samples.tsv -o results -s 50000 -b /opt/gbme/bin

Option defaults can also be supplied through ``--config``, a JSON object keyed
by parameter name (``bin_dir``, ``num_scans``, ``metadata_tool``, ...).
Explicit flags take precedence over the file.
"""

from __future__ import annotations

import logging
import shlex
from typing import NoReturn

import click
from rich.console import Console
from rich.markup import escape

from run_gbme import __version__
from run_gbme.config import (
    DEFAULT_ANALYSIS_TOOL,
    DEFAULT_METADATA_TOOL,
    build_run_config,
    load_config,
)
from run_gbme.errors import ConfigFileError, RunGbmeError
from run_gbme.infrastructure.observability import (
    configure_logging,
    get_logger,
    log_exception,
)
from run_gbme.services.pipeline import run_pipeline

console = Console(highlight=False, soft_wrap=True)
err_console = Console(stderr=True, highlight=False, soft_wrap=True)
logger = get_logger(__name__)


def _fail(ctx: click.Context, exc: RunGbmeError) -> NoReturn:
    log_exception(logger, "Run failed", exc)
    err_console.print(f"[red]Error: {escape(str(exc))}[/red]")
    ctx.exit(1)


def _load_config_defaults(
    ctx: click.Context, _param: click.Parameter, value: str | None
) -> str | None:
    if value is None:
        return value
    try:
        defaults = load_config(value)
    except ConfigFileError as exc:
        _fail(ctx, exc)
    ctx.default_map = {**(ctx.default_map or {}), **defaults}
    return value


@click.command(
    name="run-gbme",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    is_eager=True,
    expose_value=False,
    callback=_load_config_defaults,
    help="JSON file with default values for any of the options below.",
)
@click.option(
    "-f",
    "--file",
    "matrix",
    metavar="FILE",
    help="Distance matrix.  [required]",
)
@click.option("-m", "--metadata", metavar="FILE", help="Metadata file.")
@click.option(
    "-o",
    "--out_dir",
    "out_dir",
    metavar="DIR",
    help="Output directory.  [default: ./gbme-out]",
)
@click.option(
    "-e",
    "--euc_dist_percent",
    "euc_dist_percent",
    metavar="FLOAT",
    default="0.1",
    show_default=True,
    help="Euclidean distance percentage; values above 1 are read as percent.",
)
@click.option(
    "-d",
    "--distance",
    "distance",
    metavar="INT",
    default="1000",
    show_default=True,
    help='Min. distance to determine "near" samples (0 disables).',
)
@click.option(
    "-s",
    "--scans",
    "num_scans",
    metavar="INT",
    default="100000",
    show_default=True,
    help="Number of GBME scans.",
)
@click.option(
    "-t",
    "--threads",
    "num_threads",
    metavar="INT",
    default="12",
    show_default=True,
    help="Number of threads (1-63).",
)
@click.option(
    "-b",
    "--bin_dir",
    "bin_dir",
    metavar="DIR",
    help="Location of the collaborator executables (default: search PATH).",
)
@click.option(
    "--metadata-tool",
    default=DEFAULT_METADATA_TOOL,
    show_default=True,
    help="Executable name of the metadata preparation tool.",
)
@click.option(
    "--analysis-tool",
    default=DEFAULT_ANALYSIS_TOOL,
    show_default=True,
    help="Executable name of the network analysis tool.",
)
@click.option(
    "--strict-metadata/--lenient-metadata",
    default=True,
    show_default=True,
    help="Fail the run when the metadata tool exits with a non-zero status.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Validate inputs and print the commands without running them.",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
@click.version_option(__version__, prog_name="run-gbme")
@click.pass_context
def run_gbme(
    ctx: click.Context,
    matrix: str | None,
    metadata: str | None,
    out_dir: str | None,
    euc_dist_percent: str | None,
    distance: str | None,
    num_scans: str | None,
    num_threads: str | None,
    bin_dir: str | None,
    metadata_tool: str,
    analysis_tool: str,
    strict_metadata: bool,
    dry_run: bool,
    verbose: bool,
) -> None:
    """Run the GBME network analysis on a distance matrix.

    Optionally prepares sample metadata with ``make_metadata_dir`` first, then
    runs ``sna`` and reports where the results were written.
    """
    configure_logging(logging.DEBUG if verbose else logging.WARNING)

    try:
        config = build_run_config(
            matrix=matrix,
            metadata=metadata,
            out_dir=out_dir,
            euc_dist_percent=euc_dist_percent,
            distance=distance,
            num_scans=num_scans,
            num_threads=num_threads,
            bin_dir=bin_dir,
            metadata_tool=metadata_tool,
            analysis_tool=analysis_tool,
            strict_metadata=strict_metadata,
        )
        report = run_pipeline(
            config,
            dry_run=dry_run,
            on_status=lambda message: console.print(escape(message)),
        )
    except RunGbmeError as exc:
        _fail(ctx, exc)

    if report.dry_run:
        for step in report.steps:
            console.print(
                f"[yellow]Would run ({step.name}):[/yellow] {escape(shlex.join(step.command))}"
            )
        return

    console.print(f'[green]Done, see output in "{escape(report.out_dir)}"[/green]')
