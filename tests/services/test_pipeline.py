from __future__ import annotations

from pathlib import Path

import pytest

from run_gbme.config import build_run_config
from run_gbme.errors import (
    CollaboratorExecutionError,
    CollaboratorLaunchError,
    DirectoryCreationError,
    InvalidFileReferenceError,
)
from run_gbme.services import pipeline as pipeline_module
from run_gbme.services.pipeline import ensure_out_dir, run_pipeline


def test_run_pipeline_invokes_analysis_with_expected_args(
    tmp_path, bin_dir, make_tool, recorded_args, matrix
):
    sna = make_tool("sna")
    out_dir = tmp_path / "out"
    config = build_run_config(
        matrix=str(matrix), out_dir=out_dir, num_scans="500", bin_dir=str(bin_dir)
    )

    report = run_pipeline(config)

    assert report.out_dir == str(out_dir)
    assert [step.name for step in report.steps] == ["analysis"]
    assert report.steps[0].executable == str(sna)
    assert recorded_args(sna) == ["-f", str(matrix), "-o", str(out_dir), "-n", "500"]


def test_run_pipeline_without_metadata_skips_metadata_tool(
    tmp_path, bin_dir, make_tool, recorded_args, matrix
):
    make_meta = make_tool("make_metadata_dir")
    make_tool("sna")
    config = build_run_config(matrix=str(matrix), out_dir=tmp_path / "out", bin_dir=str(bin_dir))

    report = run_pipeline(config)

    assert report.step("metadata") is None
    assert recorded_args(make_meta) == []


def test_run_pipeline_runs_metadata_before_analysis(
    tmp_path, bin_dir, make_tool, recorded_args, matrix
):
    make_meta = make_tool("make_metadata_dir")
    make_tool("sna")
    out_dir = tmp_path / "out"
    config = build_run_config(
        matrix=str(matrix),
        metadata="samples.tsv",
        out_dir=out_dir,
        distance="1000",
        euc_dist_percent="1",
        bin_dir=str(bin_dir),
    )
    messages: list[str] = []

    report = run_pipeline(config, on_status=messages.append)

    assert [step.name for step in report.steps] == ["metadata", "analysis"]
    assert recorded_args(make_meta) == [
        "-f",
        "samples.tsv",
        "-o",
        str(out_dir / "meta"),
        "-s",
        "1000",
        "-e",
        "1",
    ]
    assert messages == [
        f'Using input matrix "{matrix}"',
        'Processing metadata "samples.tsv"',
    ]


def test_run_pipeline_creates_out_dir_recursively(tmp_path, bin_dir, make_tool, matrix):
    make_tool("sna")
    out_dir = tmp_path / "a" / "b" / "c"
    config = build_run_config(matrix=str(matrix), out_dir=out_dir, bin_dir=str(bin_dir))

    run_pipeline(config)

    assert out_dir.is_dir()


def test_ensure_out_dir_leaves_existing_directory_untouched(tmp_path: Path):
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    marker = out_dir / "keep.txt"
    marker.write_text("x", encoding="utf-8")

    assert ensure_out_dir(out_dir) == out_dir
    assert marker.read_text(encoding="utf-8") == "x"


def test_ensure_out_dir_reports_creation_failure(tmp_path: Path):
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(DirectoryCreationError, match="Cannot create output directory"):
        ensure_out_dir(blocker / "out")


def test_missing_matrix_fails_before_resolving_collaborators(tmp_path, monkeypatch):
    def fail_resolve(*_args, **_kwargs):
        raise AssertionError("collaborator resolved for a missing matrix")

    monkeypatch.setattr(pipeline_module, "resolve_executable", fail_resolve)
    config = build_run_config(
        matrix=str(tmp_path / "missing.csv"),
        metadata="samples.tsv",
        out_dir=tmp_path / "out",
    )

    with pytest.raises(InvalidFileReferenceError, match="missing.csv"):
        run_pipeline(config)

    assert (tmp_path / "out").is_dir()


def test_matrix_directory_is_not_a_file(tmp_path: Path):
    config = build_run_config(matrix=str(tmp_path), out_dir=tmp_path / "out")

    with pytest.raises(InvalidFileReferenceError, match="is not a file"):
        run_pipeline(config)


def test_analysis_failure_names_resolved_path(tmp_path, bin_dir, make_tool, matrix):
    sna = make_tool("sna", exit_code=1)
    config = build_run_config(matrix=str(matrix), out_dir=tmp_path / "out", bin_dir=str(bin_dir))

    with pytest.raises(CollaboratorExecutionError) as excinfo:
        run_pipeline(config)

    assert excinfo.value.path == str(sna)
    assert excinfo.value.returncode == 1
    assert str(sna) in str(excinfo.value)


def test_analysis_launch_failure_is_structured(tmp_path, bin_dir, matrix):
    config = build_run_config(matrix=str(matrix), out_dir=tmp_path / "out", bin_dir=str(bin_dir))

    with pytest.raises(CollaboratorLaunchError) as excinfo:
        run_pipeline(config)

    assert excinfo.value.path == str(bin_dir / "sna")


def test_metadata_launch_failure_stops_the_run(
    tmp_path, bin_dir, make_tool, recorded_args, matrix
):
    sna = make_tool("sna")
    config = build_run_config(
        matrix=str(matrix), metadata="samples.tsv", out_dir=tmp_path / "out", bin_dir=str(bin_dir)
    )

    with pytest.raises(CollaboratorLaunchError, match="make_metadata_dir"):
        run_pipeline(config)

    assert recorded_args(sna) == []


def test_strict_metadata_failure_stops_the_run(
    tmp_path, bin_dir, make_tool, recorded_args, matrix
):
    make_meta = make_tool("make_metadata_dir", exit_code=2)
    sna = make_tool("sna")
    config = build_run_config(
        matrix=str(matrix), metadata="samples.tsv", out_dir=tmp_path / "out", bin_dir=str(bin_dir)
    )

    with pytest.raises(CollaboratorExecutionError) as excinfo:
        run_pipeline(config)

    assert excinfo.value.path == str(make_meta)
    assert recorded_args(sna) == []


def test_lenient_metadata_failure_continues(
    tmp_path, bin_dir, make_tool, recorded_args, matrix
):
    make_tool("make_metadata_dir", exit_code=2)
    sna = make_tool("sna")
    config = build_run_config(
        matrix=str(matrix),
        metadata="samples.tsv",
        out_dir=tmp_path / "out",
        bin_dir=str(bin_dir),
        strict_metadata=False,
    )

    report = run_pipeline(config)

    metadata_step = report.step("metadata")
    assert metadata_step is not None and metadata_step.ok is False
    assert recorded_args(sna)[:2] == ["-f", str(matrix)]


def test_dry_run_invokes_nothing(tmp_path, bin_dir, make_tool, recorded_args, matrix):
    make_meta = make_tool("make_metadata_dir")
    sna = make_tool("sna")
    out_dir = tmp_path / "out"
    config = build_run_config(
        matrix=str(matrix), metadata="samples.tsv", out_dir=out_dir, bin_dir=str(bin_dir)
    )

    report = run_pipeline(config, dry_run=True)

    assert report.dry_run is True
    assert all(step.skipped for step in report.steps)
    assert report.steps[1].command[0] == str(sna)
    assert recorded_args(make_meta) == []
    assert recorded_args(sna) == []
    assert out_dir.is_dir()
