from __future__ import annotations

import stat
import sys
from pathlib import Path
from typing import Callable

import pytest

StubFactory = Callable[..., Path]


def _read_args(tool: Path) -> list[str]:
    record = tool.with_name(tool.name + ".args")
    if not record.exists():
        return []
    return record.read_text(encoding="utf-8").splitlines()


@pytest.fixture
def recorded_args() -> Callable[[Path], list[str]]:
    """Return the argv a stub tool recorded, or an empty list if it never ran."""
    return _read_args


@pytest.fixture
def bin_dir(tmp_path: Path) -> Path:
    path = tmp_path / "bin"
    path.mkdir()
    return path


@pytest.fixture
def make_tool(bin_dir: Path) -> StubFactory:
    """Write an executable shell stub that records its arguments and exits."""
    if sys.platform == "win32":
        pytest.skip("stub collaborators are POSIX shell scripts")

    def factory(name: str, exit_code: int = 0, stdout: str = "") -> Path:
        tool = bin_dir / name
        lines = [
            "#!/bin/sh",
            'printf \'%s\\n\' "$@" > "$0.args"',
        ]
        if stdout:
            lines.append(f"echo '{stdout}'")
        lines.append(f"exit {exit_code}")
        tool.write_text("\n".join(lines) + "\n", encoding="utf-8")
        tool.chmod(tool.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return tool

    return factory


@pytest.fixture
def matrix(tmp_path: Path) -> Path:
    path = tmp_path / "m.csv"
    path.write_text(",a,b\na,0,1\nb,1,0\n", encoding="utf-8")
    return path
