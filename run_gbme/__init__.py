"""
run_gbme package initializer.

This package validates the inputs of a GBME network-analysis run, prepares the
output directory and drives the external ``make_metadata_dir`` and ``sna``
tools in sequence.

The package exposes a ``__version__`` attribute read from the installed
distribution metadata; pyproject.toml is the single source of truth.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("run-gbme")
except PackageNotFoundError:
    # Running from a source checkout without ``pip install -e .``
    __version__ = "0.0.0.dev"

__all__: list[str] = ["__version__"]
