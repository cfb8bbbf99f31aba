"""CLI interface for run_gbme.

This package is the home of the Click command. Use the
``run_gbme.interfaces.cli`` namespace for imports and module execution.
"""

from .__main__ import cli
from .run import run_gbme

__all__ = [
    "cli",
    "run_gbme",
]
