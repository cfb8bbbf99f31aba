"""Exceptions raised while configuring and executing a GBME run."""

from __future__ import annotations

from pathlib import Path


class RunGbmeError(Exception):
    """Base class for all fatal run errors reported by the CLI."""


class MissingRequiredArgumentError(RunGbmeError):
    """Raised when a required option such as the matrix file is absent."""


class ConfigFileError(RunGbmeError):
    """Raised when a ``--config`` file cannot be read or is not a JSON object."""


class InvalidFileReferenceError(RunGbmeError):
    """Raised when the distance matrix is not an existing regular file."""


class DirectoryCreationError(RunGbmeError):
    """Raised when the output directory cannot be created."""


class CollaboratorLaunchError(RunGbmeError):
    """Raised when an external tool cannot be started at all."""

    def __init__(self, path: Path | str, cause: OSError) -> None:
        self.path = str(path)
        self.cause = cause
        super().__init__(f'Failed to run "{self.path}": {cause}')


class CollaboratorExecutionError(RunGbmeError):
    """Raised when an external tool exits with a non-zero status."""

    def __init__(self, path: Path | str, returncode: int) -> None:
        self.path = str(path)
        self.returncode = returncode
        super().__init__(f'Failed to run "{self.path}" (exit status {returncode})')


__all__ = [
    "CollaboratorExecutionError",
    "CollaboratorLaunchError",
    "ConfigFileError",
    "DirectoryCreationError",
    "InvalidFileReferenceError",
    "MissingRequiredArgumentError",
    "RunGbmeError",
]
