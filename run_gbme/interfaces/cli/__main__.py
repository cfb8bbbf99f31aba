"""Entry point for running the run_gbme CLI.

Executing ``python -m run_gbme.interfaces.cli`` behaves exactly like the
installed ``run-gbme`` console script.
"""

from .run import run_gbme

cli = run_gbme


if __name__ == "__main__":
    cli()
