"""User-facing interfaces for run_gbme."""
