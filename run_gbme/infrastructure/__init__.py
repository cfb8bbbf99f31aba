"""Infrastructure layer for run_gbme."""
