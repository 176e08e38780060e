"""Command-line interface for the gridline pipelines."""
