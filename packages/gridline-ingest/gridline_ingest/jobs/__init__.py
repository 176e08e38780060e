"""
Standalone batch jobs for the odds and enrichment pipelines.

Each job is executable as a script or importable. Jobs read credentials from
the environment and exit non-zero only when setup fails.
"""
