"""Benchmark runners used by the CLI commands."""
