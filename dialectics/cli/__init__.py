"""Command-line tooling for the elimination engine."""

from dialectics.cli.main import cli

__all__ = ["cli"]
