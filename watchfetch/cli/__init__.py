"""Command line interface."""

from watchfetch.cli.main import cli


__all__ = ["cli"]
