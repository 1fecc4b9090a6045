"""Fetch remote documents only when they change."""

__version__ = "0.1.0"
