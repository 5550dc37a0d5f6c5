"""Vibe-code CLI: file dependency graphs and line-addressed change application."""

__version__ = "0.3.0"
