"""Commit report service: GitHub commit history summarized into reports."""

__version__ = "1.0.0"
