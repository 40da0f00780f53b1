"""Command-line interface for repo-architecture."""

from .main import main

__all__ = ["main"]
