"""
Source Scanning
===============

Flattening, filtering and loading of input file trees.
"""

from __future__ import annotations

from .source_scanner import (
    IGNORED_FILES,
    SKIP_DIRS,
    SUPPORTED_EXTENSIONS,
    LoadResult,
    SourceScanner,
    file_extension,
)

__all__ = [
    "SourceScanner",
    "LoadResult",
    "file_extension",
    "SUPPORTED_EXTENSIONS",
    "SKIP_DIRS",
    "IGNORED_FILES",
]
