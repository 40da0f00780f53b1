"""
Component Extraction
====================

Pattern-table parsers that turn source text into component candidates.
"""

from __future__ import annotations

from .base import FileExtraction, LanguageParser, calculate_complexity, component_id, file_component_id
from .config_parser import ConfigFileParser
from .cpp_parser import CppStructureParser
from .docs_parser import DocumentParser
from .js_parser import JSStructureParser
from .markup_parser import HTMLParser, StylesheetParser
from .python_parser import PythonStructureParser
from .registry import LanguageExtractor, default_parsers

__all__ = [
    "FileExtraction",
    "LanguageParser",
    "LanguageExtractor",
    "default_parsers",
    "calculate_complexity",
    "component_id",
    "file_component_id",
    "JSStructureParser",
    "PythonStructureParser",
    "CppStructureParser",
    "ConfigFileParser",
    "StylesheetParser",
    "HTMLParser",
    "DocumentParser",
]
