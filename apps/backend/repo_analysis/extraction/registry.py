"""
Language Extractor
==================

Dispatches each file to the parser registered for its extension and
isolates per-file failures so one malformed file never aborts a run.
"""

from __future__ import annotations

import logging

from ..scanning.source_scanner import file_extension
from .base import FileExtraction, LanguageParser
from .config_parser import ConfigFileParser
from .cpp_parser import CppStructureParser
from .docs_parser import DocumentParser
from .js_parser import JSStructureParser
from .markup_parser import HTMLParser, StylesheetParser
from .python_parser import PythonStructureParser

logger = logging.getLogger(__name__)


def default_parsers() -> list[LanguageParser]:
    return [
        JSStructureParser(),
        PythonStructureParser(),
        CppStructureParser(),
        ConfigFileParser(),
        StylesheetParser(),
        HTMLParser(),
        DocumentParser(),
    ]


class LanguageExtractor:
    """
    Maps file extensions to language parsers.

    Parsers hold no per-run state, so one extractor may be shared across
    worker threads.
    """

    def __init__(self, parsers: list[LanguageParser] | None = None):
        self._parsers: dict[str, LanguageParser] = {}
        for parser in parsers if parsers is not None else default_parsers():
            self.register(parser)

    def register(self, parser: LanguageParser) -> None:
        """Register a parser for each of its extensions, replacing earlier ones."""
        for extension in parser.extensions:
            self._parsers[extension] = parser

    def parser_for(self, path: str) -> LanguageParser | None:
        return self._parsers.get(file_extension(path))

    def supports(self, path: str) -> bool:
        return self.parser_for(path) is not None

    def extract(self, path: str, content: str) -> FileExtraction:
        """
        Extract components from one file.

        Args:
            path: Slash-separated path relative to the repository root
            content: Decoded file text

        Returns:
            FileExtraction; empty when no parser handles the extension or
            the parser raised
        """
        parser = self.parser_for(path)
        if parser is None:
            return FileExtraction(path=path, language="")

        try:
            extraction = parser.parse(content, path)
        except Exception as e:
            logger.warning("Extraction failed for %s: %s", path, e)
            return FileExtraction(path=path, language=parser.language)

        logger.debug("Extracted %d components from %s", len(extraction.components), path)
        return extraction
