"""
Markup Parsers
==============

Stylesheets and HTML pages each become one lightweight presentation
component. Complexity is the rule count or element count.
"""

from __future__ import annotations

import re

from ..models.component_models import ComponentNode, ComponentType, LayerType
from . import descriptions
from .base import FileExtraction, LanguageParser, count_lines, file_component_id, file_name, unique

STYLE_IMPORT = re.compile(r"""@import\s+(?:url\()?\s*["']?([^"')\s;]+)""")
SCRIPT_SRC = re.compile(r"""<script\b[^>]*\bsrc\s*=\s*["']([^"']+)["']""", re.I)
LINK_HREF = re.compile(r"""<link\b[^>]*\bhref\s*=\s*["']([^"']+)["']""", re.I)


def _single(component: ComponentNode, language: str) -> FileExtraction:
    return FileExtraction(
        path=component.file,
        language=language,
        components=[component],
        file_component=component,
    )


class StylesheetParser(LanguageParser):
    """Parses CSS and SCSS stylesheets."""

    language = "css"
    extensions = frozenset({".css", ".scss"})

    def parse(self, content: str, file_path: str) -> FileExtraction:
        traits = descriptions.style_traits(content)
        imports = unique(STYLE_IMPORT.findall(content))
        component = ComponentNode(
            id=file_component_id("style", file_path),
            name=file_name(file_path),
            type=ComponentType.COMPONENT.value,
            file=file_path,
            layer=LayerType.PRESENTATION.value,
            dependencies=list(imports),
            exports=[],
            imports=list(imports),
            complexity=max(1, traits["rule_count"]),
            lines=count_lines(content),
            description=descriptions.describe_style(file_path, traits),
        )
        return _single(component, self.language)


class HTMLParser(LanguageParser):
    """Parses HTML pages; script and stylesheet references become dependencies."""

    language = "html"
    extensions = frozenset({".html", ".htm"})

    def parse(self, content: str, file_path: str) -> FileExtraction:
        traits = descriptions.html_traits(content)
        references = unique(SCRIPT_SRC.findall(content) + LINK_HREF.findall(content))
        component = ComponentNode(
            id=file_component_id("html", file_path),
            name=file_name(file_path),
            type=ComponentType.COMPONENT.value,
            file=file_path,
            layer=LayerType.PRESENTATION.value,
            dependencies=list(references),
            exports=[],
            imports=list(references),
            complexity=max(1, traits["element_count"]),
            lines=count_lines(content),
            description=descriptions.describe_html(file_path, traits),
        )
        return _single(component, self.language)
