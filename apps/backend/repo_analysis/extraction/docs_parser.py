"""
Documentation Parser
====================

Markdown and YAML documents become a single infrastructure component.
"""

from __future__ import annotations

import logging

import yaml

from ..models.component_models import ComponentNode, ComponentType, LayerType
from . import descriptions
from .base import FileExtraction, LanguageParser, count_lines, file_component_id, file_name

logger = logging.getLogger(__name__)


class DocumentParser(LanguageParser):
    """Parses Markdown and YAML documents."""

    language = "document"
    extensions = frozenset({".md", ".yml", ".yaml"})

    def parse(self, content: str, file_path: str) -> FileExtraction:
        if file_path.lower().endswith(".md"):
            traits = descriptions.document_traits(content, file_path)
            complexity = traits["heading_count"]
            description = descriptions.describe_document(file_path, traits)
        else:
            complexity = self._yaml_key_count(content, file_path)
            description = descriptions.describe_yaml(file_path, complexity)

        component = ComponentNode(
            id=file_component_id("doc", file_path),
            name=file_name(file_path),
            type=ComponentType.COMPONENT.value,
            file=file_path,
            layer=LayerType.INFRASTRUCTURE.value,
            dependencies=[],
            exports=[],
            complexity=max(1, complexity),
            lines=count_lines(content),
            description=description,
        )
        return FileExtraction(
            path=file_path,
            language=self.language,
            components=[component],
            file_component=component,
        )

    def _yaml_key_count(self, content: str, file_path: str) -> int:
        """Top-level key count; unparsable YAML counts as 1."""
        try:
            # Multi-document files are counted by their first document
            document = next(yaml.safe_load_all(content), None)
        except yaml.YAMLError as e:
            logger.debug("Unparsable YAML in %s: %s", file_path, e)
            return 1
        if isinstance(document, dict):
            return len(document)
        if isinstance(document, list):
            return len(document)
        return 1
