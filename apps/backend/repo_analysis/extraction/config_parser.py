"""
Config File Parser
==================

JSON configuration files become a single ``config`` component whose
dependencies are the declared package-manifest dependency names.
"""

from __future__ import annotations

import json
import logging

from ..models.component_models import ComponentNode, ComponentType, LayerType
from . import descriptions
from .base import FileExtraction, LanguageParser, count_lines, file_component_id, file_name

logger = logging.getLogger(__name__)

DEPENDENCY_SECTIONS = ("dependencies", "devDependencies", "peerDependencies")


class ConfigFileParser(LanguageParser):
    """Parses JSON configuration files."""

    language = "json"
    extensions = frozenset({".json"})

    def parse(self, content: str, file_path: str) -> FileExtraction:
        try:
            config = json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning("Invalid JSON in %s: %s", file_path, e)
            return FileExtraction(path=file_path, language=self.language)

        dependencies: list[str] = []
        if isinstance(config, dict):
            for section in DEPENDENCY_SECTIONS:
                declared = config.get(section)
                if isinstance(declared, dict):
                    dependencies.extend(name for name in declared if name not in dependencies)
            size = len(config)
        elif isinstance(config, list):
            size = len(config)
        else:
            size = 1

        component = ComponentNode(
            id=file_component_id("config", file_path),
            name=file_name(file_path),
            type=ComponentType.CONFIG.value,
            file=file_path,
            layer=LayerType.INFRASTRUCTURE.value,
            dependencies=dependencies,
            exports=[],
            complexity=max(1, size),
            lines=count_lines(content),
            description=descriptions.describe_config(file_path, config),
        )
        return FileExtraction(
            path=file_path,
            language=self.language,
            components=[component],
            file_component=component,
        )
