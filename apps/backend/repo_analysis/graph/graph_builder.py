"""
Architecture Graph Builder
==========================

Turns per-file extractions into a resolved component graph: assigns
run-unique ids and layers, resolves raw dependency names to component
ids, and creates typed, deduplicated relationships.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from ..extraction.base import FileExtraction, file_component_id
from ..extraction.descriptions import fallback_description
from ..models.component_models import ComponentNode, ComponentType, Relationship, RelationshipType
from ..scanning.source_scanner import SUPPORTED_EXTENSIONS, file_extension
from .layers import classify_layer

logger = logging.getLogger(__name__)

# Prefixes of the single component that stands for a whole file
FILE_COMPONENT_PREFIXES = ("module", "config", "style", "html", "doc")

_PACKAGE_ENTRY_NAMES = {"index", "__init__"}
_ALIAS_PREFIXES = ("@/", "~/")


def dependency_path_key(dependency: str) -> str:
    """
    Normalize a raw dependency name into a slash-separated path key.

    ``./components/Button.tsx`` -> ``components/Button``;
    ``..models.user`` -> ``models/user``; ``@/lib/api`` -> ``lib/api``.
    Dotted module names without slashes become paths
    (``app.services.auth`` -> ``app/services/auth``).
    """
    key = dependency.strip().replace("\\", "/")
    for prefix in _ALIAS_PREFIXES:
        if key.startswith(prefix):
            key = key[len(prefix):]

    if key.startswith(".") and "/" not in key:
        # Python relative import
        key = key.lstrip(".").replace(".", "/")
    else:
        while key.startswith(("./", "../")):
            key = key[key.index("/") + 1:]
        key = key.lstrip("/")
        if file_extension(key) in SUPPORTED_EXTENSIONS:
            key = key.rsplit(".", 1)[0]
        elif "/" not in key and re.fullmatch(r"[\w]+(\.[\w]+)+", key):
            key = key.replace(".", "/")

    return key.strip("/")


def file_path_keys(path: str) -> list[str]:
    """Keys a dependency may use to reference a file."""
    stem = path.rsplit(".", 1)[0] if file_extension(path) else path
    keys = [stem]
    if "/" in stem:
        parent, name = stem.rsplit("/", 1)
        if name in _PACKAGE_ENTRY_NAMES:
            keys.append(parent)
    return keys


class DependencyResolver:
    """
    Resolves raw dependency names to component ids.

    Resolution tiers, in priority order: exact component name, file path
    ending on a segment boundary with the dependency's path key, and
    export-list membership. Within a tier the first component in
    extraction order wins, never the requesting component itself. Among
    name matches, one of the requester's own type is preferred.
    """

    def __init__(self, components: Sequence[ComponentNode], file_components: dict[str, ComponentNode]):
        self._by_name: dict[str, list[ComponentNode]] = {}
        self._by_export: dict[str, list[ComponentNode]] = {}
        for component in components:
            self._by_name.setdefault(component.name, []).append(component)
            for export in component.exports:
                self._by_export.setdefault(export, []).append(component)

        self._file_keys: list[tuple[str, ComponentNode]] = []
        for path, component in file_components.items():
            for key in file_path_keys(path):
                self._file_keys.append((key, component))

    @classmethod
    def from_components(cls, components: Sequence[ComponentNode]) -> "DependencyResolver":
        """Build a resolver from a finished snapshot's component list."""
        file_components: dict[str, ComponentNode] = {}
        for component in components:
            if component.file in file_components:
                continue
            if any(component.id == file_component_id(prefix, component.file) for prefix in FILE_COMPONENT_PREFIXES):
                file_components[component.file] = component
        return cls(components, file_components)

    def resolve(self, dependency: str, requester: ComponentNode | None = None) -> ComponentNode | None:
        """
        Find the component a dependency name refers to.

        Args:
            dependency: Raw dependency name as extracted
            requester: Component that declared the dependency

        Returns:
            The matched component, or None when the dependency is external
        """
        own_id = requester.id if requester is not None else None

        named = [c for c in self._by_name.get(dependency, []) if c.id != own_id]
        if named:
            # A React component is extracted as both a function and a component
            if requester is not None:
                for candidate in named:
                    if candidate.type == requester.type:
                        return candidate
            return named[0]

        key = dependency_path_key(dependency)
        if key:
            for file_key, candidate in self._file_keys:
                if candidate.id == own_id:
                    continue
                if file_key == key or file_key.endswith("/" + key):
                    return candidate

        for candidate in self._by_export.get(dependency, []):
            if candidate.id != own_id:
                return candidate

        return None

    def external_dependencies(self, components: Iterable[ComponentNode]) -> list[str]:
        """Dependency names of the given components that resolve to nothing."""
        external: list[str] = []
        for component in components:
            for dependency in component.dependencies:
                if dependency not in external and self.resolve(dependency, component) is None:
                    external.append(dependency)
        return external


def relationship_type(source: ComponentNode, target: ComponentNode, dependency: str) -> str:
    """Infer a relationship type from the kinds of its endpoints."""
    if source.type == ComponentType.CLASS.value and target.type == ComponentType.CLASS.value:
        return RelationshipType.EXTENDS.value
    if source.type == ComponentType.COMPONENT.value and target.type == ComponentType.COMPONENT.value:
        return RelationshipType.USES.value
    if dependency.startswith("use"):
        return RelationshipType.USES.value
    return RelationshipType.IMPORTS.value


@dataclass
class ComponentGraph:
    """Resolved components and relationships of one run."""

    components: list[ComponentNode] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)
    file_components: dict[str, ComponentNode] = field(default_factory=dict)
    external_dependencies: list[str] = field(default_factory=list)


class GraphBuilder:
    """Builds the component graph from per-file extractions."""

    def build(self, extractions: Iterable[FileExtraction]) -> ComponentGraph:
        """
        Merge extractions and resolve their dependencies.

        Args:
            extractions: Per-file results in scanner order

        Returns:
            ComponentGraph with every relationship endpoint present in
            ``components``
        """
        graph = ComponentGraph()
        self._merge(extractions, graph)

        resolver = DependencyResolver(graph.components, graph.file_components)
        graph.relationships = self._resolve(graph.components, resolver, graph.external_dependencies)

        logger.info(
            "Built graph with %d components and %d relationships (%d external dependencies)",
            len(graph.components),
            len(graph.relationships),
            len(graph.external_dependencies),
        )
        return graph

    def enrich(self, graph: ComponentGraph) -> int:
        """Attach a fallback description to every undescribed component."""
        enriched = 0
        for component in graph.components:
            if not component.description:
                component.description = fallback_description(component)
                enriched += 1
        return enriched

    def _merge(self, extractions: Iterable[FileExtraction], graph: ComponentGraph) -> None:
        taken: set[str] = set()
        for extraction in extractions:
            for component in extraction.components:
                if component.id in taken:
                    suffix = 2
                    while f"{component.id}_{suffix}" in taken:
                        suffix += 1
                    component.id = f"{component.id}_{suffix}"
                taken.add(component.id)

                if not component.layer:
                    component.layer = classify_layer(component.file)
                graph.components.append(component)

            if extraction.file_component is not None:
                graph.file_components.setdefault(extraction.path, extraction.file_component)

    def _resolve(
        self,
        components: list[ComponentNode],
        resolver: DependencyResolver,
        external: list[str],
    ) -> list[Relationship]:
        relationships: list[Relationship] = []
        seen_pairs: set[tuple[str, str]] = set()

        for component in components:
            for dependency in component.dependencies:
                target = resolver.resolve(dependency, component)
                if target is None:
                    if dependency not in external:
                        external.append(dependency)
                    continue
                pair = (component.id, target.id)
                if target.id == component.id or pair in seen_pairs:
                    continue
                seen_pairs.add(pair)
                relationships.append(
                    Relationship(
                        from_id=component.id,
                        to_id=target.id,
                        type=relationship_type(component, target, dependency),
                        weight=1,
                    )
                )
        return relationships
