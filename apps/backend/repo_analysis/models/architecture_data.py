"""
Architecture Snapshot Models
============================

The immutable result of one analysis run, plus the derived graph
metrics reported alongside it.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Iterable

from .component_models import ComponentNode, Relationship, SystemBoundary


@dataclass(frozen=True)
class ArchitectureMetadata:
    """Run-level facts about an analysis."""

    total_files: int = 0
    total_components: int = 0
    analysis_date: str = ""
    source_identifier: str = ""
    main_languages: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "totalFiles": self.total_files,
            "totalComponents": self.total_components,
            "analysisDate": self.analysis_date,
            "sourceIdentifier": self.source_identifier,
            "mainLanguages": list(self.main_languages),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ArchitectureMetadata":
        """Load from dict."""
        return cls(
            total_files=data.get("totalFiles", 0),
            total_components=data.get("totalComponents", 0),
            analysis_date=data.get("analysisDate", ""),
            source_identifier=data.get("sourceIdentifier", ""),
            main_languages=tuple(data.get("mainLanguages", [])),
        )


@dataclass(frozen=True)
class ArchitectureData:
    """
    Frozen snapshot of a repository's structure.

    Components are deep-copied on construction so later changes to the
    objects a run worked with cannot leak into the snapshot.
    """

    components: tuple[ComponentNode, ...] = ()
    boundaries: tuple[SystemBoundary, ...] = ()
    relationships: tuple[Relationship, ...] = ()
    metadata: ArchitectureMetadata = field(default_factory=ArchitectureMetadata)

    @classmethod
    def create(
        cls,
        components: Iterable[ComponentNode],
        boundaries: Iterable[SystemBoundary],
        relationships: Iterable[Relationship],
        metadata: ArchitectureMetadata,
    ) -> "ArchitectureData":
        """Build a snapshot from the working collections of a run."""
        return cls(
            components=tuple(copy.deepcopy(list(components))),
            boundaries=tuple(boundaries),
            relationships=tuple(copy.deepcopy(list(relationships))),
            metadata=metadata,
        )

    def get_component(self, component_id: str) -> ComponentNode | None:
        """Get a component by its id."""
        for component in self.components:
            if component.id == component_id:
                return component
        return None

    def get_boundary(self, boundary_id: str) -> SystemBoundary | None:
        """Get a boundary by its id."""
        for boundary in self.boundaries:
            if boundary.id == boundary_id:
                return boundary
        return None

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "components": [component.to_dict() for component in self.components],
            "boundaries": [boundary.to_dict() for boundary in self.boundaries],
            "relationships": [rel.to_dict() for rel in self.relationships],
            "metadata": self.metadata.to_dict(),
        }

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: dict) -> "ArchitectureData":
        """Load from dict."""
        return cls(
            components=tuple(ComponentNode.from_dict(c) for c in data.get("components", [])),
            boundaries=tuple(SystemBoundary.from_dict(b) for b in data.get("boundaries", [])),
            relationships=tuple(Relationship.from_dict(r) for r in data.get("relationships", [])),
            metadata=ArchitectureMetadata.from_dict(data.get("metadata", {})),
        )


@dataclass
class ArchitectureMetrics:
    """Metrics calculated from an architecture snapshot."""

    # Basic counts
    total_components: int = 0
    total_relationships: int = 0

    # Distributions
    layer_distribution: dict[str, int] = field(default_factory=dict)
    type_distribution: dict[str, int] = field(default_factory=dict)

    # Complexity metrics
    average_complexity: float = 0.0
    max_complexity: int = 0

    # Graph shape
    orphan_components: list[str] = field(default_factory=list)
    circular_dependencies: list[tuple[str, str]] = field(default_factory=list)
    most_connected: list[tuple[str, int]] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "total_components": self.total_components,
            "total_relationships": self.total_relationships,
            "layer_distribution": self.layer_distribution,
            "type_distribution": self.type_distribution,
            "average_complexity": self.average_complexity,
            "max_complexity": self.max_complexity,
            "orphan_components": self.orphan_components,
            "circular_dependencies": [list(pair) for pair in self.circular_dependencies],
            "most_connected": [
                {"id": component_id, "connections": count}
                for component_id, count in self.most_connected
            ],
        }
