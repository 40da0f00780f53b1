"""
Data Models for Architecture Components
========================================

Core data structures for the structural model of a repository:
component nodes, typed relationships between them, and the layer
boundaries that group them for display.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ComponentType(Enum):
    """Kinds of structural units discovered by extraction."""

    MODULE = "module"
    CLASS = "class"
    FUNCTION = "function"
    SERVICE = "service"
    COMPONENT = "component"
    CONFIG = "config"
    EXTERNAL = "external"


class LayerType(Enum):
    """Architectural layers, in display order."""

    PRESENTATION = "presentation"
    BUSINESS = "business"
    DATA = "data"
    INFRASTRUCTURE = "infrastructure"
    EXTERNAL = "external"


class RelationshipType(Enum):
    """Types of dependencies between components."""

    IMPORTS = "imports"
    CALLS = "calls"
    EXTENDS = "extends"
    IMPLEMENTS = "implements"
    USES = "uses"
    CONFIGURES = "configures"


class BoundaryType(Enum):
    """Granularity of a system boundary."""

    SYSTEM = "system"
    CONTAINER = "container"
    COMPONENT = "component"


@dataclass
class ComponentNode:
    """A unit of structural code discovered in one source file."""

    id: str = ""
    name: str = ""
    type: str = ComponentType.MODULE.value
    file: str = ""

    # Empty until the graph builder classifies it, unless the extractor
    # already knows the layer (stylesheets, configs, docs, UI components).
    layer: str = ""

    # Raw names, pre-resolution
    dependencies: list[str] = field(default_factory=list)
    exports: list[str] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)

    complexity: int = 1
    lines: int = 1
    description: str | None = None

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "file": self.file,
            "layer": self.layer,
            "dependencies": list(self.dependencies),
            "exports": list(self.exports),
            "imports": list(self.imports),
            "complexity": self.complexity,
            "lines": self.lines,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ComponentNode":
        """Load from dict."""
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            type=data.get("type", ComponentType.MODULE.value),
            file=data.get("file", ""),
            layer=data.get("layer", ""),
            dependencies=list(data.get("dependencies", [])),
            exports=list(data.get("exports", [])),
            imports=list(data.get("imports", [])),
            complexity=data.get("complexity", 1),
            lines=data.get("lines", 1),
            description=data.get("description"),
        )


@dataclass
class Relationship:
    """A directed, typed dependency between two components of the same run."""

    from_id: str = ""
    to_id: str = ""
    type: str = RelationshipType.IMPORTS.value
    weight: int = 1

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "from": self.from_id,
            "to": self.to_id,
            "type": self.type,
            "weight": self.weight,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Relationship":
        """Load from dict."""
        return cls(
            from_id=data.get("from", ""),
            to_id=data.get("to", ""),
            type=data.get("type", RelationshipType.IMPORTS.value),
            weight=data.get("weight", 1),
        )


@dataclass(frozen=True)
class SystemBoundary:
    """A named grouping of components sharing an architectural layer."""

    id: str
    name: str
    components: tuple[str, ...] = ()
    type: str = BoundaryType.CONTAINER.value
    description: str = ""

    @property
    def layer(self) -> str:
        """Layer name this boundary was grouped by."""
        return self.id.removeprefix("boundary_")

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "id": self.id,
            "name": self.name,
            "components": list(self.components),
            "type": self.type,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SystemBoundary":
        """Load from dict."""
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            components=tuple(data.get("components", [])),
            type=data.get("type", BoundaryType.CONTAINER.value),
            description=data.get("description", ""),
        )
