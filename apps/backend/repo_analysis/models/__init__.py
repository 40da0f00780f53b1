"""
Architecture Models
===================

Data models for components, relationships, boundaries, the frozen
architecture snapshot and the source files it is built from.
"""

from .architecture_data import ArchitectureData, ArchitectureMetadata, ArchitectureMetrics
from .component_models import (
    BoundaryType,
    ComponentNode,
    ComponentType,
    LayerType,
    Relationship,
    RelationshipType,
    SystemBoundary,
)
from .source_models import EntryKind, SourceEntry, SourceFile

__all__ = [
    # Component models
    "ComponentNode",
    "Relationship",
    "SystemBoundary",
    "ComponentType",
    "LayerType",
    "RelationshipType",
    "BoundaryType",
    # Snapshot
    "ArchitectureData",
    "ArchitectureMetadata",
    "ArchitectureMetrics",
    # Sources
    "SourceEntry",
    "SourceFile",
    "EntryKind",
]
