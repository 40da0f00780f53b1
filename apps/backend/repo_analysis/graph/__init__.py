"""
Component Graph
===============

Layer classification, dependency resolution, boundary grouping and
graph metrics.
"""

from __future__ import annotations

from .boundaries import BoundaryGrouper, boundary_id
from .graph_builder import (
    ComponentGraph,
    DependencyResolver,
    GraphBuilder,
    dependency_path_key,
    relationship_type,
)
from .layers import LAYER_DESCRIPTIONS, LAYER_RULES, classify_layer
from .metrics import calculate_metrics, find_circular_dependencies

__all__ = [
    "BoundaryGrouper",
    "boundary_id",
    "ComponentGraph",
    "DependencyResolver",
    "GraphBuilder",
    "dependency_path_key",
    "relationship_type",
    "LAYER_DESCRIPTIONS",
    "LAYER_RULES",
    "classify_layer",
    "calculate_metrics",
    "find_circular_dependencies",
]
