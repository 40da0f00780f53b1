"""
Diagram Renderers
=================

Mermaid text, static block layout and force-directed layout views of an
architecture snapshot.
"""

from __future__ import annotations

from .block_diagram import BlockDiagram, BlockDiagramRenderer, BlockLayout, LayerBand, compute_layout
from .force_graph import (
    DrawingSurface,
    ForceFrame,
    ForceGraphRenderer,
    ForceLayoutSession,
    ForceLink,
    ForceNode,
    ForceSimulation,
    SvgSurface,
    node_radius,
)
from .mermaid import MermaidRenderer
from .render import DiagramResult, DiagramView, render_diagram
from .styles import FlowType, classify_flow, complexity_marker
from .zoom import ZoomState, ZoomTransform

__all__ = [
    "BlockDiagram",
    "BlockDiagramRenderer",
    "BlockLayout",
    "LayerBand",
    "compute_layout",
    "DrawingSurface",
    "ForceFrame",
    "ForceGraphRenderer",
    "ForceLayoutSession",
    "ForceLink",
    "ForceNode",
    "ForceSimulation",
    "SvgSurface",
    "node_radius",
    "MermaidRenderer",
    "DiagramResult",
    "DiagramView",
    "render_diagram",
    "FlowType",
    "classify_flow",
    "complexity_marker",
    "ZoomState",
    "ZoomTransform",
]
