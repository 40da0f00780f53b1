"""
Render Boundary
===============

Single entry point for producing a diagram from a snapshot. Renderer
failures are caught here and returned as an inline error scoped to the
requested view; the snapshot itself is never affected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..errors import RenderError
from ..models.architecture_data import ArchitectureData
from .block_diagram import BlockDiagramRenderer
from .force_graph import ForceGraphRenderer
from .mermaid import MermaidRenderer

logger = logging.getLogger(__name__)


class DiagramView(Enum):
    """Every diagram the renderers can produce."""

    MERMAID_SYSTEM = "mermaid-system"
    MERMAID_COMPONENT = "mermaid-component"
    MERMAID_C4 = "mermaid-c4"
    MERMAID_DATAFLOW = "mermaid-dataflow"
    BLOCK = "block"
    FORCE = "force"
    FORCE_SVG = "force-svg"


@dataclass
class DiagramResult:
    """
    Outcome of rendering one view.

    ``content`` is the Mermaid text for text views, a ``BlockDiagram`` for
    the block view, a ``ForceLayoutSession`` for the live force view and
    SVG text for the static force view.
    """

    view: str
    content: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {"view": self.view, "ok": self.ok, "error": self.error}


def _produce(data: ArchitectureData, view: DiagramView, options: dict[str, Any]) -> Any:
    mermaid = MermaidRenderer()
    if view is DiagramView.MERMAID_SYSTEM:
        return mermaid.render_system(data)
    if view is DiagramView.MERMAID_COMPONENT:
        return mermaid.render_component(data, options.get("boundary_id"))
    if view is DiagramView.MERMAID_C4:
        return mermaid.render_c4(data)
    if view is DiagramView.MERMAID_DATAFLOW:
        return mermaid.render_dataflow(data)
    if view is DiagramView.BLOCK:
        return BlockDiagramRenderer().render(data)

    force = ForceGraphRenderer(
        width=options.get("width", 1200),
        height=options.get("height", 800),
        seed=options.get("seed", 0),
    )
    if view is DiagramView.FORCE:
        return force.create_session(data, options.get("surface"))
    return force.render_svg(data)


def render_diagram(data: ArchitectureData, view: DiagramView | str, **options: Any) -> DiagramResult:
    """
    Render one diagram view, converting any failure into an error result.

    Args:
        data: Finished analysis result
        view: DiagramView or its string value
        **options: ``boundary_id`` for the component view; ``width``,
            ``height``, ``seed`` and ``surface`` for the force views

    Returns:
        DiagramResult with either content or an error message
    """
    view_name = view.value if isinstance(view, DiagramView) else str(view)
    try:
        try:
            resolved = DiagramView(view_name)
        except ValueError:
            raise RenderError(f"Unknown diagram view: {view_name}") from None
        content = _produce(data, resolved, options)
    except Exception as e:
        logger.exception("Failed to render %s diagram", view_name)
        return DiagramResult(view=view_name, error=str(e))
    return DiagramResult(view=view_name, content=content)
