"""
Block Diagram Renderer
======================

Static SVG layout: one horizontal band per layer, components placed in
a near-square grid of fixed-size blocks inside their band, and a curved
connector for every relationship whose endpoints are both drawn.

The renderer returns a ``BlockDiagram`` control object instead of a bare
string so callers own the zoom state and can re-render at any level.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from xml.sax.saxutils import escape, quoteattr

from ..models.architecture_data import ArchitectureData
from ..models.component_models import ComponentNode, LayerType
from .styles import (
    BLOCK_LAYER_COLORS,
    BLOCK_TYPE_COLORS,
    BLOCK_TYPE_LETTERS,
    COMPLEXITY_COLORS,
    complexity_level,
    truncate,
)
from .zoom import ZoomState

CANVAS_WIDTH = 1200
CANVAS_HEIGHT = 800
BLOCK_WIDTH = 180
BLOCK_HEIGHT = 120
PADDING = 20
COLUMN_GAP = 20
ROW_GAP = 15
BAND_INSET = 40
BAND_GAP = 10

NAME_LIMIT = 18
FILE_LIMIT = 25

SVG_STYLE = """\
.block-title { font-family: Inter, sans-serif; font-size: 14px; font-weight: 600; fill: #1f2937; }
.block-subtitle { font-family: Inter, sans-serif; font-size: 11px; fill: #6b7280; }
.block-stats { font-family: Inter, sans-serif; font-size: 10px; fill: #9ca3af; }
.layer-title { font-family: Inter, sans-serif; font-size: 16px; font-weight: 700; fill: #374151; }
.connection-line { stroke: #6b7280; stroke-width: 2; fill: none; marker-end: url(#arrowhead); }"""


@dataclass
class LayerBand:
    """Placement of one layer's grid on the canvas."""

    layer: str
    y: float
    height: float
    columns: int
    rows: int
    component_ids: list[str] = field(default_factory=list)


@dataclass
class BlockLayout:
    """Computed bands and top-left block positions, keyed by component id."""

    bands: list[LayerBand] = field(default_factory=list)
    positions: dict[str, tuple[float, float]] = field(default_factory=dict)
    width: int = CANVAS_WIDTH
    height: int = CANVAS_HEIGHT

    def band(self, layer: str) -> LayerBand | None:
        for band in self.bands:
            if band.layer == layer:
                return band
        return None


def group_by_layer(components: list[ComponentNode]) -> dict[str, list[ComponentNode]]:
    """Components per layer, layers in display order then first-seen order."""
    groups: dict[str, list[ComponentNode]] = {layer.value: [] for layer in LayerType}
    for component in components:
        groups.setdefault(component.layer, []).append(component)
    return {layer: members for layer, members in groups.items() if members}


def compute_layout(components: list[ComponentNode]) -> BlockLayout:
    """
    Compute band and block positions.

    Each band gets an equal share of the canvas height. Inside a band,
    ``ceil(sqrt(n))`` columns are filled row by row.
    """
    layout = BlockLayout()
    groups = group_by_layer(components)
    if not groups:
        return layout

    band_height = (CANVAS_HEIGHT - PADDING * 2) / len(groups)
    for index, (layer, members) in enumerate(groups.items()):
        columns = math.ceil(math.sqrt(len(members)))
        band = LayerBand(
            layer=layer,
            y=PADDING + index * band_height,
            height=band_height,
            columns=columns,
            rows=math.ceil(len(members) / columns),
        )
        for position, component in enumerate(members):
            row, col = divmod(position, columns)
            x = PADDING + BAND_INSET + col * (BLOCK_WIDTH + COLUMN_GAP)
            y = band.y + BAND_INSET + row * (BLOCK_HEIGHT + ROW_GAP)
            layout.positions[component.id] = (x, y)
            band.component_ids.append(component.id)
        layout.bands.append(band)
    return layout


def _num(value: float) -> str:
    return f"{value:g}"


class BlockDiagram:
    """
    Rendered block diagram with caller-owned zoom controls.

    Zoom changes re-render the markup with a scale transform on the
    content group; the layout itself never changes.
    """

    def __init__(self, renderer: "BlockDiagramRenderer", data: ArchitectureData, layout: BlockLayout):
        self._renderer = renderer
        self._data = data
        self.layout = layout
        self.zoom = ZoomState()
        self.svg = renderer.to_svg(data, layout, self.zoom.level)

    @property
    def zoom_percent(self) -> int:
        return self.zoom.percent

    def zoom_in(self) -> int:
        self.zoom.zoom_in()
        return self._rerender()

    def zoom_out(self) -> int:
        self.zoom.zoom_out()
        return self._rerender()

    def reset_zoom(self) -> int:
        self.zoom.reset()
        return self._rerender()

    def _rerender(self) -> int:
        self.svg = self._renderer.to_svg(self._data, self.layout, self.zoom.level)
        return self.zoom.percent


class BlockDiagramRenderer:
    """Renders the block-layout SVG."""

    def render(self, data: ArchitectureData) -> BlockDiagram:
        """
        Lay out and draw a snapshot.

        Args:
            data: Finished analysis result

        Returns:
            BlockDiagram holding the SVG markup, the layout and zoom controls
        """
        layout = compute_layout(list(data.components))
        return BlockDiagram(self, data, layout)

    def to_svg(self, data: ArchitectureData, layout: BlockLayout, zoom: float = 1.0) -> str:
        parts = [
            f'<svg width="{layout.width}" height="{layout.height}" '
            f'viewBox="0 0 {layout.width} {layout.height}" xmlns="http://www.w3.org/2000/svg" '
            f'id="block-diagram-svg" data-zoom-percent="{round(zoom * 100)}">',
            "<defs>",
            f"<style>\n{SVG_STYLE}\n</style>",
            '<marker id="arrowhead" markerWidth="10" markerHeight="7" refX="9" refY="3.5" orient="auto">',
            '<polygon points="0 0, 10 3.5, 0 7" fill="#6b7280"/>',
            "</marker>",
            "</defs>",
            f'<rect width="{layout.width}" height="{layout.height}" fill="#f9fafb" stroke="#e5e7eb" stroke-width="1"/>',
            f'<g class="diagram-content" transform="scale({_num(zoom)})">',
        ]

        components = {c.id: c for c in data.components}
        for band in layout.bands:
            parts.append(self._band_svg(band, layout.width))
            for component_id in band.component_ids:
                x, y = layout.positions[component_id]
                parts.append(self._block_svg(components[component_id], x, y))

        for rel in data.relationships:
            start = layout.positions.get(rel.from_id)
            end = layout.positions.get(rel.to_id)
            if start is None or end is None:
                continue
            parts.append(self._connector_svg(start, end))

        parts.append("</g>")
        parts.append("</svg>")
        return "\n".join(parts)

    def _band_svg(self, band: LayerBand, width: int) -> str:
        fill, stroke = BLOCK_LAYER_COLORS.get(band.layer, BLOCK_LAYER_COLORS[LayerType.BUSINESS.value])
        return (
            f'<rect x="{PADDING}" y="{_num(band.y)}" width="{width - PADDING * 2}" '
            f'height="{_num(band.height - BAND_GAP)}" fill="{fill}" stroke="{stroke}" stroke-width="1" rx="8"/>\n'
            f'<text x="{PADDING + 15}" y="{_num(band.y + 25)}" class="layer-title">'
            f"{escape(band.layer.upper())} LAYER</text>"
        )

    def _block_svg(self, component: ComponentNode, x: float, y: float) -> str:
        fill, stroke = BLOCK_TYPE_COLORS.get(component.type, BLOCK_TYPE_COLORS["module"])
        indicator = COMPLEXITY_COLORS[complexity_level(component.complexity)]
        letter = BLOCK_TYPE_LETTERS.get(component.type, "M")
        return "\n".join([
            f'<g transform="translate({_num(x)}, {_num(y)})" data-component-id={quoteattr(component.id)}>',
            f'<rect width="{BLOCK_WIDTH}" height="{BLOCK_HEIGHT}" fill="{fill}" stroke="{stroke}" stroke-width="2" rx="6"/>',
            f'<circle cx="20" cy="20" r="8" fill="{stroke}"/>',
            f'<text x="20" y="25" text-anchor="middle" class="block-stats">{escape(letter)}</text>',
            f'<text x="35" y="25" class="block-title">{escape(truncate(component.name, NAME_LIMIT))}</text>',
            f'<text x="35" y="40" class="block-subtitle">{escape(component.type)}</text>',
            f'<text x="10" y="60" class="block-stats">{escape(truncate(component.file, FILE_LIMIT))}</text>',
            f'<text x="10" y="80" class="block-stats">Lines: {component.lines}</text>',
            f'<text x="10" y="95" class="block-stats">Complexity: {component.complexity}</text>',
            f'<text x="10" y="110" class="block-stats">Dependencies: {len(component.dependencies)}</text>',
            f'<rect x="{BLOCK_WIDTH - 25}" y="10" width="15" height="15" fill="{indicator}" rx="2"/>',
            "</g>",
        ])

    def _connector_svg(self, start: tuple[float, float], end: tuple[float, float]) -> str:
        # Bottom-center of the source block to top-center of the target
        from_x = start[0] + BLOCK_WIDTH / 2
        from_y = start[1] + BLOCK_HEIGHT
        to_x = end[0] + BLOCK_WIDTH / 2
        to_y = end[1]
        mid_y = (from_y + to_y) / 2
        return (
            f'<path d="M {_num(from_x)} {_num(from_y)} Q {_num(from_x)} {_num(mid_y)} '
            f'{_num(to_x)} {_num(to_y)}" class="connection-line" opacity="0.7"/>'
        )
