"""
Force Graph Renderer
====================

Data-flow view laid out by a force-directed simulation.

The simulation follows the usual velocity-Verlet scheme: every tick the
cooling parameter ``alpha`` decays toward ``alpha_target``, each force
adds to node velocities, velocities decay, and positions advance. Four
forces are applied in order:

- link: springs pulling linked nodes toward a target distance
- charge: pairwise inverse-square repulsion
- center: translates the whole graph so its centroid sits mid-canvas
- collide: keeps node circles from overlapping

``ForceLayoutSession`` drives the simulation tick by tick as a
cancellable coroutine and draws each frame onto a caller-supplied
``DrawingSurface``. Zoom and pan live in a separate affine transform
and never touch the simulation.
"""

from __future__ import annotations

import asyncio
import logging
import math
import random
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol
from xml.sax.saxutils import escape

from ..models.architecture_data import ArchitectureData
from ..models.component_models import ComponentNode
from .styles import FLOW_STYLES, FlowType, classify_flow
from .zoom import ZoomTransform

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 1200
DEFAULT_HEIGHT = 800

LINK_DISTANCE = 150
CHARGE_STRENGTH = -300

BASE_RADIUS = 30
COMPLEXITY_RADIUS_FACTOR = 2
MAX_RADIUS_BONUS = 20

ALPHA_MIN = 0.001
ALPHA_DECAY = 1 - ALPHA_MIN ** (1 / 300)
VELOCITY_DECAY = 0.4
DRAG_ALPHA_TARGET = 0.3
ENERGY_THRESHOLD = 0.01

INITIAL_RADIUS = 10
INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))

# Minimum squared distance for the charge force
DISTANCE_MIN2 = 1.0

ALL_FLOWS = "all"
NODE_OPACITY = (1.0, 0.2)
LINK_OPACITY = (0.6, 0.1)


def node_radius(complexity: int) -> float:
    """Base radius plus a complexity bonus, capped."""
    return BASE_RADIUS + min(MAX_RADIUS_BONUS, complexity * COMPLEXITY_RADIUS_FACTOR)


@dataclass
class ForceNode:
    """A simulated node; ``fx``/``fy`` pin it while set."""

    id: str
    name: str
    type: str
    layer: str
    complexity: int
    lines: int
    file: str
    dependency_count: int
    flow_type: str
    description: str | None = None

    x: float = math.nan
    y: float = math.nan
    vx: float = 0.0
    vy: float = 0.0
    fx: float | None = None
    fy: float | None = None

    @property
    def radius(self) -> float:
        return node_radius(self.complexity)

    @classmethod
    def from_component(cls, component: ComponentNode) -> "ForceNode":
        return cls(
            id=component.id,
            name=component.name,
            type=component.type,
            layer=component.layer,
            complexity=component.complexity,
            lines=component.lines,
            file=component.file,
            dependency_count=len(component.dependencies),
            flow_type=classify_flow(component),
            description=component.description,
        )


@dataclass
class ForceLink:
    source: ForceNode
    target: ForceNode
    type: str
    weight: int = 1

    # Set by the simulation from node degrees
    strength: float = 1.0
    bias: float = 0.5

    @property
    def stroke_width(self) -> float:
        return math.sqrt(self.weight) * 2


def build_graph(data: ArchitectureData) -> tuple[list[ForceNode], list[ForceLink]]:
    """Nodes for every component and links for relationships between them."""
    nodes = [ForceNode.from_component(c) for c in data.components]
    by_id = {node.id: node for node in nodes}
    links = [
        ForceLink(source=by_id[rel.from_id], target=by_id[rel.to_id], type=rel.type, weight=rel.weight or 1)
        for rel in data.relationships
        if rel.from_id in by_id and rel.to_id in by_id
    ]
    return nodes, links


class ForceSimulation:
    """
    Tick-based force relaxation over ``ForceNode`` positions.

    Randomness only breaks exact ties between coincident nodes and comes
    from a seeded generator, so a layout is reproducible.
    """

    def __init__(
        self,
        nodes: list[ForceNode],
        links: list[ForceLink],
        width: float = DEFAULT_WIDTH,
        height: float = DEFAULT_HEIGHT,
        link_distance: float = LINK_DISTANCE,
        charge_strength: float = CHARGE_STRENGTH,
        energy_threshold: float = ENERGY_THRESHOLD,
        seed: int = 0,
    ):
        self.nodes = nodes
        self.links = links
        self.center = (width / 2, height / 2)
        self.link_distance = link_distance
        self.charge_strength = charge_strength
        self.energy_threshold = energy_threshold

        self.alpha = 1.0
        self.alpha_target = 0.0
        self.alpha_min = ALPHA_MIN
        self.alpha_decay = ALPHA_DECAY
        self.velocity_decay = VELOCITY_DECAY

        self.ticks = 0
        self.stopped = False
        self._ticks_since_restart = 0
        self._random = random.Random(seed)
        self._active_drags = 0
        self._by_id = {node.id: node for node in nodes}

        self._initialize_nodes()
        self._initialize_links()

    def _initialize_nodes(self) -> None:
        """Place unpositioned nodes on a phyllotaxis spiral around the center."""
        cx, cy = self.center
        for index, node in enumerate(self.nodes):
            if node.fx is not None:
                node.x = node.fx
            if node.fy is not None:
                node.y = node.fy
            if math.isnan(node.x) or math.isnan(node.y):
                radius = INITIAL_RADIUS * math.sqrt(0.5 + index)
                angle = index * INITIAL_ANGLE
                node.x = cx + radius * math.cos(angle)
                node.y = cy + radius * math.sin(angle)
            if math.isnan(node.vx) or math.isnan(node.vy):
                node.vx = node.vy = 0.0

    def _initialize_links(self) -> None:
        degree: dict[str, int] = {}
        for link in self.links:
            degree[link.source.id] = degree.get(link.source.id, 0) + 1
            degree[link.target.id] = degree.get(link.target.id, 0) + 1
        for link in self.links:
            source_degree = degree[link.source.id]
            target_degree = degree[link.target.id]
            link.strength = 1 / min(source_degree, target_degree)
            link.bias = source_degree / (source_degree + target_degree)

    def node(self, node_id: str) -> ForceNode:
        """
        Raises:
            KeyError: If no node has the id
        """
        return self._by_id[node_id]

    def _jiggle(self) -> float:
        return (self._random.random() - 0.5) * 1e-6

    # =========================================================================
    # Ticking
    # =========================================================================

    def tick(self, iterations: int = 1) -> None:
        """Advance the simulation; forces are applied even when stopped."""
        for _ in range(iterations):
            self.alpha += (self.alpha_target - self.alpha) * self.alpha_decay

            self._apply_links()
            self._apply_charge()
            self._apply_center()
            self._apply_collision()

            keep = 1 - self.velocity_decay
            for node in self.nodes:
                if node.fx is None:
                    node.vx *= keep
                    node.x += node.vx
                else:
                    node.x = node.fx
                    node.vx = 0.0
                if node.fy is None:
                    node.vy *= keep
                    node.y += node.vy
                else:
                    node.y = node.fy
                    node.vy = 0.0
            self.ticks += 1
            self._ticks_since_restart += 1

    def _apply_links(self) -> None:
        for link in self.links:
            source, target = link.source, link.target
            x = target.x + target.vx - source.x - source.vx or self._jiggle()
            y = target.y + target.vy - source.y - source.vy or self._jiggle()
            distance = math.sqrt(x * x + y * y)
            factor = (distance - self.link_distance) / distance * self.alpha * link.strength
            x *= factor
            y *= factor
            target.vx -= x * link.bias
            target.vy -= y * link.bias
            source.vx += x * (1 - link.bias)
            source.vy += y * (1 - link.bias)

    def _apply_charge(self) -> None:
        for node in self.nodes:
            for other in self.nodes:
                if other is node:
                    continue
                x = other.x - node.x
                y = other.y - node.y
                distance2 = x * x + y * y
                if x == 0:
                    x = self._jiggle()
                    distance2 += x * x
                if y == 0:
                    y = self._jiggle()
                    distance2 += y * y
                if distance2 < DISTANCE_MIN2:
                    distance2 = math.sqrt(DISTANCE_MIN2 * distance2)
                weight = self.charge_strength * self.alpha / distance2
                node.vx += x * weight
                node.vy += y * weight

    def _apply_center(self) -> None:
        if not self.nodes:
            return
        mean_x = sum(node.x for node in self.nodes) / len(self.nodes)
        mean_y = sum(node.y for node in self.nodes) / len(self.nodes)
        shift_x = self.center[0] - mean_x
        shift_y = self.center[1] - mean_y
        for node in self.nodes:
            node.x += shift_x
            node.y += shift_y

    def _apply_collision(self) -> None:
        count = len(self.nodes)
        for i in range(count):
            node = self.nodes[i]
            ri = node.radius
            ri2 = ri * ri
            xi = node.x + node.vx
            yi = node.y + node.vy
            for j in range(i + 1, count):
                other = self.nodes[j]
                rj = other.radius
                reach = ri + rj
                x = xi - other.x - other.vx
                y = yi - other.y - other.vy
                distance2 = x * x + y * y
                if distance2 >= reach * reach:
                    continue
                if x == 0:
                    x = self._jiggle()
                    distance2 += x * x
                if y == 0:
                    y = self._jiggle()
                    distance2 += y * y
                distance = math.sqrt(distance2)
                overlap = (reach - distance) / distance
                x *= overlap
                y *= overlap
                rj2 = rj * rj
                share = rj2 / (ri2 + rj2)
                node.vx += x * share
                node.vy += y * share
                other.vx -= x * (1 - share)
                other.vy -= y * (1 - share)

    # =========================================================================
    # State
    # =========================================================================

    def energy(self) -> float:
        """Mean squared node speed."""
        if not self.nodes:
            return 0.0
        return sum(node.vx * node.vx + node.vy * node.vy for node in self.nodes) / len(self.nodes)

    @property
    def converged(self) -> bool:
        """Cooled down or settled, unless a drag keeps it warm."""
        if self.alpha_target > 0:
            return False
        if self.alpha < self.alpha_min:
            return True
        return self._ticks_since_restart > 0 and self.energy() < self.energy_threshold

    def restart(self, alpha: float | None = None) -> None:
        if alpha is not None:
            self.alpha = alpha
        self.stopped = False
        self._ticks_since_restart = 0

    def stop(self) -> None:
        self.stopped = True

    def positions(self) -> dict[str, tuple[float, float]]:
        return {node.id: (node.x, node.y) for node in self.nodes}

    # =========================================================================
    # Pointer drag
    # =========================================================================

    def drag_start(self, node_id: str) -> ForceNode:
        """Pin a node where it is and keep the simulation warm while dragging."""
        node = self.node(node_id)
        if self._active_drags == 0:
            self.alpha_target = DRAG_ALPHA_TARGET
            self.restart()
        self._active_drags += 1
        node.fx = node.x
        node.fy = node.y
        return node

    def drag(self, node_id: str, x: float, y: float) -> None:
        node = self.node(node_id)
        node.fx = x
        node.fy = y

    def drag_end(self, node_id: str) -> None:
        node = self.node(node_id)
        self._active_drags = max(0, self._active_drags - 1)
        if self._active_drags == 0:
            self.alpha_target = 0.0
        node.fx = None
        node.fy = None


# =============================================================================
# Drawing
# =============================================================================

def node_opacity(node: ForceNode, selected: str) -> float:
    return NODE_OPACITY[0] if selected == ALL_FLOWS or node.flow_type == selected else NODE_OPACITY[1]


def link_opacity(link: ForceLink, selected: str) -> float:
    visible = selected == ALL_FLOWS or (link.source.flow_type == selected and link.target.flow_type == selected)
    return LINK_OPACITY[0] if visible else LINK_OPACITY[1]


@dataclass
class ForceFrame:
    """Everything a surface needs to draw one tick."""

    nodes: list[ForceNode]
    links: list[ForceLink]
    transform: ZoomTransform
    selected_flow: str = ALL_FLOWS
    tick: int = 0
    alpha: float = 1.0


class DrawingSurface(Protocol):
    """A target that can display frames of the force layout."""

    width: float
    height: float

    def draw(self, frame: ForceFrame) -> None: ...


@dataclass
class SvgSurface:
    """Surface that keeps the latest frame as SVG markup."""

    width: float = DEFAULT_WIDTH
    height: float = DEFAULT_HEIGHT
    svg: str = ""
    frames_drawn: int = 0

    def draw(self, frame: ForceFrame) -> None:
        self.svg = frame_to_svg(frame, self.width, self.height)
        self.frames_drawn += 1


def frame_to_svg(frame: ForceFrame, width: float, height: float) -> str:
    """Serialize a frame, with the zoom transform on the content group."""
    w, h = f"{width:g}", f"{height:g}"
    parts = [
        f'<svg width="{w}" height="{h}" viewBox="0 0 {w} {h}" '
        f'xmlns="http://www.w3.org/2000/svg" style="background: #f9fafb">',
        "<defs>",
        '<marker id="arrowhead" viewBox="0 -5 10 10" refX="8" refY="0" markerWidth="6" markerHeight="6" orient="auto">',
        '<path d="M0,-5L10,0L0,5" fill="#6b7280"/>',
        "</marker>",
        "</defs>",
        f'<g class="force-content" transform="{frame.transform.to_svg()}">',
        '<g class="links">',
    ]
    for link in frame.links:
        parts.append(
            f'<line x1="{link.source.x:.2f}" y1="{link.source.y:.2f}" '
            f'x2="{link.target.x:.2f}" y2="{link.target.y:.2f}" stroke="#6b7280" '
            f'stroke-width="{link.stroke_width:.2f}" stroke-opacity="0.6" '
            f'opacity="{link_opacity(link, frame.selected_flow):g}" marker-end="url(#arrowhead)"/>'
        )
    parts.append("</g>")

    parts.append('<g class="nodes">')
    for node in frame.nodes:
        fill, stroke, icon = FLOW_STYLES.get(node.flow_type, FLOW_STYLES[FlowType.PROCESS.value])
        parts.append(
            f'<g class="node" transform="translate({node.x:.2f},{node.y:.2f})" '
            f'opacity="{node_opacity(node, frame.selected_flow):g}">'
            f'<circle r="{node.radius:g}" fill="{fill}" stroke="{stroke}" stroke-width="2"/>'
            f'<text text-anchor="middle" dominant-baseline="middle" font-family="Inter, sans-serif" '
            f'font-size="12px" font-weight="600" fill="#1f2937">{escape(node.name)}</text>'
            f'<text y="-25" text-anchor="middle" font-size="16px" fill="{stroke}">{icon}</text>'
            "</g>"
        )
    parts.append("</g>")

    parts.append('<g class="link-labels">')
    for link in frame.links:
        parts.append(
            f'<text x="{(link.source.x + link.target.x) / 2:.2f}" y="{(link.source.y + link.target.y) / 2:.2f}" '
            f'text-anchor="middle" font-family="Inter, sans-serif" font-size="10px" fill="#6b7280">'
            f"{escape(link.type)}</text>"
        )
    parts.append("</g>")
    parts.append("</g>")

    parts.append(f'<g class="legend" transform="translate({width - 150:g}, 20)">')
    for index, flow in enumerate(FlowType):
        fill, _, _ = FLOW_STYLES[flow.value]
        parts.append(
            f'<g class="legend-item" transform="translate(0, {index * 25})">'
            f'<circle r="8" fill="{fill}"/>'
            f'<text x="15" y="0" dominant-baseline="middle" font-family="Inter, sans-serif" '
            f'font-size="12px" fill="#374151">{flow.value.capitalize()}</text>'
            "</g>"
        )
    parts.append("</g>")
    parts.append("</svg>")
    return "\n".join(parts)


# =============================================================================
# Session
# =============================================================================

TickCallback = Callable[[ForceFrame], None]


class ForceLayoutSession:
    """
    Live force layout bound to a drawing surface.

    The owner drives it with ``run()`` (or ``start()`` for a background
    task) and must ``cancel()`` it when the view is torn down; the async
    context manager does this on exit.
    """

    def __init__(self, simulation: ForceSimulation, surface: DrawingSurface):
        self.simulation = simulation
        self.surface = surface
        self.transform = ZoomTransform()
        self.selected_flow = ALL_FLOWS
        self.cancelled = False
        self._callbacks: list[TickCallback] = []
        self._task: asyncio.Task | None = None

    async def __aenter__(self) -> "ForceLayoutSession":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def on_tick(self, callback: TickCallback) -> Callable[[], None]:
        """Register a per-frame callback; returns a function that removes it."""
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def frame(self) -> ForceFrame:
        return ForceFrame(
            nodes=self.simulation.nodes,
            links=self.simulation.links,
            transform=self.transform,
            selected_flow=self.selected_flow,
            tick=self.simulation.ticks,
            alpha=self.simulation.alpha,
        )

    def redraw(self) -> ForceFrame:
        frame = self.frame()
        self.surface.draw(frame)
        for callback in list(self._callbacks):
            callback(frame)
        return frame

    async def run(self, max_ticks: int | None = None) -> int:
        """
        Tick until the layout converges, is stopped, or is cancelled.

        Control returns to the event loop after every tick so drawing and
        pointer handling interleave with the relaxation.

        Args:
            max_ticks: Optional cap on ticks for this call

        Returns:
            Number of ticks run by this call
        """
        ticks = 0
        simulation = self.simulation
        while not self.cancelled and not simulation.stopped and not simulation.converged:
            if max_ticks is not None and ticks >= max_ticks:
                break
            simulation.tick()
            ticks += 1
            self.redraw()
            await asyncio.sleep(0)
        logger.debug("Force layout ran %d ticks (alpha %.4f)", ticks, simulation.alpha)
        return ticks

    def start(self, max_ticks: int | None = None) -> asyncio.Task:
        """Run in a background task on the current event loop."""
        if self._task is not None and not self._task.done():
            return self._task
        self._task = asyncio.get_running_loop().create_task(self.run(max_ticks))
        return self._task

    def restart(self) -> None:
        """Reheat the layout; a finished run must be started again."""
        self.cancelled = False
        self.simulation.restart(alpha=1.0)

    def cancel(self) -> None:
        """Stop ticking; any background task is cancelled."""
        self.cancelled = True
        self.simulation.stop()
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def close(self) -> None:
        self.cancel()
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._callbacks.clear()

    # Pointer drag

    def drag_start(self, node_id: str) -> None:
        self.simulation.drag_start(node_id)
        self.cancelled = False

    def drag(self, node_id: str, x: float, y: float) -> None:
        """Move a pinned node to a screen point."""
        self.simulation.drag(node_id, *self.transform.invert((x, y)))

    def drag_end(self, node_id: str) -> None:
        self.simulation.drag_end(node_id)

    # Zoom, pan and filter

    def zoom_in(self) -> float:
        self.transform.scale_by(ZoomTransform.ZOOM_IN_FACTOR, self._viewport_center())
        self.redraw()
        return self.transform.k

    def zoom_out(self) -> float:
        self.transform.scale_by(ZoomTransform.ZOOM_OUT_FACTOR, self._viewport_center())
        self.redraw()
        return self.transform.k

    def reset_zoom(self) -> float:
        self.transform.reset()
        self.redraw()
        return self.transform.k

    def wheel(self, delta_y: float, point: tuple[float, float]) -> float:
        """Zoom around a pointer position for a wheel event in pixels."""
        self.transform.scale_by(2 ** (-delta_y * 0.002), point)
        self.redraw()
        return self.transform.k

    def pan(self, dx: float, dy: float) -> None:
        self.transform.translate_by(dx, dy)
        self.redraw()

    def set_filter(self, flow_type: str) -> None:
        """
        Dim nodes and links outside a flow category.

        Raises:
            ValueError: If ``flow_type`` is neither "all" nor a flow type
        """
        if flow_type != ALL_FLOWS and flow_type not in {flow.value for flow in FlowType}:
            raise ValueError(f"Unknown flow type: {flow_type}")
        self.selected_flow = flow_type
        self.redraw()

    def _viewport_center(self) -> tuple[float, float]:
        return self.surface.width / 2, self.surface.height / 2


@dataclass
class ForceGraphRenderer:
    """Builds force layouts for a snapshot."""

    width: float = DEFAULT_WIDTH
    height: float = DEFAULT_HEIGHT
    seed: int = 0
    max_ticks: int = 300

    def simulation(self, data: ArchitectureData) -> ForceSimulation:
        nodes, links = build_graph(data)
        return ForceSimulation(nodes, links, width=self.width, height=self.height, seed=self.seed)

    def create_session(self, data: ArchitectureData, surface: DrawingSurface | None = None) -> ForceLayoutSession:
        """Bind a fresh simulation of ``data`` to a surface."""
        surface = surface or SvgSurface(width=self.width, height=self.height)
        session = ForceLayoutSession(self.simulation(data), surface)
        session.redraw()
        return session

    def layout(self, data: ArchitectureData) -> dict[str, tuple[float, float]]:
        """Run a simulation to convergence synchronously and return positions."""
        return self._settle(data).positions()

    def render_svg(self, data: ArchitectureData) -> str:
        """Settled layout as a standalone SVG document."""
        simulation = self._settle(data)
        surface = SvgSurface(width=self.width, height=self.height)
        surface.draw(
            ForceFrame(
                nodes=simulation.nodes,
                links=simulation.links,
                transform=ZoomTransform(),
                tick=simulation.ticks,
                alpha=simulation.alpha,
            )
        )
        return surface.svg

    def _settle(self, data: ArchitectureData) -> ForceSimulation:
        simulation = self.simulation(data)
        while not simulation.converged and simulation.ticks < self.max_ticks:
            simulation.tick()
        return simulation
