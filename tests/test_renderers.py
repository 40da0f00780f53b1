#!/usr/bin/env python3
"""
Tests for Diagram Renderers
===========================

Tests the three diagram families including:
- Mermaid system, component, C4 and data-flow text
- Block layout grid, connectors and zoom controls
- Force simulation, live sessions, filtering and zoom transforms
- The render_diagram error boundary
"""

import asyncio

import pytest
from repo_analysis.errors import RenderError
from repo_analysis.models.architecture_data import ArchitectureData, ArchitectureMetadata
from repo_analysis.models.component_models import ComponentNode
from repo_analysis.renderers.block_diagram import (
    BLOCK_HEIGHT,
    BLOCK_WIDTH,
    BlockDiagram,
    BlockDiagramRenderer,
    compute_layout,
)
from repo_analysis.renderers.force_graph import (
    ForceGraphRenderer,
    SvgSurface,
    node_radius,
)
from repo_analysis.renderers.mermaid import MermaidRenderer, escape_label
from repo_analysis.renderers.render import DiagramView, render_diagram
from repo_analysis.renderers.styles import classify_flow
from repo_analysis.renderers.zoom import ZoomState, ZoomTransform

BUTTON_ID = "component_src_components_Button_tsx_Button_8c9d0e1f"
USER_ID = "class_src_models_user_py_User_0a1b2c3d"
ADMIN_ID = "class_src_models_user_py_Admin_4e5f6a7b"


def single_layer_architecture(count: int) -> ArchitectureData:
    components = [
        ComponentNode(id=f"module_m{i}", name=f"m{i}", file=f"m{i}.ts", layer="business")
        for i in range(count)
    ]
    return ArchitectureData.create(components, [], [], ArchitectureMetadata(total_components=count))


# =============================================================================
# MERMAID
# =============================================================================

class TestMermaidSystemView:
    """Tests for the system overview."""

    def test_header_and_system_subgraph(self, sample_architecture):
        """The system subgraph is named after the repository."""
        text = MermaidRenderer().render_system(sample_architecture)
        lines = text.splitlines()

        assert lines[0] == "graph LR"
        assert lines[1] == '    subgraph system["shop System"]'
        assert '        boundary_business["Business Layer<br/>2 components"]' in lines
        assert "    class system system" in lines

    def test_external_dependencies(self, sample_architecture):
        """Unresolved file-level dependencies point at the system."""
        renderer = MermaidRenderer()
        text = renderer.render_system(sample_architecture)

        assert renderer.external_dependencies(sample_architecture) == [
            ("ext_react", "react"),
            ("ext_axios", "axios"),
        ]
        assert "    ext_react --> system" in text
        assert "    class ext_axios external" in text
        assert "ext_useState" not in text

    def test_fallback_system_name(self):
        """Without a source identifier the system is called Repository."""
        text = MermaidRenderer().render_system(single_layer_architecture(1))

        assert 'subgraph system["Repository System"]' in text


class TestMermaidComponentView:
    """Tests for the component view."""

    def test_all_components(self, sample_architecture):
        """Every component is drawn with an arrow per relationship type."""
        text = MermaidRenderer().render_component(sample_architecture)

        assert text.startswith("graph TD\n")
        assert "    module_src_app_ts --> module_src_services_api_ts" in text
        assert f"    module_src_services_api_ts -.-> {USER_ID}" in text
        assert f"    {ADMIN_ID} ==> {USER_ID}" in text
        assert "    class module_src_app_ts module" in text
        assert "    classDef class fill:#e1f5fe,stroke:#01579b,stroke-width:2px" in text

    def test_detailed_labels(self, sample_architecture):
        """Labels carry name, kind, line count and complexity marker."""
        text = MermaidRenderer().render_component(sample_architecture)

        assert 'module_src_services_api_ts["📦 api<br/>module<br/>40 lines 🔴"]' in text

    def test_scoped_to_boundary(self, sample_architecture):
        """Only the boundary's components and internal edges are drawn."""
        text = MermaidRenderer().render_component(sample_architecture, "boundary_data")

        assert USER_ID in text
        assert f"    {ADMIN_ID} ==> {USER_ID}" in text
        assert "module_src_app_ts" not in text
        assert "module_src_services_api_ts" not in text

    def test_unknown_boundary(self, sample_architecture):
        """An unknown boundary id is a render error."""
        with pytest.raises(RenderError, match="boundary_nowhere"):
            MermaidRenderer().render_component(sample_architecture, "boundary_nowhere")


class TestMermaidC4View:
    """Tests for the C4-style view."""

    def test_boundaries_as_subgraphs(self, sample_architecture):
        """Each boundary is a subgraph holding its components."""
        lines = MermaidRenderer().render_c4(sample_architecture).splitlines()

        assert lines[0] == "graph TB"
        start = lines.index('    subgraph boundary_business["Business Layer"]')
        assert lines[start + 1] == '        module_src_app_ts["📦 app<br/>module 🟡"]'
        assert lines[start + 2].startswith("        module_src_services_api_ts[")
        assert lines[start + 3] == "    end"

    def test_styled_by_layer(self, sample_architecture):
        """Components are classed by their layer."""
        text = MermaidRenderer().render_c4(sample_architecture)

        assert "    classDef presentation fill:#e1f5fe,stroke:#01579b,stroke-width:2px" in text
        assert f"    class {BUTTON_ID} presentation" in text
        assert "    class config_package_json infrastructure" in text


class TestMermaidDataflowView:
    """Tests for the data-flow view."""

    def test_flow_roles(self, sample_architecture):
        """Components are classed by data-flow role."""
        text = MermaidRenderer().render_dataflow(sample_architecture)

        assert text.startswith("flowchart TD\n")
        assert f"    class {BUTTON_ID} input" in text
        assert "    class module_src_app_ts process" in text
        assert f"    class {USER_ID} output" in text
        assert "    class config_package_json storage" in text
        assert 'config_package_json["💾 package.json"]' in text

    def test_only_uses_and_calls_edges(self, sample_architecture):
        """Imports and inheritance are left out of the data flow."""
        text = MermaidRenderer().render_dataflow(sample_architecture)

        assert f"    {BUTTON_ID} --> module_src_app_ts" in text
        assert f"    module_src_services_api_ts --> {USER_ID}" in text
        assert "module_src_app_ts --> module_src_services_api_ts" not in text
        assert f"{ADMIN_ID} --> {USER_ID}" not in text

    def test_classify_flow(self):
        """Storage beats input, input beats output."""
        assert classify_flow(ComponentNode(name="userStore", layer="presentation")) == "storage"
        assert classify_flow(ComponentNode(name="inputOutput", layer="business")) == "input"
        assert classify_flow(ComponentNode(name="writer", layer="data")) == "output"
        assert classify_flow(ComponentNode(name="worker", layer="infrastructure")) == "process"


class TestEscapeLabel:
    """Tests for label escaping."""

    def test_quotes_and_newlines(self):
        """Quotes and newlines cannot break out of a label."""
        assert escape_label('say "hi"\nnow') == "say #quot;hi#quot;<br/>now"


# =============================================================================
# BLOCK DIAGRAM
# =============================================================================

class TestBlockLayout:
    """Tests for the block layout grid."""

    def test_nine_components_make_three_by_three(self):
        """Nine components in one layer fill a 3x3 grid."""
        data = single_layer_architecture(9)

        layout = compute_layout(list(data.components))
        band = layout.band("business")

        assert len(layout.bands) == 1
        assert (band.columns, band.rows) == (3, 3)
        assert layout.positions["module_m0"] == (60, 60)
        assert layout.positions["module_m4"] == (60 + BLOCK_WIDTH + 20, 60 + BLOCK_HEIGHT + 15)
        assert layout.positions["module_m8"][0] == 60 + 2 * (BLOCK_WIDTH + 20)

    def test_bands_share_height_in_layer_order(self, sample_architecture):
        """Each non-empty layer gets an equal band, in display order."""
        layout = compute_layout(list(sample_architecture.components))

        assert [b.layer for b in layout.bands] == ["presentation", "business", "data", "infrastructure"]
        assert layout.band("data").y == 20 + 2 * 190
        assert layout.band("data").height == 190
        assert layout.band("external") is None

    def test_empty(self):
        """No components, no bands."""
        layout = compute_layout([])

        assert layout.bands == []
        assert layout.positions == {}


class TestBlockDiagram:
    """Tests for the rendered block diagram."""

    def test_svg_contents(self, sample_architecture):
        """Bands, blocks and one connector per relationship are drawn."""
        diagram = BlockDiagramRenderer().render(sample_architecture)

        assert isinstance(diagram, BlockDiagram)
        assert diagram.svg.startswith("<svg ")
        assert "BUSINESS LAYER" in diagram.svg
        assert 'data-component-id="module_src_app_ts"' in diagram.svg
        assert diagram.svg.count('<path d="M') == len(sample_architecture.relationships)

    def test_long_names_are_truncated(self):
        """Names longer than the block allows end in an ellipsis."""
        component = ComponentNode(id="module_x", name="AVeryLongComponentNameIndeed", file="x.ts", layer="data")
        data = ArchitectureData.create([component], [], [], ArchitectureMetadata())

        svg = BlockDiagramRenderer().render(data).svg

        assert "AVeryLongCompon..." in svg

    def test_zoom_controls(self, sample_architecture):
        """Zoom steps by 20%, resets to 100% and re-renders the scale."""
        diagram = BlockDiagramRenderer().render(sample_architecture)

        assert diagram.zoom_percent == 100
        assert diagram.zoom_in() == 120
        assert 'transform="scale(1.2)"' in diagram.svg
        assert 'data-zoom-percent="120"' in diagram.svg
        assert diagram.reset_zoom() == 100
        assert diagram.zoom_out() == 80

    def test_zoom_limits(self, sample_architecture):
        """Zoom is clamped to 20%-300%."""
        diagram = BlockDiagramRenderer().render(sample_architecture)
        positions = dict(diagram.layout.positions)

        for _ in range(20):
            diagram.zoom_in()
        assert diagram.zoom_percent == 300
        for _ in range(30):
            diagram.zoom_out()
        assert diagram.zoom_percent == 20
        assert diagram.layout.positions == positions


class TestZoomState:
    """Tests for the stepped zoom model."""

    def test_steps(self):
        """Steps are exact tenths, not accumulated float error."""
        zoom = ZoomState()

        zoom.zoom_out()
        zoom.zoom_out()
        zoom.zoom_in()

        assert zoom.level == 0.8
        assert zoom.percent == 80


# =============================================================================
# FORCE GRAPH
# =============================================================================

class TestForceSimulation:
    """Tests for the force simulation."""

    def test_node_radius(self):
        """Radius grows with complexity up to a cap."""
        assert node_radius(1) == 32
        assert node_radius(5) == 40
        assert node_radius(15) == 50

    def test_layout_is_deterministic(self, sample_architecture):
        """The same snapshot and seed give the same positions."""
        renderer = ForceGraphRenderer(seed=7)

        assert renderer.layout(sample_architecture) == renderer.layout(sample_architecture)

    def test_layout_stays_near_center(self, sample_architecture):
        """The centering force keeps the centroid mid-canvas."""
        positions = ForceGraphRenderer(width=1000, height=600).layout(sample_architecture)
        xs = [x for x, _ in positions.values()]
        ys = [y for _, y in positions.values()]

        assert sum(xs) / len(xs) == pytest.approx(500, abs=1.0)
        assert sum(ys) / len(ys) == pytest.approx(300, abs=1.0)

    def test_nodes_do_not_overlap_after_settling(self, sample_architecture):
        """Collision keeps node centers apart."""
        simulation = ForceGraphRenderer().simulation(sample_architecture)
        simulation.tick(300)

        nodes = simulation.nodes
        for i, a in enumerate(nodes):
            for b in nodes[i + 1:]:
                distance = ((a.x - b.x) ** 2 + (a.y - b.y) ** 2) ** 0.5
                assert distance > (a.radius + b.radius) * 0.8

    def test_drag_pins_node(self, sample_architecture):
        """A dragged node follows the pointer and the layout stays warm."""
        simulation = ForceGraphRenderer().simulation(sample_architecture)
        simulation.tick(5)

        node = simulation.drag_start("module_src_app_ts")
        assert node.fx == node.x
        assert simulation.alpha_target == pytest.approx(0.3)

        simulation.drag("module_src_app_ts", 100.0, 120.0)
        simulation.tick()
        assert (node.x, node.y) == (100.0, 120.0)
        assert not simulation.converged

        simulation.drag_end("module_src_app_ts")
        assert node.fx is None and node.fy is None
        assert simulation.alpha_target == 0

    def test_drag_after_convergence_reheats(self, sample_architecture):
        """Dragging a settled layout makes it tick again."""
        simulation = ForceGraphRenderer().simulation(sample_architecture)
        while not simulation.converged:
            simulation.tick()

        simulation.drag_start("module_src_app_ts")

        assert not simulation.converged

    def test_unknown_node(self, sample_architecture):
        """Dragging an unknown id raises KeyError."""
        simulation = ForceGraphRenderer().simulation(sample_architecture)

        with pytest.raises(KeyError):
            simulation.drag_start("missing")


class TestForceLayoutSession:
    """Tests for the live force layout session."""

    def test_create_session_draws_first_frame(self, sample_architecture):
        """The surface gets a frame immediately."""
        session = ForceGraphRenderer().create_session(sample_architecture)

        assert isinstance(session.surface, SvgSurface)
        assert session.surface.frames_drawn == 1
        assert session.surface.svg.startswith("<svg ")

    def test_run_draws_every_tick(self, sample_architecture):
        """Each tick draws a frame and notifies subscribers."""
        session = ForceGraphRenderer().create_session(sample_architecture)
        ticks_seen = []
        unsubscribe = session.on_tick(lambda frame: ticks_seen.append(frame.tick))

        ran = asyncio.run(session.run(max_ticks=3))

        assert ran == 3
        assert ticks_seen == [1, 2, 3]
        assert session.surface.frames_drawn == 4

        unsubscribe()
        asyncio.run(session.run(max_ticks=2))
        assert ticks_seen == [1, 2, 3]

    def test_run_until_converged(self, sample_architecture):
        """Without a cap the session runs until the layout settles."""
        session = ForceGraphRenderer().create_session(sample_architecture)

        asyncio.run(session.run())

        assert session.simulation.converged

    def test_restart_after_settling_runs_again(self, sample_architecture):
        """Reheating a settled layout makes the next run tick."""
        session = ForceGraphRenderer().create_session(sample_architecture)
        assert asyncio.run(session.run()) > 0
        assert session.simulation.converged

        session.restart()

        assert session.simulation.alpha == pytest.approx(1.0)
        assert not session.simulation.converged
        assert asyncio.run(session.run()) > 0
        assert session.simulation.converged

    def test_restart_resumes_cancelled_session(self, sample_architecture):
        """A cancelled session ticks again after a restart."""
        session = ForceGraphRenderer().create_session(sample_architecture)
        session.cancel()

        session.restart()

        assert asyncio.run(session.run(max_ticks=2)) == 2

    def test_close_cancels_background_task(self, sample_architecture):
        """Closing a started session cancels its task."""
        session = ForceGraphRenderer().create_session(sample_architecture)

        async def scenario():
            task = session.start()
            await asyncio.sleep(0)
            await session.close()
            return task

        task = asyncio.run(scenario())

        assert session.cancelled
        assert task.done()

    def test_context_manager_cancels_on_exit(self, sample_architecture):
        """Leaving the async context tears the session down."""
        renderer = ForceGraphRenderer()

        async def scenario():
            async with renderer.create_session(sample_architecture) as session:
                session.start()
                await asyncio.sleep(0)
            return session

        session = asyncio.run(scenario())

        assert session.cancelled
        assert session.simulation.stopped

    def test_cancelled_session_does_not_tick(self, sample_architecture):
        """A cancelled session runs no ticks."""
        session = ForceGraphRenderer().create_session(sample_architecture)
        session.cancel()

        assert asyncio.run(session.run()) == 0

    def test_set_filter_dims_other_flows(self, sample_architecture):
        """Nodes outside the selected flow are dimmed."""
        session = ForceGraphRenderer().create_session(sample_architecture)

        session.set_filter("input")

        assert session.selected_flow == "input"
        assert 'opacity="0.2"' in session.surface.svg
        assert 'opacity="1"' in session.surface.svg

        session.set_filter("all")
        assert 'opacity="0.2"' not in session.surface.svg

    def test_set_filter_rejects_unknown_flow(self, sample_architecture):
        """Only flow types and 'all' are accepted."""
        session = ForceGraphRenderer().create_session(sample_architecture)

        with pytest.raises(ValueError):
            session.set_filter("sideways")

    def test_zoom_does_not_move_nodes(self, sample_architecture):
        """Zoom changes the transform, never the layout."""
        session = ForceGraphRenderer().create_session(sample_architecture)
        before = session.simulation.positions()

        assert session.zoom_in() == pytest.approx(1.2)
        assert session.simulation.positions() == before
        assert "scale(1.2)" in session.surface.svg

        session.zoom_out()
        session.reset_zoom()
        assert session.surface.svg.count('transform="translate(0,0) scale(1)"') == 1

    def test_drag_maps_screen_to_layout(self, sample_architecture):
        """Pointer positions are inverted through the zoom transform."""
        session = ForceGraphRenderer().create_session(sample_architecture)
        session.transform.scale_to(2.0)
        session.transform.translate_by(10, 20)

        session.drag_start("module_src_app_ts")
        session.drag("module_src_app_ts", 210.0, 220.0)

        node = session.simulation.node("module_src_app_ts")
        assert (node.fx, node.fy) == (100.0, 100.0)

    def test_wheel_zooms_around_pointer(self, sample_architecture):
        """Scrolling up zooms in and keeps the point under the pointer fixed."""
        session = ForceGraphRenderer().create_session(sample_architecture)
        pointer = (300.0, 200.0)
        anchor = session.transform.invert(pointer)
        before = session.simulation.positions()

        k = session.wheel(-100, pointer)

        assert k == pytest.approx(2 ** 0.2)
        assert session.transform.apply(anchor) == pytest.approx(pointer)
        assert session.simulation.positions() == before

    def test_wheel_down_zooms_out(self, sample_architecture):
        """Scrolling down zooms out, clamped at the minimum scale."""
        session = ForceGraphRenderer().create_session(sample_architecture)

        assert session.wheel(100, (0.0, 0.0)) == pytest.approx(2 ** -0.2)
        assert session.wheel(100000, (0.0, 0.0)) == pytest.approx(0.1)

    def test_render_svg(self, sample_architecture):
        """The static rendering is a complete SVG with a legend."""
        svg = ForceGraphRenderer(max_ticks=50).render_svg(sample_architecture)

        assert svg.startswith("<svg ")
        assert svg.rstrip().endswith("</svg>")
        assert '<g class="legend"' in svg
        assert svg.count('<g class="node"') == len(sample_architecture.components)


class TestZoomTransform:
    """Tests for the free zoom transform."""

    def test_center_stays_fixed(self):
        """Scaling around a point keeps that point in place on screen."""
        transform = ZoomTransform()
        transform.translate_by(30, -10)
        world = transform.invert((100, 50))

        transform.scale_to(2.5, center=(100, 50))

        assert transform.apply(world) == pytest.approx((100, 50))

    def test_scale_is_clamped(self):
        """Scale stays within 0.1-4.0."""
        transform = ZoomTransform()

        transform.scale_to(10)
        assert transform.k == 4.0
        transform.scale_to(0.01)
        assert transform.k == 0.1

    def test_to_svg(self):
        """The SVG transform is translate then scale."""
        transform = ZoomTransform(k=1.5, x=10, y=-4)

        assert transform.to_svg() == "translate(10,-4) scale(1.5)"


# =============================================================================
# RENDER BOUNDARY
# =============================================================================

class TestRenderDiagram:
    """Tests for render_diagram."""

    def test_text_views(self, sample_architecture):
        """Views are accepted as enum members or strings."""
        result = render_diagram(sample_architecture, DiagramView.MERMAID_SYSTEM)
        by_name = render_diagram(sample_architecture, "mermaid-dataflow")

        assert result.ok
        assert result.content.startswith("graph LR")
        assert by_name.content.startswith("flowchart TD")

    def test_block_and_force_views(self, sample_architecture):
        """Visual views return their control objects or SVG text."""
        block = render_diagram(sample_architecture, "block")
        force_svg = render_diagram(sample_architecture, "force-svg")

        assert isinstance(block.content, BlockDiagram)
        assert force_svg.content.startswith("<svg ")

    def test_live_force_view_uses_surface(self, sample_architecture):
        """The live force view draws onto the given surface."""
        surface = SvgSurface(width=640, height=480)

        result = render_diagram(sample_architecture, "force", surface=surface)

        assert result.content.surface is surface
        assert surface.frames_drawn == 1
        assert 'width="640"' in surface.svg

    def test_unknown_view(self, sample_architecture):
        """An unknown view is an error result, not an exception."""
        result = render_diagram(sample_architecture, "pie-chart")

        assert not result.ok
        assert result.error == "Unknown diagram view: pie-chart"
        assert result.to_dict() == {"view": "pie-chart", "ok": False, "error": result.error}

    def test_render_failure_is_scoped_to_view(self, sample_architecture):
        """A failing view reports its error and leaves the snapshot intact."""
        before = sample_architecture.to_dict()

        result = render_diagram(sample_architecture, "mermaid-component", boundary_id="boundary_nowhere")

        assert not result.ok
        assert "boundary_nowhere" in result.error
        assert sample_architecture.to_dict() == before
