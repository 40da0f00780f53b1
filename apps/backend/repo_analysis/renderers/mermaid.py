"""
Mermaid Renderer
================

Renders an architecture snapshot as Mermaid graph-description text.

Views:
- system: boundaries inside one system subgraph, external packages
  pointing at it
- component: every component (or one boundary's components) with
  detailed labels, styled by component type
- c4: boundaries as subgraphs with compact component labels, styled by
  layer
- dataflow: components classified into input/process/output/storage
"""

from __future__ import annotations

from ..errors import RenderError
from ..extraction.base import file_component_id, sanitize
from ..graph.graph_builder import FILE_COMPONENT_PREFIXES, DependencyResolver
from ..models.architecture_data import ArchitectureData
from ..models.component_models import ComponentNode, RelationshipType
from .styles import (
    FLOW_STYLES,
    MERMAID_FLOW_STYLES,
    MERMAID_LAYER_STYLES,
    MERMAID_TYPE_STYLES,
    classify_flow,
    complexity_marker,
    component_icon,
)

ARROWS = {
    RelationshipType.IMPORTS.value: "-->",
    RelationshipType.CALLS.value: "-.->",
    RelationshipType.EXTENDS.value: "==>",
    RelationshipType.IMPLEMENTS.value: "==>",
    RelationshipType.USES.value: "-->",
    RelationshipType.CONFIGURES.value: "-->",
}
DEFAULT_ARROW = "-->"

DATA_FLOW_TYPES = {RelationshipType.USES.value, RelationshipType.CALLS.value}

INDENT = "    "


def escape_label(text: str) -> str:
    """Make text safe inside a quoted Mermaid label."""
    return text.replace('"', "#quot;").replace("\n", "<br/>")


def arrow_for(relationship_type: str) -> str:
    return ARROWS.get(relationship_type, DEFAULT_ARROW)


def compact_label(component: ComponentNode) -> str:
    return escape_label(
        f"{component_icon(component.type)} {component.name}<br/>"
        f"{component.type} {complexity_marker(component.complexity)}"
    )


def detailed_label(component: ComponentNode) -> str:
    return escape_label(
        f"{component_icon(component.type)} {component.name}<br/>"
        f"{component.type}<br/>"
        f"{component.lines} lines {complexity_marker(component.complexity)}"
    )


def _class_defs(styles: dict[str, tuple[str, str]], stroke_width: str = "2px") -> list[str]:
    return [
        f"{INDENT}classDef {name} fill:{fill},stroke:{stroke},stroke-width:{stroke_width}"
        for name, (fill, stroke) in styles.items()
    ]


class MermaidRenderer:
    """Stateless Mermaid text renderer."""

    def render_system(self, data: ArchitectureData) -> str:
        """System overview: one node per boundary, external dependencies around it."""
        system_name = escape_label(self._system_name(data))
        lines = ["graph LR", f'{INDENT}subgraph system["{system_name} System"]']
        for boundary in data.boundaries:
            lines.append(
                f'{INDENT * 2}{boundary.id}["{escape_label(boundary.name)}<br/>'
                f'{len(boundary.components)} components"]'
            )
        lines.append(f"{INDENT}end")
        lines.append("")

        externals = self.external_dependencies(data)
        for node_id, name in externals:
            lines.append(f'{INDENT}{node_id}["{escape_label(name)}"]')
            lines.append(f"{INDENT}{node_id} --> system")
        lines.append("")

        lines.append(f"{INDENT}classDef system fill:#e3f2fd,stroke:#1976d2,stroke-width:3px")
        lines.append(f"{INDENT}classDef container fill:#f3e5f5,stroke:#7b1fa2,stroke-width:2px")
        lines.append(f"{INDENT}classDef external fill:#ffebee,stroke:#d32f2f,stroke-width:2px")
        lines.append("")
        lines.extend(f"{INDENT}class {boundary.id} container" for boundary in data.boundaries)
        lines.extend(f"{INDENT}class {node_id} external" for node_id, _ in externals)
        lines.append(f"{INDENT}class system system")
        return "\n".join(lines) + "\n"

    def render_component(self, data: ArchitectureData, boundary_id: str | None = None) -> str:
        """
        Component view, optionally scoped to one boundary.

        Raises:
            RenderError: If ``boundary_id`` names no boundary in the snapshot
        """
        components = list(data.components)
        if boundary_id is not None:
            boundary = data.get_boundary(boundary_id)
            if boundary is None:
                raise RenderError(f"Unknown boundary: {boundary_id}")
            members = set(boundary.components)
            components = [c for c in components if c.id in members]

        lines = ["graph TD"]
        lines.extend(f'{INDENT}{c.id}["{detailed_label(c)}"]' for c in components)
        lines.append("")
        lines.extend(self._edges(data, {c.id for c in components}))
        lines.append("")
        lines.extend(_class_defs(MERMAID_TYPE_STYLES))
        lines.append("")
        lines.extend(f"{INDENT}class {c.id} {c.type}" for c in components)
        return "\n".join(lines) + "\n"

    def render_c4(self, data: ArchitectureData) -> str:
        """C4-style view: each boundary as a subgraph of its components."""
        lines = ["graph TB"]
        placed: set[str] = set()
        for boundary in data.boundaries:
            lines.append(f'{INDENT}subgraph {boundary.id}["{escape_label(boundary.name)}"]')
            for component_id in boundary.components:
                component = data.get_component(component_id)
                if component is not None:
                    lines.append(f'{INDENT * 2}{component.id}["{compact_label(component)}"]')
                    placed.add(component.id)
            lines.append(f"{INDENT}end")
            lines.append("")

        for component in data.components:
            if component.id not in placed:
                lines.append(f'{INDENT}{component.id}["{compact_label(component)}"]')
        lines.append("")

        lines.extend(self._edges(data, None))
        lines.append("")
        lines.extend(_class_defs(MERMAID_LAYER_STYLES))
        lines.append("")
        lines.extend(f"{INDENT}class {c.id} {c.layer}" for c in data.components)
        return "\n".join(lines) + "\n"

    def render_dataflow(self, data: ArchitectureData) -> str:
        """Data-flow view: components by flow role, only uses/calls edges."""
        lines = ["flowchart TD"]
        roles = {c.id: classify_flow(c) for c in data.components}
        for component in data.components:
            label = escape_label(f"{FLOW_STYLES[roles[component.id]][2]} {component.name}")
            lines.append(f'{INDENT}{component.id}["{label}"]')
        lines.append("")

        for rel in data.relationships:
            if rel.type in DATA_FLOW_TYPES and rel.from_id in roles and rel.to_id in roles:
                lines.append(f"{INDENT}{rel.from_id} --> {rel.to_id}")
        lines.append("")

        lines.extend(_class_defs(MERMAID_FLOW_STYLES))
        lines.append("")
        lines.extend(f"{INDENT}class {component_id} {role}" for component_id, role in roles.items())
        return "\n".join(lines) + "\n"

    def external_dependencies(self, data: ArchitectureData) -> list[tuple[str, str]]:
        """
        (node id, name) pairs for file-level dependencies that resolve to
        no component of the snapshot.
        """
        resolver = DependencyResolver.from_components(data.components)
        file_level = [
            c for c in data.components
            if any(c.id == file_component_id(prefix, c.file) for prefix in FILE_COMPONENT_PREFIXES)
        ]
        externals = []
        seen_ids: set[str] = set()
        for name in resolver.external_dependencies(file_level):
            node_id = f"ext_{sanitize(name)}"
            if node_id in seen_ids:
                continue
            seen_ids.add(node_id)
            externals.append((node_id, name))
        return externals

    def _edges(self, data: ArchitectureData, scope: set[str] | None) -> list[str]:
        lines = []
        for rel in data.relationships:
            if scope is not None and (rel.from_id not in scope or rel.to_id not in scope):
                continue
            lines.append(f"{INDENT}{rel.from_id} {arrow_for(rel.type)} {rel.to_id}")
        return lines

    def _system_name(self, data: ArchitectureData) -> str:
        source = data.metadata.source_identifier.rstrip("/")
        return source.rsplit("/", 1)[-1] or "Repository"
