"""
Diagram Styles
==============

Colors, icons and classification helpers shared by the renderers.
"""

from __future__ import annotations

from enum import Enum

from ..models.component_models import ComponentNode, ComponentType, LayerType


class ComplexityLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FlowType(Enum):
    """Data-flow role of a component."""

    INPUT = "input"
    PROCESS = "process"
    OUTPUT = "output"
    STORAGE = "storage"


COMPONENT_ICONS = {
    ComponentType.CLASS.value: "🏗️",
    ComponentType.FUNCTION.value: "⚡",
    ComponentType.MODULE.value: "📦",
    ComponentType.SERVICE.value: "🔧",
    ComponentType.COMPONENT.value: "🧩",
    ComponentType.CONFIG.value: "⚙️",
    ComponentType.EXTERNAL.value: "🌐",
}
DEFAULT_ICON = "📄"

COMPLEXITY_MARKERS = {
    ComplexityLevel.LOW: "🟢",
    ComplexityLevel.MEDIUM: "🟡",
    ComplexityLevel.HIGH: "🔴",
}

# (fill, stroke) pairs
MERMAID_LAYER_STYLES = {
    LayerType.PRESENTATION.value: ("#e1f5fe", "#01579b"),
    LayerType.BUSINESS.value: ("#f3e5f5", "#4a148c"),
    LayerType.DATA.value: ("#e8f5e8", "#1b5e20"),
    LayerType.INFRASTRUCTURE.value: ("#fff3e0", "#e65100"),
    LayerType.EXTERNAL.value: ("#ffebee", "#b71c1c"),
}

MERMAID_TYPE_STYLES = {
    ComponentType.CLASS.value: ("#e1f5fe", "#01579b"),
    ComponentType.FUNCTION.value: ("#f3e5f5", "#4a148c"),
    ComponentType.MODULE.value: ("#e8f5e8", "#1b5e20"),
    ComponentType.SERVICE.value: ("#fff3e0", "#e65100"),
    ComponentType.COMPONENT.value: ("#ede9fe", "#7c3aed"),
    ComponentType.CONFIG.value: ("#ffebee", "#b71c1c"),
}

MERMAID_FLOW_STYLES = {
    FlowType.INPUT.value: ("#e8f5e8", "#2e7d32"),
    FlowType.PROCESS.value: ("#e3f2fd", "#1565c0"),
    FlowType.OUTPUT.value: ("#fff3e0", "#ef6c00"),
    FlowType.STORAGE.value: ("#f3e5f5", "#7b1fa2"),
}

BLOCK_LAYER_COLORS = {
    LayerType.PRESENTATION.value: ("#dbeafe", "#3b82f6"),
    LayerType.BUSINESS.value: ("#f3e8ff", "#8b5cf6"),
    LayerType.DATA.value: ("#dcfce7", "#22c55e"),
    LayerType.INFRASTRUCTURE.value: ("#fed7aa", "#f97316"),
    LayerType.EXTERNAL.value: ("#fecaca", "#ef4444"),
}

BLOCK_TYPE_COLORS = {
    ComponentType.CLASS.value: ("#e0f2fe", "#0891b2"),
    ComponentType.FUNCTION.value: ("#fef3c7", "#f59e0b"),
    ComponentType.MODULE.value: ("#e7e5e4", "#78716c"),
    ComponentType.SERVICE.value: ("#ecfdf5", "#10b981"),
    ComponentType.COMPONENT.value: ("#ede9fe", "#7c3aed"),
    ComponentType.CONFIG.value: ("#fef2f2", "#dc2626"),
}

BLOCK_TYPE_LETTERS = {
    ComponentType.CLASS.value: "C",
    ComponentType.FUNCTION.value: "F",
    ComponentType.MODULE.value: "M",
    ComponentType.SERVICE.value: "S",
    ComponentType.COMPONENT.value: "R",
    ComponentType.CONFIG.value: "⚙",
}

COMPLEXITY_COLORS = {
    ComplexityLevel.LOW: "#22c55e",
    ComplexityLevel.MEDIUM: "#f59e0b",
    ComplexityLevel.HIGH: "#ef4444",
}

# (fill, stroke, icon)
FLOW_STYLES = {
    FlowType.INPUT.value: ("#22c55e", "#16a34a", "📥"),
    FlowType.PROCESS.value: ("#3b82f6", "#2563eb", "⚙️"),
    FlowType.OUTPUT.value: ("#f59e0b", "#d97706", "📤"),
    FlowType.STORAGE.value: ("#8b5cf6", "#7c3aed", "💾"),
}


def complexity_level(complexity: int) -> ComplexityLevel:
    """Low at 2 or less, medium up to 5, high above."""
    if complexity <= 2:
        return ComplexityLevel.LOW
    if complexity <= 5:
        return ComplexityLevel.MEDIUM
    return ComplexityLevel.HIGH


def complexity_marker(complexity: int) -> str:
    return COMPLEXITY_MARKERS[complexity_level(complexity)]


def component_icon(component_type: str) -> str:
    return COMPONENT_ICONS.get(component_type, DEFAULT_ICON)


def classify_flow(component: ComponentNode) -> str:
    """
    Infer a component's data-flow role from its kind, name and layer.

    Storage wins over input, input over output; everything else processes.
    """
    name = component.name.lower()
    if component.type == ComponentType.CONFIG.value or "store" in name:
        return FlowType.STORAGE.value
    if component.layer == LayerType.PRESENTATION.value or "input" in name:
        return FlowType.INPUT.value
    if component.layer == LayerType.DATA.value or "output" in name:
        return FlowType.OUTPUT.value
    return FlowType.PROCESS.value


def truncate(text: str, max_length: int) -> str:
    """Cut text to ``max_length`` characters, ending in an ellipsis when cut."""
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."
