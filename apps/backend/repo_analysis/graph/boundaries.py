"""
Boundary Grouping
=================

Partitions components by layer into display boundaries.
"""

from __future__ import annotations

from collections.abc import Iterable

from ..models.component_models import BoundaryType, ComponentNode, LayerType, SystemBoundary
from .layers import LAYER_DESCRIPTIONS

BOUNDARY_PREFIX = "boundary_"


def boundary_id(layer: str) -> str:
    return f"{BOUNDARY_PREFIX}{layer}"


class BoundaryGrouper:
    """Groups components into one SystemBoundary per non-empty layer."""

    def group(self, components: Iterable[ComponentNode]) -> list[SystemBoundary]:
        """
        Build boundaries in layer display order.

        Layers outside the known set follow in first-seen order, so every
        component lands in exactly one boundary.
        """
        members: dict[str, list[str]] = {layer.value: [] for layer in LayerType}
        for component in components:
            members.setdefault(component.layer, []).append(component.id)

        boundaries = []
        for layer, component_ids in members.items():
            if not component_ids:
                continue
            boundaries.append(
                SystemBoundary(
                    id=boundary_id(layer),
                    name=f"{layer.capitalize()} Layer",
                    components=tuple(component_ids),
                    type=BoundaryType.CONTAINER.value,
                    description=(
                        f"Components in the {layer} layer handling "
                        f"{LAYER_DESCRIPTIONS.get(layer, 'miscellaneous responsibilities')}"
                    ),
                )
            )
        return boundaries
