"""
Layer Classification
====================

Assigns an architectural layer to a file path using an ordered table of
path-substring rules. The first matching rule wins; unmatched paths
belong to the business layer.
"""

from __future__ import annotations

from ..models.component_models import LayerType

LAYER_RULES: list[tuple[tuple[str, ...], LayerType]] = [
    (("/components/", "/pages/", "/views/", "/ui/"), LayerType.PRESENTATION),
    (("/services/", "/business/", "/logic/", "/api/"), LayerType.BUSINESS),
    (("/data/", "/models/", "/repositories/", "/database/"), LayerType.DATA),
    (("/config/", "/utils/", "/infrastructure/", "/lib/"), LayerType.INFRASTRUCTURE),
]

DEFAULT_LAYER = LayerType.BUSINESS

LAYER_DESCRIPTIONS = {
    LayerType.PRESENTATION.value: "user interface and user experience",
    LayerType.BUSINESS.value: "core business logic and application rules",
    LayerType.DATA.value: "data access and persistence operations",
    LayerType.INFRASTRUCTURE.value: "system utilities and external integrations",
    LayerType.EXTERNAL.value: "third-party services and external dependencies",
}


def classify_layer(file_path: str) -> str:
    """
    Classify a file path into a layer.

    The path is matched with a leading slash so that rules also fire for
    top-level directories (``components/Button.tsx``).

    Args:
        file_path: Slash-separated path relative to the repository root

    Returns:
        The layer's string value
    """
    probe = "/" + file_path.replace("\\", "/").lstrip("/")
    for patterns, layer in LAYER_RULES:
        if any(pattern in probe for pattern in patterns):
            return layer.value
    return DEFAULT_LAYER.value
