"""
Zoom Models
===========

``ZoomState`` is the stepped zoom level used by the static block diagram;
``ZoomTransform`` is the free affine transform of the force layout.
Both are independent of the content they scale.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ZoomState:
    """Stepped zoom level, reported as an integer percentage."""

    level: float = 1.0

    STEP = 0.2
    MIN_LEVEL = 0.2
    MAX_LEVEL = 3.0

    def zoom_in(self) -> float:
        self.level = min(self.MAX_LEVEL, round(self.level + self.STEP, 10))
        return self.level

    def zoom_out(self) -> float:
        self.level = max(self.MIN_LEVEL, round(self.level - self.STEP, 10))
        return self.level

    def reset(self) -> float:
        self.level = 1.0
        return self.level

    @property
    def percent(self) -> int:
        return round(self.level * 100)


@dataclass
class ZoomTransform:
    """Scale-then-translate transform applied to the whole rendered group."""

    k: float = 1.0
    x: float = 0.0
    y: float = 0.0

    MIN_SCALE = 0.1
    MAX_SCALE = 4.0
    ZOOM_IN_FACTOR = 1.2
    ZOOM_OUT_FACTOR = 0.8

    def scale_to(self, k: float, center: tuple[float, float] | None = None) -> None:
        """
        Set the scale, clamped to the scale extent.

        When ``center`` is given, the point under it stays fixed on screen.
        """
        k = max(self.MIN_SCALE, min(self.MAX_SCALE, k))
        if center is not None:
            cx, cy = center
            # World point under the center before scaling
            wx, wy = (cx - self.x) / self.k, (cy - self.y) / self.k
            self.x = cx - wx * k
            self.y = cy - wy * k
        self.k = k

    def scale_by(self, factor: float, center: tuple[float, float] | None = None) -> None:
        self.scale_to(self.k * factor, center)

    def translate_by(self, dx: float, dy: float) -> None:
        self.x += dx
        self.y += dy

    def reset(self) -> None:
        self.k, self.x, self.y = 1.0, 0.0, 0.0

    def apply(self, point: tuple[float, float]) -> tuple[float, float]:
        """Map a layout point to screen coordinates."""
        return point[0] * self.k + self.x, point[1] * self.k + self.y

    def invert(self, point: tuple[float, float]) -> tuple[float, float]:
        """Map a screen point back to layout coordinates."""
        return (point[0] - self.x) / self.k, (point[1] - self.y) / self.k

    def to_svg(self) -> str:
        return f"translate({self.x:g},{self.y:g}) scale({self.k:g})"
