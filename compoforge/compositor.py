"""Read-only projection of the layer store for display adapters.

The front end draws each layer itself; this module only tells it where and how.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from compoforge.geometry import AffineTransform, Point
from compoforge.layers import BlendMode, Layer
from compoforge.viewport import Viewport


@dataclass(frozen=True)
class RenderedLayer:
    """Screen-space placement of one visible layer.

    Attributes:
        layer_id: Layer identifier
        z_index: Draw order key
        matrix: 3x3 affine matrix mapping the layer's local frame (origin at
            its center, intrinsic size) to screen pixels
        corners: Screen-space corners, clockwise from the unrotated top-left
        width: Intrinsic width in world units
        height: Intrinsic height in world units
        opacity: Global alpha
        blend_mode: Compositing operator
        css_filter: CSS filter string for the layer's color correction
        selected: True for the selected layer
    """
    layer_id: str
    z_index: int
    matrix: tuple[tuple[float, float, float], ...]
    corners: tuple[Point, ...]
    width: float
    height: float
    opacity: float
    blend_mode: BlendMode
    css_filter: str
    selected: bool = False

    def to_dict(self) -> dict:
        return {
            'layerId': self.layer_id,
            'zIndex': self.z_index,
            'matrix': [list(row) for row in self.matrix],
            'corners': [list(p) for p in self.corners],
            'width': self.width,
            'height': self.height,
            'opacity': self.opacity,
            'blendMode': BlendMode(self.blend_mode).value,
            'filter': self.css_filter,
            'selected': self.selected,
        }


def draw_order(layers: Iterable[Layer]) -> list[Layer]:
    """Layers sorted by ascending zIndex, ties kept in input order."""
    return sorted(layers, key=lambda layer: layer.z_index)


def screen_transform(layer: Layer, viewport: Viewport) -> AffineTransform:
    """Layer local frame to screen transform."""
    return viewport.transform() @ layer.transform()


def composite(
    layers: Iterable[Layer],
    viewport: Viewport,
    selected_id: Optional[str] = None,
) -> list[RenderedLayer]:
    """
    Project visible layers to screen space in draw order.

    Args:
        layers: Layer snapshot (any order)
        viewport: Current viewport
        selected_id: Id of the selected layer, if any

    Returns:
        One RenderedLayer per visible layer, lowest zIndex first
    """
    result = []
    for layer in draw_order(layers):
        if not layer.is_visible:
            continue
        transform = screen_transform(layer, viewport)
        half_w = layer.width / 2
        half_h = layer.height / 2
        corners = transform.forward_points(
            [(-half_w, -half_h), (half_w, -half_h), (half_w, half_h), (-half_w, half_h)]
        )
        result.append(RenderedLayer(
            layer_id=layer.id,
            z_index=layer.z_index,
            matrix=transform.to_tuple(),
            corners=tuple(corners),
            width=layer.width,
            height=layer.height,
            opacity=layer.opacity,
            blend_mode=layer.blend_mode,
            css_filter=layer.color_correction.css_filter(),
            selected=layer.id == selected_id,
        ))
    return result


def layer_at(layers: Iterable[Layer], viewport: Viewport, x: float, y: float) -> Optional[str]:
    """
    Topmost visible layer whose transformed rectangle contains a screen point.

    Locked layers are still hit (they swallow the pointer-down).

    Returns:
        Layer id, or None for empty canvas
    """
    for layer in reversed(draw_order(layers)):
        if not layer.is_visible:
            continue
        lx, ly = screen_transform(layer, viewport).inverse((x, y))
        if abs(lx) <= layer.width / 2 and abs(ly) <= layer.height / 2:
            return layer.id
    return None
