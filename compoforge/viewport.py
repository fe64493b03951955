"""Viewport mapping world coordinates to screen coordinates.

``screen = world * scale + offset``
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from compoforge.config import settings
from compoforge.geometry import AffineTransform, Point


class Viewport(BaseModel):
    """Viewport state (pan offset and zoom).

    Attributes:
        offset_x: Screen x of the world origin
        offset_y: Screen y of the world origin
        scale: Zoom factor within settings.MIN_ZOOM and settings.MAX_ZOOM
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    offset_x: float = Field(default=0.0, alias='offsetX')
    offset_y: float = Field(default=0.0, alias='offsetY')
    scale: float = 1.0

    @field_validator('scale')
    @classmethod
    def _check_scale(cls, v: float) -> float:
        if not settings.MIN_ZOOM <= v <= settings.MAX_ZOOM:
            raise ValueError(f"scale must be between {settings.MIN_ZOOM:g} and {settings.MAX_ZOOM:g}")
        return v

    def world_to_screen(self, point: Point) -> Point:
        x, y = point
        return x * self.scale + self.offset_x, y * self.scale + self.offset_y

    def screen_to_world(self, point: Point) -> Point:
        x, y = point
        return (x - self.offset_x) / self.scale, (y - self.offset_y) / self.scale

    def transform(self) -> AffineTransform:
        """World to screen transform."""
        return AffineTransform.translation(self.offset_x, self.offset_y) @ AffineTransform.scaling(self.scale)

    def with_offset(self, offset_x: float, offset_y: float) -> 'Viewport':
        return self.model_copy(update={'offset_x': offset_x, 'offset_y': offset_y})

    def zoomed(self, delta_y: float) -> 'Viewport':
        """Apply a wheel delta to the zoom factor.

        Scrolling up (negative delta) zooms in. The zoom pivots on the world
        origin, not on the cursor; offsets are left unchanged.

        :param delta_y: Wheel delta as reported by the input device
        """
        scale = self.scale - delta_y * settings.ZOOM_SENSITIVITY
        scale = min(max(scale, settings.MIN_ZOOM), settings.MAX_ZOOM)
        return self.model_copy(update={'scale': scale})

    def reset(self) -> 'Viewport':
        """Default viewport (no pan, no zoom)."""
        return Viewport()
