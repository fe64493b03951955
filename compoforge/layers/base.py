"""
Layer - Transformable visual unit of a composition.

Provides:
- Identity: id, name, type
- Content: src (displayed image bytes), originalSrc (pristine upload)
- Geometry: x, y, width, height (world units, unrotated/unscaled rectangle)
- Transforms: rotation (degrees, unbounded), scale (uniform)
- Appearance: opacity, blendMode, colorCorrection, isVisible, isLocked
- Ordering: zIndex
- Background removal: isMasked

Uses Pydantic v2 with camelCase aliases for JS serialization compatibility.
Layers are frozen; every mutation produces a new instance.
"""

import base64
from enum import Enum
from typing import Any, Literal, Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field

from compoforge.geometry import AffineTransform, Bounds, layer_transform, transformed_bounds


class LayerType(str, Enum):
    """Layer type identifiers matching the front end."""
    IMAGE = "image"
    TEXT = "text"  # Reserved, no renderer


class BlendMode(str, Enum):
    """Per-layer compositing operators, spelled like their CSS counterparts."""
    NORMAL = "normal"
    MULTIPLY = "multiply"
    SCREEN = "screen"
    OVERLAY = "overlay"
    DARKEN = "darken"
    LIGHTEN = "lighten"
    COLOR_DODGE = "color-dodge"
    COLOR_BURN = "color-burn"
    HARD_LIGHT = "hard-light"
    SOFT_LIGHT = "soft-light"
    DIFFERENCE = "difference"
    EXCLUSION = "exclusion"
    HUE = "hue"
    SATURATION = "saturation"
    COLOR = "color"
    LUMINOSITY = "luminosity"

    @property
    def label(self) -> str:
        """Display name, e.g. 'Color Dodge'."""
        return self.value.replace('-', ' ').title()

    @property
    def is_separable(self) -> bool:
        return self not in (BlendMode.HUE, BlendMode.SATURATION, BlendMode.COLOR, BlendMode.LUMINOSITY)


class ColorCorrection(BaseModel):
    """
    Post-render color filter stack, always fully populated.

    Applied at render and export time in the fixed order
    brightness -> contrast -> saturation -> hue -> blur; never baked into
    the layer's pixels.
    """

    model_config = ConfigDict(frozen=True)

    brightness: float = Field(default=100, ge=0, le=200)
    contrast: float = Field(default=100, ge=0, le=200)
    saturation: float = Field(default=100, ge=0, le=200)
    hue: float = Field(default=0, ge=-180, le=180)
    blur: float = Field(default=0, ge=0, le=20)

    def is_default(self) -> bool:
        """True if every filter is a no-op."""
        return self == ColorCorrection()

    def reset(self) -> 'ColorCorrection':
        """Return the documented defaults."""
        return ColorCorrection()

    def css_filter(self) -> str:
        """CSS ``filter`` value for display adapters."""
        return (
            f"brightness({self.brightness:g}%) contrast({self.contrast:g}%) "
            f"saturate({self.saturation:g}%) hue-rotate({self.hue:g}deg) blur({self.blur:g}px)"
        )


class Layer(BaseModel):
    """
    A transformable image layer.

    Serializes to JSON format matching the front end's layer objects:
    {
        "id": "uuid",
        "name": "Image Layer",
        "type": "image",
        "src": "<base64>",
        "originalSrc": "<base64>",
        "x": 0, "y": 0, "width": 300, "height": 200,
        "rotation": 0, "scale": 1.0, "opacity": 1.0,
        "blendMode": "normal",
        "isVisible": true, "isLocked": false, "isMasked": false,
        "zIndex": 1,
        "colorCorrection": {"brightness": 100, ...}
    }
    """

    model_config = ConfigDict(
        # Allow both snake_case and camelCase input
        populate_by_name=True,
        # Every mutation goes through model_copy/model_validate
        frozen=True,
        extra='ignore',
    )

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = Field(default='Layer')
    layer_type: Literal["image", "text"] = Field(default="image", alias="type")

    # Content
    src: bytes = Field(default=b'', repr=False)
    original_src: Optional[bytes] = Field(default=None, alias='originalSrc', repr=False)

    # Geometry (world units)
    x: float = Field(default=0.0)
    y: float = Field(default=0.0)
    width: float = Field(default=300.0, gt=0)
    height: float = Field(default=300.0, gt=0)

    # Transform (applied around layer center, scale first)
    rotation: float = Field(default=0.0)
    scale: float = Field(default=1.0, gt=0)

    # Appearance
    opacity: float = Field(default=1.0, ge=0.0, le=1.0)
    blend_mode: BlendMode = Field(default=BlendMode.NORMAL, alias='blendMode')
    is_visible: bool = Field(default=True, alias='isVisible')
    is_locked: bool = Field(default=False, alias='isLocked')
    is_masked: bool = Field(default=False, alias='isMasked')

    z_index: int = Field(default=0, alias='zIndex')
    color_correction: ColorCorrection = Field(default_factory=ColorCorrection, alias='colorCorrection')

    @property
    def center(self) -> tuple[float, float]:
        """Center of the layer rectangle in world space."""
        return self.x + self.width / 2, self.y + self.height / 2

    def bounds(self) -> Bounds:
        """Axis-aligned world bounds after rotation and scale."""
        return transformed_bounds(self.x, self.y, self.width, self.height, self.rotation, self.scale)

    def transform(self) -> AffineTransform:
        """Local frame (origin at center) to world transform."""
        return layer_transform(self.x, self.y, self.width, self.height, self.rotation, self.scale)

    def has_transform(self) -> bool:
        """Check if this layer has any transform (rotation or non-unit scale)."""
        return self.rotation != 0 or self.scale != 1.0

    def is_image(self) -> bool:
        return self.layer_type == LayerType.IMAGE.value

    def to_api_dict(self, *, include_content: bool = True) -> dict[str, Any]:
        """
        Convert to API response dictionary.

        Uses camelCase keys. Image bytes are base64 encoded.

        Args:
            include_content: If False, excludes src and originalSrc

        Returns:
            Dict matching the front end's layer format
        """
        data = self.model_dump(by_alias=True, mode='json', exclude={'src', 'original_src'})
        if include_content:
            data['src'] = base64.b64encode(self.src).decode('ascii')
            data['originalSrc'] = (
                base64.b64encode(self.original_src).decode('ascii')
                if self.original_src is not None else None
            )
        return data

    @classmethod
    def from_api_dict(cls, data: dict[str, Any]) -> 'Layer':
        """
        Create a layer from an API dictionary.

        Accepts both camelCase and snake_case keys; image content is expected
        as base64 text.
        """
        data = dict(data)
        for key in ('src', 'originalSrc', 'original_src'):
            if isinstance(data.get(key), str):
                data[key] = base64.b64decode(data[key])
        return cls.model_validate(data)
