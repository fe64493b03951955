"""Flatten all visible layers into a single PNG.

Pipeline:
1. Keep visible image layers; fail with EmptyExportError if none remain.
2. Union the world-space bounds of every kept layer. The union, not the
   viewport, defines the output size, so off-screen content is included.
3. Allocate a transparent bitmap with (minX, minY) at its origin.
4. Draw layers in ascending zIndex: translate to center, rotate, scale, apply
   color correction, opacity and blend mode.
5. A layer whose image cannot be decoded is skipped with a warning.
6. Encode as PNG.

Given the same snapshot the output is identical pixel for pixel.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable

import PIL.Image
import numpy as np

from compoforge.config import settings
from compoforge.exceptions import DecodeError, EmptyExportError, RenderError
from compoforge.geometry import AffineTransform, Bounds, union_bounds
from compoforge.imaging.blend import composite
from compoforge.imaging.codec import decode, encode_png, to_rgba
from compoforge.imaging.color_correction import apply_color_correction, blur_padding
from compoforge.layers import Layer

logger = logging.getLogger(__name__)

SIZE_TOLERANCE = 1e-6


def exportable_layers(layers: Iterable[Layer]) -> list[Layer]:
    """Visible image layers in draw order (stable on zIndex ties)."""
    kept = [layer for layer in layers if layer.is_visible and layer.is_image()]
    return sorted(kept, key=lambda layer: layer.z_index)


def export_bounds(layers: Iterable[Layer]) -> Bounds:
    """
    Union of the transformed bounds of all exportable layers.

    :raises EmptyExportError: If no layer is visible
    """
    kept = exportable_layers(layers)
    if not kept:
        raise EmptyExportError("No visible layers to export")
    return union_bounds(layer.bounds() for layer in kept)


def output_size(bounds: Bounds) -> tuple[int, int]:
    """Pixel size of the output bitmap for a world-space box."""
    width = max(1, math.ceil(bounds.width - SIZE_TOLERANCE))
    height = max(1, math.ceil(bounds.height - SIZE_TOLERANCE))
    return width, height


def layer_bitmap(layer: Layer) -> tuple[np.ndarray, int]:
    """
    The layer's image at its intrinsic size with color correction applied.

    A blurred bitmap keeps its transparent blur margin so the soft edge can
    spread past the layer rectangle.

    :return: The RGBA bitmap and the margin in pixels on every side
    :raises DecodeError: If the layer's bytes cannot be decoded
    """
    image = decode(layer.src)
    size = (max(1, round(layer.width)), max(1, round(layer.height)))
    if image.size != size:
        image = image.convert("RGBA").resize(size, PIL.Image.Resampling.BILINEAR)
    bitmap = apply_color_correction(to_rgba(image), layer.color_correction, expand=True)
    return bitmap, blur_padding(layer.color_correction.blur)


def rasterize_layer(layer: Layer, origin: tuple[float, float], size: tuple[int, int]) -> np.ndarray:
    """
    Draw one layer into a transparent bitmap covering the output canvas.

    Args:
        layer: Layer to draw
        origin: World coordinates of the output's top-left pixel
        size: Output (width, height)

    Returns:
        RGBA float32 array (H, W, 4), straight alpha, opacity applied
    """
    bitmap, pad = layer_bitmap(layer)
    bh, bw = bitmap.shape[0] - 2 * pad, bitmap.shape[1] - 2 * pad

    # bitmap pixels -> local frame (origin at center) -> world -> output pixels
    transform = (
        AffineTransform.translation(-origin[0], -origin[1])
        @ layer.transform()
        @ AffineTransform.translation(-layer.width / 2, -layer.height / 2)
        @ AffineTransform.scaling(layer.width / bw, layer.height / bh)
        @ AffineTransform.translation(-pad, -pad)
    )

    width, height = size
    offset = transform.integer_translation()
    if offset is not None:
        # Whole-pixel placement, copy without resampling
        placed = np.zeros((height, width, 4), dtype=np.uint8)
        tx, ty = offset
        x0, y0 = max(tx, 0), max(ty, 0)
        x1, y1 = min(tx + bitmap.shape[1], width), min(ty + bitmap.shape[0], height)
        if x0 < x1 and y0 < y1:
            placed[y0:y1, x0:x1] = bitmap[y0 - ty:y1 - ty, x0 - tx:x1 - tx]
    else:
        # Pillow resamples RGBA in premultiplied space
        warped = PIL.Image.fromarray(bitmap).transform(
            size,
            PIL.Image.Transform.AFFINE,
            transform.to_pil_coefficients(),
            resample=PIL.Image.Resampling.BILINEAR,
        )
        placed = np.asarray(warped, dtype=np.uint8)

    result = placed.astype(np.float32) / 255.0
    result[..., 3] *= layer.opacity
    return result


def flatten(layers: Iterable[Layer]) -> np.ndarray:
    """
    Rasterize all visible layers into one RGBA uint8 bitmap.

    Raises:
        EmptyExportError: If no layer is visible
        RenderError: If the output bitmap cannot be allocated
    """
    kept = exportable_layers(layers)
    bounds = export_bounds(kept)
    width, height = output_size(bounds)
    if width * height > settings.MAX_EXPORT_PIXELS:
        raise RenderError(f"Export size {width}x{height} exceeds the drawing surface limit")

    try:
        canvas = np.zeros((height, width, 4), dtype=np.float32)
    except MemoryError as e:
        raise RenderError(f"Could not allocate {width}x{height} export surface") from e

    origin = (bounds.min_x, bounds.min_y)
    for layer in kept:
        try:
            source = rasterize_layer(layer, origin, (width, height))
        except DecodeError as e:
            logger.warning(f"Skipping layer {layer.id} during export: {e}")
            continue
        canvas = composite(canvas, source, layer.blend_mode)

    return np.clip(np.rint(canvas * 255.0), 0, 255).astype(np.uint8)


def export_flattened(layers: Iterable[Layer]) -> bytes:
    """
    Flatten the visible layers and encode them losslessly.

    Args:
        layers: Layer store snapshot

    Returns:
        PNG bytes

    Raises:
        EmptyExportError: If no layer is visible
        RenderError: If the output bitmap cannot be allocated
    """
    pixels = flatten(layers)
    logger.info(f"Exported composition {pixels.shape[1]}x{pixels.shape[0]}")
    return encode_png(pixels)
