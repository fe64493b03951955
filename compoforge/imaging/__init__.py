"""Pixel-level operations: codec, mask compositing, blending and color correction."""

from .blend import blend, composite
from .codec import decode, encode_png, image_size, mime_type, to_rgba
from .color_correction import apply_color_correction
from .mask import apply_mask, composite_alpha, levels_alpha

__all__ = [
    'apply_color_correction',
    'apply_mask',
    'blend',
    'composite',
    'composite_alpha',
    'decode',
    'encode_png',
    'image_size',
    'levels_alpha',
    'mime_type',
    'to_rgba',
]
