"""Per-layer color correction filter stack.

Implements the CSS filter functions used by the front end, in its fixed order:

    brightness(B%) -> contrast(C%) -> saturate(S%) -> hue-rotate(Hdeg) -> blur(Rpx)

## Input Format

RGBA uint8 arrays (H, W, 4) with straight alpha. Color matrix steps act on
RGB only; blur acts on premultiplied RGBA with a transparent surround, so edges
fade out and transparent pixels do not bleed dark halos. Each step clamps to
the valid range like SVG filter primitives.

Steps at their default value are skipped, so a default ColorCorrection
returns the input unchanged.

Usage:
    from compoforge.imaging.color_correction import apply_color_correction

    result = apply_color_correction(rgba, layer.color_correction)
"""
import math

import PIL.Image
import PIL.ImageFilter
import numpy as np

from compoforge.layers import ColorCorrection


# ============================================================================
# Color matrices
# ============================================================================

def saturate_matrix(amount: float) -> np.ndarray:
    """CSS saturate() matrix, amount 1.0 = unchanged."""
    s = amount
    return np.array([
        [0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s],
    ], dtype=np.float32)


def hue_rotate_matrix(degrees: float) -> np.ndarray:
    """CSS hue-rotate() matrix."""
    rad = degrees * math.pi / 180
    cos = math.cos(rad)
    sin = math.sin(rad)
    return np.array([
        [0.213 + cos * 0.787 - sin * 0.213, 0.715 - cos * 0.715 - sin * 0.715, 0.072 - cos * 0.072 + sin * 0.928],
        [0.213 - cos * 0.213 + sin * 0.143, 0.715 + cos * 0.285 + sin * 0.140, 0.072 - cos * 0.072 - sin * 0.283],
        [0.213 - cos * 0.213 - sin * 0.787, 0.715 - cos * 0.715 + sin * 0.715, 0.072 + cos * 0.928 + sin * 0.072],
    ], dtype=np.float32)


def _apply_matrix(color: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    return np.clip(color @ matrix.T, 0.0, 1.0)


# ============================================================================
# Individual steps (float32 RGB, 0.0-1.0)
# ============================================================================

def brightness(color: np.ndarray, percent: float) -> np.ndarray:
    return np.clip(color * (percent / 100.0), 0.0, 1.0)


def contrast(color: np.ndarray, percent: float) -> np.ndarray:
    amount = percent / 100.0
    return np.clip((color - 0.5) * amount + 0.5, 0.0, 1.0)


def saturate(color: np.ndarray, percent: float) -> np.ndarray:
    return _apply_matrix(color, saturate_matrix(percent / 100.0))


def hue_rotate(color: np.ndarray, degrees: float) -> np.ndarray:
    return _apply_matrix(color, hue_rotate_matrix(degrees))


def blur_padding(radius: float) -> int:
    """Transparent margin in pixels that holds the spread of a blur of the given radius."""
    if radius <= 0:
        return 0
    return int(math.ceil(3 * radius))


def blur(pixels: np.ndarray, radius: float, expand: bool = False) -> np.ndarray:
    """Gaussian blur of an RGBA uint8 array; radius is the standard deviation in pixels.

    Everything outside the image counts as transparent, so edges fade out like
    CSS ``blur()``.

    Args:
        pixels: RGBA uint8 array (H, W, 4)
        radius: Standard deviation in pixels
        expand: Return the result with a ``blur_padding(radius)`` margin on
            every side instead of cropping back to the input size

    Returns:
        RGBA uint8 array
    """
    pad = blur_padding(radius)
    height, width = pixels.shape[:2]
    alpha = pixels[:, :, 3:4].astype(np.float32) / 255.0
    premultiplied = pixels.astype(np.float32)
    premultiplied[:, :, :3] *= alpha
    premultiplied = np.pad(np.rint(premultiplied).astype(np.uint8), ((pad, pad), (pad, pad), (0, 0)))
    image = PIL.Image.fromarray(premultiplied)
    blurred = np.asarray(image.filter(PIL.ImageFilter.GaussianBlur(radius)), dtype=np.float32)

    result = blurred.copy()
    out_alpha = blurred[:, :, 3:4] / 255.0
    with np.errstate(divide='ignore', invalid='ignore'):
        result[:, :, :3] = np.where(out_alpha > 0, blurred[:, :, :3] / out_alpha, 0.0)
    result = np.clip(np.rint(result), 0, 255).astype(np.uint8)
    if not expand:
        result = result[pad:pad + height, pad:pad + width]
    return result


# ============================================================================
# Stack
# ============================================================================

def apply_color_correction(pixels: np.ndarray, correction: ColorCorrection, expand: bool = False) -> np.ndarray:
    """Apply a layer's color correction.

    Args:
        pixels: RGBA uint8 array (H, W, 4)
        correction: Filter settings
        expand: Keep the transparent blur margin (``blur_padding(correction.blur)``
            pixels on every side) so the blurred edge is not cut off

    Returns:
        RGBA uint8 array; the input itself if the correction is all defaults
    """
    if pixels.ndim != 3 or pixels.shape[2] != 4:
        raise ValueError(f"Expected RGBA image (H, W, 4), got shape {pixels.shape}")
    if correction.is_default():
        return pixels

    result = pixels
    defaults = ColorCorrection()
    color_steps = (
        (brightness, correction.brightness, defaults.brightness),
        (contrast, correction.contrast, defaults.contrast),
        (saturate, correction.saturation, defaults.saturation),
        (hue_rotate, correction.hue, defaults.hue),
    )
    if any(value != default for _, value, default in color_steps):
        color = pixels[:, :, :3].astype(np.float32) / 255.0
        for step, value, default in color_steps:
            if value != default:
                color = step(color, value)
        result = pixels.copy()
        result[:, :, :3] = np.clip(np.rint(color * 255.0), 0, 255).astype(np.uint8)

    if correction.blur > 0:
        result = blur(result, correction.blur, expand=expand)
    return result
