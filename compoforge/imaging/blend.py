"""Blend modes and source-over compositing on float RGBA arrays.

Formulas follow W3C Compositing and Blending Level 1 on sRGB values (no
linearization). Arrays are float32 in 0.0-1.0 with straight alpha:
- color: (H, W, 3)
- rgba:  (H, W, 4)

Usage:
    from compoforge.imaging.blend import composite
    from compoforge.layers import BlendMode

    canvas = composite(canvas, layer_pixels, BlendMode.MULTIPLY)
"""

from __future__ import annotations

import numpy as np

from compoforge.layers import BlendMode


# ============================================================================
# Separable modes
# ============================================================================

def _screen(base: np.ndarray, overlay: np.ndarray) -> np.ndarray:
    return base + overlay - base * overlay


def _hard_light(base: np.ndarray, overlay: np.ndarray) -> np.ndarray:
    # Multiply if overlay <= 0.5, screen otherwise
    return np.where(
        overlay <= 0.5,
        base * 2 * overlay,
        _screen(base, 2 * overlay - 1),
    )


def _color_dodge(base: np.ndarray, overlay: np.ndarray) -> np.ndarray:
    with np.errstate(divide='ignore', invalid='ignore'):
        dodged = np.minimum(1.0, base / (1 - overlay))
    return np.where(base == 0, 0.0, np.where(overlay >= 1, 1.0, dodged))


def _color_burn(base: np.ndarray, overlay: np.ndarray) -> np.ndarray:
    with np.errstate(divide='ignore', invalid='ignore'):
        burned = 1 - np.minimum(1.0, (1 - base) / overlay)
    return np.where(base >= 1, 1.0, np.where(overlay <= 0, 0.0, burned))


def _soft_light(base: np.ndarray, overlay: np.ndarray) -> np.ndarray:
    d = np.where(base <= 0.25, ((16 * base - 12) * base + 4) * base, np.sqrt(base))
    return np.where(
        overlay <= 0.5,
        base - (1 - 2 * overlay) * base * (1 - base),
        base + (2 * overlay - 1) * (d - base),
    )


# ============================================================================
# Non-separable modes
# ============================================================================

def _lum(color: np.ndarray) -> np.ndarray:
    return (0.3 * color[..., 0] + 0.59 * color[..., 1] + 0.11 * color[..., 2])[..., np.newaxis]


def _clip_color(color: np.ndarray) -> np.ndarray:
    lum = _lum(color)
    low = color.min(axis=-1, keepdims=True)
    high = color.max(axis=-1, keepdims=True)
    with np.errstate(divide='ignore', invalid='ignore'):
        color = np.where(low < 0, lum + (color - lum) * lum / (lum - low), color)
        color = np.where(high > 1, lum + (color - lum) * (1 - lum) / (high - lum), color)
    # Gray colors give 0/0 above; they are exactly their luminance
    return np.clip(np.where(np.isfinite(color), color, lum), 0.0, 1.0)


def _set_lum(color: np.ndarray, lum: np.ndarray) -> np.ndarray:
    return _clip_color(color + (lum - _lum(color)))


def _sat(color: np.ndarray) -> np.ndarray:
    return color.max(axis=-1, keepdims=True) - color.min(axis=-1, keepdims=True)


def _set_sat(color: np.ndarray, sat: np.ndarray) -> np.ndarray:
    low = color.min(axis=-1, keepdims=True)
    chroma = _sat(color)
    with np.errstate(divide='ignore', invalid='ignore'):
        scaled = (color - low) * sat / chroma
    return np.where(chroma > 0, scaled, 0.0)


def blend(base: np.ndarray, overlay: np.ndarray, mode: BlendMode) -> np.ndarray:
    """Apply a blend function B(base, overlay) to color arrays.

    Args:
        base: Backdrop colors (H, W, 3), float 0-1
        overlay: Source colors (H, W, 3), float 0-1
        mode: Blend mode

    Returns:
        Blended colors (H, W, 3), float 0-1
    """
    mode = BlendMode(mode)

    if mode == BlendMode.NORMAL:
        return overlay
    elif mode == BlendMode.MULTIPLY:
        return base * overlay
    elif mode == BlendMode.SCREEN:
        return _screen(base, overlay)
    elif mode == BlendMode.OVERLAY:
        return _hard_light(overlay, base)
    elif mode == BlendMode.DARKEN:
        return np.minimum(base, overlay)
    elif mode == BlendMode.LIGHTEN:
        return np.maximum(base, overlay)
    elif mode == BlendMode.COLOR_DODGE:
        return _color_dodge(base, overlay)
    elif mode == BlendMode.COLOR_BURN:
        return _color_burn(base, overlay)
    elif mode == BlendMode.HARD_LIGHT:
        return _hard_light(base, overlay)
    elif mode == BlendMode.SOFT_LIGHT:
        return _soft_light(base, overlay)
    elif mode == BlendMode.DIFFERENCE:
        return np.abs(base - overlay)
    elif mode == BlendMode.EXCLUSION:
        return base + overlay - 2 * base * overlay
    elif mode == BlendMode.HUE:
        return _set_lum(_set_sat(overlay, _sat(base)), _lum(base))
    elif mode == BlendMode.SATURATION:
        return _set_lum(_set_sat(base, _sat(overlay)), _lum(base))
    elif mode == BlendMode.COLOR:
        return _set_lum(overlay, _lum(base))
    elif mode == BlendMode.LUMINOSITY:
        return _set_lum(base, _lum(overlay))
    raise ValueError(f"Unsupported blend mode: {mode}")


def composite(backdrop: np.ndarray, source: np.ndarray, mode: BlendMode = BlendMode.NORMAL) -> np.ndarray:
    """Blend and composite ``source`` over ``backdrop`` (source-over).

    ``Co = as*(1-ab)*Cs + as*ab*B(Cb, Cs) + (1-as)*ab*Cb``
    ``ao = as + ab*(1-as)``

    Args:
        backdrop: RGBA float32 (H, W, 4), straight alpha
        source: RGBA float32 (H, W, 4), straight alpha, same shape

    Returns:
        New RGBA float32 array, straight alpha
    """
    if backdrop.shape != source.shape:
        raise ValueError(f"Shape mismatch: backdrop {backdrop.shape}, source {source.shape}")

    cb = backdrop[..., :3]
    ab = backdrop[..., 3:4]
    cs = source[..., :3]
    a_s = source[..., 3:4]

    mixed = (1 - ab) * cs + ab * np.clip(blend(cb, cs, mode), 0.0, 1.0)
    premultiplied = a_s * mixed + (1 - a_s) * ab * cb
    alpha = a_s + ab * (1 - a_s)

    with np.errstate(divide='ignore', invalid='ignore'):
        color = np.where(alpha > 0, premultiplied / alpha, 0.0)

    return np.concatenate([color, alpha], axis=-1).astype(np.float32)
