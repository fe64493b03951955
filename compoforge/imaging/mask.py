"""Background removal by merging a luminance mask into an image's alpha channel.

The mask comes from an external service as a high-contrast image (white =
foreground, black = background). Its red channel is run through a levels
curve and written into the alpha channel of the original; color channels are
left untouched.

Levels curve (black point B, white point W)::

    m <= B      -> 0
    m >= W      -> 255
    otherwise   -> floor((m - B) / (W - B) * 255)

Usage:
    from compoforge.imaging.mask import apply_mask

    cutout_png = apply_mask(original_bytes, mask_bytes)
"""

from __future__ import annotations

import logging

import PIL.Image
import numpy as np

from compoforge.config import settings

from .codec import decode, encode_png, to_rgba

logger = logging.getLogger(__name__)


def levels_alpha(values: np.ndarray, black_point: int | None = None, white_point: int | None = None) -> np.ndarray:
    """Map mask luminance to alpha with the levels curve.

    Args:
        values: uint8 array of any shape (mask luminance 0-255)
        black_point: Values at or below map to 0 (default from settings)
        white_point: Values at or above map to 255 (default from settings)

    Returns:
        uint8 alpha array of the same shape
    """
    black = settings.MASK_BLACK_POINT if black_point is None else black_point
    white = settings.MASK_WHITE_POINT if white_point is None else white_point
    if not 0 <= black < white <= 255:
        raise ValueError(f"Invalid levels points: black={black}, white={white}")

    v = values.astype(np.float64)
    ramp = np.floor((v - black) / (white - black) * 255)
    alpha = np.where(v <= black, 0.0, np.where(v >= white, 255.0, ramp))
    return alpha.astype(np.uint8)


def composite_alpha(
    original: np.ndarray,
    mask: np.ndarray,
    black_point: int | None = None,
    white_point: int | None = None,
) -> np.ndarray:
    """Replace the alpha channel of an RGBA array with the levels-adjusted mask.

    Args:
        original: RGBA uint8 array (H, W, 4)
        mask: RGBA uint8 array (H, W, 4) with the same size; channel 0 is read

    Returns:
        New RGBA uint8 array
    """
    if original.shape[:2] != mask.shape[:2]:
        raise ValueError(f"Mask shape {mask.shape[:2]} does not match image shape {original.shape[:2]}")
    result = original.copy()
    result[:, :, 3] = levels_alpha(mask[:, :, 0], black_point, white_point)
    return result


def apply_mask(
    original: bytes,
    mask: bytes,
    black_point: int | None = None,
    white_point: int | None = None,
) -> bytes:
    """
    Produce a cutout of ``original`` using a foreground mask.

    A mask of a different size is stretched to the original's exact
    dimensions (aspect ratio is not preserved).

    Args:
        original: Encoded source image
        mask: Encoded luminance mask
        black_point: Levels black point (default 50)
        white_point: Levels white point (default 200)

    Returns:
        PNG bytes with true transparency

    Raises:
        DecodeError: If either image cannot be decoded
        RenderError: If a pixel buffer cannot be produced
    """
    source_image = decode(original)
    mask_image = decode(mask)

    if mask_image.size != source_image.size:
        logger.debug(f"Stretching mask {mask_image.size} to {source_image.size}")
        mask_image = mask_image.convert("RGBA").resize(source_image.size, PIL.Image.Resampling.BILINEAR)

    result = composite_alpha(to_rgba(source_image), to_rgba(mask_image), black_point, white_point)
    return encode_png(result)
