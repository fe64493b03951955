"""
Decoding and encoding of layer image bytes.

All pixel work in compoforge happens on numpy RGBA arrays:
- Shape: (height, width, 4)
- dtype: np.uint8, values 0-255, straight (non-premultiplied) alpha
"""

from __future__ import annotations

import io

import PIL.Image
import filetype
import numpy as np

from compoforge.exceptions import DecodeError, RenderError

DEFAULT_MIME = "image/png"


def decode(data: bytes) -> PIL.Image.Image:
    """
    Decodes image bytes into a fully loaded PIL image.

    :param data: Encoded image (PNG, JPEG, WEBP, ...)
    :return: The PIL image in its native mode
    :raises DecodeError: If the data is empty, malformed or truncated
    """
    if not data:
        raise DecodeError("Empty image data")
    try:
        image = PIL.Image.open(io.BytesIO(data))
        image.load()
    except (PIL.UnidentifiedImageError, OSError, ValueError) as e:
        raise DecodeError(f"Invalid or damaged image data: {e}") from e
    return image


def to_rgba(image: PIL.Image.Image) -> np.ndarray:
    """
    Converts a decoded image into an RGBA uint8 pixel buffer.

    :raises RenderError: If the pixel buffer cannot be produced
    """
    try:
        rgba = image if image.mode == "RGBA" else image.convert("RGBA")
        return np.array(rgba, dtype=np.uint8)
    except (OSError, ValueError) as e:
        raise RenderError(f"Pixel buffer unavailable for mode {image.mode}: {e}") from e


def image_size(data: bytes) -> tuple[int, int]:
    """
    Returns the (width, height) of encoded image data.

    :raises DecodeError: If the data cannot be decoded
    """
    image = decode(data)
    return image.width, image.height


def encode_png(pixels: np.ndarray) -> bytes:
    """
    Encodes an RGBA uint8 array losslessly as PNG.

    :param pixels: Array of shape (H, W, 4)
    :return: PNG bytes
    """
    if pixels.ndim != 3 or pixels.shape[2] != 4:
        raise ValueError(f"Expected RGBA image (H, W, 4), got shape {pixels.shape}")
    if pixels.dtype != np.uint8:
        raise ValueError(f"Expected uint8 dtype, got {pixels.dtype}")
    output_stream = io.BytesIO()
    PIL.Image.fromarray(pixels).save(output_stream, format="png")
    return output_stream.getvalue()


def mime_type(data: bytes) -> str:
    """
    Guesses the MIME type of encoded image data.

    :return: e.g. 'image/jpeg', or 'image/png' if unknown
    """
    kind = filetype.guess(data)
    if kind is None or not kind.mime.startswith("image/"):
        return DEFAULT_MIME
    return kind.mime
