"""Shared fixtures for compoforge tests.

Images are built in memory with Pillow; the image service is replaced by an
in-process fake so no test touches the network.
"""

import io
from typing import Callable, Optional

import numpy as np
import PIL.Image
import pytest

from compoforge.editor import EditorState
from compoforge.exceptions import EditError, GenerationError, MaskError
from compoforge.services import ImageService


def png_from_pixels(pixels: np.ndarray) -> bytes:
    """Encode an RGBA (or RGB / L) uint8 array as PNG."""
    output = io.BytesIO()
    PIL.Image.fromarray(pixels).save(output, format="png")
    return output.getvalue()


def solid_png(color=(255, 0, 0, 255), size=(8, 8)) -> bytes:
    """Encode a single-color RGBA image of (width, height)."""
    output = io.BytesIO()
    PIL.Image.new("RGBA", size, tuple(color)).save(output, format="png")
    return output.getvalue()


def read_png(data: bytes) -> np.ndarray:
    """Decode PNG bytes to an RGBA uint8 array."""
    return np.array(PIL.Image.open(io.BytesIO(data)).convert("RGBA"))


class FakeImageService(ImageService):
    """In-process ImageService returning canned images.

    A result of None makes the matching call raise its service error, as the
    real service does when the model returns no image.
    """

    def __init__(
        self,
        generated: Optional[bytes] = None,
        edited: Optional[bytes] = None,
        mask: Optional[bytes] = None,
    ):
        self.generated = generated
        self.edited = edited
        self.mask = mask
        self.calls: list[tuple[str, object]] = []
        # Called with the image before the mask is returned
        self.before_mask: Optional[Callable[[bytes], None]] = None

    async def generate_image(self, prompt: str) -> bytes:
        self.calls.append(("generate", prompt))
        if self.generated is None:
            raise GenerationError("No image generated")
        return self.generated

    async def edit_image(self, image: bytes, prompt: str) -> bytes:
        self.calls.append(("edit", (image, prompt)))
        if self.edited is None:
            raise EditError("Model did not return an image.")
        return self.edited

    async def generate_foreground_mask(self, image: bytes) -> bytes:
        self.calls.append(("mask", image))
        if self.before_mask is not None:
            self.before_mask(image)
        if self.mask is None:
            raise MaskError("Model did not return a mask.")
        return self.mask


@pytest.fixture
def make_png():
    """Factory for solid-color PNG bytes: make_png(color, size)."""
    return solid_png


@pytest.fixture
def red_png():
    """Opaque red 20x10 PNG."""
    return solid_png((255, 0, 0, 255), (20, 10))


@pytest.fixture
def half_mask_png():
    """20x10 mask: left half white (foreground), right half black."""
    data = np.zeros((10, 20, 3), dtype=np.uint8)
    data[:, :10] = 255
    return png_from_pixels(data)


@pytest.fixture
def fake_service(half_mask_png):
    """Fake service returning a blue 64x64 image, a green 40x20 edit and a half mask."""
    return FakeImageService(
        generated=solid_png((0, 0, 255, 255), (64, 64)),
        edited=solid_png((0, 255, 0, 255), (40, 20)),
        mask=half_mask_png,
    )


@pytest.fixture
def editor(fake_service):
    """Empty editor wired to the fake service."""
    return EditorState(service=fake_service)
