"""External image services (generation, editing, foreground masks)."""

from .base import ImageService
from .gemini import MASK_PROMPT, GeminiImageService

__all__ = [
    'GeminiImageService',
    'ImageService',
    'MASK_PROMPT',
]
