"""Abstract image service consumed by the editor."""

from abc import ABC, abstractmethod


class ImageService(ABC):
    """External generative image collaborator.

    Every method is a single in-flight async call returning raw encoded image
    bytes. No retry, backoff or cancellation is done here.
    """

    @abstractmethod
    async def generate_image(self, prompt: str) -> bytes:
        """Generate a new image from a text prompt.

        :raises GenerationError: If the service returns no image
        """

    @abstractmethod
    async def edit_image(self, image: bytes, prompt: str) -> bytes:
        """Produce an edited variant of an image following a prompt.

        :raises EditError: If no image part is returned
        """

    @abstractmethod
    async def generate_foreground_mask(self, image: bytes) -> bytes:
        """Produce a luminance mask (white = subject, black = background).

        :raises MaskError: If no mask is returned
        """
