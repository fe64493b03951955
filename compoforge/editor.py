"""EditorState - the application state of one composition session.

Holds the layer store, the viewport, the gesture controller and the image
service, and implements the user-level actions that combine them. Instances are
passed explicitly to whatever drives them (HTTP routes, tests); there is no
module-level editor.
"""

from __future__ import annotations

import logging
from typing import Optional

from compoforge.compositor import RenderedLayer, composite, layer_at
from compoforge.config import settings
from compoforge.exceptions import ServiceConfigurationError
from compoforge.export import export_flattened
from compoforge.gestures import GestureController
from compoforge.imaging.codec import image_size
from compoforge.imaging.mask import apply_mask
from compoforge.layers import Layer, LayerStore
from compoforge.services import ImageService
from compoforge.viewport import Viewport

logger = logging.getLogger(__name__)

NAME_PROMPT_CHARS = 10


def _prompt_name(prefix: str, prompt: str) -> str:
    return f"{prefix}: {prompt[:NAME_PROMPT_CHARS]}..."


def _check_prompt(prompt: str) -> str:
    if not prompt or not prompt.strip():
        raise ValueError("Prompt must not be empty")
    return prompt


class EditorState:
    """
    One composition: layers, viewport, gestures and AI collaborators.

    Args:
        service: Image service for generation, editing and masks (optional;
            AI actions raise ServiceConfigurationError without one)
        layers: Initial layers
        viewport: Initial viewport
    """

    def __init__(
        self,
        service: Optional[ImageService] = None,
        layers: Optional[list[Layer]] = None,
        viewport: Optional[Viewport] = None,
    ):
        self.store = LayerStore(layers)
        self.viewport = viewport or Viewport()
        self.gestures = GestureController(self)
        self.service = service

    # --- Display ---

    def view(self) -> list[RenderedLayer]:
        """Screen-space projection of the visible layers."""
        return composite(self.store.layers, self.viewport, self.store.selected_id)

    def layer_at(self, x: float, y: float) -> Optional[str]:
        """Topmost visible layer under a screen point."""
        return layer_at(self.store.layers, self.viewport, x, y)

    # --- Layers ---

    def add_image(
        self,
        data: bytes,
        name: str = "Image Layer",
        position: Optional[tuple[float, float]] = None,
    ) -> Layer:
        """
        Add an image as a new top-most layer and select it.

        The layer is INITIAL_LAYER_WIDTH wide with the image's aspect ratio.
        Without an explicit position it is centered on the visible area.

        Args:
            data: Encoded image bytes
            name: Layer name
            position: World-space top-left, optional

        Returns:
            The new layer

        Raises:
            DecodeError: If the image cannot be decoded
        """
        pixel_width, pixel_height = image_size(data)
        width = settings.INITIAL_LAYER_WIDTH
        height = width / (pixel_width / pixel_height)

        if position is None:
            cx, cy = self.viewport.screen_to_world((settings.VIEW_WIDTH / 2, settings.VIEW_HEIGHT / 2))
            position = (cx - width / 2, cy - height / 2)

        layer = Layer(
            name=name,
            src=data,
            original_src=data,
            x=position[0],
            y=position[1],
            width=width,
            height=height,
            z_index=self.store.next_z_index(),
        )
        self.store.add(layer)
        self.store.select(layer.id)
        logger.info(f"Added layer {layer.id} '{name}' ({pixel_width}x{pixel_height})")
        return layer

    def delete_layer(self, layer_id: str) -> bool:
        """Delete a layer; clears the selection if it was selected."""
        return self.store.remove(layer_id)

    def export(self) -> bytes:
        """Flatten all visible layers to PNG bytes."""
        return export_flattened(self.store.layers)

    # --- AI actions ---

    def _require_service(self) -> ImageService:
        if self.service is None:
            raise ServiceConfigurationError("No image service configured")
        return self.service

    async def generate_layer(self, prompt: str) -> Layer:
        """
        Generate an image from a prompt and add it as a new layer.

        Raises:
            ValueError: For an empty prompt
            GenerationError: If the service returns no image
            DecodeError: If the returned image cannot be decoded
        """
        service = self._require_service()
        data = await service.generate_image(_check_prompt(prompt))
        return self.add_image(data, _prompt_name("AI", prompt))

    async def edit_layer(self, layer_id: str, prompt: str) -> Layer:
        """
        Remix a layer's current image and add the result as a new layer on top.

        The source layer is left untouched.

        Raises:
            LayerNotFoundError: If the layer does not exist
            ValueError: For an empty prompt
            EditError: If the service returns no image
        """
        service = self._require_service()
        _check_prompt(prompt)
        layer = self.store.require(layer_id)
        data = await service.edit_image(layer.src, prompt)
        return self.add_image(data, _prompt_name("Edit", prompt))

    async def toggle_background(self, layer_id: str) -> Optional[Layer]:
        """
        Remove or restore a layer's background.

        A masked layer gets its original bytes back unchanged. An unmasked
        layer is masked starting from its original bytes, never from a
        previous cutout.

        Returns:
            The updated layer, or None if the layer was deleted while the
            mask request was in flight

        Raises:
            LayerNotFoundError: If the layer does not exist
            MaskError: If the service returns no mask
            DecodeError: If the image or mask cannot be decoded
        """
        layer = self.store.require(layer_id)
        original = layer.original_src if layer.original_src is not None else layer.src

        if layer.is_masked:
            logger.info(f"Restored background of layer {layer_id}")
            return self.store.update(layer_id, src=original, is_masked=False)

        service = self._require_service()
        mask = await service.generate_foreground_mask(original)
        cutout = apply_mask(original, mask)
        updated = self.store.update(layer_id, src=cutout, is_masked=True, original_src=original)
        if updated is not None:
            logger.info(f"Removed background of layer {layer_id}")
        return updated
