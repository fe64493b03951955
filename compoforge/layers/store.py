"""LayerStore - ordered, copy-on-write collection of layers with a single selection."""

import logging
from typing import Any, Iterator, Literal, Optional

from compoforge.exceptions import LayerNotFoundError

from .base import ColorCorrection, Layer

logger = logging.getLogger(__name__)

Direction = Literal["up", "down"]

# Field name lookup accepting both snake_case names and camelCase aliases
_FIELD_NAMES: dict[str, str] = {}
for _name, _info in Layer.model_fields.items():
    _FIELD_NAMES[_name] = _name
    if _info.alias:
        _FIELD_NAMES[_info.alias] = _name


def _sorted(layers) -> tuple[Layer, ...]:
    # sorted() is stable, so zIndex ties keep store order
    return tuple(sorted(layers, key=lambda layer: layer.z_index))


class LayerStore:
    """
    Ordered layers plus the current selection.

    The layer tuple is replaced as a whole on every mutation, so a snapshot
    taken from ``layers`` is never modified afterwards. Iteration order is
    always ascending zIndex (draw order: last paints on top).
    """

    def __init__(self, layers: Optional[list[Layer]] = None):
        self._layers: tuple[Layer, ...] = _sorted(layers or [])
        self._selected_id: Optional[str] = None

    # --- Queries ---

    @property
    def layers(self) -> tuple[Layer, ...]:
        """Current immutable snapshot in draw order."""
        return self._layers

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    @property
    def selected(self) -> Optional[Layer]:
        """The selected layer or None."""
        if self._selected_id is None:
            return None
        return self.get(self._selected_id)

    def get(self, layer_id: str) -> Optional[Layer]:
        """Get a layer by id, None if absent."""
        for layer in self._layers:
            if layer.id == layer_id:
                return layer
        return None

    def require(self, layer_id: str) -> Layer:
        """Get a layer by id.

        :raises LayerNotFoundError: If the id is unknown
        """
        layer = self.get(layer_id)
        if layer is None:
            raise LayerNotFoundError(layer_id)
        return layer

    def visible_layers(self) -> tuple[Layer, ...]:
        return tuple(layer for layer in self._layers if layer.is_visible)

    def next_z_index(self) -> int:
        """zIndex that places a new layer above all others."""
        if not self._layers:
            return 1
        return max(layer.z_index for layer in self._layers) + 1

    def __len__(self) -> int:
        return len(self._layers)

    def __iter__(self) -> Iterator[Layer]:
        return iter(self._layers)

    def __contains__(self, layer_id: object) -> bool:
        return any(layer.id == layer_id for layer in self._layers)

    # --- Mutations ---

    def add(self, layer: Layer) -> Layer:
        """Append a layer.

        :raises ValueError: If a layer with the same id already exists
        """
        if layer.id in self:
            raise ValueError(f"Layer '{layer.id}' already exists")
        self._layers = _sorted(self._layers + (layer,))
        logger.debug(f"Added layer {layer.id} at zIndex {layer.z_index}")
        return layer

    def remove(self, layer_id: str) -> bool:
        """Delete a layer, clearing the selection if it was selected.

        Returns:
            True if the layer existed
        """
        remaining = tuple(layer for layer in self._layers if layer.id != layer_id)
        if len(remaining) == len(self._layers):
            logger.debug(f"Remove ignored, layer {layer_id} not found")
            return False
        self._layers = remaining
        if self._selected_id == layer_id:
            self._selected_id = None
        logger.debug(f"Removed layer {layer_id}")
        return True

    def update(self, layer_id: str, **changes: Any) -> Optional[Layer]:
        """
        Merge field changes into a layer.

        Field names may be snake_case or camelCase. The merged layer is
        validated as a whole, so out-of-range values raise a pydantic
        ValidationError and leave the store untouched.

        Args:
            layer_id: Layer to update
            **changes: Field values to replace

        Returns:
            The updated layer, or None if the layer no longer exists (stale
            updates are ignored)

        Raises:
            ValueError: For unknown fields or an attempt to change the id
        """
        resolved = {}
        for key, value in changes.items():
            name = _FIELD_NAMES.get(key)
            if name is None:
                raise ValueError(f"Unknown layer field: {key}")
            if name == 'id':
                raise ValueError("Layer id cannot be changed")
            resolved[name] = value

        current = self.get(layer_id)
        if current is None:
            logger.debug(f"Stale update ignored for missing layer {layer_id}")
            return None

        data = current.model_dump()
        data.update(resolved)
        updated = Layer.model_validate(data)
        self._replace(updated)
        return updated

    def reset_color_correction(self, layer_id: str) -> Optional[Layer]:
        return self.update(layer_id, color_correction=ColorCorrection())

    def move_z(self, layer_id: str, direction: Direction) -> bool:
        """
        Swap a layer's zIndex with its immediate neighbor in draw order.

        Moving 'up' exchanges with the next-higher layer, 'down' with the
        next-lower one. A layer already at the top (or bottom) stays put.
        zIndex values are never renumbered.

        Returns:
            True if a swap happened

        Raises:
            LayerNotFoundError: If the id is unknown
            ValueError: For an invalid direction
        """
        if direction not in ("up", "down"):
            raise ValueError(f"Invalid direction: {direction}")

        ordered = list(self._layers)
        index = next((i for i, layer in enumerate(ordered) if layer.id == layer_id), None)
        if index is None:
            raise LayerNotFoundError(layer_id)
        if direction == "up" and index == len(ordered) - 1:
            return False
        if direction == "down" and index == 0:
            return False

        target = index + 1 if direction == "up" else index - 1
        layer, neighbor = ordered[index], ordered[target]
        ordered[index] = layer.model_copy(update={'z_index': neighbor.z_index})
        ordered[target] = neighbor.model_copy(update={'z_index': layer.z_index})
        self._layers = _sorted(ordered)
        logger.debug(f"Moved layer {layer_id} {direction} (swapped with {neighbor.id})")
        return True

    def select(self, layer_id: Optional[str]) -> None:
        """
        Select a layer, or clear the selection with None.

        :raises LayerNotFoundError: If the id is unknown
        """
        if layer_id is not None and layer_id not in self:
            raise LayerNotFoundError(layer_id)
        self._selected_id = layer_id

    def _replace(self, updated: Layer) -> None:
        self._layers = _sorted(
            updated if layer.id == updated.id else layer for layer in self._layers
        )
