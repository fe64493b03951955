"""Pointer gesture state machine for the canvas.

A single active pointer drives the machine. Each non-idle state carries the
anchors captured at pointer-down and nothing else, so no anchor can outlive
the gesture that set it.

States::

    Idle ──pointer_down(empty canvas)──▶ PanningViewport
    Idle ──pointer_down(visible, unlocked layer)──▶ DraggingLayer
    Idle ──handle_down(ROTATE)──▶ RotatingLayer
    Idle ──handle_down(SCALE)──▶ ScalingLayer
    any ──pointer_up / pointer_leave──▶ Idle

Wheel zoom is separate and only acts while the zoom modifier is held.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Union

from compoforge.config import settings
from compoforge.geometry import Point
from compoforge.layers import Layer, LayerStore
from compoforge.viewport import Viewport

logger = logging.getLogger(__name__)


class Handle(str, Enum):
    """Transform handles attached to the selected layer."""
    ROTATE = "rotate"
    SCALE = "scale"


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class PanningViewport:
    anchor_cursor: Point
    anchor_offset: Point


@dataclass(frozen=True)
class DraggingLayer:
    layer_id: str
    anchor_cursor: Point
    anchor_position: Point


@dataclass(frozen=True)
class RotatingLayer:
    layer_id: str
    center: Point  # Layer center in screen space
    anchor_angle: float  # Radians
    anchor_rotation: float  # Degrees


@dataclass(frozen=True)
class ScalingLayer:
    layer_id: str
    center: Point  # Layer center in screen space
    anchor_distance: float  # Screen pixels, never below MIN_ANCHOR_DISTANCE
    anchor_scale: float


GestureState = Union[Idle, PanningViewport, DraggingLayer, RotatingLayer, ScalingLayer]


class CanvasState(Protocol):
    """What the gesture controller reads and writes."""
    store: LayerStore
    viewport: Viewport


def is_editable(layer: Optional[Layer]) -> bool:
    """Whether pointer gestures may select and change the layer."""
    return layer is not None and layer.is_visible and not layer.is_locked


class GestureController:
    """Interprets pointer and wheel input as viewport and layer updates.

    All handlers are synchronous and return immediately.
    """

    def __init__(self, canvas: CanvasState):
        self.canvas = canvas
        self.state: GestureState = Idle()

    @property
    def is_idle(self) -> bool:
        return isinstance(self.state, Idle)

    def _set_state(self, state: GestureState) -> GestureState:
        if type(state) is not type(self.state):
            logger.debug(f"Gesture {type(self.state).__name__} -> {type(state).__name__}")
        self.state = state
        return state

    # --- Pointer entry points ---

    def pointer_down(self, x: float, y: float, layer_id: Optional[str] = None) -> GestureState:
        """
        Start a move (on a layer body) or a pan (on empty canvas).

        A pointer-down on a locked or hidden layer is swallowed: no selection
        change and no pan. A new pointer-down always replaces whatever gesture was active.

        Args:
            x: Cursor x in screen space
            y: Cursor y in screen space
            layer_id: Layer under the cursor, None for empty canvas
        """
        if layer_id is None:
            viewport = self.canvas.viewport
            return self._set_state(PanningViewport(
                anchor_cursor=(x, y),
                anchor_offset=(viewport.offset_x, viewport.offset_y),
            ))

        layer = self.canvas.store.get(layer_id)
        if not is_editable(layer):
            return self._set_state(Idle())

        self.canvas.store.select(layer_id)
        return self._set_state(DraggingLayer(
            layer_id=layer_id,
            anchor_cursor=(x, y),
            anchor_position=(layer.x, layer.y),
        ))

    def handle_down(self, x: float, y: float, handle: Handle) -> GestureState:
        """
        Start rotating or scaling the selected layer.

        Handles take precedence over the layer body underneath them. Only the
        selected layer has handles, and only while it is visible and unlocked.
        """
        layer = self.canvas.store.selected
        if not is_editable(layer):
            return self._set_state(Idle())

        cx, cy = self.canvas.viewport.world_to_screen(layer.center)
        if Handle(handle) is Handle.ROTATE:
            return self._set_state(RotatingLayer(
                layer_id=layer.id,
                center=(cx, cy),
                anchor_angle=math.atan2(y - cy, x - cx),
                anchor_rotation=layer.rotation,
            ))

        distance = math.hypot(x - cx, y - cy)
        return self._set_state(ScalingLayer(
            layer_id=layer.id,
            center=(cx, cy),
            anchor_distance=max(distance, settings.MIN_ANCHOR_DISTANCE),
            anchor_scale=layer.scale,
        ))

    def pointer_move(self, x: float, y: float) -> None:
        """Apply the active gesture for the current cursor position."""
        state = self.state
        store = self.canvas.store

        if isinstance(state, PanningViewport):
            dx = x - state.anchor_cursor[0]
            dy = y - state.anchor_cursor[1]
            self.canvas.viewport = self.canvas.viewport.with_offset(
                state.anchor_offset[0] + dx, state.anchor_offset[1] + dy,
            )

        elif isinstance(state, DraggingLayer):
            layer = store.get(state.layer_id)
            if not is_editable(layer):
                return
            scale = self.canvas.viewport.scale
            dx = (x - state.anchor_cursor[0]) / scale
            dy = (y - state.anchor_cursor[1]) / scale
            store.update(state.layer_id, x=state.anchor_position[0] + dx, y=state.anchor_position[1] + dy)

        elif isinstance(state, RotatingLayer):
            layer = store.get(state.layer_id)
            if not is_editable(layer):
                return
            angle = math.atan2(y - state.center[1], x - state.center[0])
            delta = (angle - state.anchor_angle) * 180 / math.pi
            store.update(state.layer_id, rotation=state.anchor_rotation + delta)

        elif isinstance(state, ScalingLayer):
            layer = store.get(state.layer_id)
            if not is_editable(layer):
                return
            distance = math.hypot(x - state.center[0], y - state.center[1])
            ratio = distance / state.anchor_distance
            store.update(state.layer_id, scale=max(settings.MIN_LAYER_SCALE, state.anchor_scale * ratio))

    def pointer_up(self) -> None:
        self._set_state(Idle())

    def pointer_leave(self) -> None:
        self._set_state(Idle())

    # --- Wheel ---

    def wheel(self, delta_y: float, zoom_modifier: bool) -> bool:
        """
        Zoom the viewport while the zoom modifier (ctrl/cmd) is held.

        Returns:
            True if the event was consumed as a zoom
        """
        if not zoom_modifier:
            return False
        self.canvas.viewport = self.canvas.viewport.zoomed(delta_y)
        return True
