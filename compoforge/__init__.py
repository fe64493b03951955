"""
Compoforge - Layered image compositor engine.

Layers are placed on a 2D world canvas, transformed by pointer gestures,
optionally cut out with AI foreground masks and flattened into one PNG.
"""

from .editor import EditorState
from .exceptions import (
    CompoforgeError,
    DecodeError,
    EditError,
    EmptyExportError,
    GenerationError,
    LayerNotFoundError,
    MaskError,
    RenderError,
    ServiceConfigurationError,
    ServiceError,
)
from .export import export_flattened
from .geometry import AffineTransform, Bounds, transformed_bounds, union_bounds
from .gestures import GestureController, Handle
from .imaging.mask import apply_mask
from .compositor import RenderedLayer, composite, layer_at
from .layers import BlendMode, ColorCorrection, Layer, LayerStore, LayerType
from .viewport import Viewport

__all__ = [
    # Editor
    "EditorState",
    # Layers
    "BlendMode",
    "ColorCorrection",
    "Layer",
    "LayerStore",
    "LayerType",
    "Viewport",
    # Geometry
    "AffineTransform",
    "Bounds",
    "transformed_bounds",
    "union_bounds",
    # Gestures
    "GestureController",
    "Handle",
    # Rendering
    "RenderedLayer",
    "apply_mask",
    "composite",
    "export_flattened",
    "layer_at",
    # Errors
    "CompoforgeError",
    "DecodeError",
    "EditError",
    "EmptyExportError",
    "GenerationError",
    "LayerNotFoundError",
    "MaskError",
    "RenderError",
    "ServiceConfigurationError",
    "ServiceError",
]

__version__ = "0.1.0"
