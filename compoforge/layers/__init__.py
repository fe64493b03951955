"""
Compoforge Layer Models

Pydantic models for layers and the store that orders them.

    Layer (type: 'image' | 'text')
    ├── ColorCorrection  (post-render filter stack)
    └── BlendMode        (compositing operator)

    LayerStore           (draw order, selection, copy-on-write snapshots)
"""

from .base import BlendMode, ColorCorrection, Layer, LayerType
from .store import Direction, LayerStore


__all__ = [
    'BlendMode',
    'ColorCorrection',
    'Direction',
    'Layer',
    'LayerStore',
    'LayerType',
]
