# Compoforge - Geometry kernel
"""
Pure geometry helpers for layer rectangles.

World space is Y-down; a positive rotation turns clockwise on screen.
A layer rectangle is described by the top-left of its unrotated, unscaled
bounds plus its intrinsic size. Rotation and uniform scale are applied about
the rectangle's center, scale first.

Usage:
    bounds = transformed_bounds(0, 0, 100, 50, rotation=90, scale=1.0)
    total = union_bounds([bounds, other_bounds])

    transform = layer_transform(0, 0, 100, 50, rotation=30, scale=2.0)
    world_pt = transform.forward((0, 0))   # layer center -> world
    local_pt = transform.inverse(world_pt)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Sequence

import numpy as np


Point = tuple[float, float]


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned bounding box in world coordinates."""
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @classmethod
    def from_points(cls, points: Iterable[Point]) -> Bounds:
        """Smallest box enclosing all points.

        :raises ValueError: If no points are given
        """
        pts = np.asarray(list(points), dtype=np.float64)
        if pts.size == 0:
            raise ValueError("Cannot compute bounds of an empty point set")
        return cls(
            min_x=float(pts[:, 0].min()),
            min_y=float(pts[:, 1].min()),
            max_x=float(pts[:, 0].max()),
            max_y=float(pts[:, 1].max()),
        )

    def union(self, other: Bounds) -> Bounds:
        return Bounds(
            min_x=min(self.min_x, other.min_x),
            min_y=min(self.min_y, other.min_y),
            max_x=max(self.max_x, other.max_x),
            max_y=max(self.max_y, other.max_y),
        )

    def is_close(self, other: Bounds, tolerance: float = 1e-6) -> bool:
        """Compare two boxes within a floating point tolerance."""
        return (
            math.isclose(self.min_x, other.min_x, abs_tol=tolerance)
            and math.isclose(self.min_y, other.min_y, abs_tol=tolerance)
            and math.isclose(self.max_x, other.max_x, abs_tol=tolerance)
            and math.isclose(self.max_y, other.max_y, abs_tol=tolerance)
        )


def transformed_corners(
    x: float,
    y: float,
    width: float,
    height: float,
    rotation: float = 0.0,
    scale: float = 1.0,
) -> list[Point]:
    """Corners of a rotated and scaled rectangle in world space.

    Corners are returned clockwise starting at the (unrotated) top-left.
    No angle normalization is done; sin/cos are periodic.
    """
    cx = x + width / 2
    cy = y + height / 2
    rad = rotation * math.pi / 180
    cos = math.cos(rad)
    sin = math.sin(rad)
    half_w = width / 2
    half_h = height / 2
    corners = []
    for px, py in ((-half_w, -half_h), (half_w, -half_h), (half_w, half_h), (-half_w, half_h)):
        sx = px * scale
        sy = py * scale
        corners.append((cx + sx * cos - sy * sin, cy + sx * sin + sy * cos))
    return corners


def transformed_bounds(
    x: float,
    y: float,
    width: float,
    height: float,
    rotation: float = 0.0,
    scale: float = 1.0,
) -> Bounds:
    """Axis-aligned bounds of a rectangle after scale and rotation about its center."""
    return Bounds.from_points(transformed_corners(x, y, width, height, rotation, scale))


def union_bounds(boxes: Iterable[Bounds]) -> Bounds:
    """Union of several boxes.

    :raises ValueError: If no boxes are given
    """
    result: Bounds | None = None
    for box in boxes:
        result = box if result is None else result.union(box)
    if result is None:
        raise ValueError("Cannot compute the union of no bounds")
    return result


@dataclass
class AffineTransform:
    """2D affine transform stored as a 3x3 homogeneous matrix.

    - forward(): source -> destination
    - inverse(): destination -> source

    Composition follows matrix order: ``(a @ b).forward(p) == a.forward(b.forward(p))``.
    """
    matrix: np.ndarray = field(default_factory=lambda: np.eye(3, dtype=np.float64))

    @classmethod
    def identity(cls) -> AffineTransform:
        return cls()

    @classmethod
    def translation(cls, tx: float, ty: float) -> AffineTransform:
        m = np.eye(3, dtype=np.float64)
        m[0, 2] = tx
        m[1, 2] = ty
        return cls(m)

    @classmethod
    def rotation(cls, degrees: float) -> AffineTransform:
        rad = degrees * math.pi / 180
        cos = math.cos(rad)
        sin = math.sin(rad)
        m = np.array([
            [cos, -sin, 0.0],
            [sin, cos, 0.0],
            [0.0, 0.0, 1.0],
        ], dtype=np.float64)
        return cls(m)

    @classmethod
    def scaling(cls, sx: float, sy: float | None = None) -> AffineTransform:
        m = np.eye(3, dtype=np.float64)
        m[0, 0] = sx
        m[1, 1] = sx if sy is None else sy
        return cls(m)

    def __matmul__(self, other: AffineTransform) -> AffineTransform:
        return AffineTransform(self.matrix @ other.matrix)

    def forward(self, point: Point) -> Point:
        x, y = point
        m = self.matrix
        return (
            float(m[0, 0] * x + m[0, 1] * y + m[0, 2]),
            float(m[1, 0] * x + m[1, 1] * y + m[1, 2]),
        )

    def inverse(self, point: Point) -> Point:
        return self.inverted().forward(point)

    def forward_points(self, points: Sequence[Point]) -> list[Point]:
        return [self.forward(p) for p in points]

    def inverted(self) -> AffineTransform:
        return AffineTransform(np.linalg.inv(self.matrix))

    def to_pil_coefficients(self) -> tuple[float, float, float, float, float, float]:
        """Coefficients for ``PIL.Image.transform(..., Image.AFFINE, ...)``.

        PIL maps output pixels back to input pixels, so this is the first two
        rows of the inverse matrix.
        """
        inv = np.linalg.inv(self.matrix)
        return tuple(float(v) for v in inv[:2, :].reshape(6))

    def integer_translation(self, tolerance: float = 1e-9) -> tuple[int, int] | None:
        """The (tx, ty) offset if this is a pure whole-pixel translation, else None."""
        m = self.matrix
        if not np.allclose(m[:2, :2], np.eye(2), atol=tolerance):
            return None
        tx, ty = m[0, 2], m[1, 2]
        if abs(tx - round(tx)) > tolerance or abs(ty - round(ty)) > tolerance:
            return None
        return int(round(tx)), int(round(ty))

    def to_tuple(self) -> tuple[tuple[float, float, float], ...]:
        return tuple(tuple(float(v) for v in row) for row in self.matrix)


def layer_transform(
    x: float,
    y: float,
    width: float,
    height: float,
    rotation: float = 0.0,
    scale: float = 1.0,
) -> AffineTransform:
    """Transform from a layer's local frame (origin at its center) to world space.

    Equivalent to translate(center) -> rotate -> scale. The layer image is drawn
    in the local frame at (-width/2, -height/2) with its intrinsic size.
    """
    center = AffineTransform.translation(x + width / 2, y + height / 2)
    return center @ AffineTransform.rotation(rotation) @ AffineTransform.scaling(scale)
