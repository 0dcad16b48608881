"""
Displacement field buffer.

The buffer stores a 2D refraction vector field as an RGBA ``uint8`` image for
an image-based displacement filter. Horizontal displacement lives in the red
channel, vertical displacement in the blue channel; green is unused and alpha
is always opaque. A channel value of 127 means "no displacement".

All operations are additive: every call adds its contribution on top of what
is already stored, rounding to the nearest integer and clipping to [0, 255].
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, NamedTuple, Tuple, Union

import numpy as np

from ..errors import InvalidArgument
from .easing import Easing, linear, quadratic

NEUTRAL_VALUE = 127
DISPLACEMENT_SCALE = 127.0

HORIZONTAL_CHANNEL = 0  # R
UNUSED_CHANNEL = 1  # G
VERTICAL_CHANNEL = 2  # B
ALPHA_CHANNEL = 3

DisplacementFn = Callable[[np.ndarray, np.ndarray, int, int], Union[np.ndarray, float]]


class Displacement(ABC):
    """Displacement magnitude over a transformation rectangle."""

    @abstractmethod
    def evaluate(self, x: np.ndarray, y: np.ndarray, width: int, height: int) -> np.ndarray:
        """
        Magnitude at local pixel coordinates.

        ``x`` and ``y`` are broadcastable arrays of coordinates relative to the
        rectangle origin; ``width`` and ``height`` are the rectangle size.
        """


@dataclass(frozen=True)
class ConstantDisplacement(Displacement):
    value: float

    def evaluate(self, x: np.ndarray, y: np.ndarray, width: int, height: int) -> np.ndarray:
        shape = np.broadcast(x, y).shape
        return np.full(shape, float(self.value), dtype=np.float64)


@dataclass(frozen=True)
class FieldDisplacement(Displacement):
    """Position-dependent magnitude computed by ``fn(x, y, width, height)``."""

    fn: DisplacementFn

    def evaluate(self, x: np.ndarray, y: np.ndarray, width: int, height: int) -> np.ndarray:
        shape = np.broadcast(x, y).shape
        values = np.asarray(self.fn(x, y, width, height), dtype=np.float64)
        return np.broadcast_to(values, shape)


def as_displacement(value: Union[Displacement, DisplacementFn, float]) -> Displacement:
    """Wrap a number or callable into the matching :class:`Displacement` variant."""
    if isinstance(value, Displacement):
        return value
    if callable(value):
        return FieldDisplacement(value)
    return ConstantDisplacement(float(value))


class TransformDirection(str, Enum):
    """Axis and orientation of the gradient inside a transformation rectangle."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @classmethod
    def parse(cls, value: Union[str, "TransformDirection"]) -> "TransformDirection":
        if isinstance(value, TransformDirection):
            return value
        key = str(value).strip().lower()
        aliases = {"top": "up", "bottom": "down"}
        try:
            return cls(aliases.get(key, key))
        except ValueError:
            raise InvalidArgument(f"Unknown transformation direction: {value!r}") from None


Rect = Tuple[int, int, int, int]


@dataclass(frozen=True)
class EdgeTransformation:
    """
    Directional displacement request over a rectangle ``(x, y, width, height)``.

    The gradient position is 1 at the edge the direction points to and falls
    towards the opposite edge; ``easing`` shapes it before scaling.
    """

    horizontal: Displacement
    vertical: Displacement
    direction: TransformDirection
    rect: Rect
    easing: Easing = linear

    def __post_init__(self) -> None:
        object.__setattr__(self, "horizontal", as_displacement(self.horizontal))
        object.__setattr__(self, "vertical", as_displacement(self.vertical))
        object.__setattr__(self, "direction", TransformDirection.parse(self.direction))
        x, y, w, h = (int(round(v)) for v in self.rect)
        if w < 0 or h < 0:
            raise InvalidArgument(f"Transformation rectangle must have non-negative size, got {self.rect}")
        object.__setattr__(self, "rect", (x, y, w, h))


class BorderGeometry(NamedTuple):
    normal_x: np.ndarray
    normal_y: np.ndarray
    distance: np.ndarray


def clamp_radius(radius: float, width: float, height: float) -> float:
    if radius < 0:
        raise InvalidArgument(f"radius must be >= 0, got {radius}")
    return min(float(radius), min(float(width), float(height)) / 2.0)


_EDGE_NORMALS = np.array([[-1.0, 0.0], [1.0, 0.0], [0.0, -1.0], [0.0, 1.0]])


def border_normal_and_distance(
    x: Union[np.ndarray, float],
    y: Union[np.ndarray, float],
    width: float,
    height: float,
    radius: float,
) -> BorderGeometry:
    """
    Outward normal and signed distance to the border of a rounded rectangle.

    ``x`` and ``y`` are pixel indices; the pixel centre ``(x + 0.5, y + 0.5)``
    is measured against the rectangle ``[0, width] x [0, height]``. Inside a
    corner square the normal points radially away from the arc centre and the
    distance is measured to the arc; elsewhere the nearest straight edge wins.
    Where several edges are equally near, their normals are averaged and
    renormalised (zero where opposite edges cancel). Distances are positive
    inside the shape.
    """
    if width <= 0 or height <= 0:
        raise InvalidArgument(f"width and height must be > 0, got {width}x{height}")
    r = clamp_radius(radius, width, height)

    px, py = np.broadcast_arrays(
        np.asarray(x, dtype=np.float64) + 0.5,
        np.asarray(y, dtype=np.float64) + 0.5,
    )

    # Straight edges: left, right, top, bottom.
    edge_distances = np.stack([px, width - px, py, height - py])
    distance = np.min(edge_distances, axis=0)
    tied = np.moveaxis(edge_distances == distance, 0, -1).astype(np.float64)
    summed = tied @ _EDGE_NORMALS
    summed_length = np.hypot(summed[..., 0], summed[..., 1])
    safe_length = np.where(summed_length > 0, summed_length, 1.0)
    normal_x = summed[..., 0] / safe_length
    normal_y = summed[..., 1] / safe_length

    if r > 0:
        in_x = (px < r) | (px > width - r)
        in_y = (py < r) | (py > height - r)
        in_corner = in_x & in_y
        if np.any(in_corner):
            cx = np.where(px < r, r, width - r)
            cy = np.where(py < r, r, height - r)
            dx = px - cx
            dy = py - cy
            length = np.hypot(dx, dy)
            safe = np.where(length > 0, length, 1.0)
            corner_nx = np.where(length > 0, dx / safe, 0.0)
            corner_ny = np.where(length > 0, dy / safe, 0.0)
            normal_x = np.where(in_corner, corner_nx, normal_x)
            normal_y = np.where(in_corner, corner_ny, normal_y)
            distance = np.where(in_corner, r - length, distance)

    return BorderGeometry(
        normal_x=np.asarray(normal_x, dtype=np.float64),
        normal_y=np.asarray(normal_y, dtype=np.float64),
        distance=np.asarray(distance, dtype=np.float64),
    )


class DisplacementField:
    """
    Mutable RGBA displacement buffer.

    A field is owned by the code that created it until :meth:`freeze` hands it
    out as an immutable result.
    """

    def __init__(self, data: np.ndarray):
        if data.ndim != 3 or data.shape[2] != 4 or data.dtype != np.uint8:
            raise InvalidArgument(f"Expected (height, width, 4) uint8 array, got {data.shape} {data.dtype}")
        self._data = data

    @classmethod
    def create(cls, width: int, height: int) -> "DisplacementField":
        """Allocate a neutral, fully opaque field."""
        if width <= 0 or height <= 0:
            raise InvalidArgument(f"width and height must be > 0, got {width}x{height}")
        data = np.full((int(height), int(width), 4), NEUTRAL_VALUE, dtype=np.uint8)
        data[..., ALPHA_CHANNEL] = 255
        return cls(data)

    @property
    def width(self) -> int:
        return int(self._data.shape[1])

    @property
    def height(self) -> int:
        return int(self._data.shape[0])

    @property
    def pixels(self) -> np.ndarray:
        """Read-only view of the RGBA data."""
        view = self._data.view()
        view.flags.writeable = False
        return view

    @property
    def horizontal(self) -> np.ndarray:
        return self.pixels[..., HORIZONTAL_CHANNEL]

    @property
    def vertical(self) -> np.ndarray:
        return self.pixels[..., VERTICAL_CHANNEL]

    @property
    def is_frozen(self) -> bool:
        return not self._data.flags.writeable

    def to_array(self) -> np.ndarray:
        return self._data.copy()

    def freeze(self) -> "DisplacementField":
        self._data.flags.writeable = False
        return self

    def _ensure_writable(self) -> None:
        if self.is_frozen:
            raise RuntimeError("Displacement field is frozen")

    @staticmethod
    def _accumulate(region: np.ndarray, channel: int, delta: np.ndarray) -> None:
        values = region[..., channel].astype(np.float64) + delta
        region[..., channel] = np.clip(np.rint(values), 0, 255).astype(np.uint8)

    def add_transformation(self, transformation: EdgeTransformation) -> None:
        """
        Add one edge transformation, clipped to the buffer bounds.

        The gradient position of the k-th row (or column) counted from the
        start of the ramp is ``(k + 1) / extent``, so it runs from
        ``1 / extent`` to exactly 1 at the row nearest the effect edge and
        never reaches 0 inside the rectangle. Values are accumulated onto the
        existing buffer with rounding and clipping to ``[0, 255]``.
        """
        self._ensure_writable()
        rx, ry, rw, rh = transformation.rect
        if rw == 0 or rh == 0:
            return

        x0, x1 = max(rx, 0), min(rx + rw, self.width)
        y0, y1 = max(ry, 0), min(ry + rh, self.height)
        if x0 >= x1 or y0 >= y1:
            return

        local_x = np.arange(x0 - rx, x1 - rx, dtype=np.float64)[np.newaxis, :]
        local_y = np.arange(y0 - ry, y1 - ry, dtype=np.float64)[:, np.newaxis]

        direction = transformation.direction
        if direction is TransformDirection.DOWN:
            gradient = (local_y + 1.0) / rh
        elif direction is TransformDirection.UP:
            gradient = (rh - local_y) / rh
        elif direction is TransformDirection.RIGHT:
            gradient = (local_x + 1.0) / rw
        else:
            gradient = (rw - local_x) / rw
        gradient = np.broadcast_to(np.clip(gradient, 0.0, 1.0), (y1 - y0, x1 - x0))
        eased = np.asarray(transformation.easing(gradient), dtype=np.float64)

        region = self._data[y0:y1, x0:x1]
        dx = transformation.horizontal.evaluate(local_x, local_y, rw, rh)
        dy = transformation.vertical.evaluate(local_x, local_y, rw, rh)
        self._accumulate(region, HORIZONTAL_CHANNEL, DISPLACEMENT_SCALE * dx * eased)
        self._accumulate(region, VERTICAL_CHANNEL, DISPLACEMENT_SCALE * dy * eased)

    def apply_border_aware_falloff(
        self,
        refraction_strength: float,
        border_width: float,
        falloff: Easing = quadratic,
        radius: float = 0.0,
    ) -> None:
        """
        Push pixels outward along the rounded-rectangle border normal.

        Strength is full at the border and reaches zero ``border_width`` pixels
        inward; ``falloff`` shapes the transition.
        """
        self._ensure_writable()
        if border_width <= 0:
            raise InvalidArgument(f"border_width must be > 0, got {border_width}")

        xs = np.arange(self.width, dtype=np.float64)[np.newaxis, :]
        ys = np.arange(self.height, dtype=np.float64)[:, np.newaxis]
        geometry = border_normal_and_distance(xs, ys, self.width, self.height, radius)

        t = np.clip(1.0 - np.clip(geometry.distance, 0.0, border_width) / border_width, 0.0, 1.0)
        weight = DISPLACEMENT_SCALE * float(refraction_strength) * np.asarray(falloff(t), dtype=np.float64)

        self._accumulate(self._data, HORIZONTAL_CHANNEL, geometry.normal_x * weight)
        self._accumulate(self._data, VERTICAL_CHANNEL, geometry.normal_y * weight)
