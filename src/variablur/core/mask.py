"""Gradient mask geometry for the stacked blur layers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from ..errors import InvalidArgument


class Direction(str, Enum):
    """Edge from which the blur fades in."""

    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"

    @classmethod
    def parse(cls, value: Optional[Union[str, "Direction"]]) -> "Direction":
        """Case-insensitive lookup; unknown or missing input falls back to bottom."""
        if isinstance(value, Direction):
            return value
        if not value:
            return cls.BOTTOM
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.BOTTOM

    @property
    def is_horizontal(self) -> bool:
        return self in (Direction.LEFT, Direction.RIGHT)

    @property
    def css(self) -> str:
        return f"to {self.value}"


@dataclass(frozen=True)
class MaskDescriptor:
    """Three-stop opacity ramp (opaque, opaque, transparent) along ``direction``."""

    direction: Direction
    stops: Tuple[float, float, float]

    def to_css(self) -> str:
        a, c, d = self.stops
        return (
            f"linear-gradient({self.direction.css},"
            f"rgba(0,0,0,1) {_fmt(a)}%,rgba(0,0,0,1) {_fmt(c)}%,rgba(0,0,0,0) {_fmt(d)}%)"
        )


def _fmt(value: float) -> str:
    return f"{value:.6g}"


def _clamp_percent(value: float) -> float:
    return max(0.0, min(100.0, value))


def axis_extent(direction: Union[str, Direction, None], width: float, height: float) -> float:
    """Element size along the fade axis: width for left/right, height for top/bottom."""
    return float(width) if Direction.parse(direction).is_horizontal else float(height)


def _offset_scale(offset: float, element_extent: float) -> float:
    if element_extent == 0:
        return 0.0
    return float(offset) / float(element_extent)


def compute_mask_stops(
    layer_index: int,
    layer_count: int,
    direction: Union[str, Direction, None],
    offset: float,
    element_extent: float,
    invert: bool = False,
) -> MaskDescriptor:
    """
    Compute the mask for one blur layer.

    Each layer is opaque between ``(i - 1) * step`` and ``(i + 1) * step`` and
    fades out by ``(i + 2) * step``; the whole ramp is then compressed into the
    last ``offset / element_extent`` of the axis.

    Parameters
    ----------
    layer_index:
        Index of the layer within the stack.
    layer_count:
        Number of ramp slots (the planner passes ``layers + 1``).
    direction:
        Fade direction; unknown values fall back to bottom.
    offset:
        Fade length in pixels along the axis.
    element_extent:
        Element size along the axis. Zero yields a fully inset ramp.
    invert:
        Measure the fade from the opposite end of the axis.
    """
    if layer_count <= 0:
        raise InvalidArgument(f"layer_count must be > 0, got {layer_count}")

    dir_enum = Direction.parse(direction)
    step = 100.0 / layer_count

    if element_extent == 0:
        scale = 0.0
    else:
        scale = _offset_scale(offset, element_extent)
        if invert:
            scale = 1.0 - scale
    shift = 1.0 - scale

    def place(raw: float) -> float:
        return _clamp_percent(_clamp_percent(raw) * scale + 100.0 * shift)

    a = place((layer_index - 1) * step)
    c = place((layer_index + 1) * step)
    d = place((layer_index + 2) * step)
    return MaskDescriptor(direction=dir_enum, stops=(a, c, d))


def overlay_mask(direction: Union[str, Direction, None], offset: float, element_extent: float) -> str:
    """Fade mask for the top overlay layer carrying the non-blur filters."""
    dir_enum = Direction.parse(direction)
    percent = _offset_scale(offset, element_extent) * 100.0
    return f"linear-gradient({dir_enum.css}, black {_fmt(percent)}%, transparent 100%)"
