"""
Glass refraction map synthesis.

Builds the displacement map for the glass effect from the refraction strength
and the element geometry. A refraction of 1.0 is neutral; values above push
the backdrop outward along the edges, values below pull it inward.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ..errors import InvalidArgument
from .displacement import (
    DisplacementField,
    EdgeTransformation,
    FieldDisplacement,
    TransformDirection,
    clamp_radius,
)
from .easing import Easing, falloff_by_name, linear, quadratic


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefractionOptions:
    """Tuning knobs for :func:`synthesize`."""

    edge_fraction: float = 0.3
    """Strip thickness as a fraction of the half extent when no offset is given."""

    lens_pass: bool = True
    """Add the tangential lens-curvature pass."""

    lens_damping: float = 0.75
    """Strength of the lens pass relative to the primary pass."""

    corner_aware: bool = True
    """Use the rounded-border falloff for the primary pass when radius > 0."""

    falloff: str = "linear"
    """Name of the easing curve shaping the primary pass, see ``easing.FALLOFFS``."""

    def __post_init__(self):
        falloff_by_name(self.falloff)


DEFAULT_OPTIONS = RefractionOptions()


def strip_thickness(offset: Optional[float], width: int, height: int, options: RefractionOptions = DEFAULT_OPTIONS) -> float:
    """Edge strip thickness in pixels before it is clamped to each axis."""
    if offset is not None and offset > 0:
        return float(offset)
    return options.edge_fraction * min(width, height) / 2.0


def edge_strip_transformations(
    width: int, height: int, strip_x: int, strip_y: int, strength: float, easing: Easing = linear
) -> List[EdgeTransformation]:
    """Outward displacement along the four edges, linear ramp unless another easing is given."""
    return [
        EdgeTransformation(0.0, -strength, TransformDirection.UP, (0, 0, width, strip_y), easing),
        EdgeTransformation(0.0, strength, TransformDirection.DOWN, (0, height - strip_y, width, strip_y), easing),
        EdgeTransformation(-strength, 0.0, TransformDirection.LEFT, (0, 0, strip_x, height), easing),
        EdgeTransformation(strength, 0.0, TransformDirection.RIGHT, (width - strip_x, 0, strip_x, height), easing),
    ]


def _tangential(strength: float, along_x: bool) -> FieldDisplacement:
    # Signed distance from the strip's perpendicular centre, normalised to [-1, 1].
    def _fn(x: np.ndarray, y: np.ndarray, w: int, h: int) -> np.ndarray:
        if along_x:
            return strength * (x + 0.5 - w / 2.0) / (w / 2.0)
        return strength * (y + 0.5 - h / 2.0) / (h / 2.0)

    return FieldDisplacement(_fn)


def lens_transformations(
    width: int, height: int, strip_x: int, strip_y: int, strength: float
) -> List[EdgeTransformation]:
    """Tangential displacement growing towards the corners, with a steeper easing."""
    along_top = _tangential(strength, along_x=True)
    along_side = _tangential(strength, along_x=False)
    return [
        EdgeTransformation(along_top, 0.0, TransformDirection.UP, (0, 0, width, strip_y), quadratic),
        EdgeTransformation(along_top, 0.0, TransformDirection.DOWN, (0, height - strip_y, width, strip_y), quadratic),
        EdgeTransformation(0.0, along_side, TransformDirection.LEFT, (0, 0, strip_x, height), quadratic),
        EdgeTransformation(0.0, along_side, TransformDirection.RIGHT, (width - strip_x, 0, strip_x, height), quadratic),
    ]


def synthesize(
    refraction: float,
    offset: Optional[float],
    width: float,
    height: float,
    radius: float = 0.0,
    options: Optional[RefractionOptions] = None,
) -> DisplacementField:
    """
    Synthesize the refraction displacement map for an element.

    Parameters
    ----------
    refraction:
        Refraction strength; 1.0 produces a neutral map.
    offset:
        Thickness of the refracting rim in pixels. Non-positive or ``None``
        derives it from the element's half extent.
    width, height:
        Element size in pixels; rounded to whole pixels.
    radius:
        Corner radius in pixels, clamped to half the shorter side.
    options:
        Optional :class:`RefractionOptions`.

    Returns
    -------
    DisplacementField
        A frozen field of size ``width x height``.
    """
    options = options or DEFAULT_OPTIONS
    if width <= 0 or height <= 0:
        raise InvalidArgument(f"width and height must be > 0, got {width}x{height}")
    w = int(round(width))
    h = int(round(height))
    if w <= 0 or h <= 0:
        raise InvalidArgument(f"Element rounds to an empty pixel grid: {width}x{height}")
    r = clamp_radius(radius, w, h)

    strength = float(refraction) - 1.0
    thickness = strip_thickness(offset, w, h, options)
    strip_x = min(int(round(thickness)), w // 2)
    strip_y = min(int(round(thickness)), h // 2)

    headroom = 1.0 / (1.0 + options.lens_damping) if options.lens_pass else 1.0
    primary = strength * headroom

    logger.debug(
        "Synthesizing %dx%d refraction map (strength=%.3f, strip=%dx%d, radius=%.1f)",
        w,
        h,
        strength,
        strip_x,
        strip_y,
        r,
    )

    falloff = falloff_by_name(options.falloff)
    field = DisplacementField.create(w, h)
    if r > 0 and options.corner_aware:
        border_width = min(thickness, min(w, h) / 2.0)
        if border_width > 0:
            field.apply_border_aware_falloff(primary, border_width, falloff=falloff, radius=r)
    else:
        for transformation in edge_strip_transformations(w, h, strip_x, strip_y, primary, falloff):
            field.add_transformation(transformation)

    if options.lens_pass:
        lens_strength = primary * options.lens_damping
        for transformation in lens_transformations(w, h, strip_x, strip_y, lens_strength):
            field.add_transformation(transformation)

    return field.freeze()
