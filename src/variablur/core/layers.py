"""
Effect planning.

Turns a resolved effect style and an element box into the full description of
the layer stack: one masked blur layer per requested layer, an overlay layer
carrying the remaining filters and tint, and the optional glass displacement
map. Everything is recomputed from scratch on every call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..errors import InvalidArgument
from .blur import layer_blur_sequence
from .displacement import DisplacementField
from .filters import FilterFunction, blur_amount, format_filter_list, only, without
from .mask import Direction, MaskDescriptor, axis_extent, compute_mask_stops, overlay_mask
from .refraction import RefractionOptions, synthesize


logger = logging.getLogger(__name__)

DEFAULT_LAYER_COUNT = 5


@dataclass(frozen=True)
class ElementBox:
    """Size of the element in pixels and its corner radius."""

    width: float
    height: float
    radius: float = 0.0


@dataclass(frozen=True)
class EffectStyle:
    """Effect parameters after CSS values have been resolved to numbers."""

    filters: Tuple[FilterFunction, ...] = ()
    direction: Direction = Direction.BOTTOM
    offset: float = 0.0
    layers: int = DEFAULT_LAYER_COUNT
    color: str = "transparent"
    glass_refraction: Optional[float] = None
    glass_offset: float = 0.0
    refraction_options: RefractionOptions = field(default_factory=RefractionOptions)


@dataclass(frozen=True)
class LayerSpec:
    index: int
    blur: float
    backdrop_filter: str
    mask: MaskDescriptor

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "blur": self.blur,
            "backdrop_filter": self.backdrop_filter,
            "mask": self.mask.to_css(),
            "mask_stops": list(self.mask.stops),
        }


@dataclass(frozen=True)
class OverlaySpec:
    backdrop_filter: str
    mask: str
    color: str

    def to_dict(self) -> dict:
        return {"backdrop_filter": self.backdrop_filter, "mask": self.mask, "color": self.color}


@dataclass(frozen=True)
class EffectPlan:
    """Complete description of the layer stack for one element."""

    box: ElementBox
    direction: Direction
    layers: Tuple[LayerSpec, ...]
    overlay: OverlaySpec
    displacement: Optional[DisplacementField] = None

    @property
    def blur_values(self) -> Tuple[float, ...]:
        return tuple(layer.blur for layer in self.layers)

    def to_dict(self) -> dict:
        payload = {
            "element": {"width": self.box.width, "height": self.box.height, "radius": self.box.radius},
            "direction": self.direction.value,
            "layers": [layer.to_dict() for layer in self.layers],
            "overlay": self.overlay.to_dict(),
        }
        if self.displacement is not None:
            payload["displacement"] = {
                "width": self.displacement.width,
                "height": self.displacement.height,
            }
        return payload


def plan_effect(style: EffectStyle, box: ElementBox) -> EffectPlan:
    """
    Build the layer stack for ``style`` applied to ``box``.

    Raises
    ------
    InvalidArgument
        If the box has a non-positive size or the layer count is not positive.
    """
    if box.width <= 0 or box.height <= 0:
        raise InvalidArgument(f"Element box must have positive size, got {box.width}x{box.height}")
    if style.layers <= 0:
        raise InvalidArgument(f"layers must be > 0, got {style.layers}")

    direction = Direction.parse(style.direction)
    extent = axis_extent(direction, box.width, box.height)
    count = style.layers

    blur_entries = only(style.filters, "blur")
    blurs = layer_blur_sequence(blur_amount(style.filters), count)

    layers: List[LayerSpec] = []
    for index in range(count):
        blur = blurs[index]
        backdrop = blur_entries[0].with_value(blur).to_css() if blur_entries else ""
        mask = compute_mask_stops(index, count + 1, direction, style.offset, extent, invert=True)
        layers.append(LayerSpec(index=index, blur=blur, backdrop_filter=backdrop, mask=mask))

    overlay = OverlaySpec(
        backdrop_filter=format_filter_list(without(style.filters, "blur")),
        mask=overlay_mask(direction, style.offset, extent),
        color=style.color or "transparent",
    )

    displacement = None
    if style.glass_refraction is not None:
        displacement = synthesize(
            style.glass_refraction,
            style.glass_offset,
            box.width,
            box.height,
            box.radius,
            options=style.refraction_options,
        )

    logger.debug(
        "Planned %d layers (%s, offset=%.1f) for %.0fx%.0f element%s",
        count,
        direction.value,
        style.offset,
        box.width,
        box.height,
        " with glass refraction" if displacement is not None else "",
    )
    return EffectPlan(
        box=box,
        direction=direction,
        layers=tuple(layers),
        overlay=overlay,
        displacement=displacement,
    )
