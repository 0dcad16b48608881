"""sRGB transfer functions used when preparing displacement maps for filters."""

from __future__ import annotations

import numpy as np

from ..errors import InvalidArgument
from .displacement import DisplacementField, HORIZONTAL_CHANNEL, VERTICAL_CHANNEL

COLOR_INTERPOLATIONS = ("sRGB", "linearRGB")


def srgb_to_linear(values: np.ndarray) -> np.ndarray:
    """IEC 61966-2-1 decoding of sRGB values in [0, 1]."""
    v = np.clip(np.asarray(values, dtype=np.float64), 0.0, 1.0)
    return np.where(v <= 0.04045, v / 12.92, np.power((v + 0.055) / 1.055, 2.4))


def linear_to_srgb(values: np.ndarray) -> np.ndarray:
    """IEC 61966-2-1 encoding of linear values in [0, 1]."""
    v = np.clip(np.asarray(values, dtype=np.float64), 0.0, 1.0)
    return np.where(v <= 0.0031308, v * 12.92, 1.055 * np.power(v, 1.0 / 2.4) - 0.055)


def encode_for_filter(field: DisplacementField, color_interpolation: str = "sRGB") -> np.ndarray:
    """
    RGBA array ready to be fed to a displacement filter.

    A filter working in ``linearRGB`` decodes its input from sRGB first, so the
    displacement channels are pre-encoded to survive that conversion. ``sRGB``
    returns the buffer unchanged.
    """
    if color_interpolation not in COLOR_INTERPOLATIONS:
        raise InvalidArgument(
            f"color_interpolation must be one of {COLOR_INTERPOLATIONS}, got {color_interpolation!r}"
        )
    data = field.to_array()
    if color_interpolation == "sRGB":
        return data
    for channel in (HORIZONTAL_CHANNEL, VERTICAL_CHANNEL):
        encoded = linear_to_srgb(data[..., channel] / 255.0) * 255.0
        data[..., channel] = np.clip(np.rint(encoded), 0, 255).astype(np.uint8)
    return data
