"""
Blur energy distribution across stacked layers.

Stacked Gaussian-like blur passes combine by variance, so the per-layer radii
are chosen such that their root-sum-square equals the requested total.
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np

from ..errors import InvalidArgument


def _require_layers(layer_count: int) -> None:
    if layer_count <= 0:
        raise InvalidArgument(f"layer_count must be > 0, got {layer_count}")


def per_layer_uniform(total_blur: float, layer_count: int) -> float:
    """
    Blur radius for each of ``layer_count`` identical passes.

    Parameters
    ----------
    total_blur:
        Requested combined blur radius in pixels.
    layer_count:
        Number of stacked layers.
    """
    _require_layers(layer_count)
    return float(total_blur) / math.sqrt(layer_count)


def per_layer_exponential(total_blur: float, layer_count: int, base: float = 2.0) -> Tuple[float, ...]:
    """
    Distribute ``total_blur`` over an exponential progression of layers.

    Weights are ``base**0 .. base**(layer_count - 1)``; a single scale factor is
    applied so that ``sqrt(sum(b**2)) == total_blur``. The weights are taken
    relative to the largest one before squaring, so large bases underflow the
    small layers to 0 instead of overflowing.

    Returns
    -------
    tuple of float
        Per-layer blur radii, smallest first.

    Raises
    ------
    InvalidArgument
        If ``layer_count`` or ``base`` is not positive.
    """
    _require_layers(layer_count)
    if not base > 0:
        raise InvalidArgument(f"base must be > 0, got {base}")
    exponents = np.arange(layer_count, dtype=np.float64) * math.log(float(base))
    weights = np.exp(exponents - exponents.max())
    norm = math.sqrt(float(np.sum(weights * weights)))
    scale = float(total_blur) / norm
    return tuple(float(w) for w in weights * scale)


def layer_blur_sequence(total_blur: float, layer_count: int, base: float = 2.0) -> Tuple[float, ...]:
    """Exponential distribution ordered by layer index (largest blur first)."""
    return tuple(reversed(per_layer_exponential(total_blur, layer_count, base=base)))
