"""Easing curves mapping a normalised gradient position in [0, 1] to an attenuation."""

from __future__ import annotations

from typing import Callable, Dict

import numpy as np

from ..errors import InvalidArgument

Easing = Callable[[np.ndarray], np.ndarray]


def linear(t: np.ndarray) -> np.ndarray:
    return np.asarray(t, dtype=np.float64)


def quadratic(t: np.ndarray) -> np.ndarray:
    t = np.asarray(t, dtype=np.float64)
    return t * t


def smoothstep(t: np.ndarray) -> np.ndarray:
    t = np.asarray(t, dtype=np.float64)
    return t * t * (3.0 - 2.0 * t)


def glass_falloff(t: np.ndarray) -> np.ndarray:
    """
    Blend of a sharp power curve and a cosine S-curve.

    Gives a defined rim at the edge (``t == 1``) that fades smoothly inward.
    """
    t = np.asarray(t, dtype=np.float64)
    edge = np.power(t, 1.8)
    s_curve = (1.0 - np.cos(t * np.pi)) * 0.5
    return edge * 0.75 + s_curve * 0.25


FALLOFFS: Dict[str, Easing] = {
    "linear": linear,
    "quadratic": quadratic,
    "smoothstep": smoothstep,
    "glass": glass_falloff,
}


def falloff_by_name(name: str) -> Easing:
    """Look up a named falloff curve."""
    try:
        return FALLOFFS[name]
    except KeyError:
        raise InvalidArgument(f"Unknown falloff {name!r}, expected one of {sorted(FALLOFFS)}") from None
