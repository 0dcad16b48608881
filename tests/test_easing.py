"""Tests for easing curves."""

import numpy as np
import pytest

from variablur.core.easing import FALLOFFS, falloff_by_name, glass_falloff, quadratic, smoothstep
from variablur.errors import InvalidArgument


@pytest.mark.parametrize("name", sorted(FALLOFFS))
def test_endpoints_and_monotonic(name):
    t = np.linspace(0.0, 1.0, 101)
    values = falloff_by_name(name)(t)
    assert values[0] == pytest.approx(0.0)
    assert values[-1] == pytest.approx(1.0)
    assert np.all(np.diff(values) >= -1e-12)


def test_lookup_returns_the_curve():
    assert falloff_by_name("glass") is glass_falloff
    assert falloff_by_name("quadratic") is quadratic


def test_unknown_falloff_rejected():
    with pytest.raises(InvalidArgument):
        falloff_by_name("cubic")


def test_smoothstep_midpoint():
    assert smoothstep(np.array(0.5)) == pytest.approx(0.5)


def test_glass_falloff_sits_below_linear_midway():
    assert glass_falloff(np.array(0.5)) < 0.5
