import numpy as np
import pytest

from errors import ConfigurationError
from visualization import ColorStopRamp, VisualizationMapper
from constants import DEFAULT_COLOR_STOPS


def test_normalize_scales_by_max():
    t = VisualizationMapper.normalize(np.array([0.0, 1.0, 2.0, 4.0]), 4.0)
    np.testing.assert_allclose(t, [0.0, 0.25, 0.5, 1.0])


@pytest.mark.parametrize("s_max", [0.0, -1.0])
def test_normalize_without_entropy_is_zero(s_max):
    t = VisualizationMapper.normalize(np.zeros(8), s_max)
    assert t.shape == (8,)
    assert not np.any(t)


def test_normalize_clamps():
    t = VisualizationMapper.normalize(np.array([3.0, -1.0]), 2.0)
    np.testing.assert_allclose(t, [1.0, 0.0])


def test_ramp_endpoints_hit_first_and_last_stop():
    ramp = ColorStopRamp()
    assert ramp.color_at(0.0) == tuple(DEFAULT_COLOR_STOPS[0])
    assert ramp.color_at(1.0) == tuple(DEFAULT_COLOR_STOPS[-1])


def test_ramp_interpolates_linearly_between_stops():
    ramp = ColorStopRamp([(0, 0, 0), (100, 200, 40), (200, 200, 200)])
    assert ramp.color_at(0.25) == (50, 100, 20)
    assert ramp.color_at(0.5) == (100, 200, 40)
    assert ramp.color_at(0.75) == (150, 200, 120)


def test_ramp_vectorized_shape():
    colors = ColorStopRamp().colors_for(np.linspace(0.0, 1.0, 64))
    assert colors.shape == (64, 3)
    assert colors.dtype == np.uint8


@pytest.mark.parametrize("stops", [[], [(255, 0, 0)], [(1, 2), (3, 4)]])
def test_ramp_needs_two_rgb_stops(stops):
    with pytest.raises(ConfigurationError):
        ColorStopRamp(stops)
