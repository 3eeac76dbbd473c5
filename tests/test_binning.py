import numpy as np
import pytest

from entropy import SpatialBinner
from errors import ConfigurationError, ContractViolation


@pytest.fixture
def binner():
    return SpatialBinner(10.0, 4)


def test_center_maps_to_center_cell(binner):
    # u = 0.5 on every axis -> (2, 2, 2)
    assert binner.cell_index((0.0, 0.0, 0.0)) == 2 + 2 * 4 + 2 * 16


def test_extreme_corner_maps_to_last_cell(binner):
    h = binner.half
    eps = 1e-9
    assert binner.cell_index((h - eps, h - eps, h - eps)) == 4 ** 3 - 1
    assert binner.cell_index((h, h, h)) == 4 ** 3 - 1
    assert binner.cell_index((-h, -h, -h)) == 0


def test_out_of_domain_positions_clamp(binner):
    assert binner.cell_index((100.0, -100.0, 0.0)) == 3 + 0 * 4 + 2 * 16
    assert binner.cell_index((-1e12, 1e12, 1e12)) == 0 + 3 * 4 + 3 * 16


def test_row_major_ordering(binner):
    # Cell size is 2.5; x selects the fastest-varying index.
    assert binner.cell_index((-4.0, -4.0, -4.0)) == 0
    assert binner.cell_index((-1.0, -4.0, -4.0)) == 1
    assert binner.cell_index((-4.0, -1.0, -4.0)) == 4
    assert binner.cell_index((-4.0, -4.0, -1.0)) == 16


def test_no_out_of_range_index(binner, rng):
    positions = rng.uniform(-50.0, 50.0, size=(5000, 3))
    indices = binner.bin_positions(positions)
    assert indices.min() >= 0
    assert indices.max() < binner.num_cells


def test_vectorized_matches_scalar(binner, rng):
    positions = rng.uniform(-6.0, 6.0, size=(300, 3))
    indices = binner.bin_positions(positions)
    assert [binner.cell_index(p) for p in positions] == indices.tolist()


def test_single_cell_grid(rng):
    binner = SpatialBinner(3.0, 1)
    positions = rng.uniform(-5.0, 5.0, size=(100, 3))
    assert np.all(binner.bin_positions(positions) == 0)


def test_fine_grid_upper_corner():
    binner = SpatialBinner(1.0, 1000)
    assert binner.cell_index((0.5, 0.5, 0.5)) == 1000 ** 3 - 1


def test_cell_center_round_trip(binner):
    assert binner.cell_center(42) == pytest.approx((1.25, 1.25, 1.25))
    for index in range(binner.num_cells):
        assert binner.cell_index(binner.cell_center(index)) == index


def test_cell_coords_bounds(binner):
    assert binner.cell_coords(63) == (3, 3, 3)
    with pytest.raises(IndexError):
        binner.cell_coords(64)


@pytest.mark.parametrize("grid_n", [0, -1, 2.5, True, None])
def test_invalid_grid_n(grid_n):
    with pytest.raises(ConfigurationError):
        SpatialBinner(10.0, grid_n)


@pytest.mark.parametrize("box_size", [0.0, -3.0])
def test_invalid_box_size(box_size):
    with pytest.raises(ConfigurationError):
        SpatialBinner(box_size, 4)


def test_numpy_integer_grid_n_accepted():
    assert SpatialBinner(10.0, np.int64(3)).num_cells == 27


@pytest.mark.parametrize("bad", [np.nan, np.inf, -np.inf])
def test_non_finite_coordinates_rejected(binner, bad):
    with pytest.raises(ContractViolation):
        binner.cell_index((bad, 0.0, 0.0))
    with pytest.raises(ContractViolation):
        binner.bin_positions(np.array([[0.0, 0.0, 0.0], [0.0, bad, 0.0]]))
