import math

import numpy as np
import pytest

from entropy import EntropyEstimator, local_entropy
from errors import ContractViolation


def test_known_values():
    assert local_entropy(1, 1) == pytest.approx(math.log(2))
    assert local_entropy(2, 2) == pytest.approx(math.log(6))
    assert local_entropy(1, 1) == pytest.approx(0.6931, abs=1e-4)
    assert local_entropy(2, 2) == pytest.approx(1.7918, abs=1e-4)


@pytest.mark.parametrize("count", [0, 1, 2, 17, 1000])
def test_single_color_cells_have_zero_entropy(count):
    assert local_entropy(count, 0) == 0.0
    assert local_entropy(0, count) == 0.0


def test_symmetry_is_exact():
    for r in range(0, 40):
        for b in range(0, 40):
            assert local_entropy(r, b) == local_entropy(b, r)


def test_peak_at_balance():
    n = 10
    values = [local_entropy(r, n - r) for r in range(n + 1)]
    assert int(np.argmax(values)) == 5
    for r in range(5):
        assert values[r] < values[r + 1]
    for r in range(5, n):
        assert values[r] > values[r + 1]


def test_large_counts_stay_finite():
    s = local_entropy(500, 500)
    assert math.isfinite(s)
    assert s == pytest.approx(math.log(math.comb(1000, 500)), rel=1e-10)


def test_negative_count_is_contract_violation():
    with pytest.raises(ContractViolation):
        local_entropy(-1, 3)


def test_score_matches_scalar_formula():
    red = np.array([0, 1, 2, 0, 5, 30, 1])
    blue = np.array([0, 1, 2, 7, 5, 12, 0])
    sample = EntropyEstimator().score(red, blue)
    expected = [local_entropy(int(r), int(b)) for r, b in zip(red, blue)]
    np.testing.assert_allclose(sample.per_cell, expected, rtol=1e-12, atol=1e-12)
    assert np.all(sample.per_cell >= 0.0)


def test_score_is_symmetric_in_colors():
    gen = np.random.default_rng(3)
    red = gen.integers(0, 25, size=64)
    blue = gen.integers(0, 25, size=64)
    estimator = EntropyEstimator()
    forward = estimator.score(red, blue)
    swapped = estimator.score(blue, red)
    assert np.array_equal(forward.per_cell, swapped.per_cell)
    assert forward.total == swapped.total


def test_total_is_exact_sum_of_per_cell():
    gen = np.random.default_rng(11)
    for _ in range(20):
        red = gen.integers(0, 50, size=125)
        blue = gen.integers(0, 50, size=125)
        sample = EntropyEstimator().score(red, blue)
        assert sample.total == float(np.sum(sample.per_cell))
        assert sample.s_max == float(np.max(sample.per_cell))


def test_total_is_log_of_product_of_microstates():
    red = np.array([1, 2, 3, 0, 4, 6])
    blue = np.array([1, 2, 1, 5, 4, 2])
    product = 1
    for r, b in zip(red, blue):
        product *= math.comb(int(r + b), int(r))
    sample = EntropyEstimator().score(red, blue)
    assert sample.total == pytest.approx(math.log(product), rel=1e-12)


def test_all_empty_cells():
    zeros = np.zeros(27, dtype=np.int64)
    sample = EntropyEstimator().score(zeros, zeros)
    assert sample.total == 0.0
    assert sample.s_max == 0.0
    assert not np.any(sample.per_cell)


def test_score_writes_into_provided_buffer():
    out = np.full(3, 99.0)
    sample = EntropyEstimator().score(np.array([1, 0, 3]), np.array([1, 0, 0]), out=out)
    assert sample.per_cell is out
    assert out[1] == 0.0 and out[2] == 0.0
    assert out[0] == pytest.approx(math.log(2))


def test_negative_counts_rejected():
    with pytest.raises(ContractViolation):
        EntropyEstimator().score(np.array([1, -1]), np.array([0, 2]))


def test_mismatched_count_shapes_rejected():
    with pytest.raises(ContractViolation):
        EntropyEstimator().score(np.array([1, 2, 3]), np.array([1, 2]))
