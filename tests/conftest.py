import os
import sys

import numpy as np
import pytest

# The application is a flat set of top-level modules.
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir)))


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


@pytest.fixture
def sim_params():
    return {
        "seed": 7,
        "box_size": 10.0,
        "grid_n": 4,
        "num_red": 10,
        "num_blue": 10,
        "particle_radius": 0.2,
        "initial_speed": 3.0,
        "max_placement_trials": 5000,
        "delta_time": 0.05,
    }
