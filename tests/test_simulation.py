import numpy as np
import pytest

from errors import ConfigurationError
from particle import ParticleSystem
from simulation import Simulation


def test_particles_stay_inside_walls(sim_params):
    particles = ParticleSystem(sim_params)
    sim = Simulation(particles, sim_params)
    speeds = np.linalg.norm(particles.velocities, axis=1)
    for _ in range(500):
        sim.step()
        assert np.all(np.abs(particles.positions) <= sim.wall_limit)
    np.testing.assert_allclose(np.linalg.norm(particles.velocities, axis=1), speeds)
    assert sim.step_count == 500


def test_wall_reflection(sim_params):
    params = dict(sim_params, num_red=1, num_blue=0, delta_time=0.1)
    particles = ParticleSystem(params)
    sim = Simulation(particles, params)
    limit = sim.wall_limit
    particles.positions[0] = [limit - 0.01, 0.0, 0.0]
    particles.velocities[0] = [1.0, 0.0, 0.0]
    sim.step()
    assert particles.positions[0, 0] == pytest.approx(limit - 0.09)
    assert particles.velocities[0, 0] == -1.0


def test_streams_expose_particle_state(sim_params):
    particles = ParticleSystem(sim_params)
    sim = Simulation(particles, sim_params)
    assert sim.get_positions() is particles.positions
    assert np.array_equal(sim.get_color_flags(), particles.is_red)


@pytest.mark.parametrize("dt", [0.0, -0.1])
def test_invalid_delta_time(sim_params, dt):
    particles = ParticleSystem(sim_params)
    with pytest.raises(ConfigurationError):
        Simulation(particles, dict(sim_params, delta_time=dt))
