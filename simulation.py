# simulation.py
"""
Advances the particle gas between entropy ticks.

This module defines the Simulation class, a minimal physics collaborator:
particles move ballistically and reflect elastically off the cube walls.
Particle-particle collisions are not resolved. The class exposes the two
streams the entropy engine consumes each tick: positions and color flags.
"""
import logging
import numpy as np
from typing import Dict, Any

from particle import ParticleSystem
from errors import ConfigurationError

# --- Data Contracts ---
#
# class Simulation:
#   - __init__(self, particles: ParticleSystem, params: Dict[str, Any]):
#     - Inputs:
#       - particles: An initialized ParticleSystem object.
#       - params: "simulation_parameters" section of config.json.
#         - "delta_time": float > 0
#     - Raises ConfigurationError if delta_time <= 0.
#
#   - step(self) -> None:
#     - Side Effects: Modifies particle positions and velocities in place.
#     - Invariants: Particle count and colors never change. After a step,
#       every coordinate lies within [-L/2 + radius, L/2 - radius] and
#       speeds are preserved (restitution 1, no friction).
#
#   - get_positions(self) -> np.ndarray  (m, 3), live array
#   - get_color_flags(self) -> np.ndarray  (m,), True for red

class Simulation:
    """
    Ballistic motion inside a box with perfectly elastic walls.
    """
    def __init__(self, particles: ParticleSystem, params: Dict[str, Any]):
        self.particles = particles
        self.delta_time = float(params.get('delta_time', 1.0 / 60.0))
        if self.delta_time <= 0:
            msg = f"Configuration error: delta_time must be positive, got {self.delta_time}."
            logging.critical(msg)
            raise ConfigurationError(msg)

        # Particle centers are confined so the sphere surface touches the wall.
        self.wall_limit = particles.box_size / 2.0 - particles.radius
        self.step_count = 0

        logging.info(
            f"Simulation initialized: dt={self.delta_time:.4f}, "
            f"wall limit +/-{self.wall_limit:.3f}."
        )

    def step(self):
        """
        Executes one time step of the simulation.
        """
        pos = self.particles.positions
        vel = self.particles.velocities
        limit = self.wall_limit

        # 1. Advance positions
        pos += vel * self.delta_time

        # 2. Reflect off the upper walls
        over = pos > limit
        pos[over] = 2.0 * limit - pos[over]
        vel[over] *= -1.0

        # 3. Reflect off the lower walls
        under = pos < -limit
        pos[under] = -2.0 * limit - pos[under]
        vel[under] *= -1.0

        # 4. Very fast particles can overshoot by more than the box; clamp.
        np.clip(pos, -limit, limit, out=pos)

        self.step_count += 1

    def get_positions(self) -> np.ndarray:
        return self.particles.positions

    def get_color_flags(self) -> np.ndarray:
        return self.particles.is_red
