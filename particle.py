# particle.py
"""
Generates and stores the particle population.

This module defines the InitialPlacementSampler, which seeds the starting
state (position, velocity, color) before the simulation begins, and the
ParticleSystem class, which keeps that state in NumPy arrays for the
physics collaborator and the entropy engine.
"""
import enum
import logging
from typing import Dict, Any, NamedTuple, Optional

import numpy as np

from constants import MAX_PLACEMENT_TRIALS, WALL_MARGIN_FACTOR
from errors import ConfigurationError

# --- Data Contracts ---
#
# class InitialPlacementSampler:
#   - __init__(self, box_size, radius, num_red, num_blue, speed,
#              rng=None, max_trials=MAX_PLACEMENT_TRIALS):
#     - Raises ConfigurationError for box_size <= 0, radius <= 0, negative or
#       non-integer counts, speed < 0, max_trials < 0, or a cube too small to
#       hold a single particle away from the walls.
#   - sample(self) -> PlacementResult:
#     - Outputs: positions (N, 3), velocities (N, 3), is_red (N,) with
#       N = num_red + num_blue.
#     - Invariants:
#       - is_red[:num_red] is True, is_red[num_red:] is False.
#       - Every position lies in [-h', h']^3, h' = L/2 - radius * 1.1.
#       - The first `rejection_placed` particles are pairwise >= 2 * radius
#         apart. overlap_possible is True iff the fallback phase placed any.
#
# class ParticleSystem:
#   - __init__(self, params: Dict[str, Any], rng=None):
#     - Inputs: "simulation_parameters" section of config.json.
#     - Side Effects: runs the sampler once and stores its arrays.


class PlacementPhase(enum.Enum):
    REJECTION = "rejection"
    FALLBACK = "fallback"
    DONE = "done"


class PlacementResult(NamedTuple):
    positions: np.ndarray
    velocities: np.ndarray
    is_red: np.ndarray
    rejection_placed: int
    trials_used: int
    overlap_possible: bool


def _require(condition: bool, msg: str):
    if not condition:
        logging.critical(msg)
        raise ConfigurationError(msg)


def _is_count(value) -> bool:
    return not isinstance(value, bool) and isinstance(value, (int, np.integer)) and value >= 0


class InitialPlacementSampler:
    """
    Two-phase placement: bounded rejection sampling, then unconstrained fill.

    Phase 1 draws uniform positions inside the shrunk cube and keeps a
    candidate only if it is at least 2 * radius from every accepted particle.
    All particles share a single trial budget. Phase 2 fills whatever is
    left without the distance test; overlaps are then possible and are left
    for the physics collaborator to resolve.
    """
    def __init__(self, box_size: float, radius: float, num_red: int, num_blue: int,
                 speed: float, rng: Optional[np.random.Generator] = None,
                 max_trials: int = MAX_PLACEMENT_TRIALS):
        _require(box_size > 0, f"Configuration error: box size L must be positive, got {box_size}.")
        _require(radius > 0, f"Configuration error: particle radius must be positive, got {radius}.")
        _require(_is_count(num_red), f"Configuration error: num_red must be a non-negative integer, got {num_red!r}.")
        _require(_is_count(num_blue), f"Configuration error: num_blue must be a non-negative integer, got {num_blue!r}.")
        _require(speed >= 0, f"Configuration error: speed must be non-negative, got {speed}.")
        _require(_is_count(max_trials), f"Configuration error: max_trials must be a non-negative integer, got {max_trials!r}.")

        self.half = box_size / 2.0 - radius * WALL_MARGIN_FACTOR
        _require(
            self.half > 0,
            f"Configuration error: box size {box_size} is too small for particle radius {radius}."
        )

        self.radius = float(radius)
        self.num_red = int(num_red)
        self.num_blue = int(num_blue)
        self.total = self.num_red + self.num_blue
        self.speed = float(speed)
        self.max_trials = int(max_trials)
        self.rng = rng if rng is not None else np.random.default_rng()

        self.phase = PlacementPhase.REJECTION
        self._reset_state()

    def _reset_state(self):
        self.positions = np.zeros((self.total, 3), dtype=np.float64)
        self.velocities = np.zeros((self.total, 3), dtype=np.float64)
        self.placed = 0
        self.trials_used = 0
        self.rejection_placed = 0

    def _uniform_position(self) -> np.ndarray:
        return self.rng.uniform(-self.half, self.half, size=3)

    def _isotropic_velocity(self) -> np.ndarray:
        """Uniform direction on the sphere, magnitude `speed`."""
        theta = np.arccos(self.rng.uniform(-1.0, 1.0))
        phi = self.rng.uniform(0.0, 2.0 * np.pi)
        return self.speed * np.array([
            np.sin(theta) * np.cos(phi),
            np.cos(theta),
            np.sin(theta) * np.sin(phi),
        ])

    def run_rejection_phase(self) -> None:
        """Phase 1: place particles until all are accepted or the shared budget runs out."""
        min_dist_sq = (2.0 * self.radius) ** 2
        while self.placed < self.total and self.trials_used < self.max_trials:
            self.trials_used += 1
            candidate = self._uniform_position()
            accepted = self.positions[:self.placed]
            if self.placed and np.any(np.sum((accepted - candidate) ** 2, axis=1) < min_dist_sq):
                continue
            self.positions[self.placed] = candidate
            self.velocities[self.placed] = self._isotropic_velocity()
            self.placed += 1

        self.rejection_placed = self.placed
        self.phase = PlacementPhase.FALLBACK if self.placed < self.total else PlacementPhase.DONE
        logging.debug(
            f"Rejection phase placed {self.placed}/{self.total} particles "
            f"using {self.trials_used}/{self.max_trials} trials."
        )

    def run_fallback_phase(self) -> None:
        """Phase 2: fill the remainder without the overlap test."""
        remaining = self.total - self.placed
        if remaining > 0:
            self.positions[self.placed:] = self.rng.uniform(-self.half, self.half, size=(remaining, 3))
            self.velocities[self.placed:] = self.rng.uniform(-self.speed, self.speed, size=(remaining, 3))
            self.placed = self.total
            logging.warning(
                f"Placement trial budget ({self.max_trials}) exhausted; "
                f"{remaining} particles placed without overlap check."
            )
        self.phase = PlacementPhase.DONE

    def sample(self) -> PlacementResult:
        """Runs both phases from a clean state and returns the population."""
        self._reset_state()
        self.phase = PlacementPhase.REJECTION
        while self.phase is not PlacementPhase.DONE:
            if self.phase is PlacementPhase.REJECTION:
                self.run_rejection_phase()
            elif self.phase is PlacementPhase.FALLBACK:
                self.run_fallback_phase()

        # Color follows generation order, not spatial order.
        is_red = np.arange(self.total) < self.num_red
        return PlacementResult(
            positions=self.positions.copy(),
            velocities=self.velocities.copy(),
            is_red=is_red,
            rejection_placed=self.rejection_placed,
            trials_used=self.trials_used,
            overlap_possible=self.rejection_placed < self.total,
        )


class ParticleSystem:
    """
    A container for all particles, managing their state via NumPy arrays.
    """
    def __init__(self, params: Dict[str, Any], rng: Optional[np.random.Generator] = None):
        """
        Initializes the particle system.

        Args:
            params (Dict[str, Any]): Simulation parameters from config.
            rng (np.random.Generator, optional): Random source for placement.
                Defaults to a generator seeded from params["seed"] (None
                gives an unseeded generator).
        """
        self.box_size = float(params['box_size'])
        self.radius = float(params['particle_radius'])
        self.num_red = params['num_red']
        self.num_blue = params['num_blue']
        self.seed = params.get('seed')

        self.rng = rng if rng is not None else np.random.default_rng(self.seed)

        sampler = InitialPlacementSampler(
            box_size=self.box_size,
            radius=self.radius,
            num_red=self.num_red,
            num_blue=self.num_blue,
            speed=float(params['initial_speed']),
            rng=self.rng,
            max_trials=params.get('max_placement_trials', MAX_PLACEMENT_TRIALS),
        )
        result = sampler.sample()

        self.positions = result.positions
        self.velocities = result.velocities
        # Immutable once assigned.
        self.is_red = result.is_red
        self.is_red.flags.writeable = False
        self.overlap_possible = result.overlap_possible

        logging.info(
            f"ParticleSystem initialized with {self.particle_count} particles "
            f"({self.num_red} red, {self.num_blue} blue); "
            f"{result.rejection_placed} placed by rejection sampling in {result.trials_used} trials."
        )

    @property
    def particle_count(self) -> int:
        return self.positions.shape[0]
