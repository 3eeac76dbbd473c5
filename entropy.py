# entropy.py
"""
Estimates the color-mixing entropy of the particle gas.

This module bins particles into a uniform gridN^3 grid over the cube
[-L/2, L/2]^3, counts red and blue particles per cell, and scores every
cell with the log of its number of color arrangements:

    W_i = (R_i + B_i)! / (R_i! * B_i!)
    S_i = ln W_i = lnG(n + 1) - lnG(R + 1) - lnG(B + 1)

The global entropy is S_total = sum_i S_i = ln(prod_i W_i), with k = 1.
Log-gamma keeps the computation finite where n! overflows a double.
"""
import logging
import math
from typing import NamedTuple, Optional, Tuple

import numpy as np
from numba import jit
from scipy.special import gammaln

from constants import BIN_CLAMP_EPSILON
from errors import ConfigurationError, ContractViolation

# --- Data Contracts ---
#
# class SpatialBinner:
#   - __init__(self, box_size: float, grid_n: int):
#     - Raises ConfigurationError if box_size <= 0 or grid_n is not a
#       positive integer. Checked once here, never per call.
#   - cell_index(self, position) -> int:
#     - Output: row-major index ix + iy*n + iz*n^2 in [0, n^3).
#     - Invariants: total and deterministic; out-of-domain positions clamp
#       to the nearest boundary cell.
#     - Raises ContractViolation for NaN or infinite coordinates.
#   - bin_positions(self, positions: np.ndarray) -> np.ndarray:
#     - Input: (m, 3) float array. Output: (m,) int64 cell indices.
#     - Raises ContractViolation for non-finite coordinates.
#
# class EntropyEstimator:
#   - score(self, red_counts, blue_counts, out=None) -> EntropySample:
#     - Inputs: two equally shaped 1-D integer arrays, one entry per cell.
#     - Outputs: EntropySample(total, per_cell, s_max).
#     - Raises ContractViolation on negative counts or mismatched shapes.
#     - Invariants: per_cell >= 0; total == per_cell.sum(); s_max == max.
#
# class EntropyEngine:
#   - compute_tick(self, positions, color_flags) -> EntropySample:
#     - Inputs: position stream (m, 3) and parallel boolean color-flag
#       stream (m,) where True means RED. Either may be None, which is
#       treated as an empty population.
#     - Side Effects: overwrites the engine-owned count and entropy
#       buffers. The returned per_cell view is valid until the next tick.
#     - Raises ContractViolation on mismatched or malformed streams.
#   - reconfigure(self, grid_n: int) -> None:
#     - Side Effects: rebuilds the binner and reallocates all buffers.


class EntropySample(NamedTuple):
    """Result of one tick: global entropy, per-cell entropies and their maximum."""
    total: float
    per_cell: np.ndarray
    s_max: float


def local_entropy(red: int, blue: int) -> float:
    """
    ln of the number of color arrangements of `red` red and `blue` blue
    particles sharing one cell. Zero for empty or single-colored cells.
    """
    if red < 0 or blue < 0:
        raise ContractViolation(f"Cell counts must be non-negative, got R={red}, B={blue}.")
    n = red + blue
    if n <= 1 or red == 0 or blue == 0:
        return 0.0
    # The two subtrahends are added first so that S(R, B) == S(B, R) exactly.
    return math.lgamma(n + 1) - (math.lgamma(red + 1) + math.lgamma(blue + 1))


def _validate_grid_n(grid_n) -> int:
    if isinstance(grid_n, bool) or not isinstance(grid_n, (int, np.integer)):
        msg = f"Configuration error: grid_n must be an integer, got {grid_n!r}."
        logging.critical(msg)
        raise ConfigurationError(msg)
    if grid_n <= 0:
        msg = f"Configuration error: grid_n must be positive, got {grid_n}."
        logging.critical(msg)
        raise ConfigurationError(msg)
    return int(grid_n)


@jit(nopython=True)
def _axis_index(coord, half, box_size, grid_n, clamp_max):
    """Maps one coordinate to its cell index along a single axis."""
    u = (coord + half) / box_size
    if u < 0.0:
        u = 0.0
    elif u > clamp_max:
        u = clamp_max
    idx = int(math.floor(u * grid_n))
    if idx > grid_n - 1:
        idx = grid_n - 1
    return idx


@jit(nopython=True)
def _count_cells_numba(positions, color_flags, half, box_size, grid_n, clamp_max, red_counts, blue_counts):
    """
    Numba-jitted single pass over the particles that accumulates red and
    blue counts per cell. The count arrays must be zeroed by the caller.
    """
    n_sq = grid_n * grid_n
    for i in range(positions.shape[0]):
        ix = _axis_index(positions[i, 0], half, box_size, grid_n, clamp_max)
        iy = _axis_index(positions[i, 1], half, box_size, grid_n, clamp_max)
        iz = _axis_index(positions[i, 2], half, box_size, grid_n, clamp_max)
        idx = ix + iy * grid_n + iz * n_sq
        if color_flags[i]:
            red_counts[idx] += 1
        else:
            blue_counts[idx] += 1


class SpatialBinner:
    """
    Maps 3D positions inside the cube [-L/2, L/2]^3 to uniform grid cells.
    """
    def __init__(self, box_size: float, grid_n: int):
        if not box_size > 0:
            msg = f"Configuration error: box size L must be positive, got {box_size}."
            logging.critical(msg)
            raise ConfigurationError(msg)
        self.box_size = float(box_size)
        self.half = self.box_size / 2.0
        self.grid_n = _validate_grid_n(grid_n)
        self.cell_size = self.box_size / self.grid_n
        self.num_cells = self.grid_n ** 3
        self.clamp_max = 1.0 - BIN_CLAMP_EPSILON

    def cell_index(self, position) -> int:
        """Returns the row-major cell index of a single (x, y, z) position."""
        x, y, z = (float(c) for c in position)
        if not (math.isfinite(x) and math.isfinite(y) and math.isfinite(z)):
            raise ContractViolation(f"Cannot bin non-finite position {tuple(position)}.")
        n = self.grid_n
        ix = _axis_index(x, self.half, self.box_size, n, self.clamp_max)
        iy = _axis_index(y, self.half, self.box_size, n, self.clamp_max)
        iz = _axis_index(z, self.half, self.box_size, n, self.clamp_max)
        return ix + iy * n + iz * n * n

    def bin_positions(self, positions: np.ndarray) -> np.ndarray:
        """Vectorized cell_index over an (m, 3) array of positions."""
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
        if not np.all(np.isfinite(positions)):
            raise ContractViolation("Cannot bin positions with non-finite coordinates.")
        u = np.clip((positions + self.half) / self.box_size, 0.0, self.clamp_max)
        axis_idx = np.minimum(np.floor(u * self.grid_n).astype(np.int64), self.grid_n - 1)
        n = self.grid_n
        return axis_idx[:, 0] + axis_idx[:, 1] * n + axis_idx[:, 2] * n * n

    def cell_coords(self, index: int) -> Tuple[int, int, int]:
        """Inverse of the row-major flattening: index -> (ix, iy, iz)."""
        if not 0 <= index < self.num_cells:
            raise IndexError(f"Cell index {index} outside [0, {self.num_cells}).")
        n = self.grid_n
        return index % n, (index // n) % n, index // (n * n)

    def cell_center(self, index: int) -> Tuple[float, float, float]:
        """World-space center of a cell."""
        ix, iy, iz = self.cell_coords(index)
        return (
            -self.half + (ix + 0.5) * self.cell_size,
            -self.half + (iy + 0.5) * self.cell_size,
            -self.half + (iz + 0.5) * self.cell_size,
        )

    def count(self, positions: np.ndarray, color_flags: np.ndarray,
              red_counts: np.ndarray, blue_counts: np.ndarray) -> None:
        """
        Zeroes the count buffers in place and fills them from one snapshot.

        Args:
            positions (np.ndarray): (m, 3) float64, C-contiguous.
            color_flags (np.ndarray): (m,) bool, True for red.
            red_counts (np.ndarray): (n^3,) int64 buffer, overwritten.
            blue_counts (np.ndarray): (n^3,) int64 buffer, overwritten.
        """
        red_counts.fill(0)
        blue_counts.fill(0)
        if positions.shape[0] == 0:
            return
        _count_cells_numba(
            positions, color_flags, self.half, self.box_size,
            self.grid_n, self.clamp_max, red_counts, blue_counts
        )


class EntropyEstimator:
    """
    Turns per-cell red/blue counts into local and global combinatorial entropy.
    """
    def score(self, red_counts: np.ndarray, blue_counts: np.ndarray,
              out: Optional[np.ndarray] = None) -> EntropySample:
        red = np.asarray(red_counts)
        blue = np.asarray(blue_counts)
        if red.shape != blue.shape or red.ndim != 1:
            raise ContractViolation(
                f"Cell count arrays must be 1-D and equally shaped, got {red.shape} and {blue.shape}."
            )
        if red.size and (red.min() < 0 or blue.min() < 0):
            raise ContractViolation("Negative cell count encountered; counts must come from a binning pass.")

        if out is None:
            out = np.zeros(red.shape, dtype=np.float64)
        else:
            out.fill(0.0)

        # Empty and single-colored cells keep S_i = 0; both colors present implies n >= 2.
        mixed = (red > 0) & (blue > 0)
        if np.any(mixed):
            r = red[mixed].astype(np.float64)
            b = blue[mixed].astype(np.float64)
            out[mixed] = gammaln(r + b + 1.0) - (gammaln(r + 1.0) + gammaln(b + 1.0))

        total = float(out.sum())
        s_max = float(out.max()) if out.size else 0.0
        return EntropySample(total, out, s_max)


class EntropyEngine:
    """
    Per-tick pipeline: snapshot -> bin -> score.

    Owns the count and entropy buffers. They are sized gridN^3, cleared in
    place every tick and only reallocated by reconfigure().
    """
    def __init__(self, box_size: float, grid_n: int, estimator: Optional[EntropyEstimator] = None):
        """
        Initializes the engine and allocates its buffers.

        Args:
            box_size (float): Side length L of the cube.
            grid_n (int): Number of cells per axis.
            estimator (EntropyEstimator, optional): Scoring strategy.
        """
        self.binner = SpatialBinner(box_size, grid_n)
        self.estimator = estimator if estimator is not None else EntropyEstimator()
        self.tick_count = 0
        self._allocate_buffers()

        logging.info(
            f"EntropyEngine initialized: L={self.binner.box_size}, "
            f"{self.grid_n}^3 = {self.binner.num_cells} cells, "
            f"cell size {self.binner.cell_size:.3f}."
        )

    @property
    def grid_n(self) -> int:
        return self.binner.grid_n

    def _allocate_buffers(self):
        size = self.binner.num_cells
        self._red_counts = np.zeros(size, dtype=np.int64)
        self._blue_counts = np.zeros(size, dtype=np.int64)
        self._per_cell = np.zeros(size, dtype=np.float64)

    def reconfigure(self, grid_n: int) -> None:
        """Switches to a new grid resolution; buffers are rebuilt before the next tick."""
        self.binner = SpatialBinner(self.binner.box_size, grid_n)
        self._allocate_buffers()
        logging.info(f"EntropyEngine reconfigured to {self.grid_n}^3 cells.")

    @property
    def cell_counts(self) -> Tuple[np.ndarray, np.ndarray]:
        """Read-only views of the last tick's (red, blue) counts."""
        return _read_only(self._red_counts), _read_only(self._blue_counts)

    def _snapshot(self, positions, color_flags) -> Tuple[np.ndarray, np.ndarray]:
        """Copies the upstream streams so the tick works from stable data."""
        if positions is None or color_flags is None:
            return np.empty((0, 3), dtype=np.float64), np.empty(0, dtype=np.bool_)

        try:
            pos = np.array(positions, dtype=np.float64, copy=True)
            flags = np.array(color_flags, dtype=np.bool_, copy=True)
        except (ValueError, TypeError) as e:
            raise ContractViolation(f"Upstream streams could not be read as arrays: {e}") from e
        if pos.size == 0:
            pos = pos.reshape(0, 3)
        if pos.ndim != 2 or pos.shape[1] != 3:
            raise ContractViolation(f"Position stream must have shape (m, 3), got {pos.shape}.")
        if flags.ndim != 1:
            raise ContractViolation(f"Color-flag stream must be 1-D, got shape {flags.shape}.")
        if pos.shape[0] != flags.shape[0]:
            raise ContractViolation(
                f"Position stream has {pos.shape[0]} entries but color-flag stream has {flags.shape[0]}."
            )
        if not np.all(np.isfinite(pos)):
            raise ContractViolation("Position stream contains non-finite coordinates.")
        return np.ascontiguousarray(pos), flags

    def compute_tick(self, positions, color_flags) -> EntropySample:
        """
        Runs one full tick and returns the entropy sample.

        The returned per_cell array is a read-only view of an engine buffer;
        copy it if it must outlive the next tick.
        """
        pos, flags = self._snapshot(positions, color_flags)
        self.binner.count(pos, flags, self._red_counts, self._blue_counts)
        sample = self.estimator.score(self._red_counts, self._blue_counts, out=self._per_cell)
        self.tick_count += 1

        logging.debug(
            f"Tick {self.tick_count}: {pos.shape[0]} particles, "
            f"S_total={sample.total:.4f}, S_max={sample.s_max:.4f}"
        )
        return EntropySample(sample.total, _read_only(sample.per_cell), sample.s_max)


def _read_only(arr: np.ndarray) -> np.ndarray:
    view = arr.view()
    view.flags.writeable = False
    return view
