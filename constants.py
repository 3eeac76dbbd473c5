# constants.py
"""
Application-level constants.

These values are static and do not change between simulation runs.
They cover the framework around the entropy engine: default domain values
used when config.json omits a key, numerical guards for binning, the
placement sampler's trial budget, and rendering properties.
"""

# --- Domain Defaults (used when config.json omits a value) ---
DEFAULT_BOX_SIZE = 10.0        # Cube side length L, world units
DEFAULT_GRID_N = 4             # Cells per axis
DEFAULT_NUM_RED = 50
DEFAULT_NUM_BLUE = 50
DEFAULT_PARTICLE_RADIUS = 0.2  # World units
DEFAULT_INITIAL_SPEED = 4.5    # World units per second
DEFAULT_DELTA_TIME = 1.0 / 60.0

# --- Binning ---
# Normalized coordinates are clamped to [0, 1 - BIN_CLAMP_EPSILON] so that
# floor(u * grid_n) never reaches grid_n.
BIN_CLAMP_EPSILON = 1e-7

# --- Initial Placement ---
# Total number of rejection-sampling trials shared by the whole fill,
# independent of the particle count.
MAX_PLACEMENT_TRIALS = 5000
# Particles spawn inside a cube shrunk by radius * WALL_MARGIN_FACTOR.
WALL_MARGIN_FACTOR = 1.1

# --- Visualization ---
FPS = 60
BACKGROUND_COLOR = (24, 24, 24)  # Dark Gray
UI_PANEL_WIDTH = 300
DEFAULT_PANEL_SIZE = 320         # Pixels per z-slice panel
PANEL_PADDING = 16
DEFAULT_CELL_OPACITY = 0.1
UI_BACKGROUND_ALPHA = 100

RED_PARTICLE_COLOR = (255, 64, 64)    # #ff4040
BLUE_PARTICLE_COLOR = (74, 163, 255)  # #4aa3ff

# Multi-stop ramp from low (ordered) to high (mixed) local entropy.
DEFAULT_COLOR_STOPS = [
    (0, 176, 80),    # Green
    (200, 255, 0),   # Yellow-green
    (255, 176, 0),   # Amber
    (255, 0, 51),    # Red
]
