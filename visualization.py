# visualization.py
"""
Handles the visualization of the entropy grid using Pygame.

The cube is shown as gridN z-slices laid out side by side. Each slice is a
gridN x gridN heat map of local entropy, with the particles of that slice
drawn on top. A side panel shows the total entropy HUD.
"""
import logging
import math
import pygame
import numpy as np
from typing import Optional, Sequence, Tuple

from constants import (
    BACKGROUND_COLOR, FPS, UI_PANEL_WIDTH, PANEL_PADDING, UI_BACKGROUND_ALPHA,
    DEFAULT_COLOR_STOPS, DEFAULT_CELL_OPACITY, DEFAULT_PANEL_SIZE,
    RED_PARTICLE_COLOR, BLUE_PARTICLE_COLOR,
)
from errors import ConfigurationError

# Forward reference for type hinting to avoid circular import
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from entropy import EntropyEngine, EntropySample
    from particle import ParticleSystem


# --- Data Contracts ---
#
# class VisualizationMapper:
#   - normalize(per_cell: np.ndarray, s_max: float) -> np.ndarray:
#     - Outputs: t = clamp(S_i / s_max, 0, 1) per cell; all zeros when
#       s_max <= 0 (ordered or empty population). Never divides by zero.
#
# class ColorStopRamp:
#   - __init__(self, stops: Sequence[Sequence[int]]):
#     - Raises ConfigurationError for fewer than two stops.
#   - colors_for(self, t: np.ndarray) -> np.ndarray:
#     - Outputs: (k, 3) uint8 RGB, piecewise-linear across the stops.
#
# class Visualizer:
#   - draw(self, particles, engine, sample, overlap_possible) -> bool:
#     - Outputs: False if the user has quit, True otherwise.
#     - Side Effects: Renders to the screen, handles Pygame events, and
#       may reconfigure the engine's grid resolution (+ / - keys).


class VisualizationMapper:
    """Maps per-cell entropy to a display parameter in [0, 1]."""

    @staticmethod
    def normalize(per_cell: np.ndarray, s_max: float) -> np.ndarray:
        per_cell = np.asarray(per_cell, dtype=np.float64)
        if not s_max > 0:
            return np.zeros_like(per_cell)
        return np.clip(per_cell / s_max, 0.0, 1.0)


class ColorStopRamp:
    """
    Ordered anchor colors, interpolated piecewise-linearly.
    """
    def __init__(self, stops: Sequence[Sequence[int]] = DEFAULT_COLOR_STOPS):
        self.stops = np.array(stops, dtype=np.float64)
        if self.stops.ndim != 2 or self.stops.shape[0] < 2 or self.stops.shape[1] != 3:
            msg = f"Configuration error: a color ramp needs at least two RGB stops, got {stops!r}."
            logging.critical(msg)
            raise ConfigurationError(msg)

    def colors_for(self, t: np.ndarray) -> np.ndarray:
        t = np.clip(np.asarray(t, dtype=np.float64), 0.0, 1.0)
        n_segments = self.stops.shape[0] - 1
        x = t * n_segments
        i = np.minimum(np.floor(x).astype(np.int64), n_segments - 1)
        f = (x - i)[..., np.newaxis]
        rgb = self.stops[i] + (self.stops[i + 1] - self.stops[i]) * f
        return np.rint(rgb).astype(np.uint8)

    def color_at(self, t: float) -> Tuple[int, int, int]:
        r, g, b = self.colors_for(np.array([t]))[0]
        return int(r), int(g), int(b)


class Visualizer:
    """
    Renders the z-slices of the entropy grid and the total entropy HUD.
    """
    def __init__(self, box_size: float, grid_n: int, vis_params: Optional[dict] = None):
        """
        Initializes Pygame and the display window.
        """
        vis_params = vis_params if vis_params is not None else {}
        self.box_size = box_size
        self.panel_size = int(vis_params.get('panel_size', DEFAULT_PANEL_SIZE))
        self.cell_opacity = float(vis_params.get('cell_opacity', DEFAULT_CELL_OPACITY))
        self.ramp = ColorStopRamp(vis_params.get('color_stops') or DEFAULT_COLOR_STOPS)
        self.mapper = VisualizationMapper()

        pygame.init()
        pygame.font.init()
        pygame.display.set_caption("Mixing Entropy")
        self.clock = pygame.time.Clock()

        try:
            self.font_title = pygame.font.SysFont("Segoe UI", 16, bold=True)
            self.font_value = pygame.font.SysFont("Segoe UI", 28, bold=True)
            self.font_main = pygame.font.SysFont("Segoe UI", 14)
        except pygame.error:
            logging.warning("Segoe UI font not found, falling back to default sans-serif.")
            self.font_title = pygame.font.SysFont(None, 20, bold=True)
            self.font_value = pygame.font.SysFont(None, 34, bold=True)
            self.font_main = pygame.font.SysFont(None, 18)

        self.text_color_title = (255, 255, 255)
        self.text_color_key = (200, 200, 200)

        self._layout(grid_n)

    def _layout(self, grid_n: int):
        """Sizes the window for grid_n slice panels arranged in a near-square grid."""
        self.grid_n = grid_n
        self.cols = math.ceil(math.sqrt(grid_n))
        self.rows = math.ceil(grid_n / self.cols)
        step = self.panel_size + PANEL_PADDING
        self.sim_width = self.cols * step + PANEL_PADDING
        self.sim_height = max(self.rows * step + PANEL_PADDING, 360)
        self.screen = pygame.display.set_mode((self.sim_width + UI_PANEL_WIDTH, self.sim_height))

        self.cell_surface = pygame.Surface((self.panel_size, self.panel_size), pygame.SRCALPHA)
        self.ui_panel_surface = pygame.Surface((UI_PANEL_WIDTH, self.sim_height), pygame.SRCALPHA)
        self.ui_panel_surface.fill((40, 40, 40, UI_BACKGROUND_ALPHA))

        logging.info(
            f"Visualizer laid out {grid_n} slices in {self.rows}x{self.cols} panels "
            f"({self.sim_width + UI_PANEL_WIDTH}x{self.sim_height})."
        )

    def _panel_origin(self, iz: int) -> Tuple[int, int]:
        row, col = divmod(iz, self.cols)
        step = self.panel_size + PANEL_PADDING
        return PANEL_PADDING + col * step, PANEL_PADDING + row * step

    def _to_panel(self, coord: np.ndarray) -> np.ndarray:
        """World coordinate in [-L/2, L/2] -> pixel offset inside a panel."""
        return ((coord + self.box_size / 2.0) / self.box_size * self.panel_size).astype(int)

    def _draw_slices(self, colors: np.ndarray):
        n = self.grid_n
        cell_px = self.panel_size / n
        alpha = int(255 * self.cell_opacity)
        for iz in range(n):
            ox, oy = self._panel_origin(iz)
            self.cell_surface.fill((0, 0, 0, 0))
            for iy in range(n):
                for ix in range(n):
                    r, g, b = colors[ix + iy * n + iz * n * n]
                    rect = pygame.Rect(int(ix * cell_px), int(iy * cell_px),
                                       math.ceil(cell_px), math.ceil(cell_px))
                    pygame.draw.rect(self.cell_surface, (int(r), int(g), int(b), alpha), rect)
            self.screen.blit(self.cell_surface, (ox, oy))
            pygame.draw.rect(self.screen, (90, 90, 90), (ox, oy, self.panel_size, self.panel_size), 1)

            label = self.font_main.render(f"z-slice {iz}", True, self.text_color_key)
            self.screen.blit(label, (ox + 4, oy + 2))

    def _draw_particles(self, particles: "ParticleSystem", engine: "EntropyEngine"):
        positions = particles.positions
        if positions.shape[0] == 0:
            return
        n = engine.grid_n
        iz = engine.binner.bin_positions(positions) // (n * n)
        px = self._to_panel(positions[:, 0])
        py = self._to_panel(positions[:, 1])
        dot = max(2, int(particles.radius / self.box_size * self.panel_size))
        for i in range(positions.shape[0]):
            ox, oy = self._panel_origin(int(iz[i]))
            color = RED_PARTICLE_COLOR if particles.is_red[i] else BLUE_PARTICLE_COLOR
            pygame.draw.circle(self.screen, color, (ox + int(px[i]), oy + int(py[i])), dot)

    def _draw_hud(self, particles: "ParticleSystem", sample: "EntropySample", overlap_possible: bool):
        x = self.sim_width + 20
        y = 20
        self.screen.blit(self.font_title.render("TOTAL ENTROPY", True, self.text_color_title), (x, y))
        y += 24
        self.screen.blit(self.font_value.render(f"{sample.total:.3f}", True, self.text_color_title), (x, y))
        y += 40
        lines = [
            "S = k ln W, k = 1",
            f"S max (cell): {sample.s_max:.3f}",
            f"Grid: {self.grid_n}^3 cells",
            f"Particles: {int(particles.is_red.sum())} red / {int((~particles.is_red).sum())} blue",
            f"Initial overlap possible: {'yes' if overlap_possible else 'no'}",
            f"FPS: {self.clock.get_fps():.1f}",
            "",
            "+ / - : change grid resolution",
            "Esc : quit",
        ]
        for line in lines:
            self.screen.blit(self.font_main.render(line, True, self.text_color_key), (x, y))
            y += self.font_main.get_linesize() + 4

        # Ramp legend
        y += 10
        legend_width = UI_PANEL_WIDTH - 40
        for offset in range(legend_width):
            color = self.ramp.color_at(offset / max(legend_width - 1, 1))
            pygame.draw.line(self.screen, color, (x + offset, y), (x + offset, y + 12))
        self.screen.blit(self.font_main.render("ordered", True, self.text_color_key), (x, y + 16))
        mixed = self.font_main.render("mixed", True, self.text_color_key)
        self.screen.blit(mixed, (x + legend_width - mixed.get_width(), y + 16))

    def _handle_events(self, engine: "EntropyEngine") -> bool:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logging.info("Quit event received. Closing visualizer.")
                return False
            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    logging.info("Escape pressed. Closing visualizer.")
                    return False
                new_n = None
                if event.key in (pygame.K_PLUS, pygame.K_EQUALS, pygame.K_KP_PLUS):
                    new_n = engine.grid_n + 1
                elif event.key in (pygame.K_MINUS, pygame.K_KP_MINUS) and engine.grid_n > 1:
                    new_n = engine.grid_n - 1
                if new_n is not None:
                    engine.reconfigure(new_n)
                    self._layout(new_n)
        return True

    def draw(self, particles: "ParticleSystem", engine: "EntropyEngine",
             sample: "EntropySample", overlap_possible: bool = False) -> bool:
        """Renders one frame. Returns False once the user quits."""
        if not self._handle_events(engine):
            return False
        # A reconfiguration inside event handling invalidates this frame's sample.
        if sample.per_cell.shape[0] != self.grid_n ** 3:
            return True

        self.screen.fill(BACKGROUND_COLOR)
        t = self.mapper.normalize(sample.per_cell, sample.s_max)
        self._draw_slices(self.ramp.colors_for(t))
        self._draw_particles(particles, engine)

        self.screen.blit(self.ui_panel_surface, (self.sim_width, 0))
        self._draw_hud(particles, sample, overlap_possible)

        pygame.display.flip()
        self.clock.tick(FPS)
        return True

    def close(self):
        pygame.quit()
        logging.info("Visualizer closed.")
