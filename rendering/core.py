from __future__ import annotations
import math
from typing import Optional, Tuple

import numpy as np

from coloring.palettes import palette_table
from coloring.smooth_escape import map_colors, to_rgba_bytes
from coloring.supersample import supersample
from fractals.base import RenderParameters, Viewport
from fractals.mandelbrot import escape_points
from utils.coords import ViewMapping, pixel_to_complex
from utils.enums import ColorStrategy


def auto_iterations(viewport: Viewport) -> int:
    """
    Iteration budget that grows as the view shrinks:
    floor(223 / sqrt(0.001 + 2 * min(|span_x|, |span_y|))), at least 1.
    """
    f = math.sqrt(0.001 + 2.0 * min(abs(viewport.span_x), abs(viewport.span_y)))
    return max(1, int(math.floor(223.0 / f)))


class ScanlineRenderer:

    """
    Binds together:
      - the view mapping (pixel -> complex plane),
      - the escape-time evaluator,
      - the color strategy (and its palette table),
      - optional supersampling with an injected random source.
    Produces one row of RGBA bytes at a time.
    """

    def __init__(self, mapping: ViewMapping, params: RenderParameters,
                 rng: Optional[np.random.Generator] = None):
        self.mapping = mapping
        self.params = params
        self.rng = rng if rng is not None else np.random.default_rng()

        self._palette = None
        if params.color_strategy is ColorStrategy.GRAYSCALE_PALETTE:
            self._palette = palette_table(params.palette, params.palette_size)

        # Row-invariant real coordinates
        self._cr = mapping.x_range[0] + np.arange(mapping.width, dtype=np.float64) * mapping.dx

    def sample_point(self, px: float, py: float) -> Tuple[float, float]:
        return pixel_to_complex(self.mapping, px, py)

    def shade(self, cr: np.ndarray, ci: np.ndarray) -> np.ndarray:
        """Evaluate and color a flat batch of points -> (N, 4) float RGBA."""
        p = self.params
        n, tr, ti = escape_points(cr, ci, p.max_iterations, p.escape_radius_squared)
        return map_colors(p.color_strategy, p.max_iterations, n, tr, ti,
                          interior_color=p.interior_color, palette=self._palette)

    def render_row(self, py: int) -> np.ndarray:
        """Returns row py as a (width, 4) uint8 array."""
        ci = self.mapping.y_range[0] + py * self.mapping.dy
        samples = self.params.super_sample_count
        if samples > 1:
            colors = supersample(self._cr, ci, self.mapping.dx, self.mapping.dy,
                                 samples, self.rng, self.shade)
        else:
            colors = self.shade(self._cr, np.full_like(self._cr, ci))
        return to_rgba_bytes(colors)
