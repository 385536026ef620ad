from typing import Tuple

from fractals.base import Viewport
from utils.coords import map_viewport, pixel_to_complex
from utils.view_state import DEFAULT_VIEWPORT

# Boxes smaller than this (in pixels) are treated as a click.
MIN_BOX_PIXELS = 1
ZOOM_FACTOR = 2.0


def zoom_to_box(viewport: Viewport, canvas_width: int, canvas_height: int,
                x0: float, y0: float, x1: float, y1: float) -> Viewport:
    """
    Zooms into the canvas rectangle (x0, y0)-(x1, y1), given in pixels.

    The new center is the box center; both spans shrink by the larger of
    box_w / W and box_h / H so the whole box stays visible.
    """
    bw, bh = abs(x1 - x0), abs(y1 - y0)
    if bw < MIN_BOX_PIXELS or bh < MIN_BOX_PIXELS:
        return zoom_at(viewport, canvas_width, canvas_height, x1, y1)

    mapping = map_viewport(viewport, canvas_width, canvas_height)
    cx, cy = pixel_to_complex(mapping, (x0 + x1) / 2, (y0 + y1) / 2)
    factor = max(bw / mapping.width, bh / mapping.height)
    return Viewport(cx, cy, mapping.viewport.span_x * factor, mapping.viewport.span_y * factor)


def zoom_at(viewport: Viewport, canvas_width: int, canvas_height: int,
            px: float, py: float, zoom_out: bool = False,
            factor: float = ZOOM_FACTOR) -> Viewport:
    """Recenters on a pixel and zooms in (or out) by factor."""
    mapping = map_viewport(viewport, canvas_width, canvas_height)
    cx, cy = pixel_to_complex(mapping, px, py)
    scale = factor if zoom_out else 1.0 / factor
    return Viewport(cx, cy, mapping.viewport.span_x * scale, mapping.viewport.span_y * scale)


def pan_by_pixels(viewport: Viewport, canvas_width: int, canvas_height: int,
                  dx_px: float, dy_px: float) -> Viewport:
    """Moves the view so the content follows a drag of (dx_px, dy_px)."""
    mapping = map_viewport(viewport, canvas_width, canvas_height)
    return Viewport(mapping.viewport.center_x - dx_px * mapping.dx,
                    mapping.viewport.center_y - dy_px * mapping.dy,
                    mapping.viewport.span_x, mapping.viewport.span_y)


def reset_view(default: Viewport = DEFAULT_VIEWPORT) -> Viewport:
    return Viewport(default.center_x, default.center_y, default.span_x, default.span_y)


def box_corners(x0: float, y0: float, x1: float, y1: float) -> Tuple[float, float, float, float]:
    """Normalizes a drag rectangle to (left, top, right, bottom)."""
    return min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1)
