from dataclasses import dataclass
from typing import Tuple

from fractals.base import Viewport


@dataclass(frozen=True)
class ViewMapping:
    """
    Concrete complex-plane ranges and per-pixel deltas for one canvas size.
    Viewport holds the aspect-corrected view the ranges were derived from.
    """
    viewport: Viewport
    x_range: Tuple[float, float]
    y_range: Tuple[float, float]
    dx: float
    dy: float
    width: int
    height: int


def map_viewport(viewport: Viewport, canvas_width: int, canvas_height: int) -> ViewMapping:
    """
    Fits the viewport onto the canvas without distortion: the axis that is
    too short for the canvas aspect ratio is widened about the center.

    The per-pixel delta divides by (0.5 + (n - 1)) so the last pixel's sample
    sits inside the range instead of on its edge.
    """
    width, height = int(canvas_width), int(canvas_height)
    if width <= 0 or height <= 0:
        raise ValueError(f"Canvas size must be positive, got {width}x{height}")

    cx, cy = viewport.center_x, viewport.center_y
    span_x, span_y = viewport.span_x, viewport.span_y

    content_ratio = abs(span_x) / abs(span_y)
    canvas_ratio = width / height
    if canvas_ratio > content_ratio:
        span_x *= canvas_ratio / content_ratio
    else:
        span_y *= content_ratio / canvas_ratio

    x_range = (cx - span_x / 2, cx + span_x / 2)
    y_range = (cy - span_y / 2, cy + span_y / 2)
    dx = (x_range[1] - x_range[0]) / (0.5 + (width - 1))
    dy = (y_range[1] - y_range[0]) / (0.5 + (height - 1))

    return ViewMapping(
        viewport=Viewport(cx, cy, span_x, span_y),
        x_range=x_range,
        y_range=y_range,
        dx=dx,
        dy=dy,
        width=width,
        height=height,
    )


def pixel_to_complex(mapping: ViewMapping, px: float, py: float) -> Tuple[float, float]:
    return mapping.x_range[0] + px * mapping.dx, mapping.y_range[0] + py * mapping.dy


def complex_to_pixel(mapping: ViewMapping, cr: float, ci: float) -> Tuple[float, float]:
    return (cr - mapping.x_range[0]) / mapping.dx, (ci - mapping.y_range[0]) / mapping.dy
