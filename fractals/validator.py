from __future__ import annotations
import math
import numbers
from typing import List

from fractals.base import Viewport, RenderParameters
from coloring.palettes import PALETTE_SIZES, list_palettes
from utils.enums import ColorStrategy


class ParameterError(ValueError):
    """Aggregated RenderParameters / Viewport validation error(s)."""


class ConfigError(ValueError):
    """Raised when a configuration source cannot be parsed."""


def _is_positive(value) -> bool:
    try:
        return math.isfinite(value) and value > 0
    except TypeError:
        return False


def validate_render_parameters(params: RenderParameters) -> List[str]:
    """
    Returns a list of human-readable problems with the given parameters.
    An empty list means the parameters are usable.
    """
    errors: List[str] = []

    if not isinstance(params.max_iterations, numbers.Integral) or isinstance(params.max_iterations, bool) \
            or params.max_iterations < 1:
        errors.append(f"max_iterations must be an integer >= 1, got {params.max_iterations!r}.")
    if not _is_positive(params.escape_radius_squared):
        errors.append(f"escape_radius_squared must be a finite number > 0, got {params.escape_radius_squared!r}.")
    if not isinstance(params.super_sample_count, numbers.Integral) or isinstance(params.super_sample_count, bool) \
            or params.super_sample_count < 1:
        errors.append(f"super_sample_count must be an integer >= 1, got {params.super_sample_count!r}.")
    if not isinstance(params.color_strategy, ColorStrategy):
        errors.append(f"color_strategy must be a ColorStrategy, got {params.color_strategy!r}.")

    interval = params.update_interval_ms
    if not isinstance(interval, numbers.Real) or not math.isfinite(interval) or interval < 0:
        errors.append(f"update_interval_ms must be a finite number >= 0, got {interval!r}.")

    color = params.interior_color
    if (not isinstance(color, (tuple, list)) or len(color) != 4
            or not all(isinstance(c, numbers.Integral) and 0 <= c <= 255 for c in color)):
        errors.append(f"interior_color must be four integers in [0, 255], got {color!r}.")

    if params.palette not in list_palettes():
        errors.append(f"Unknown palette '{params.palette}'.")
    if params.palette_size not in PALETTE_SIZES:
        errors.append(f"palette_size must be one of {PALETTE_SIZES}, got {params.palette_size!r}.")
    return errors


def validate_viewport(viewport: Viewport) -> List[str]:
    errors: List[str] = []
    for name in ("center_x", "center_y"):
        value = getattr(viewport, name)
        if not isinstance(value, numbers.Real) or not math.isfinite(value):
            errors.append(f"Viewport {name} must be finite, got {value!r}.")
    for name in ("span_x", "span_y"):
        if not _is_positive(getattr(viewport, name)):
            errors.append(f"Viewport {name} must be > 0, got {getattr(viewport, name)!r}.")
    return errors


def validate_request(viewport: Viewport, params: RenderParameters,
                     canvas_width: int, canvas_height: int) -> None:
    """
    Validates everything a render needs before any work starts.
    Raises ParameterError listing every problem found.
    """
    errors = validate_viewport(viewport) + validate_render_parameters(params)
    if int(canvas_width) <= 0 or int(canvas_height) <= 0:
        errors.append(f"Canvas size must be positive, got {canvas_width}x{canvas_height}.")

    if errors:
        raise ParameterError("Invalid render request:\n- " + "\n- ".join(errors))
