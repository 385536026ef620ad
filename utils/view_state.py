from __future__ import annotations
import dataclasses
import json
import math
from typing import Any, Dict, Optional, Sequence, Tuple
from urllib.parse import quote, unquote

from fractals.base import Viewport, RenderParameters
from fractals.validator import ConfigError
from utils.coords import map_viewport
from utils.enums import ColorStrategy

DEFAULT_CENTER = (-0.6, 0.0)
DEFAULT_SPAN = 3.4
DEFAULT_ESCAPE_RADIUS = 10.0

DEFAULT_VIEWPORT = Viewport(DEFAULT_CENTER[0], DEFAULT_CENTER[1], DEFAULT_SPAN, DEFAULT_SPAN)
DEFAULT_PARAMETERS = RenderParameters(escape_radius_squared=DEFAULT_ESCAPE_RADIUS ** 2)

# Scheme names used by older shared links
LEGACY_SCHEMES = {
    "pickColorHSV1": ColorStrategy.HSV_CONSTANT_VALUE,
    "pickColorHSV2": ColorStrategy.HSV_SCALED_VALUE,
    "pickColorHSV3": ColorStrategy.HSV_SCALED_VALUE_BGR,
    "pickColorGrayscale": ColorStrategy.GRAYSCALE_LINEAR,
    "pickColorGrayscale2": ColorStrategy.GRAYSCALE_SHADED_INTERIOR,
}


def escape_radius(params: RenderParameters) -> float:
    return math.sqrt(params.escape_radius_squared)


def parse_color_strategy(name: str) -> ColorStrategy:
    """Enum value, enum name or legacy scheme name; anything else is grayscale."""
    name = str(name).strip()
    if name in LEGACY_SCHEMES:
        return LEGACY_SCHEMES[name]
    for strategy in ColorStrategy:
        if name in (strategy.value, strategy.name):
            return strategy
    return ColorStrategy.GRAYSCALE_LINEAR


def _float(key: str, text: str) -> float:
    try:
        value = float(text)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"'{key}' expects a number, got {text!r}") from e
    if not math.isfinite(value):
        raise ConfigError(f"'{key}' must be finite, got {text!r}")
    return value


def _int(key: str, text: str) -> int:
    try:
        return int(str(text).strip(), 10)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"'{key}' expects an integer, got {text!r}") from e


def _pair(key: str, text: str) -> Tuple[float, float]:
    parts = str(text).split(",")
    if len(parts) != 2:
        raise ConfigError(f"'{key}' expects two comma separated numbers, got {text!r}")
    return _float(key, parts[0]), _float(key, parts[1])


def _color(key: str, parts: Sequence[Any]) -> Tuple[int, int, int, int]:
    if len(parts) not in (3, 4):
        raise ConfigError(f"'{key}' expects [r, g, b] or [r, g, b, a], got {parts!r}")
    color = [_int(key, c) for c in parts]
    return tuple(color) if len(color) == 4 else (*color, 255)


# ----------------------------------------------------------------------
# URL hash
# ----------------------------------------------------------------------

def format_view_hash(viewport: Viewport, params: RenderParameters) -> str:
    """
    Serializes the view into a shareable URL fragment (without '#').
    """
    return "&".join([
        f"zoom={viewport.span_x!r},{viewport.span_y!r}",
        f"lookAt={viewport.center_x!r},{viewport.center_y!r}",
        f"iterations={params.max_iterations}",
        f"superSamples={params.super_sample_count}",
        f"escapeRadius={escape_radius(params)!r}",
        f"colorScheme={params.color_strategy.value}",
        f"palette={quote(params.palette)}",
        f"paletteSize={params.palette_size}",
        "interiorColor=" + ",".join(str(c) for c in params.interior_color),
    ])


def parse_view_hash(fragment: str, viewport: Viewport = DEFAULT_VIEWPORT,
                    params: RenderParameters = DEFAULT_PARAMETERS
                    ) -> Tuple[Viewport, RenderParameters, bool]:
    """
    Applies a URL fragment on top of the given view.

    Returns (viewport, params, changed). An explicit iteration count turns
    auto-iterations off. Unknown keys are ignored; malformed values raise
    ConfigError.
    """
    changed = False
    view_updates: Dict[str, Any] = {}
    param_updates: Dict[str, Any] = {}

    for tag in fragment.lstrip("#").split("&"):
        if not tag:
            continue
        key, _, val = tag.partition("=")
        if key == "zoom":
            view_updates["span_x"], view_updates["span_y"] = _pair(key, val)
        elif key == "lookAt":
            view_updates["center_x"], view_updates["center_y"] = _pair(key, val)
        elif key == "iterations":
            param_updates["max_iterations"] = _int(key, val)
            param_updates["auto_iterations"] = False
        elif key == "escapeRadius":
            param_updates["escape_radius_squared"] = _float(key, val) ** 2
        elif key == "superSamples":
            param_updates["super_sample_count"] = _int(key, val)
        elif key == "colorScheme":
            param_updates["color_strategy"] = parse_color_strategy(val)
        elif key == "palette":
            param_updates["palette"] = unquote(val)
        elif key == "paletteSize":
            param_updates["palette_size"] = _int(key, val)
        elif key == "interiorColor":
            param_updates["interior_color"] = _color(key, val.split(","))
        else:
            continue
        changed = True

    return (dataclasses.replace(viewport, **view_updates),
            dataclasses.replace(params, **param_updates),
            changed)


def format_view_info(viewport: Viewport, width: int, height: int) -> str:
    """Corner coordinates, canvas size and megapixels of the rendered view."""
    m = map_viewport(viewport, width, height)
    return (f"x0={m.x_range[0]!r} y0={m.y_range[0]!r} "
            f"x1={m.x_range[1]!r} y1={m.y_range[1]!r} "
            f"w×h={width}x{height} {width * height / 1e6:.1f}MP")


# ----------------------------------------------------------------------
# JSON config
# ----------------------------------------------------------------------

def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    if not config_path:
        return {}
    with open(config_path, "r", encoding="utf-8") as f:
        try:
            cfg = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Config {config_path} is not valid JSON: {e}") from e
    if not isinstance(cfg, dict):
        raise ConfigError("Config JSON must be an object.")
    return cfg


def config_from_mapping(cfg: Dict[str, Any], viewport: Viewport = DEFAULT_VIEWPORT,
                        params: RenderParameters = DEFAULT_PARAMETERS
                        ) -> Tuple[Viewport, RenderParameters]:
    """
    Builds (Viewport, RenderParameters) from defaults plus config overrides.

    Recognised keys: center [x, y], span [sx, sy] or a single number,
    max_iterations, auto_iterations, escape_radius, super_samples,
    color_strategy, update_interval_ms, palette, palette_size, interior_color.
    """
    view_updates: Dict[str, Any] = {}
    param_updates: Dict[str, Any] = {}

    if "center" in cfg:
        center = cfg["center"]
        if not (isinstance(center, (list, tuple)) and len(center) == 2):
            raise ConfigError("center must be [re, im].")
        view_updates["center_x"] = _float("center", center[0])
        view_updates["center_y"] = _float("center", center[1])
    if "span" in cfg:
        span = cfg["span"]
        if isinstance(span, (list, tuple)):
            if len(span) != 2:
                raise ConfigError("span must be a number or [sx, sy].")
            view_updates["span_x"] = _float("span", span[0])
            view_updates["span_y"] = _float("span", span[1])
        else:
            view_updates["span_x"] = view_updates["span_y"] = _float("span", span)

    if "max_iterations" in cfg:
        param_updates["max_iterations"] = _int("max_iterations", cfg["max_iterations"])
        param_updates["auto_iterations"] = False
    if "auto_iterations" in cfg:
        param_updates["auto_iterations"] = bool(cfg["auto_iterations"])
    if "escape_radius" in cfg:
        param_updates["escape_radius_squared"] = _float("escape_radius", cfg["escape_radius"]) ** 2
    if "super_samples" in cfg:
        param_updates["super_sample_count"] = _int("super_samples", cfg["super_samples"])
    if "color_strategy" in cfg:
        param_updates["color_strategy"] = parse_color_strategy(cfg["color_strategy"])
    if "update_interval_ms" in cfg:
        param_updates["update_interval_ms"] = _float("update_interval_ms", cfg["update_interval_ms"])
    if "palette" in cfg:
        param_updates["palette"] = str(cfg["palette"])
    if "palette_size" in cfg:
        param_updates["palette_size"] = _int("palette_size", cfg["palette_size"])
    if "interior_color" in cfg:
        color = cfg["interior_color"]
        if not isinstance(color, (list, tuple)):
            raise ConfigError("interior_color must be [r, g, b] or [r, g, b, a].")
        param_updates["interior_color"] = _color("interior_color", color)

    return (dataclasses.replace(viewport, **view_updates),
            dataclasses.replace(params, **param_updates))
