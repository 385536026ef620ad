import math
from typing import Optional, Sequence, Tuple

import numpy as np

from coloring.palettes import palette_table
from fractals.base import INTERIOR_COLOR
from utils.enums import ColorStrategy


# Empirical offset of the smoothing formula; with the extra iterations in
# the escape loop it keeps the continuous count close to n.
SMOOTH_OFFSET = 5.0

LOG_BASE = 1.0 / math.log(2.0)
LOG_HALF_BASE = math.log(0.5) * LOG_BASE


def smooth_value(max_iterations: int, n, tr, ti) -> np.ndarray:
    """
    Continuous iteration count: 5 + n - log2(0.5) - log2(log(Tr + Ti)).
    NaN maps to 0 and infinities map to max_iterations.
    """
    n = np.asarray(n, dtype=np.float64)
    mag = np.asarray(tr, dtype=np.float64) + np.asarray(ti, dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        v = SMOOTH_OFFSET + n - LOG_HALF_BASE - np.log(np.log(mag)) * LOG_BASE
    v = np.where(np.isnan(v), 0.0, v)
    return np.where(np.isinf(v), float(max_iterations), v)


def hsv_to_rgb(h, s, v) -> np.ndarray:
    """
    Converts hue (degrees), saturation and value (0..1) to RGB in 0..255.
    Hue is wrapped into [0, 360) and value clamped into [0, 1].
    Returns an (..., 3) float array.
    """
    h = np.mod(np.asarray(h, dtype=np.float64), 360.0)
    s = np.asarray(s, dtype=np.float64)
    v = np.clip(np.asarray(v, dtype=np.float64), 0.0, 1.0)
    h, s, v = np.broadcast_arrays(h, s, v)

    hp = h / 60.0
    c = v * s
    x = c * (1.0 - np.abs(np.mod(hp, 2.0) - 1.0))
    zero = np.zeros_like(c)
    sector = np.clip(np.floor(hp).astype(np.int64), 0, 5)

    r = np.choose(sector, [c, x, zero, zero, x, c])
    g = np.choose(sector, [x, c, c, x, zero, zero])
    b = np.choose(sector, [zero, zero, x, c, c, x])

    m = v - c
    return np.stack([r + m, g + m, b + m], axis=-1) * 255.0


def _with_alpha(rgb: np.ndarray) -> np.ndarray:
    alpha = np.full(rgb.shape[:-1] + (1,), 255.0)
    return np.concatenate([rgb, alpha], axis=-1)


def interior_shade(tr, ti) -> np.ndarray:
    """
    Gray level for points that did not escape: 255 - floor(255 * |Z|) mod 255.
    Non-finite magnitudes give black.
    """
    mag = np.asarray(tr, dtype=np.float64) + np.asarray(ti, dtype=np.float64)
    with np.errstate(invalid="ignore", over="ignore"):
        level = 255.0 - np.mod(np.floor(255.0 * np.sqrt(mag)), 255.0)
    return np.clip(np.nan_to_num(level, nan=0.0, posinf=0.0, neginf=0.0), 0.0, 255.0)


def map_colors(strategy: ColorStrategy, max_iterations: int, n, tr, ti,
               interior_color: Sequence[int] = INTERIOR_COLOR,
               palette: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Maps escape results to RGBA for a batch of samples.

    Returns an (N, 4) float array, unrounded, so callers can average
    supersamples before converting to bytes with to_rgba_bytes().
    The palette strategy uses the given (L, 3) table, or a 256 entry
    grayscale table when none is given. Interior points get interior_color,
    except under the shaded-interior strategy which grades them by |Z|.
    """
    n = np.atleast_1d(np.asarray(n))
    interior = n >= max_iterations
    v = smooth_value(max_iterations, n, tr, ti)
    scaled = v / max_iterations

    if strategy is ColorStrategy.HSV_CONSTANT_VALUE:
        colors = _with_alpha(hsv_to_rgb(360.0 * scaled, 1.0, 1.0))
    elif strategy is ColorStrategy.HSV_SCALED_VALUE:
        colors = _with_alpha(hsv_to_rgb(360.0 * scaled, 1.0, np.minimum(1.0, 10.0 * scaled)))
    elif strategy is ColorStrategy.HSV_SCALED_VALUE_BGR:
        rgb = hsv_to_rgb(360.0 * scaled, 1.0, np.minimum(1.0, 10.0 * scaled))
        colors = _with_alpha(rgb[..., ::-1])
    elif strategy in (ColorStrategy.GRAYSCALE_LINEAR, ColorStrategy.GRAYSCALE_SHADED_INTERIOR):
        level = np.clip(np.floor(512.0 * scaled), 0, 255)
        colors = _with_alpha(np.repeat(level[..., None], 3, axis=-1))
    elif strategy is ColorStrategy.GRAYSCALE_PALETTE:
        table = palette if palette is not None else palette_table("Grayscale", 256)
        length = len(table)
        idx = np.mod(np.floor(length * scaled).astype(np.int64), length)
        colors = _with_alpha(table[idx].astype(np.float64))
    else:
        raise ValueError(f"Unsupported color strategy: {strategy!r}")

    if strategy is ColorStrategy.GRAYSCALE_SHADED_INTERIOR:
        shade = interior_shade(np.atleast_1d(tr)[interior], np.atleast_1d(ti)[interior])
        colors[interior] = _with_alpha(np.repeat(shade[..., None], 3, axis=-1))
    else:
        colors[interior] = np.asarray(interior_color, dtype=np.float64)
    return colors


def to_rgba_bytes(colors: np.ndarray) -> np.ndarray:
    """Rounds (half to even) and clamps float colors into uint8 RGBA."""
    return np.clip(np.rint(colors), 0, 255).astype(np.uint8)


def pick_color(strategy: ColorStrategy, max_iterations: int, n: int, tr: float, ti: float,
               interior_color: Sequence[int] = INTERIOR_COLOR,
               palette: Optional[np.ndarray] = None) -> Tuple[int, int, int, int]:
    """Single-sample convenience around map_colors()."""
    colors = map_colors(strategy, max_iterations, [n], [tr], [ti],
                        interior_color=interior_color, palette=palette)
    r, g, b, a = (int(c) for c in to_rgba_bytes(colors)[0])
    return r, g, b, a
