import math

import numpy as np
import pytest

from coloring.palettes import palette_table, list_palettes, PALETTE_SIZES, create_smooth_gradient
from coloring.smooth_escape import (smooth_value, hsv_to_rgb, map_colors, to_rgba_bytes,
                                    pick_color, interior_shade, SMOOTH_OFFSET)
from fractals.base import INTERIOR_COLOR
from utils.enums import ColorStrategy

# Tr + Ti = e^2 makes log2(log(Tr + Ti)) == 1, so the smooth value is 5 + n.
E2 = math.exp(2.0)


def test_smooth_value_closed_form():
    v = smooth_value(100, np.array([5]), np.array([E2]), np.array([0.0]))
    assert v[0] == pytest.approx(SMOOTH_OFFSET + 5)


def test_smooth_value_recovers_nan_and_infinity():
    # log(log(0)) is NaN, log(log(1)) is -inf
    v = smooth_value(80, np.array([3, 3]), np.array([0.0, 1.0]), np.array([0.0, 0.0]))
    assert v[0] == 0.0
    assert v[1] == 80.0


@pytest.mark.parametrize("hue, expected", [
    (0, (255, 0, 0)),
    (60, (255, 255, 0)),
    (120, (0, 255, 0)),
    (180, (0, 255, 255)),
    (240, (0, 0, 255)),
    (300, (255, 0, 255)),
    (360, (255, 0, 0)),
    (480, (0, 255, 0)),
])
def test_hsv_primary_hues(hue, expected):
    rgb = hsv_to_rgb(hue, 1.0, 1.0)
    np.testing.assert_allclose(rgb, expected, atol=1e-9)


def test_hsv_zero_value_is_black():
    np.testing.assert_allclose(hsv_to_rgb(200.0, 1.0, 0.0), (0, 0, 0))


def test_hsv_value_is_clamped():
    np.testing.assert_allclose(hsv_to_rgb(0.0, 1.0, 3.0), (255, 0, 0))


FLAT_INTERIOR = [s for s in ColorStrategy if s is not ColorStrategy.GRAYSCALE_SHADED_INTERIOR]


@pytest.mark.parametrize("strategy", FLAT_INTERIOR)
def test_interior_points_use_interior_color(strategy):
    n = np.array([50, 50, 50])
    tr = np.array([0.0, 1.0, 1e6])
    ti = np.array([0.0, 7.0, 3.0])
    colors = map_colors(strategy, 50, n, tr, ti)
    np.testing.assert_array_equal(to_rgba_bytes(colors), np.tile(INTERIOR_COLOR, (3, 1)))


def test_custom_interior_color():
    assert pick_color(ColorStrategy.HSV_CONSTANT_VALUE, 10, 10, 5.0, 5.0,
                      interior_color=(9, 8, 7, 255)) == (9, 8, 7, 255)


@pytest.mark.parametrize("tr, ti, level", [
    (0.0, 0.0, 255),
    (0.25, 0.0, 128),      # floor(127.5) = 127
    (0.5, 0.5, 255),       # 255 mod 255 = 0
    (1.0, 3.0, 255),
    (0.0, 0.09, 179),      # floor(76.5) = 76
    (float("inf"), 0.0, 0),
    (float("nan"), 0.0, 0),
])
def test_shaded_interior_levels(tr, ti, level):
    assert pick_color(ColorStrategy.GRAYSCALE_SHADED_INTERIOR, 50, 50, tr, ti,
                      interior_color=(9, 8, 7, 255)) == (level, level, level, 255)


def test_shaded_interior_exterior_matches_linear_grayscale():
    n = np.array([3, 5, 20])
    tr = np.array([E2, 50.0, 1e4])
    ti = np.array([0.0, 60.0, 2.0])
    np.testing.assert_array_equal(
        map_colors(ColorStrategy.GRAYSCALE_SHADED_INTERIOR, 100, n, tr, ti),
        map_colors(ColorStrategy.GRAYSCALE_LINEAR, 100, n, tr, ti))


def test_interior_shade_batch():
    np.testing.assert_array_equal(interior_shade([0.0, 0.25], [0.0, 0.0]), [255.0, 128.0])


@pytest.mark.parametrize("strategy", list(ColorStrategy))
def test_colors_are_deterministic(strategy):
    args = (strategy, 100, 7, 150.0, 250.0)
    assert pick_color(*args) == pick_color(*args)


def test_hsv_constant_value():
    # v = 10 of 100 -> hue 36
    assert pick_color(ColorStrategy.HSV_CONSTANT_VALUE, 100, 5, E2, 0.0) == (255, 153, 0, 255)


def test_hsv_scaled_value_saturates_like_constant():
    assert pick_color(ColorStrategy.HSV_SCALED_VALUE, 100, 5, E2, 0.0) == (255, 153, 0, 255)


def test_hsv_scaled_value_dims_low_counts():
    n, tr, ti = np.array([1]), np.array([E2]), np.array([0.0])
    v = smooth_value(400, n, tr, ti) / 400
    expected = hsv_to_rgb(360.0 * v, 1.0, np.minimum(1.0, 10.0 * v))
    colors = map_colors(ColorStrategy.HSV_SCALED_VALUE, 400, n, tr, ti)
    np.testing.assert_allclose(colors[:, :3], expected)
    assert colors[0, :3].max() < 255.0


def test_bgr_variant_swaps_red_and_blue():
    assert pick_color(ColorStrategy.HSV_SCALED_VALUE_BGR, 100, 5, E2, 0.0) == (0, 153, 255, 255)


def test_grayscale_linear():
    # floor(512 * 10 / 100) = 51
    assert pick_color(ColorStrategy.GRAYSCALE_LINEAR, 100, 5, E2, 0.0) == (51, 51, 51, 255)


def test_grayscale_linear_clamps_to_white():
    assert pick_color(ColorStrategy.GRAYSCALE_LINEAR, 100, 80, E2, 0.0) == (255, 255, 255, 255)


def test_grayscale_palette_indexes_table():
    table = palette_table("Grayscale", 256)
    expected = tuple(int(c) for c in table[25]) + (255,)
    assert pick_color(ColorStrategy.GRAYSCALE_PALETTE, 100, 5, E2, 0.0) == expected


def test_grayscale_palette_custom_table_wraps():
    table = np.array([[10, 20, 30], [40, 50, 60]], dtype=np.uint8)
    # index floor(2 * 0.1) = 0
    assert pick_color(ColorStrategy.GRAYSCALE_PALETTE, 100, 5, E2, 0.0, palette=table) == (10, 20, 30, 255)


def test_map_colors_rejects_unknown_strategy():
    with pytest.raises(ValueError):
        map_colors("sepia", 10, np.array([1]), np.array([E2]), np.array([0.0]))


def test_to_rgba_bytes_rounds_half_to_even_and_clamps():
    out = to_rgba_bytes(np.array([[-3.0, 255.6, 127.5, 128.5]]))
    np.testing.assert_array_equal(out, [[0, 255, 128, 128]])
    assert out.dtype == np.uint8


# ---------- Palettes ----------

@pytest.mark.parametrize("size", PALETTE_SIZES)
@pytest.mark.parametrize("name", list_palettes())
def test_palette_tables(name, size):
    table = palette_table(name, size)
    assert table.shape == (size, 3)
    assert table.dtype == np.uint8
    assert not table.flags.writeable


def test_grayscale_table_spans_full_range():
    table = palette_table("Grayscale", 256).astype(int)
    assert table[0].tolist() == [0, 0, 0]
    assert table[-1].tolist() == [255, 255, 255]
    assert np.all(np.diff(table[:, 0]) >= 0)


def test_palette_table_errors():
    with pytest.raises(ValueError):
        palette_table("Grayscale", 100)
    with pytest.raises(KeyError):
        palette_table("Nope", 256)


def test_gradient_needs_two_colors():
    with pytest.raises(ValueError):
        create_smooth_gradient([(0, 0, 0)])
