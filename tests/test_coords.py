import pytest

from fractals.base import Viewport
from utils.coords import map_viewport, pixel_to_complex, complex_to_pixel


@pytest.mark.parametrize("w, h", [(800, 600), (600, 800), (640, 640), (1920, 1080), (1, 1), (3, 1000)])
@pytest.mark.parametrize("span", [(3.4, 3.4), (4.0, 1.0), (0.001, 0.003)])
def test_ranges_match_canvas_aspect(w, h, span):
    m = map_viewport(Viewport(-0.6, 0.0, *span), w, h)
    xr = abs(m.x_range[1] - m.x_range[0])
    yr = abs(m.y_range[1] - m.y_range[0])
    assert xr / yr == pytest.approx(w / h, rel=1e-12)


def test_mapping_only_widens_and_keeps_center():
    vp = Viewport(-0.6, 0.25, 3.4, 3.4)
    m = map_viewport(vp, 800, 600)
    assert m.viewport.span_x == pytest.approx(3.4 * 4 / 3)
    assert m.viewport.span_y == pytest.approx(3.4)
    assert m.viewport.center == (-0.6, 0.25)
    assert sum(m.x_range) / 2 == pytest.approx(-0.6)
    assert sum(m.y_range) / 2 == pytest.approx(0.25)


def test_pixel_delta_uses_half_pixel_inset():
    m = map_viewport(Viewport(0.0, 0.0, 2.0, 2.0), 11, 11)
    assert m.dx == pytest.approx(2.0 / 10.5)
    assert m.dy == pytest.approx(2.0 / 10.5)
    # Last pixel stays inside the range
    cr, ci = pixel_to_complex(m, 10, 10)
    assert cr < m.x_range[1] and ci < m.y_range[1]


def test_origin_pixel_is_range_start():
    m = map_viewport(Viewport(-0.6, 0.0, 3.4, 3.4), 800, 600)
    assert pixel_to_complex(m, 0, 0) == (m.x_range[0], m.y_range[0])


@pytest.mark.parametrize("px, py", [(0, 0), (399, 299), (400, 300), (799, 599), (123.25, 77.5)])
def test_pixel_roundtrip(px, py):
    m = map_viewport(Viewport(-0.6, 0.0, 3.4, 3.4), 800, 600)
    rx, ry = complex_to_pixel(m, *pixel_to_complex(m, px, py))
    assert rx == pytest.approx(px, abs=1e-6)
    assert ry == pytest.approx(py, abs=1e-6)


def test_center_pixel_is_within_one_pixel_of_center():
    vp = Viewport(-0.6, 0.0, 3.4, 3.4)
    m = map_viewport(vp, 800, 600)
    cr, ci = pixel_to_complex(m, 400, 300)
    assert abs(cr - vp.center_x) <= m.dx
    assert abs(ci - vp.center_y) <= m.dy


@pytest.mark.parametrize("w, h", [(0, 10), (10, 0), (-5, 5)])
def test_non_positive_canvas_rejected(w, h):
    with pytest.raises(ValueError):
        map_viewport(Viewport(0.0, 0.0, 1.0, 1.0), w, h)
