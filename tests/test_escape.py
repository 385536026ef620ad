import numpy as np
import pytest

from fractals.mandelbrot import escape_time, escape_points


@pytest.mark.parametrize("max_iter", [1, 10, 100, 1000])
@pytest.mark.parametrize("r2", [4.0, 100.0])
def test_origin_never_escapes(max_iter, r2):
    n, tr, ti = escape_time(0.0, 0.0, max_iter, r2)
    assert n == max_iter
    assert tr == 0.0 and ti == 0.0


@pytest.mark.parametrize("max_iter", [1, 5, 100])
def test_far_point_diverges_immediately(max_iter):
    n, _, _ = escape_time(2.0, 2.0, max_iter, 4.0)
    assert n <= 1


def test_escape_is_deterministic():
    first = escape_time(-0.7453, 0.1127, 500, 100.0)
    for _ in range(5):
        assert escape_time(-0.7453, 0.1127, 500, 100.0) == first


def test_point_outside_reports_large_magnitude():
    n, tr, ti = escape_time(0.5, 0.5, 100, 100.0)
    assert 0 < n < 100
    # Extra iterations keep going past the escape radius
    assert tr + ti > 100.0


def test_main_cardioid_point_is_interior():
    n, _, _ = escape_time(-0.6, 0.0, 250, 100.0)
    assert n == 250


def test_escape_points_matches_scalar_kernel():
    cr = np.array([0.0, 2.0, -0.6, 0.5, -1.0])
    ci = np.array([0.0, 2.0, 0.0, 0.5, 0.3])
    n, tr, ti = escape_points(cr, ci, 100, 100.0)
    assert n.dtype == np.int64
    for i in range(len(cr)):
        en, etr, eti = escape_time(cr[i], ci[i], 100, 100.0)
        assert n[i] == en
        assert tr[i] == etr and ti[i] == eti


def test_escape_points_broadcasts_scalar_imaginary_part():
    cr = np.linspace(-2.0, 0.5, 7)
    n_row, _, _ = escape_points(cr, 0.25, 64, 4.0)
    n_full, _, _ = escape_points(cr, np.full_like(cr, 0.25), 64, 4.0)
    np.testing.assert_array_equal(n_row, n_full)
