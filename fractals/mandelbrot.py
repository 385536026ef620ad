import numpy as np
from numba import njit


# Uncounted iterations after escape; shrinks the error term of the
# smooth-coloring estimate (see linas.org/art-gallery/escape/escape.html).
EXTRA_ITERATIONS = 4


@njit(cache=True)
def escape_time(cr, ci, max_iterations, escape_radius_squared):
    """
    Iterates Z <- Z^2 + C from Z = 0 using Tr = Zr^2, Ti = Zi^2.

    Returns (n, Tr, Ti). n == max_iterations means the point did not escape
    within the budget; Tr and Ti are taken after the extra iterations.
    """
    zr = 0.0
    zi = 0.0
    tr = 0.0
    ti = 0.0
    n = 0

    while n < max_iterations and tr + ti <= escape_radius_squared:
        zi = 2.0 * zr * zi + ci
        zr = tr - ti + cr
        tr = zr * zr
        ti = zi * zi
        n += 1

    for _ in range(EXTRA_ITERATIONS):
        zi = 2.0 * zr * zi + ci
        zr = tr - ti + cr
        tr = zr * zr
        ti = zi * zi

    return n, tr, ti


@njit(cache=True)
def _escape_points(cr, ci, max_iterations, escape_radius_squared,
                   n_out, tr_out, ti_out):
    for i in range(cr.shape[0]):
        n, tr, ti = escape_time(cr[i], ci[i], max_iterations, escape_radius_squared)
        n_out[i] = n
        tr_out[i] = tr
        ti_out[i] = ti


def escape_points(cr: np.ndarray, ci: np.ndarray, max_iterations: int,
                  escape_radius_squared: float):
    """
    Evaluates escape_time for a flat batch of points.
    Returns (n, tr, ti) arrays with the shape of cr.
    """
    cr = np.ascontiguousarray(cr, dtype=np.float64).ravel()
    ci = np.ascontiguousarray(np.broadcast_to(ci, cr.shape), dtype=np.float64).ravel()

    n_out = np.empty(cr.shape, dtype=np.int64)
    tr_out = np.empty(cr.shape, dtype=np.float64)
    ti_out = np.empty(cr.shape, dtype=np.float64)
    _escape_points(cr, ci, int(max_iterations), float(escape_radius_squared),
                   n_out, tr_out, ti_out)
    return n_out, tr_out, ti_out
