from typing import Callable, Tuple

import numpy as np


# (cr, ci) flat arrays -> (N, 4) float RGBA
Shader = Callable[[np.ndarray, np.ndarray], np.ndarray]


def jitter_offsets(rng: np.random.Generator, count: int, samples: int,
                   dx: float, dy: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Draws independent uniform sub-pixel offsets in [0, dx) x [0, dy),
    shape (count, samples) each.
    """
    rx = rng.random((count, samples)) * dx
    ry = rng.random((count, samples)) * dy
    return rx, ry


def supersample(cr: np.ndarray, ci: np.ndarray, dx: float, dy: float,
                samples: int, rng: np.random.Generator, shade: Shader) -> np.ndarray:
    """
    Monte-Carlo antialiasing for a batch of pixels.

    Each nominal point is perturbed `samples` times by half of a random
    offset inside its cell, every sample is shaded, and the RGBA channels
    are averaged per pixel. Returns an (N, 4) float array; rounding is left
    to the caller so it happens exactly once.

    Results depend on the generator state: seed it for reproducible output.
    """
    cr = np.asarray(cr, dtype=np.float64).ravel()
    ci = np.broadcast_to(np.asarray(ci, dtype=np.float64), cr.shape)
    count = cr.shape[0]
    samples = int(samples)

    rx, ry = jitter_offsets(rng, count, samples, dx, dy)
    sample_cr = cr[:, None] - rx / 2
    sample_ci = ci[:, None] - ry / 2

    colors = shade(sample_cr.ravel(), sample_ci.ravel())
    return colors.reshape(count, samples, 4).mean(axis=1)
