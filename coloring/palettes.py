from functools import lru_cache

import numpy as np
from scipy.interpolate import interp1d


PALETTE_SIZES = (256, 512)


def apply_gamma_correction(palette, gamma=0.8):
    """
    Applies gamma correction to a palette to increase contrast.

    Parameters:
        palette (np.ndarray): (N, 3) array of RGB values (0–255).
        gamma (float): Gamma value (<1 brightens, >1 darkens).

    Returns:
        np.ndarray: Gamma-corrected palette, float.
    """
    return 255.0 * (np.clip(palette, 0, 255) / 255.0) ** gamma


def stretch_contrast(palette):
    """
    Linearly stretches each RGB channel to span the full 0–255 range.
    Channels that are constant across the palette are left untouched.
    """
    arr = np.asarray(palette, dtype=np.float64)
    min_vals = arr.min(axis=0)
    max_vals = arr.max(axis=0)
    spread = max_vals - min_vals
    stretched = np.where(spread > 0,
                         (arr - min_vals) / np.where(spread > 0, spread, 1.0) * 255,
                         arr)
    return np.clip(stretched, 0, 255)


def create_smooth_gradient(palette, resolution=256, interpolation='cubic'):
    """
    Generates a smooth gradient from a list of RGB tuples using interpolation.

    Parameters:
        palette (list of tuple): RGB control points (each value 0–255).
        resolution (int): Number of colors in the output table.
        interpolation (str): Interpolation method ('linear', 'quadratic', 'cubic', etc.).

    Returns:
        np.ndarray: (resolution, 3) uint8 table.
    """
    if len(palette) < 2:
        raise ValueError("Palette must contain at least two colors for interpolation.")

    points = np.array(palette, dtype=np.float64)
    indices = np.linspace(0, len(points) - 1, num=len(points))
    interp_func = interp1d(indices, points, kind=interpolation, axis=0, fill_value="extrapolate")
    smooth_indices = np.linspace(0, len(points) - 1, num=resolution)
    smooth = np.clip(interp_func(smooth_indices), 0, 255)
    smooth = apply_gamma_correction(smooth)
    smooth = stretch_contrast(smooth)
    return np.rint(smooth).astype(np.uint8)


# Control points; tables are built on demand at the requested resolution.
base_palettes = {
    "Grayscale": [
        (0, 0, 0), (32, 32, 32), (64, 64, 64), (96, 96, 96),
        (128, 128, 128), (160, 160, 160), (192, 192, 192),
        (224, 224, 224), (255, 255, 255)],

    "InvertedGrayscale": [
        (255, 255, 255), (224, 224, 224), (192, 192, 192),
        (160, 160, 160), (128, 128, 128), (96, 96, 96),
        (64, 64, 64), (32, 32, 32), (0, 0, 0)],

    "Classic": [
        (0, 0, 0), (66, 30, 15), (25, 7, 26), (9, 1, 47), (4, 4, 73),
        (0, 7, 100), (12, 44, 138), (24, 82, 177), (57, 125, 209),
        (134, 181, 229), (211, 236, 248), (241, 233, 191), (248, 201, 95),
        (255, 170, 0), (204, 128, 0), (153, 87, 0), (106, 52, 3)],

    "Fire": [
        (0, 0, 0), (255, 0, 0), (255, 85, 0), (255, 170, 0),
        (255, 255, 0), (255, 255, 85), (255, 255, 170)],

    "Ocean": [
        (0, 0, 0), (0, 32, 64), (0, 64, 128), (0, 96, 192),
        (0, 128, 255), (64, 160, 255), (128, 192, 255)],

    "Sunset": [
        (0, 0, 0), (44, 0, 44), (128, 0, 64),
        (255, 94, 77), (255, 195, 113), (255, 255, 204)],
}


def list_palettes():
    return sorted(base_palettes.keys())


@lru_cache(maxsize=None)
def _cached_table(name: str, size: int) -> np.ndarray:
    table = create_smooth_gradient(base_palettes[name], resolution=size)
    table.setflags(write=False)
    return table


def palette_table(name: str = "Grayscale", size: int = 256) -> np.ndarray:
    """
    Returns the (size, 3) uint8 color table for a named palette.
    Raises KeyError for unknown names and ValueError for unsupported sizes.
    """
    if size not in PALETTE_SIZES:
        raise ValueError(f"Palette size must be one of {PALETTE_SIZES}, got {size}")
    if name not in base_palettes:
        raise KeyError(f"Unknown palette '{name}'")
    return _cached_table(name, int(size))
