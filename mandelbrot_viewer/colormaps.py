"""
Colormap definitions for escape-value display.

Each colormap is a numpy array of shape (4096, 3) with RGB values
(uint8), built by linear interpolation between a handful of colour
stops. The high resolution keeps apply_colormap's interpolation smooth.

To add a new colormap, add its stops to _STOPS below.
"""

import numpy as np


NUM_COLORS = 4096  # Resolution of colormap for smooth gradients


# (position, (r, g, b)) stops, positions ascending from 0.0 to 1.0
_STOPS = {
    # Approximation of matplotlib's perceptually uniform magma ramp
    # (black -> purple -> orange -> pale yellow), sampled every 1/8
    'Magma': [
        (0.000, (0, 0, 4)),
        (0.125, (28, 16, 68)),
        (0.250, (79, 18, 123)),
        (0.375, (129, 37, 129)),
        (0.500, (181, 54, 122)),
        (0.625, (229, 80, 100)),
        (0.750, (251, 135, 97)),
        (0.875, (254, 194, 135)),
        (1.000, (252, 253, 191)),
    ],
    'Inferno': [
        (0.000, (0, 0, 4)),
        (0.250, (87, 16, 110)),
        (0.500, (188, 55, 84)),
        (0.750, (249, 142, 9)),
        (1.000, (252, 255, 164)),
    ],
    'Hot': [
        (0.0, (0, 0, 0)),
        (0.4, (255, 0, 0)),
        (0.7, (255, 191, 0)),
        (1.0, (255, 255, 255)),
    ],
    'Grayscale': [
        (0.0, (0, 0, 0)),
        (1.0, (255, 255, 255)),
    ],
}


def create_colormap(stops, num_colors=NUM_COLORS):
    """
    Interpolate colour stops into a lookup table.

    Args:
        stops: Sequence of (position, (r, g, b)) with ascending positions
        num_colors: Number of entries in the table

    Returns:
        (num_colors, 3) uint8 array
    """
    positions = np.array([p for p, _ in stops], dtype=np.float64)
    rgb = np.array([c for _, c in stops], dtype=np.float64)
    t = np.linspace(0.0, 1.0, num_colors)
    colors = np.empty((num_colors, 3), dtype=np.uint8)
    for ch in range(3):
        colors[:, ch] = np.round(np.interp(t, positions, rgb[:, ch]))
    return colors


def get_colormap(name):
    """
    Get a colormap by name.

    Raises:
        KeyError if name not found
    """
    return create_colormap(_STOPS[name])


def get_default_colormap():
    """Get the default colormap (Magma)."""
    return get_colormap('Magma')


def list_colormap_names():
    """Get list of available colormap names."""
    return list(_STOPS.keys())
