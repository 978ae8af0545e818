"""
Escape-time computation kernels using Numba JIT compilation.

This module contains all the performance-critical functions of the
engine. They are compiled in nopython mode and take plain floats and
ints so they can be called both from Python and from each other:
- Escape evaluation of a single complex sample (smoothed iteration count)
- 2x2 supersampling of one pixel
- Pixel <-> complex plane mapping for a viewport
- Row-parallel computation of a full frame
- Colormap application for display

Kernels are compiled without fastmath so NaN and infinity propagate
exactly as IEEE-754 arithmetic produces them.
"""

import numpy as np
from numba import jit, prange


LOG_2 = np.log(2.0)


@jit(nopython=True, cache=True)
def escape_value(c_re, c_im, max_iter, diverge_thresh_sq):
    """
    Smoothed escape iteration count for the sample c = c_re + i*c_im.

    Iterates z <- z^2 + c from z = 0, keeping the squares of both parts
    around so each step costs three multiplications.

    Args:
        c_re, c_im: Real and imaginary parts of the sample
        max_iter: Iteration budget
        diverge_thresh_sq: Escape radius squared

    Returns:
        i + 1 - log(log(|z|^2)) / log(2) for the first iteration i
        (1-indexed) where |z|^2 exceeds the threshold, or max_iter + 1
        when the orbit stays bounded for the whole budget.
    """
    x = 0.0
    y = 0.0
    x2 = 0.0
    y2 = 0.0
    for i in range(1, max_iter + 1):
        y = (x + x) * y + c_im
        x = x2 - y2 + c_re
        x2 = x * x
        y2 = y * y
        if x2 + y2 > diverge_thresh_sq:
            return i + 1 - np.log(np.log(x2 + y2)) / LOG_2
    return float(max_iter + 1)


@jit(nopython=True, cache=True)
def pixel_size(left, right, bottom, top, width, height):
    """Size of one raster pixel in plane units, as (pixel_width, pixel_height)."""
    return (right - left) / width, (top - bottom) / height


@jit(nopython=True, cache=True)
def to_plane(px, py, left, right, bottom, top, width, height):
    """
    Map a pixel coordinate to the complex plane.

    Column px runs from left to right and row py from bottom to top.
    Fractional pixel coordinates are accepted; nothing is clamped.
    """
    re = px / width * (right - left) + left
    im = py / height * (top - bottom) + bottom
    return re, im


@jit(nopython=True, cache=True)
def to_pixel(re, im, left, right, bottom, top, width, height):
    """Inverse of to_plane: plane coordinate to (fractional) pixel coordinate."""
    px = (re - left) / (right - left) * width
    py = (im - bottom) / (top - bottom) * height
    return px, py


@jit(nopython=True, cache=True)
def subsamples(re, im, pixel_width, pixel_height):
    """
    Four sample points of a 2x2 jittered grid inside one pixel.

    The pixel is split into quadrants of half the pixel size and each
    sample sits at the centre of its quadrant. Samples are returned in
    the order (0,0), (0,1), (1,0), (1,1) of (column, row) quadrants.

    Args:
        re, im: Plane coordinate of the pixel origin (from to_plane)
        pixel_width, pixel_height: Pixel size in plane units

    Returns:
        Tuple of four (re, im) tuples
    """
    x_inc = pixel_width / 2.0
    y_inc = pixel_height / 2.0
    x_off = x_inc / 2.0
    y_off = y_inc / 2.0
    return (
        (re + x_off, im + y_off),
        (re + x_off, im + y_inc + y_off),
        (re + x_inc + x_off, im + y_off),
        (re + x_inc + x_off, im + y_inc + y_off),
    )


@jit(nopython=True, cache=True)
def supersample_pixel(re, im, pixel_width, pixel_height, max_iter, diverge_thresh_sq):
    """Average escape value of the four sub-samples of a pixel."""
    total = 0.0
    for sample in subsamples(re, im, pixel_width, pixel_height):
        total += escape_value(sample[0], sample[1], max_iter, diverge_thresh_sq)
    return total / 4.0


@jit(nopython=True, cache=True)
def compute_row(out, py, left, right, bottom, top, width, height,
                max_iter, diverge_thresh_sq):
    """
    Fill one row of a frame.

    Args:
        out: 1D float64 array of length width, modified in place
        py: Row index (0 is the bottom edge of the viewport)
        left, right, bottom, top: Viewport bounds
        width, height: Raster dimensions
        max_iter: Iteration budget
        diverge_thresh_sq: Escape radius squared
    """
    pixel_width, pixel_height = pixel_size(left, right, bottom, top, width, height)
    for px in range(width):
        re, im = to_plane(px, py, left, right, bottom, top, width, height)
        out[px] = supersample_pixel(re, im, pixel_width, pixel_height,
                                    max_iter, diverge_thresh_sq)


@jit(nopython=True, parallel=True, cache=True)
def compute_frame(left, right, bottom, top, width, height, max_iter, diverge_thresh_sq):
    """
    Compute the supersampled escape values of a whole frame.

    Rows are distributed over Numba's thread pool. Each row writes only
    its own slice of the result, so the output does not depend on
    scheduling.

    Args:
        left, right: Real axis bounds in the complex plane
        bottom, top: Imaginary axis bounds in the complex plane
        width, height: Raster dimensions in pixels
        max_iter: Iteration budget
        diverge_thresh_sq: Escape radius squared

    Returns:
        2D numpy array (height, width) of float64 escape values. Pixels
        whose four samples all stay bounded have value max_iter + 1.
    """
    result = np.empty((height, width), dtype=np.float64)
    for py in prange(height):
        compute_row(result[py], py, left, right, bottom, top, width, height,
                    max_iter, diverge_thresh_sq)
    return result


@jit(nopython=True, parallel=True, cache=True)
def apply_colormap(data, max_iter, colormap, out):
    """
    Colour a frame of escape values.

    Values below max_iter are normalised by max_iter and looked up with
    linear interpolation between adjacent colormap entries. Everything
    else (the inside-the-set sentinel, averages at or above max_iter and
    NaN) takes the colour at position 0.0 of the ramp.

    Args:
        data: 2D array of escape values from compute_frame
        max_iter: Iteration budget used for the frame
        colormap: Nx3 array of RGB colors (uint8)
        out: Output RGB image array (height, width, 3), modified in place
    """
    height, width = data.shape
    num_colors = colormap.shape[0]

    for py in prange(height):
        for px in range(width):
            val = data[py, px]
            t = 0.0
            if val < max_iter:
                t = val / max_iter
            if t < 0.0:
                t = 0.0
            elif t > 1.0:
                t = 1.0

            fidx = t * (num_colors - 1)
            idx0 = int(fidx)
            idx1 = min(idx0 + 1, num_colors - 1)
            frac = fidx - idx0
            for ch in range(3):
                out[py, px, ch] = np.uint8(colormap[idx0, ch] * (1 - frac) +
                                           colormap[idx1, ch] * frac)


def warmup_jit(colormap):
    """
    Warm up JIT compilation with a tiny frame.

    Call this once at startup to pre-compile the Numba functions,
    avoiding a delay on the first real frame.

    Args:
        colormap: A colormap array to use for warming up apply_colormap
    """
    data = compute_frame(-2.0, 1.0, -1.5, 1.5, 8, 8, 10, 4.0)
    dummy = np.zeros((8, 8, 3), dtype=np.uint8)
    apply_colormap(data, 10, colormap, dummy)
