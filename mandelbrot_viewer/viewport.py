"""
Viewport values and the view state that owns them.

A Viewport is an immutable (left, right, bottom, top) rectangle of the
complex plane. Input handlers never modify one in place: ViewState
builds a new Viewport for every click or zoom and swaps it in, so a
renderer that took a snapshot keeps a consistent rectangle for the
whole frame.
"""

import math
import threading
from typing import NamedTuple

from .compute import to_plane
from .config import InvalidConfigurationError


class Viewport(NamedTuple):
    """Visible rectangle of the complex plane."""

    left: float
    right: float
    bottom: float
    top: float

    @classmethod
    def from_center(cls, re, im, half_width, half_height):
        return cls(re - half_width, re + half_width, im - half_height, im + half_height)

    @property
    def width(self):
        return self.right - self.left

    @property
    def height(self):
        return self.top - self.bottom

    @property
    def center(self):
        return self.left + self.width / 2.0, self.bottom + self.height / 2.0

    def validate(self):
        """
        Check that the rectangle is finite and non-empty.

        Returns:
            self, so calls can be chained

        Raises:
            InvalidConfigurationError if left >= right, bottom >= top or
            any edge is not finite
        """
        if not all(math.isfinite(v) for v in self):
            raise InvalidConfigurationError(f"viewport edges must be finite: {tuple(self)}")
        if not self.left < self.right:
            raise InvalidConfigurationError(
                f"viewport left ({self.left}) must be less than right ({self.right})")
        if not self.bottom < self.top:
            raise InvalidConfigurationError(
                f"viewport bottom ({self.bottom}) must be less than top ({self.top})")
        return self

    def snapshot(self):
        """Plain-float copy of the edges, safe to hand to the kernels."""
        return Viewport(float(self.left), float(self.right), float(self.bottom), float(self.top))

    def recentered(self, re, im):
        """Same size, shifted so that (re, im) is the centre."""
        cx, cy = self.center
        return Viewport(self.left - cx + re, self.right - cx + re,
                        self.bottom - cy + im, self.top - cy + im)

    def zoomed(self, factor):
        """
        Scale around the centre.

        factor > 1 zooms in (the rectangle shrinks by that factor),
        factor < 1 zooms out.
        """
        cx, cy = self.center
        return Viewport.from_center(cx, cy, self.width / factor / 2.0, self.height / factor / 2.0)


class ViewState:
    """
    Owner of the current viewport (copy-on-write).

    Input handlers call recenter/click/zoom_in/zoom_out/reset; the
    renderer reads `viewport`, which is always a complete immutable
    Viewport. Updates that would produce an invalid rectangle raise
    InvalidConfigurationError and leave the state unchanged.
    """

    def __init__(self, initial, zoom_inc=2.0):
        self.initial = Viewport(*initial).validate()
        self.zoom_inc = zoom_inc
        self._viewport = self.initial
        self._lock = threading.Lock()
        self.version = 0

    @property
    def viewport(self):
        with self._lock:
            return self._viewport

    def _update(self, change):
        """Replace the viewport with change(current), atomically."""
        with self._lock:
            new_viewport = change(self._viewport).validate()
            self._viewport = new_viewport
            self.version += 1
        return new_viewport

    def recenter(self, re, im):
        """Move the view so (re, im) is at its centre."""
        return self._update(lambda view: view.recentered(re, im))

    def click(self, px, py, width, height):
        """
        Recenter on a raster position.

        Args:
            px, py: Pixel coordinate in raster space (row 0 at the bottom)
            width, height: Raster dimensions
        """
        def recenter_on_pixel(view):
            left, right, bottom, top = view
            return view.recentered(*to_plane(float(px), float(py), left, right, bottom, top,
                                             width, height))
        return self._update(recenter_on_pixel)

    def zoom_in(self):
        return self._update(lambda view: view.zoomed(self.zoom_inc))

    def zoom_out(self):
        return self._update(lambda view: view.zoomed(1.0 / self.zoom_inc))

    def reset(self):
        return self._update(lambda view: self.initial)
