"""
Frame rendering: the engine's public entry point.

FrameRenderer turns a viewport snapshot into a grid of supersampled
escape values using the kernels in compute.py. BackgroundRenderer wraps
it in a worker thread so an interactive UI stays responsive:
- Only the latest requested viewport is rendered; older pending
  requests are dropped
- A frame that has started always runs to completion
- Finished frames are coloured on the worker thread
"""

import logging
import threading
import time
from typing import NamedTuple, Optional

import numba
import numpy as np

from .colormaps import get_default_colormap
from .compute import (
    apply_colormap,
    compute_frame,
    escape_value,
    pixel_size,
    subsamples,
    supersample_pixel,
    to_pixel,
    to_plane,
)
from .config import EngineConfig, check_raster
from .viewport import Viewport


logger = logging.getLogger(__name__)


class FrameRenderer:
    """
    Computes escape values for a raster covering a viewport.

    Usage:
        renderer = FrameRenderer(EngineConfig(width=320, height=180))
        grid = renderer.render(Viewport(-2.0, 1.0, -1.5, 1.5))
        # grid[row, col], row 0 = bottom edge of the viewport

    Raster dimensions default to the config's but may be given per call.
    """

    def __init__(self, config=None):
        self.config = config or EngineConfig()
        self.num_threads = None
        if self.config.num_threads is not None:
            self.num_threads = min(self.config.num_threads, numba.config.NUMBA_NUM_THREADS)

    def _raster(self, width, height):
        width = self.config.width if width is None else width
        height = self.config.height if height is None else height
        check_raster(width, height)
        return width, height

    def evaluate(self, c):
        """Smoothed escape value of one complex sample c = (re, im)."""
        return escape_value(float(c[0]), float(c[1]),
                            self.config.max_iter, self.config.diverge_thresh_sq)

    def to_plane(self, px, py, viewport, width=None, height=None):
        """Pixel coordinate -> complex plane coordinate (re, im)."""
        width, height = self._raster(width, height)
        left, right, bottom, top = Viewport(*viewport).snapshot()
        return to_plane(float(px), float(py), left, right, bottom, top, width, height)

    def to_pixel(self, re, im, viewport, width=None, height=None):
        """Complex plane coordinate -> fractional pixel coordinate (px, py)."""
        width, height = self._raster(width, height)
        left, right, bottom, top = Viewport(*viewport).snapshot()
        return to_pixel(float(re), float(im), left, right, bottom, top, width, height)

    def subsamples(self, pixel_plane_coord, viewport, width=None, height=None):
        """The four 2x2 sample points of the pixel whose origin is pixel_plane_coord."""
        width, height = self._raster(width, height)
        left, right, bottom, top = Viewport(*viewport).snapshot()
        pixel_width, pixel_height = pixel_size(left, right, bottom, top, width, height)
        re, im = pixel_plane_coord
        return subsamples(float(re), float(im), pixel_width, pixel_height)

    def supersample(self, pixel_plane_coord, viewport, width=None, height=None):
        """Mean escape value over the four sub-samples of one pixel."""
        width, height = self._raster(width, height)
        left, right, bottom, top = Viewport(*viewport).snapshot()
        pixel_width, pixel_height = pixel_size(left, right, bottom, top, width, height)
        re, im = pixel_plane_coord
        return supersample_pixel(float(re), float(im), pixel_width, pixel_height,
                                 self.config.max_iter, self.config.diverge_thresh_sq)

    def render(self, viewport, width=None, height=None):
        """
        Render one frame.

        The viewport is validated and copied to plain floats before the
        parallel loop starts, so later changes to the caller's state
        cannot affect this frame.

        Args:
            viewport: Viewport or (left, right, bottom, top) sequence
            width, height: Raster dimensions (default: from config)

        Returns:
            float64 array of shape (height, width)

        Raises:
            InvalidConfigurationError for an empty/non-finite viewport or
            non-positive raster dimensions
        """
        width, height = self._raster(width, height)
        left, right, bottom, top = Viewport(*viewport).snapshot().validate()

        # Numba thread counts are per calling thread
        if self.num_threads is not None:
            numba.set_num_threads(self.num_threads)

        start = time.perf_counter()
        grid = compute_frame(left, right, bottom, top, width, height,
                             self.config.max_iter, self.config.diverge_thresh_sq)
        logger.debug("Rendered %dx%d frame of (%r, %r, %r, %r) in %.3fs",
                     width, height, left, right, bottom, top, time.perf_counter() - start)
        return grid


def render(viewport, raster_width, raster_height, config=None):
    """
    Render a grid of escape values for a viewport.

    Convenience wrapper around FrameRenderer.render().
    """
    config = (config or EngineConfig()).with_raster(raster_width, raster_height)
    return FrameRenderer(config).render(viewport)


class Frame(NamedTuple):
    """A finished background render."""

    viewport: Viewport
    grid: np.ndarray
    rgb: Optional[np.ndarray]


class BackgroundRenderer:
    """
    Renders frames on a worker thread.

    Usage:
        background = BackgroundRenderer(FrameRenderer(config))
        background.compute_async(view_state.viewport)

        # In your game loop:
        frame = background.get_result()
        if frame is not None:
            display(frame.rgb)

    Attributes:
        renderer: FrameRenderer doing the actual work
        colormap: Nx3 uint8 ramp used to colour finished frames (None = no colouring)
    """

    def __init__(self, renderer=None, colormap=None, colorize=True):
        self.renderer = renderer or FrameRenderer()
        if colorize and colormap is None:
            colormap = get_default_colormap()
        self.colormap = colormap

        self.computing = False
        self.pending_viewport = None
        self.result = None
        self.lock = threading.Lock()
        self._idle = threading.Event()
        self._idle.set()

    def compute_async(self, viewport):
        """
        Request a frame for the given viewport.

        The viewport is validated here so that bad requests fail in the
        caller rather than on the worker thread. If a frame is already in
        flight the request waits for it; a newer request replaces a
        waiting one.
        """
        snapshot = Viewport(*viewport).snapshot().validate()
        with self.lock:
            self.pending_viewport = snapshot
            if not self.computing:
                self.computing = True
                self._idle.clear()
                thread = threading.Thread(target=self._compute_thread)
                thread.daemon = True
                thread.start()

    def _compute_thread(self):
        """Background loop: render the newest pending viewport until none is left."""
        logger.debug("Render worker started")
        while True:
            with self.lock:
                viewport = self.pending_viewport
                self.pending_viewport = None
                if viewport is None:
                    self.computing = False
                    self._idle.set()
                    break

            try:
                grid = self.renderer.render(viewport)
                rgb = None
                if self.colormap is not None:
                    rgb = np.empty(grid.shape + (3,), dtype=np.uint8)
                    apply_colormap(grid, self.renderer.config.max_iter, self.colormap, rgb)
            except Exception:
                # Keep serving newer requests; the failed frame is dropped
                logger.exception("Render of %r failed", viewport)
                continue

            with self.lock:
                self.result = Frame(viewport, grid, rgb)
        logger.debug("Render worker idle")

    def get_result(self):
        """
        Take the latest finished frame.

        Returns:
            Frame, or None if nothing new finished since the last call
        """
        with self.lock:
            frame = self.result
            self.result = None
        return frame

    def wait(self, timeout=None):
        """Block until the worker has no more work. Returns False on timeout."""
        return self._idle.wait(timeout)

    def set_colormap(self, colormap):
        with self.lock:
            self.colormap = colormap
