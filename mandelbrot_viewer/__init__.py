"""
Mandelbrot Set Viewer Package

An escape-time Mandelbrot engine with Numba JIT-compiled, row-parallel
kernels and a small Pygame front end.

Quick Start:
    from mandelbrot_viewer import Viewport, render
    grid = render(Viewport(-2.0, 1.0, -1.5, 1.5), 320, 180)

Or open the viewer from command line:
    python -m mandelbrot_viewer

Package Structure:
    - compute.py: JIT-compiled escape, supersampling and mapping kernels
    - viewport.py: Immutable viewport and the view state that owns it
    - renderer.py: Frame rendering, synchronous and on a worker thread
    - config.py: Engine configuration and settings.json loading
    - colormaps.py: Color ramps for display
    - app.py: Pygame window and event loop

Controls:
    - Click: Recenter on the clicked point
    - +/-: Zoom in/out by the configured zoom step
    - R: Reset to default view
    - ESC: Quit
"""

from .colormaps import get_colormap, get_default_colormap, list_colormap_names
from .config import EngineConfig, InvalidConfigurationError, load_settings
from .renderer import BackgroundRenderer, Frame, FrameRenderer, render
from .viewport import Viewport, ViewState

__version__ = "1.0.0"
__all__ = [
    "run",
    "render",
    "FrameRenderer",
    "BackgroundRenderer",
    "Frame",
    "Viewport",
    "ViewState",
    "EngineConfig",
    "InvalidConfigurationError",
    "load_settings",
    "get_colormap",
    "get_default_colormap",
    "list_colormap_names",
]


def run(config=None):
    """Open the interactive viewer (imports pygame on first use)."""
    from .app import run as _run
    _run(config)
