"""
Main application module for the Mandelbrot viewer.

Contains the MandelbrotApp class which handles:
- Window setup and main loop
- User input (click to recenter, +/- to zoom, R to reset)
- Handing viewport snapshots to the background renderer
- Displaying finished frames
"""

import logging

import numpy as np
import pygame

from .colormaps import get_colormap, get_default_colormap
from .compute import warmup_jit
from .config import EngineConfig, InvalidConfigurationError, load_settings
from .renderer import BackgroundRenderer, FrameRenderer
from .viewport import Viewport, ViewState


logger = logging.getLogger(__name__)

ZOOM_IN_KEYS = (pygame.K_PLUS, pygame.K_KP_PLUS, pygame.K_EQUALS)
ZOOM_OUT_KEYS = (pygame.K_MINUS, pygame.K_KP_MINUS)


class MandelbrotApp:
    """
    Main application class for the Mandelbrot viewer.

    Handles the pygame window, event loop, and coordinates between the
    view state, the background renderer and the display.
    """

    # Default view bounds (left, right, bottom, top)
    DEFAULT_VIEWPORT = (-2.96444, 1.44444, -1.24, 1.24)

    CAPTION = "Mandelbrot Set - Click to recenter, +/- to zoom, R to reset"

    def __init__(self, config=None, settings=None):
        """
        Initialize the application.

        Args:
            config: EngineConfig (default: built from settings)
            settings: Loaded settings dict (default: settings.json)
        """
        if settings is None:
            settings = load_settings()
        settings = settings or {}
        if config is None:
            try:
                config = EngineConfig.from_settings(settings)
            except (InvalidConfigurationError, TypeError) as e:
                logger.warning("Unusable engine settings (%s), using defaults", e)
                config = EngineConfig()
        self.config = config
        self.width = self.config.width
        self.height = self.config.height

        initial = settings.get('initial_viewport', self.DEFAULT_VIEWPORT)
        try:
            self.view = ViewState(Viewport(*initial), zoom_inc=self.config.zoom_inc)
        except (InvalidConfigurationError, TypeError) as e:
            logger.warning("Unusable initial viewport %r (%s), using default", initial, e)
            self.view = ViewState(Viewport(*self.DEFAULT_VIEWPORT), zoom_inc=self.config.zoom_inc)

        colormap_name = settings.get('colormap')
        try:
            self.colormap = get_colormap(colormap_name) if colormap_name else get_default_colormap()
        except KeyError:
            logger.warning("Unknown colormap %r, using default", colormap_name)
            self.colormap = get_default_colormap()

        self.renderer = BackgroundRenderer(FrameRenderer(self.config), self.colormap)

        # Pygame state (initialized in run())
        self.screen = None
        self.clock = None
        self.current_surface = None

        self.rendered_version = -1
        self.running = False

    def run(self):
        """Run the application main loop."""
        self._init_pygame()
        self._warmup()

        self.running = True
        while self.running:
            self._handle_events()
            self._check_render_result()
            self._maybe_start_render()
            self._draw()
            self.clock.tick(60)

    def _init_pygame(self):
        """Initialize pygame and create window."""
        pygame.init()
        self.screen = pygame.display.set_mode((self.width, self.height), pygame.DOUBLEBUF)
        pygame.display.set_caption(self.CAPTION)
        self.clock = pygame.time.Clock()

    def _warmup(self):
        """Warm up JIT before the first real frame."""
        pygame.display.set_caption("Compiling (first run only)...")
        warmup_jit(self.colormap)
        pygame.display.set_caption(self.CAPTION)

    def _handle_events(self):
        """Process all pending pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                self._handle_click(event.pos)
            elif event.type == pygame.KEYDOWN:
                self._handle_key(event)

    def _handle_click(self, pos):
        """Recenter the view on the clicked point."""
        mx, my = pos
        # Screen rows grow downwards, raster rows grow upwards
        try:
            self.view.click(mx, self.height - my, self.width, self.height)
        except InvalidConfigurationError as e:
            logger.warning("Ignoring click: %s", e)

    def _handle_key(self, event):
        """Handle keyboard input."""
        try:
            if event.key in ZOOM_IN_KEYS:
                self.view.zoom_in()
            elif event.key in ZOOM_OUT_KEYS:
                self.view.zoom_out()
            elif event.key == pygame.K_r:
                self.view.reset()
            elif event.key == pygame.K_ESCAPE:
                self.running = False
        except InvalidConfigurationError as e:
            # Zoomed past double precision
            logger.warning("Ignoring zoom: %s", e)

    def _maybe_start_render(self):
        """Request a frame when the view changed since the last request."""
        if self.view.version != self.rendered_version:
            self.rendered_version = self.view.version
            self.renderer.compute_async(self.view.viewport)
            pygame.display.set_caption("Computing...")

    def _check_render_result(self):
        """Pick up a finished frame, if any."""
        frame = self.renderer.get_result()
        if frame is not None:
            # Raster row 0 is the bottom of the view
            rgb = np.flipud(frame.rgb).copy()
            self.current_surface = pygame.surfarray.make_surface(rgb.swapaxes(0, 1))
            pygame.display.set_caption(self.CAPTION)

    def _draw(self):
        """Draw the current frame."""
        self.screen.fill((0, 0, 0))
        if self.current_surface is not None:
            self.screen.blit(self.current_surface, (0, 0))
        pygame.display.flip()


def run(config=None):
    """
    Run the Mandelbrot viewer.

    Args:
        config: EngineConfig (default: from settings.json)
    """
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    app = MandelbrotApp(config)
    try:
        app.run()
    except KeyboardInterrupt:
        pass
    finally:
        pygame.quit()
