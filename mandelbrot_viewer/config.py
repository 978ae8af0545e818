"""
Engine configuration and settings loading.

The iteration budget, escape threshold, raster size and zoom step are
engine-wide constants of a running viewer. They are kept together in an
immutable EngineConfig so the renderer can be driven with other values
(small rasters in tests, for instance) without touching the kernels.

Defaults can be overridden through settings.json next to this module.
"""

import json
import logging
import math
import numbers
import os
from dataclasses import dataclass, fields, replace
from typing import Optional


logger = logging.getLogger(__name__)

SETTINGS_PATH = os.path.join(os.path.dirname(__file__), 'settings.json')


class InvalidConfigurationError(ValueError):
    """Raised when a viewport, raster size or engine setting cannot be used."""


def check_raster(width, height):
    """Reject raster dimensions that are not positive integers."""
    for name, value in (('width', width), ('height', height)):
        if isinstance(value, bool) or not isinstance(value, numbers.Integral):
            raise InvalidConfigurationError(
                f"raster {name} must be an integer, got {value!r}")
        if value <= 0:
            raise InvalidConfigurationError(
                f"raster {name} must be positive, got {value}")


@dataclass(frozen=True)
class EngineConfig:
    """
    Immutable engine settings.

    Attributes:
        max_iter: Iteration budget shared by every sample of a frame
        diverge_thresh_sq: Escape radius squared
        width, height: Raster dimensions in pixels
        zoom_inc: Factor applied to the viewport size by one zoom step
        num_threads: Size of Numba's worker pool (None = all cores)
    """

    max_iter: int = 200
    diverge_thresh_sq: float = 4.0
    width: int = 1280
    height: int = 720
    zoom_inc: float = 2.0
    num_threads: Optional[int] = None

    def __post_init__(self):
        check_raster(self.width, self.height)
        if isinstance(self.max_iter, bool) or not isinstance(self.max_iter, numbers.Integral) \
                or self.max_iter <= 0:
            raise InvalidConfigurationError(
                f"max_iter must be a positive integer, got {self.max_iter!r}")
        if not (self.diverge_thresh_sq > 0 and math.isfinite(self.diverge_thresh_sq)):
            raise InvalidConfigurationError(
                f"diverge_thresh_sq must be positive and finite, got {self.diverge_thresh_sq!r}")
        if not (self.zoom_inc > 0 and math.isfinite(self.zoom_inc)):
            raise InvalidConfigurationError(
                f"zoom_inc must be positive and finite, got {self.zoom_inc!r}")
        if self.num_threads is not None and self.num_threads <= 0:
            raise InvalidConfigurationError(
                f"num_threads must be positive, got {self.num_threads!r}")

    @classmethod
    def from_settings(cls, settings):
        """
        Build a config from the "engine" section of loaded settings.

        Missing keys keep their defaults; unknown keys are ignored with a
        warning.

        Args:
            settings: Dict as returned by load_settings(), or None

        Returns:
            EngineConfig
        """
        if not settings:
            return cls()
        engine = settings.get('engine') or {}
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(engine) - known)
        if unknown:
            logger.warning("Ignoring unknown engine settings: %s", ", ".join(unknown))
        return cls(**{key: value for key, value in engine.items() if key in known})

    def with_raster(self, width, height):
        """Copy of this config with other raster dimensions."""
        return replace(self, width=width, height=height)


def load_settings(path=None):
    """
    Load settings from a JSON file.

    Args:
        path: Settings file (default: settings.json beside this module)

    Returns:
        Parsed dict, or None if the file is missing or malformed
    """
    settings_path = path or SETTINGS_PATH
    try:
        with open(settings_path, 'r') as f:
            settings = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        logger.warning("Could not load %s: %s", settings_path, e)
        return None
    if not isinstance(settings, dict):
        logger.warning("Ignoring %s: top level must be an object", settings_path)
        return None
    return settings
