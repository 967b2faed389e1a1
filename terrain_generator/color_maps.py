# terrain_generator/color_maps.py

"""
================================================================================
SHARED COLOR MAPPING UTILITIES
================================================================================
This module contains the slope-driven material blend and the functions for
converting raw terrain data (height, shadow) into RGB color arrays.

It is designed to be a pure, stateless utility with no dependencies on any
display library, allowing it to be used by both the baker workers and the
fidelity probe.
================================================================================
"""
import numpy as np

from . import config as DEFAULTS
from .errors import InvalidConfiguration
from .shading import surface_normals

# --- Default Material Colors ---
COLOR_MAP_SLOPE = {
    "low": DEFAULTS.LOW_SLOPE_COLOR,
    "high": DEFAULTS.HIGH_SLOPE_COLOR,
}


def smoothstep(edge0: float, edge1: float, x) -> np.ndarray:
    """Cubic Hermite step: 0 below edge0, 1 above edge1, 3t^2 - 2t^3 between."""
    if edge0 >= edge1:
        raise InvalidConfiguration(f"smoothstep needs edge0 < edge1, got {edge0} and {edge1}")
    t = np.clip((np.asarray(x, dtype=np.float32) - edge0) / (edge1 - edge0), 0.0, 1.0)
    return (t * t * (3.0 - 2.0 * t)).astype(np.float32)


def slope_normals(smooth_gradient: np.ndarray, damping: float = DEFAULTS.SLOPE_NORMAL_DAMPING, height_scale: float = 1.0) -> np.ndarray:
    """
    Builds the normal used for material decisions. The horizontal components
    are multiplied by `damping` before renormalizing, so only large-scale
    slopes push the surface towards the steep material.
    """
    return surface_normals(smooth_gradient, height_scale * damping)


def blend_slope_material(
    smooth_gradient: np.ndarray,
    low_color=COLOR_MAP_SLOPE["low"],
    high_color=COLOR_MAP_SLOPE["high"],
    slope_low: float = DEFAULTS.SLOPE_RANGE[0],
    slope_high: float = DEFAULTS.SLOPE_RANGE[1],
    damping: float = DEFAULTS.SLOPE_NORMAL_DAMPING,
    height_scale: float = 1.0
) -> np.ndarray:
    """
    Picks the terrain albedo from the smooth gradient.

    Returns low_color where 1 - normal.y <= slope_low, high_color where it is
    >= slope_high, and a point on the segment between them otherwise.
    """
    normals = slope_normals(smooth_gradient, damping, height_scale)
    t = smoothstep(slope_low, slope_high, 1.0 - normals[..., 1])[..., np.newaxis]
    low = np.asarray(low_color, dtype=np.float32)
    high = np.asarray(high_color, dtype=np.float32)
    return (low * (1.0 - t) + high * t).astype(np.float32)


def get_height_color_array(height_values: np.ndarray, max_height: float) -> np.ndarray:
    """
    Maps world heights in [-max_height, max_height] to a grayscale RGB array.
    A terrain with no height range (max_height <= 0) is flat and maps to mid-gray.
    """
    height_values = np.asarray(height_values)
    if max_height <= 0:
        normalized = np.full(height_values.shape, 0.5, dtype=np.float32)
    else:
        normalized = np.clip((height_values + max_height) / (2.0 * max_height), 0.0, 1.0)
    gray_values = np.round(normalized * 255).astype(np.uint8)
    return np.stack([gray_values] * 3, axis=-1)


def get_shadow_color_array(shadow_values: np.ndarray) -> np.ndarray:
    """Converts a shadow factor map [0, 1] into a grayscale RGB array."""
    gray_values = np.round(np.clip(shadow_values, 0.0, 1.0) * 255).astype(np.uint8)
    return np.stack([gray_values] * 3, axis=-1)
