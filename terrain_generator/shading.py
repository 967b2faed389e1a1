# terrain_generator/shading.py

"""
================================================================================
SURFACE SHADING UTILITIES
================================================================================
Turns the raw outputs of the height field (gradients, shadow distances) into
lighting terms, and composes them with material colors and distance fog.

Like the color maps, this is a pure, stateless NumPy utility. Colors are
float RGB arrays in [0, 1] with a trailing axis of length 3.
================================================================================
"""
import numpy as np

from .errors import InvalidConfiguration


def normalize_direction(direction) -> np.ndarray:
    """Returns a unit-length float32 copy of a 3D direction."""
    vec = np.asarray(direction, dtype=np.float32)
    if vec.shape != (3,):
        raise InvalidConfiguration(f"Direction must have three components, got {direction}")
    length = np.linalg.norm(vec)
    if not np.isfinite(length) or length == 0.0:
        raise InvalidConfiguration(f"Direction must be non-zero and finite, got {direction}")
    return (vec / length).astype(np.float32)


def surface_normals(gradient: np.ndarray, height_scale: float = 1.0) -> np.ndarray:
    """
    Converts a height-field gradient (..., 2) holding (d/dx, d/dz) into y-up
    unit normals (..., 3). height_scale converts gradient units into world
    slope (vertical scale over horizontal scale).
    """
    gradient = np.asarray(gradient, dtype=np.float32) * np.float32(height_scale)
    normals = np.stack([
        -gradient[..., 0],
        np.ones(gradient.shape[:-1], dtype=np.float32),
        -gradient[..., 1],
    ], axis=-1)
    return normals / np.linalg.norm(normals, axis=-1, keepdims=True)


def lambert(normals: np.ndarray, light_direction, ambient: float) -> np.ndarray:
    """Diffuse lighting with an ambient floor, in [ambient, 1]."""
    light = normalize_direction(light_direction)
    diffuse = np.clip(normals @ light, 0.0, 1.0)
    return (ambient + (1.0 - ambient) * diffuse).astype(np.float32)


def shadow_factor(distances: np.ndarray, end: float, darkness: float) -> np.ndarray:
    """1.0 for lit points (distance >= end), darkness for occluded ones."""
    return np.where(np.asarray(distances) < end, darkness, 1.0).astype(np.float32)


def apply_fog(colors: np.ndarray, distances: np.ndarray, fog_start: float, fog_end: float, fog_color) -> np.ndarray:
    """
    Blends colors towards fog_color linearly between fog_start and fog_end.
    Points closer than fog_start are untouched; beyond fog_end they are pure fog.
    """
    if fog_end <= fog_start:
        weight = (np.asarray(distances) >= fog_end).astype(np.float32)
    else:
        weight = np.clip((np.asarray(distances) - fog_start) / (fog_end - fog_start), 0.0, 1.0)
    weight = weight[..., np.newaxis]
    fog = np.asarray(fog_color, dtype=np.float32)
    return (colors * (1.0 - weight) + fog * weight).astype(np.float32)


def to_rgb8(colors: np.ndarray) -> np.ndarray:
    """Converts float RGB in [0, 1] to uint8."""
    return np.round(np.clip(colors, 0.0, 1.0) * 255).astype(np.uint8)
