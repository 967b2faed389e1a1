# terrain_generator/shadow.py

"""
================================================================================
SHADOW RAY MARCHING
================================================================================
Approximates terrain self-shadowing by stepping along a ray towards the light
and testing each step against the fBm height field.

Data Contract:
---------------
- Inputs:
    - origins: World-space points (..., 3), y-up.
    - start, end: Distances along the ray bounding the march.
    - settings: The OctaveSettings of the height field.
    - light_direction: Direction towards the light (normalized here).
- Outputs:
    - One distance per origin. A value in [start, end) is the first step found
      below the terrain (occluded). The sentinel end + 1 means no occlusion
      was found within the step budget.
- Side Effects: None.
- Invariants: Every ray is independent; at most max_steps height samples are
  taken per ray, each at a reduced octave count.
================================================================================
"""
import numpy as np
from numba import njit

from . import config as DEFAULTS
from .errors import InvalidConfiguration
from .fbm import fbm_point, kernel_arguments
from .noise import PerlinNoise
from .settings import OctaveSettings, validate_octave_count
from .shading import normalize_direction

_ONE = np.float32(1.0)


@njit
def march_ray(p, ox, oy, oz, lx, ly, lz, start, end, horizontal_scale, vertical_scale,
              max_steps, step_length, epsilon, offset_x, offset_y, lacunarity,
              base_amplitude, amplitude_decay, rotation, inverse_rotation, octaves):
    """Marches a single ray. Returns the occluding distance or end + 1."""
    t = start
    for _ in range(max_steps):
        if t >= end:
            break
        px = ox + lx * t
        py = oy + ly * t
        pz = oz + lz * t
        # smooth_octaves = -1: the smooth gradient is never needed here.
        height, _gx, _gy, _sgx, _sgy = fbm_point(
            p, px / horizontal_scale, pz / horizontal_scale, offset_x, offset_y,
            lacunarity, base_amplitude, amplitude_decay, rotation, inverse_rotation,
            octaves, -1
        )
        if py < height * vertical_scale - epsilon:
            return t
        t += step_length
    return end + _ONE


@njit
def _march_rays(p, origins, lx, ly, lz, start, end, horizontal_scale, vertical_scale,
                max_steps, step_length, epsilon, offset_x, offset_y, lacunarity,
                base_amplitude, amplitude_decay, rotation, inverse_rotation, octaves):
    count = origins.shape[0]
    out = np.empty(count, dtype=np.float32)
    for i in range(count):
        out[i] = march_ray(
            p, origins[i, 0], origins[i, 1], origins[i, 2], lx, ly, lz, start, end,
            horizontal_scale, vertical_scale, max_steps, step_length, epsilon,
            offset_x, offset_y, lacunarity, base_amplitude, amplitude_decay,
            rotation, inverse_rotation, octaves
        )
    return out


def ray_march_shadow(
    noise: PerlinNoise,
    origins,
    start: float,
    end: float,
    settings: OctaveSettings,
    light_direction,
    horizontal_scale: float = DEFAULTS.HORIZONTAL_SCALE,
    vertical_scale: float = DEFAULTS.VERTICAL_SCALE,
    octaves: int = DEFAULTS.SHADOW_OCTAVES,
    max_steps: int = DEFAULTS.SHADOW_MAX_STEPS,
    step_length: float = DEFAULTS.SHADOW_STEP_LENGTH,
    epsilon: float = DEFAULTS.SHADOW_EPSILON
) -> np.ndarray:
    """
    Marches one shadow ray per origin towards the light.

    Returns a float32 array shaped like origins without its last axis.
    Callers treat result < end as occluded and result >= end as lit.
    """
    origins = np.asarray(origins, dtype=np.float32)
    if origins.shape[-1:] != (3,):
        raise ValueError(f"origins must have a trailing axis of length 3, got shape {origins.shape}")
    if start > end:
        raise InvalidConfiguration(f"Shadow march start ({start}) must not exceed end ({end})")
    shape = origins.shape[:-1]
    flat_origins = np.ascontiguousarray(origins.reshape(-1, 3))

    lx, ly, lz = normalize_direction(light_direction)
    octaves = validate_octave_count(octaves, "shadow octaves")

    distances = _march_rays(
        noise.permutation_table, flat_origins,
        np.float32(lx), np.float32(ly), np.float32(lz),
        np.float32(start), np.float32(end),
        np.float32(horizontal_scale), np.float32(vertical_scale),
        int(max_steps), np.float32(step_length), np.float32(epsilon),
        *kernel_arguments(settings), octaves
    )
    return distances.reshape(shape)
