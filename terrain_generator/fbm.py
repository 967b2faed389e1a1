# terrain_generator/fbm.py

"""
================================================================================
FRACTAL BROWNIAN MOTION (fBm)
================================================================================
Sums successive octaves of gradient noise into a height field. Each octave
samples a rotated and scaled copy of the previous octave's domain, and the
gradient of every octave is carried back into the original coordinate frame,
so the returned gradient is the analytic derivative of the returned height.

Data Contract:
---------------
- Inputs:
    - noise: A PerlinNoise source.
    - x_coords, z_coords: Scalars or NumPy arrays of domain positions.
    - settings: An OctaveSettings tuple.
    - octaves, smooth_octaves: Optional per-call overrides.
- Outputs:
    - FbmResult(height, gradient, smooth_gradient), float32.
- Side Effects: None.
- Invariants:
    - octaves == 0 gives zero height and zero gradients.
    - smooth_gradient is the gradient after octave index smooth_octaves,
      i.e. the full gradient of an (smooth_octaves + 1)-octave sum. It stays
      zero when smooth_octaves >= octaves.
================================================================================
"""
from typing import NamedTuple

import numpy as np
from numba import njit

from .noise import PerlinNoise, flatten_positions, sample_with_gradient
from .settings import OctaveSettings, validate_octave_count

_ZERO = np.float32(0.0)
_ONE = np.float32(1.0)


class FbmResult(NamedTuple):
    height: np.ndarray
    gradient: np.ndarray
    smooth_gradient: np.ndarray


def rotation_cascade(angle: float) -> tuple[np.ndarray, np.ndarray]:
    """
    Builds the per-octave domain rotation and its inverse.

    The angle is the same for every octave, so both matrices are built once
    and shared by the whole octave loop.
    """
    theta = np.float32(angle)
    c = np.cos(theta)
    s = np.sin(theta)
    rotation = np.array([[c, s], [-s, c]], dtype=np.float32)
    inverse_rotation = np.ascontiguousarray(rotation.T)
    return rotation, inverse_rotation


@njit
def fbm_point(p, x, y, offset_x, offset_y, lacunarity, base_amplitude,
              amplitude_decay, rotation, inverse_rotation, octaves, smooth_octaves):
    """
    Evaluates the octave sum at one point.
    Returns (height, dx, dy, smooth_dx, smooth_dy).
    """
    tx = np.float32(x) + offset_x
    ty = np.float32(y) + offset_y
    amplitude = base_amplitude

    height = _ZERO
    gx = _ZERO
    gy = _ZERO
    sgx = _ZERO
    sgy = _ZERO

    # Accumulated inverse rotations, scaled by lacunarity once per octave.
    m00 = _ONE
    m01 = _ZERO
    m10 = _ZERO
    m11 = _ONE

    r00 = rotation[0, 0]
    r01 = rotation[0, 1]
    r10 = rotation[1, 0]
    r11 = rotation[1, 1]
    i00 = inverse_rotation[0, 0]
    i01 = inverse_rotation[0, 1]
    i10 = inverse_rotation[1, 0]
    i11 = inverse_rotation[1, 1]

    for i in range(octaves):
        value, dx, dy = sample_with_gradient(p, tx, ty)
        value = value * amplitude
        dx = dx * amplitude
        dy = dy * amplitude

        height += value

        # Chain rule through the domain warp of all previous octaves.
        gx += m00 * dx + m01 * dy
        gy += m10 * dx + m11 * dy
        if i == smooth_octaves:
            sgx = gx
            sgy = gy

        amplitude *= amplitude_decay

        next_tx = lacunarity * (r00 * tx + r01 * ty)
        next_ty = lacunarity * (r10 * tx + r11 * ty)
        tx = next_tx
        ty = next_ty

        n00 = lacunarity * (i00 * m00 + i01 * m10)
        n01 = lacunarity * (i00 * m01 + i01 * m11)
        n10 = lacunarity * (i10 * m00 + i11 * m10)
        n11 = lacunarity * (i10 * m01 + i11 * m11)
        m00 = n00
        m01 = n01
        m10 = n10
        m11 = n11

    return height, gx, gy, sgx, sgy


@njit
def _fbm_array(p, xs, ys, offset_x, offset_y, lacunarity, base_amplitude,
               amplitude_decay, rotation, inverse_rotation, octaves, smooth_octaves):
    count = xs.shape[0]
    heights = np.empty(count, dtype=np.float32)
    gradients = np.empty((count, 2), dtype=np.float32)
    smooth_gradients = np.empty((count, 2), dtype=np.float32)
    for i in range(count):
        h, gx, gy, sgx, sgy = fbm_point(
            p, xs[i], ys[i], offset_x, offset_y, lacunarity, base_amplitude,
            amplitude_decay, rotation, inverse_rotation, octaves, smooth_octaves
        )
        heights[i] = h
        gradients[i, 0] = gx
        gradients[i, 1] = gy
        smooth_gradients[i, 0] = sgx
        smooth_gradients[i, 1] = sgy
    return heights, gradients, smooth_gradients


def kernel_arguments(settings: OctaveSettings) -> tuple:
    """
    Unpacks OctaveSettings into the float32 scalars and matrices the Numba
    kernels expect, in kernel argument order (after the position).
    """
    rotation, inverse_rotation = rotation_cascade(settings.rotation)
    return (
        np.float32(settings.offset[0]),
        np.float32(settings.offset[1]),
        np.float32(settings.lacunarity),
        np.float32(settings.base_amplitude),
        np.float32(settings.amplitude_decay),
        rotation,
        inverse_rotation,
    )


def compute_fbm(
    noise: PerlinNoise,
    x_coords,
    z_coords,
    settings: OctaveSettings,
    octaves: int = None,
    smooth_octaves: int = None
) -> FbmResult:
    """
    Computes height, gradient and smooth gradient at every given position.

    Args:
        noise (PerlinNoise): The gradient-noise source.
        x_coords, z_coords: Domain positions (scalars or broadcastable arrays).
        settings (OctaveSettings): The fractal sum parameters.
        octaves (int, optional): Overrides settings.octaves for this call.
        smooth_octaves (int, optional): Overrides settings.smooth_octaves.

    Returns:
        FbmResult: height shaped like the positions, gradients with an extra
        trailing axis of length 2.
    """
    if octaves is None:
        octaves = settings.octaves
    if smooth_octaves is None:
        smooth_octaves = settings.smooth_octaves
    octaves = validate_octave_count(octaves)
    smooth_octaves = int(smooth_octaves)

    xs, zs, shape = flatten_positions(x_coords, z_coords)
    heights, gradients, smooth_gradients = _fbm_array(
        noise.permutation_table, xs, zs, *kernel_arguments(settings),
        octaves, smooth_octaves
    )
    return FbmResult(
        height=heights.reshape(shape),
        gradient=gradients.reshape(shape + (2,)),
        smooth_gradient=smooth_gradients.reshape(shape + (2,)),
    )
