# terrain_generator/noise.py

"""
================================================================================
NOISE GENERATION UTILITIES
================================================================================
This module provides 2D Perlin noise together with its exact analytic
gradient. It is designed to be a pure, stateless utility.

Data Contract:
---------------
- Inputs:
    - p: A pre-shuffled NumPy permutation table (int array, 512 entries).
    - x, y: Coordinates (scalars inside the kernels, arrays for PerlinNoise).
- Outputs:
    - Noise values (roughly in [-0.71, 0.71]) and, optionally, the partial
      derivatives d/dx and d/dy of the same field.
- Side Effects: None.
- Invariants: All arithmetic is single precision (float32). The value and
  gradient are continuous everywhere; the gradient is the true derivative of
  the value, not a finite-difference estimate.
================================================================================
"""

import numpy as np
from numba import njit

from . import config as DEFAULTS

_DIAGONAL = np.float32(np.sqrt(0.5))

# Pre-defined unit gradient vectors for performance.
_GRADIENT_VECTORS = np.array([
    [1.0, 0.0], [-1.0, 0.0], [0.0, 1.0], [0.0, -1.0],
    [_DIAGONAL, _DIAGONAL], [-_DIAGONAL, _DIAGONAL],
    [_DIAGONAL, -_DIAGONAL], [-_DIAGONAL, -_DIAGONAL],
], dtype=np.float32)
_NUM_GRADIENTS = 8

# float32 literals, so Numba never promotes the arithmetic to float64.
_ZERO = np.float32(0.0)
_ONE = np.float32(1.0)
_SIX = np.float32(6.0)
_TEN = np.float32(10.0)
_FIFTEEN = np.float32(15.0)
_THIRTY = np.float32(30.0)
_SIXTY = np.float32(60.0)


def create_permutation_table(seed: int) -> np.ndarray:
    """Builds the doubled permutation table deterministically from a seed."""
    p = np.arange(DEFAULTS.PERMUTATION_SIZE, dtype=np.int64)
    rng = np.random.default_rng(seed)
    rng.shuffle(p)
    return np.stack([p, p]).flatten()


def flatten_positions(x_coords, y_coords) -> tuple[np.ndarray, np.ndarray, tuple]:
    """
    Broadcasts two coordinate inputs against each other and flattens them into
    contiguous float32 arrays. Also returns the broadcast shape so results can
    be reshaped back.
    """
    x_arr, y_arr = np.broadcast_arrays(
        np.asarray(x_coords, dtype=np.float32),
        np.asarray(y_coords, dtype=np.float32)
    )
    shape = x_arr.shape
    return np.ascontiguousarray(x_arr.ravel()), np.ascontiguousarray(y_arr.ravel()), shape


@njit
def _fade(t):
    "6t^5 - 15t^4 + 10t^3"
    return t * t * t * (t * (t * _SIX - _FIFTEEN) + _TEN)


@njit
def _fade_derivative(t):
    "30t^4 - 60t^3 + 30t^2"
    return t * t * (t * (t * _THIRTY - _SIXTY) + _THIRTY)


@njit
def _corner_indices(p, x0, y0):
    """Hashes the four lattice corners around a cell into gradient indices."""
    px0 = int(x0) % 256
    px1 = (px0 + 1) % 256
    py0 = int(y0) % 256
    py1 = (py0 + 1) % 256

    h00 = p[p[px0] + py0] % _NUM_GRADIENTS
    h10 = p[p[px1] + py0] % _NUM_GRADIENTS
    h01 = p[p[px0] + py1] % _NUM_GRADIENTS
    h11 = p[p[px1] + py1] % _NUM_GRADIENTS
    return h00, h10, h01, h11


@njit
def sample(p, x, y):
    """Returns the Perlin noise value at a single point."""
    xs = np.float32(x)
    ys = np.float32(y)
    x0 = np.floor(xs)
    y0 = np.floor(ys)
    xf = xs - x0
    yf = ys - y0

    h00, h10, h01, h11 = _corner_indices(p, x0, y0)
    g00 = _GRADIENT_VECTORS[h00]
    g10 = _GRADIENT_VECTORS[h10]
    g01 = _GRADIENT_VECTORS[h01]
    g11 = _GRADIENT_VECTORS[h11]

    n00 = g00[0] * xf + g00[1] * yf
    n10 = g10[0] * (xf - _ONE) + g10[1] * yf
    n01 = g01[0] * xf + g01[1] * (yf - _ONE)
    n11 = g11[0] * (xf - _ONE) + g11[1] * (yf - _ONE)

    u = _fade(xf)
    v = _fade(yf)
    nx0 = n00 + u * (n10 - n00)
    nx1 = n01 + u * (n11 - n01)
    return nx0 + v * (nx1 - nx0)


@njit
def sample_with_gradient(p, x, y):
    """
    Returns (value, d/dx, d/dy) of the Perlin noise field at a single point.

    The value is written as k0 + k1*u + k2*v + k3*u*v, where u and v are the
    faded cell coordinates and every k depends linearly on the position
    through the corner dot products. Differentiating that expression gives
    the gradient directly.
    """
    xs = np.float32(x)
    ys = np.float32(y)
    x0 = np.floor(xs)
    y0 = np.floor(ys)
    xf = xs - x0
    yf = ys - y0

    h00, h10, h01, h11 = _corner_indices(p, x0, y0)
    g00 = _GRADIENT_VECTORS[h00]
    g10 = _GRADIENT_VECTORS[h10]
    g01 = _GRADIENT_VECTORS[h01]
    g11 = _GRADIENT_VECTORS[h11]

    n00 = g00[0] * xf + g00[1] * yf
    n10 = g10[0] * (xf - _ONE) + g10[1] * yf
    n01 = g01[0] * xf + g01[1] * (yf - _ONE)
    n11 = g11[0] * (xf - _ONE) + g11[1] * (yf - _ONE)

    u = _fade(xf)
    v = _fade(yf)
    du = _fade_derivative(xf)
    dv = _fade_derivative(yf)

    k1 = n10 - n00
    k2 = n01 - n00
    k3 = n00 - n10 - n01 + n11
    value = n00 + k1 * u + k2 * v + k3 * u * v

    dx = (g00[0] + u * (g10[0] - g00[0]) + v * (g01[0] - g00[0])
          + u * v * (g00[0] - g10[0] - g01[0] + g11[0])
          + du * (k1 + k3 * v))
    dy = (g00[1] + u * (g10[1] - g00[1]) + v * (g01[1] - g00[1])
          + u * v * (g00[1] - g10[1] - g01[1] + g11[1])
          + dv * (k2 + k3 * u))
    return value, dx, dy


@njit
def _sample_array(p, xs, ys):
    out = np.empty(xs.shape[0], dtype=np.float32)
    for i in range(xs.shape[0]):
        out[i] = sample(p, xs[i], ys[i])
    return out


@njit
def _sample_with_gradient_array(p, xs, ys):
    values = np.empty(xs.shape[0], dtype=np.float32)
    gradients = np.empty((xs.shape[0], 2), dtype=np.float32)
    for i in range(xs.shape[0]):
        value, dx, dy = sample_with_gradient(p, xs[i], ys[i])
        values[i] = value
        gradients[i, 0] = dx
        gradients[i, 1] = dy
    return values, gradients


class PerlinNoise:
    """
    A gradient-noise source bound to one permutation table. It holds no
    mutable state, so one instance can be shared by any number of callers.
    """
    def __init__(self, permutation_table: np.ndarray):
        self.permutation_table = np.ascontiguousarray(permutation_table, dtype=np.int64)

    @classmethod
    def from_seed(cls, seed: int) -> "PerlinNoise":
        return cls(create_permutation_table(seed))

    def sample(self, x_coords, y_coords) -> np.ndarray:
        """Noise values at the given coordinates, shaped like the broadcast inputs."""
        xs, ys, shape = flatten_positions(x_coords, y_coords)
        return _sample_array(self.permutation_table, xs, ys).reshape(shape)

    def sample_with_gradient(self, x_coords, y_coords) -> tuple[np.ndarray, np.ndarray]:
        """
        Noise values and their gradients. The gradient array has one extra
        trailing axis of length 2 holding (d/dx, d/dy).
        """
        xs, ys, shape = flatten_positions(x_coords, y_coords)
        values, gradients = _sample_with_gradient_array(self.permutation_table, xs, ys)
        return values.reshape(shape), gradients.reshape(shape + (2,))
