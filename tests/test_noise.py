"""Tests for the Perlin noise source and its analytic gradient."""

import numpy as np
import pytest

from terrain_generator.noise import PerlinNoise, create_permutation_table, flatten_positions


def test_permutation_table_is_deterministic():
    a = create_permutation_table(42)
    b = create_permutation_table(42)
    c = create_permutation_table(43)

    np.testing.assert_array_equal(a, b)
    assert not np.array_equal(a, c)


def test_permutation_table_layout():
    p = create_permutation_table(7)

    assert p.shape == (512,)
    np.testing.assert_array_equal(np.sort(p[:256]), np.arange(256))
    np.testing.assert_array_equal(p[:256], p[256:])


def test_noise_is_zero_on_lattice_points(noise):
    x, z = np.meshgrid(np.arange(-5, 6), np.arange(-5, 6))
    values = noise.sample(x, z)

    np.testing.assert_allclose(values, 0.0, atol=1e-7)


def test_sample_and_sample_with_gradient_agree(noise, positions):
    x, z = positions
    values = noise.sample(x, z)
    values_with_gradient, _ = noise.sample_with_gradient(x, z)

    np.testing.assert_allclose(values, values_with_gradient, atol=1e-6)


def test_noise_range(noise):
    rng = np.random.default_rng(3)
    x = rng.uniform(-100, 100, 5000)
    z = rng.uniform(-100, 100, 5000)
    values = noise.sample(x, z)

    assert values.dtype == np.float32
    assert np.all(np.abs(values) <= np.sqrt(0.5) + 1e-5)


def test_gradient_matches_finite_differences(noise):
    rng = np.random.default_rng(11)
    x = rng.uniform(-20, 20, 300).astype(np.float32)
    z = rng.uniform(-20, 20, 300).astype(np.float32)
    h = np.float32(1e-3)

    _, gradient = noise.sample_with_gradient(x, z)

    # Difference quotients over the float32 step that was actually taken.
    x_plus, x_minus = x + h, x - h
    z_plus, z_minus = z + h, z - h
    fd_x = (noise.sample(x_plus, z).astype(np.float64) - noise.sample(x_minus, z)) / (x_plus.astype(np.float64) - x_minus)
    fd_z = (noise.sample(x, z_plus).astype(np.float64) - noise.sample(x, z_minus)) / (z_plus.astype(np.float64) - z_minus)

    np.testing.assert_allclose(gradient[:, 0], fd_x, atol=2e-3)
    np.testing.assert_allclose(gradient[:, 1], fd_z, atol=2e-3)


def test_noise_is_continuous_across_cell_edges(noise):
    z = np.linspace(-3.0, 3.0, 25)
    left_value, left_gradient = noise.sample_with_gradient(np.full_like(z, 2.0 - 1e-5), z)
    right_value, right_gradient = noise.sample_with_gradient(np.full_like(z, 2.0 + 1e-5), z)

    np.testing.assert_allclose(left_value, right_value, atol=1e-4)
    np.testing.assert_allclose(left_gradient, right_gradient, atol=1e-3)


def test_scalar_input_gives_zero_dimensional_output(noise):
    value, gradient = noise.sample_with_gradient(0.3, 0.7)

    assert value.shape == ()
    assert gradient.shape == (2,)


def test_inputs_broadcast(noise):
    x = np.linspace(0, 1, 5)
    z = np.linspace(0, 1, 3)[:, np.newaxis]
    value, gradient = noise.sample_with_gradient(x, z)

    assert value.shape == (3, 5)
    assert gradient.shape == (3, 5, 2)


def test_flatten_positions_rejects_mismatched_shapes():
    with pytest.raises(ValueError):
        flatten_positions(np.zeros(3), np.zeros(4))


def test_noise_from_seed_matches_explicit_table():
    a = PerlinNoise.from_seed(99)
    b = PerlinNoise(create_permutation_table(99))

    np.testing.assert_array_equal(a.sample([0.25, 1.5], [3.75, -2.5]), b.sample([0.25, 1.5], [3.75, -2.5]))
