"""Tests for lighting, shadow and fog composition."""

import numpy as np
import pytest

from terrain_generator import shading
from terrain_generator.errors import InvalidConfiguration


def test_flat_gradient_gives_up_normal():
    normals = shading.surface_normals(np.zeros((2, 3, 2)))

    assert normals.shape == (2, 3, 3)
    np.testing.assert_allclose(normals, np.broadcast_to([0.0, 1.0, 0.0], (2, 3, 3)))


def test_normals_lean_against_the_gradient():
    normals = shading.surface_normals(np.array([[1.0, 0.0], [0.0, 2.0]]), height_scale=0.5)

    np.testing.assert_allclose(np.linalg.norm(normals, axis=-1), 1.0, atol=1e-6)
    assert normals[0, 0] < 0.0 and normals[0, 2] == 0.0
    assert normals[1, 2] < 0.0 and normals[1, 0] == 0.0
    np.testing.assert_allclose(normals[0], np.array([-0.5, 1.0, 0.0]) / np.sqrt(1.25), atol=1e-6)


def test_lambert_range():
    normals = np.array([[0.0, 1.0, 0.0], [0.0, -1.0, 0.0], [1.0, 0.0, 0.0]], dtype=np.float32)
    light = shading.lambert(normals, (0.0, 2.0, 0.0), ambient=0.25)

    np.testing.assert_allclose(light, [1.0, 0.25, 0.25], atol=1e-6)


def test_shadow_factor_uses_end_as_threshold():
    factor = shading.shadow_factor(np.array([1.0, 199.0, 200.0, 201.0]), end=200.0, darkness=0.35)

    np.testing.assert_allclose(factor, [0.35, 0.35, 1.0, 1.0])


def test_fog_blend():
    colors = np.zeros((3, 3), dtype=np.float32)
    fogged = shading.apply_fog(colors, np.array([50.0, 150.0, 500.0]), 100.0, 200.0, (1.0, 0.5, 0.0))

    np.testing.assert_allclose(fogged[0], [0.0, 0.0, 0.0])
    np.testing.assert_allclose(fogged[1], [0.5, 0.25, 0.0], atol=1e-6)
    np.testing.assert_allclose(fogged[2], [1.0, 0.5, 0.0])


def test_fog_with_empty_range_is_a_step():
    colors = np.zeros((2, 3), dtype=np.float32)
    fogged = shading.apply_fog(colors, np.array([99.0, 100.0]), 100.0, 100.0, (1.0, 1.0, 1.0))

    np.testing.assert_allclose(fogged, [[0.0, 0.0, 0.0], [1.0, 1.0, 1.0]])


def test_to_rgb8_clips_and_rounds():
    rgb = shading.to_rgb8(np.array([[-0.5, 0.5, 1.5]]))

    assert rgb.dtype == np.uint8
    np.testing.assert_array_equal(rgb, [[0, 128, 255]])


@pytest.mark.parametrize("direction", [(0.0, 0.0, 0.0), (1.0, 0.0), (float("nan"), 1.0, 0.0)])
def test_invalid_direction_is_rejected(direction):
    with pytest.raises(InvalidConfiguration):
        shading.normalize_direction(direction)


def test_normalize_direction():
    np.testing.assert_allclose(shading.normalize_direction((3.0, 0.0, 4.0)), [0.6, 0.0, 0.8], atol=1e-7)
