import logging

import numpy as np
import pytest

from terrain_generator.generator import TerrainGenerator
from terrain_generator.noise import PerlinNoise
from terrain_generator.settings import build_octave_settings

TEST_SEED = 1337


@pytest.fixture
def logger():
    return logging.getLogger("terrain-tests")


@pytest.fixture
def noise():
    return PerlinNoise.from_seed(TEST_SEED)


@pytest.fixture
def octave_settings():
    """The reference parameter set: lacunarity 2, amplitude 0.4, decay 0.45, 30 degrees."""
    return build_octave_settings(
        lacunarity=2.0,
        base_amplitude=0.4,
        amplitude_decay=0.45,
        rotation=0.524,
        offset=(0.0, 0.0),
        octaves=8,
        smooth_octaves=3,
    )


@pytest.fixture
def small_config():
    return {
        'seed': TEST_SEED,
        'octaves': 8,
        'smooth_octaves': 3,
        'shadow_octaves': 4,
        'world_width_tiles': 2,
        'world_height_tiles': 2,
        'tile_resolution': 16,
        'tile_size_units': 64.0,
    }


@pytest.fixture
def generator(small_config, logger):
    return TerrainGenerator(config=small_config, logger=logger)


@pytest.fixture
def positions():
    rng = np.random.default_rng(2024)
    return rng.uniform(-4.0, 4.0, 64), rng.uniform(-4.0, 4.0, 64)
