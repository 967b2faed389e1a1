# terrain_generator/__init__.py

# This file makes the 'terrain_generator' directory a Python package.
# We can also use it to define the public API of the package.

from .errors import InvalidConfiguration, TerrainGeneratorError, ThresholdOutOfRangeWarning
from .fbm import FbmResult, compute_fbm, rotation_cascade
from .generator import TerrainGenerator
from .noise import PerlinNoise
from .settings import OctaveSettings, build_octave_settings
from .shadow import ray_march_shadow

__all__ = [
    "TerrainGenerator",
    "PerlinNoise",
    "OctaveSettings",
    "build_octave_settings",
    "FbmResult",
    "compute_fbm",
    "rotation_cascade",
    "ray_march_shadow",
    "InvalidConfiguration",
    "TerrainGeneratorError",
    "ThresholdOutOfRangeWarning",
]
