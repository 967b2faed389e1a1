# terrain_generator/errors.py

"""Exceptions and warnings raised by the terrain generator."""


class TerrainGeneratorError(Exception):
    """Base class for all terrain generator errors."""


class InvalidConfiguration(TerrainGeneratorError, ValueError):
    """A configuration value is outside its valid range."""


class ThresholdOutOfRangeWarning(UserWarning):
    """
    The smooth-gradient octave index is not below the octave count.
    The computation is still defined, but the smooth gradient will be zero.
    """
