# terrain_generator/settings.py

"""
================================================================================
OCTAVE SETTINGS
================================================================================
Immutable parameter set for the fractal noise sum, plus the validation that
guards it.

Data Contract:
---------------
- Inputs: Raw numbers, usually taken from the consolidated generator settings.
- Outputs: An OctaveSettings named tuple.
- Side Effects: Emits ThresholdOutOfRangeWarning for a smooth-octave index
  that can never be reached.
- Invariants: A returned OctaveSettings always has lacunarity > 0,
  base_amplitude > 0, 0 < amplitude_decay < 1 and octaves >= 0.
================================================================================
"""
import math
import warnings
from typing import NamedTuple

from .errors import InvalidConfiguration, ThresholdOutOfRangeWarning


class OctaveSettings(NamedTuple):
    lacunarity: float
    base_amplitude: float
    amplitude_decay: float
    rotation: float
    offset: tuple[float, float]
    octaves: int
    smooth_octaves: int


def validate_octave_count(octaves, name: str = "octaves") -> int:
    """Checks that an octave count is a non-negative integer and returns it."""
    if isinstance(octaves, bool) or int(octaves) != octaves:
        raise InvalidConfiguration(f"{name} must be an integer, got {octaves!r}")
    if octaves < 0:
        raise InvalidConfiguration(f"{name} must be >= 0, got {octaves}")
    return int(octaves)


def check_smooth_threshold(octaves: int, smooth_octaves: int) -> bool:
    """
    Returns True if the smooth gradient snapshot can fire. Warns otherwise,
    since the result is defined but always zero.
    """
    if smooth_octaves < octaves:
        return True
    warnings.warn(
        f"smooth_octaves ({smooth_octaves}) is not below octaves ({octaves}); "
        "the smooth gradient will always be zero.",
        ThresholdOutOfRangeWarning,
        stacklevel=3,
    )
    return False


def build_octave_settings(
    lacunarity: float,
    base_amplitude: float,
    amplitude_decay: float,
    rotation: float,
    offset,
    octaves: int,
    smooth_octaves: int,
) -> OctaveSettings:
    """Validates the raw parameters and packs them into an OctaveSettings."""
    if not math.isfinite(lacunarity) or lacunarity <= 0:
        raise InvalidConfiguration(f"lacunarity must be > 0, got {lacunarity}")
    if not math.isfinite(base_amplitude) or base_amplitude <= 0:
        raise InvalidConfiguration(f"base_amplitude must be > 0, got {base_amplitude}")
    if not 0.0 < amplitude_decay < 1.0:
        raise InvalidConfiguration(f"amplitude_decay must be in (0, 1), got {amplitude_decay}")
    if not math.isfinite(rotation):
        raise InvalidConfiguration(f"rotation must be finite, got {rotation}")

    offset = tuple(float(v) for v in offset)
    if len(offset) != 2:
        raise InvalidConfiguration(f"offset must have two components, got {offset}")

    octaves = validate_octave_count(octaves)
    smooth_octaves = validate_octave_count(smooth_octaves, "smooth_octaves")
    check_smooth_threshold(octaves, smooth_octaves)

    return OctaveSettings(
        lacunarity=float(lacunarity),
        base_amplitude=float(base_amplitude),
        amplitude_decay=float(amplitude_decay),
        rotation=float(rotation),
        offset=offset,
        octaves=octaves,
        smooth_octaves=smooth_octaves,
    )
