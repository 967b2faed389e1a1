"""Tests for octave parameter validation."""

import pytest

from terrain_generator.errors import InvalidConfiguration, ThresholdOutOfRangeWarning
from terrain_generator.settings import build_octave_settings, validate_octave_count

VALID = dict(
    lacunarity=2.0,
    base_amplitude=0.4,
    amplitude_decay=0.45,
    rotation=0.524,
    offset=(12.21, 9.2),
    octaves=16,
    smooth_octaves=6,
)


def test_valid_parameters_are_packed():
    settings = build_octave_settings(**VALID)

    assert settings.octaves == 16
    assert settings.smooth_octaves == 6
    assert settings.offset == (12.21, 9.2)


def test_settings_are_immutable():
    settings = build_octave_settings(**VALID)

    with pytest.raises(AttributeError):
        settings.octaves = 4


@pytest.mark.parametrize("key, value", [
    ("lacunarity", 0.0),
    ("lacunarity", -2.0),
    ("lacunarity", float("inf")),
    ("base_amplitude", 0.0),
    ("amplitude_decay", 0.0),
    ("amplitude_decay", 1.0),
    ("amplitude_decay", 1.5),
    ("rotation", float("nan")),
    ("offset", (1.0, 2.0, 3.0)),
    ("octaves", -1),
    ("octaves", 2.5),
    ("smooth_octaves", -3),
])
def test_invalid_parameters_are_rejected(key, value):
    params = dict(VALID, **{key: value})

    with pytest.raises(InvalidConfiguration):
        build_octave_settings(**params)


def test_invalid_configuration_is_a_value_error():
    with pytest.raises(ValueError):
        build_octave_settings(**dict(VALID, lacunarity=-1.0))


@pytest.mark.parametrize("smooth_octaves", [16, 17])
def test_unreachable_smooth_threshold_warns(smooth_octaves):
    with pytest.warns(ThresholdOutOfRangeWarning):
        settings = build_octave_settings(**dict(VALID, smooth_octaves=smooth_octaves))

    assert settings.smooth_octaves == smooth_octaves


def test_zero_octaves_is_allowed():
    with pytest.warns(ThresholdOutOfRangeWarning):
        settings = build_octave_settings(**dict(VALID, octaves=0, smooth_octaves=0))

    assert settings.octaves == 0


def test_validate_octave_count():
    assert validate_octave_count(4) == 4
    assert validate_octave_count(4.0) == 4
    with pytest.raises(InvalidConfiguration):
        validate_octave_count(True)
    with pytest.raises(InvalidConfiguration, match="shadow_octaves"):
        validate_octave_count(-1, "shadow_octaves")
