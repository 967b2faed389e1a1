# terrain_generator/config.py

"""
================================================================================
INTERNAL DEFAULT CONFIGURATION
================================================================================
This module contains the default, fallback internal constants for the terrain
generator. These values are used if they are not explicitly provided by the
user's configuration.

DO NOT MODIFY THIS FILE FOR A SPECIFIC TERRAIN.
Instead, pass a configuration dictionary to the TerrainGenerator instance.
================================================================================
"""
import math

# --- Noise Generation ---
DEFAULT_SEED = 1337
# The permutation table is 256 entries, duplicated so that p[p[x] + y] never
# needs a second wrap.
PERMUTATION_SIZE = 256

# --- Fractal Sum (fBm) ---
# Self similarity of each octave (0.01, 3.0)
LACUNARITY = 2.0
# Amplitude of the first noise octave (0.01, 2.0)
BASE_AMPLITUDE = 0.4
# Amount of rotation (in radians) applied to the sampling domain each octave.
NOISE_ROTATION = math.radians(30.0)
# Value to multiply with amplitude each octave; must stay inside (0, 1).
AMPLITUDE_DECAY = 0.45
# How many layers of noise to sum for the primary surface.
OCTAVES = 16
# Index of the octave after which the "smooth" gradient is captured.
# Must be lower than OCTAVES or the smooth gradient stays zero.
SMOOTH_OCTAVES = 6
# Shift applied to every sample position before the first octave.
NOISE_OFFSET = (12.21, 9.2)

# --- World Mapping ---
# World units per noise-domain unit along the ground plane.
HORIZONTAL_SCALE = 100.0
# World units per unit of fBm height.
VERTICAL_SCALE = 60.0

# --- Shadow Ray March ---
# Octaves used when the shadow marcher samples the height field.
# Fewer octaves than the primary surface keeps every ray cheap.
SHADOW_OCTAVES = 6
SHADOW_MAX_STEPS = 20
SHADOW_STEP_LENGTH = 10.0
SHADOW_EPSILON = 0.01
# Distance along the light ray (world units) to start and stop marching.
SHADOW_MARCH_START = 1.0
SHADOW_MARCH_END = 200.0
# Brightness multiplier applied to occluded surfaces.
SHADOW_DARKNESS = 0.35

# --- Lighting ---
# Direction *towards* the light; normalized when the generator is built.
LIGHT_DIRECTION = (0.6, 0.5, 0.3)
AMBIENT_LIGHT = 0.25

# --- Materials ---
# Colors are float RGB in [0, 1].
LOW_SLOPE_COLOR = (0.33, 0.47, 0.18)   # Grass on flat ground
HIGH_SLOPE_COLOR = (0.45, 0.38, 0.31)  # Exposed rock on steep ground
# Range of (1 - normal.y) across which the two materials are blended.
SLOPE_RANGE = (0.1, 0.45)
# Multiplier on the horizontal components of the material normal. Values
# below 1.0 flatten it so only large-scale slopes switch material.
SLOPE_NORMAL_DAMPING = 0.5

# --- Fog ---
FOG_START = 400.0
FOG_END = 2500.0
FOG_COLOR = (0.72, 0.80, 0.88)
# The point fog distances are measured from, in world units.
CAMERA_POSITION = (0.0, 180.0, 0.0)

# --- Baking & Tiling ---
TILE_RESOLUTION = 128     # Pixels on one side of a baked tile
TILE_SIZE_UNITS = 256.0   # World units covered by one tile
DEFAULT_WORLD_WIDTH_TILES = 8
DEFAULT_WORLD_HEIGHT_TILES = 8
# Lower-res overview render, upscaled for a quick look at the whole world.
OVERVIEW_RESOLUTION = 64
OVERVIEW_UPSCALE = 8
