# terrain_generator/generator.py

"""
================================================================================
CORE TERRAIN GENERATOR
================================================================================
This module contains the main TerrainGenerator class, responsible for creating
and providing access to raw terrain data (height, gradients, shadows, colors).

Data Contract:
---------------
- Inputs (on initialization):
    - config (dict): A dictionary of terrain parameters which can override
      the internal defaults. Expected keys include 'seed', 'octaves', etc.
    - logger: A configured Python logging object for runtime messages.
- Outputs (from methods):
    - NumPy arrays of heights, gradients, shadow distances and colors.
- Side Effects: Logs messages using the provided logger.
- Invariants: Given the same seed and configuration, the output is
  deterministic, and every position is computed independently of every other.
================================================================================
"""

import logging

import numpy as np

from . import config as DEFAULTS
from . import color_maps
from . import shading
from .errors import InvalidConfiguration
from .fbm import FbmResult, compute_fbm
from .noise import PerlinNoise, create_permutation_table
from .settings import build_octave_settings, validate_octave_count
from .shadow import ray_march_shadow


class TerrainGenerator:
    """
    Generates the raw data for a procedurally generated terrain surface.
    This class is backend-only and does not handle any visualization.
    """
    def __init__(self, config: dict, logger: logging.Logger, permutation_table: np.ndarray = None):
        """
        Initializes the terrain generator.

        Args:
            config (dict): User-defined parameters to override defaults.
            logger (logging.Logger): The logger instance for all output.
            permutation_table (np.ndarray, optional): A pre-computed noise
                permutation table. If None, one will be generated from the seed.

        Raises:
            InvalidConfiguration: If any parameter is outside its valid range.
        """
        self.logger = logger
        self.user_config = config
        self.logger.info("TerrainGenerator initializing...")

        # --- Consolidate Configuration ---
        self.settings = {
            'seed': self.user_config.get('seed', DEFAULTS.DEFAULT_SEED),

            'lacunarity': self.user_config.get('lacunarity', DEFAULTS.LACUNARITY),
            'base_amplitude': self.user_config.get('base_amplitude', DEFAULTS.BASE_AMPLITUDE),
            'noise_rotation': self.user_config.get('noise_rotation', DEFAULTS.NOISE_ROTATION),
            'amplitude_decay': self.user_config.get('amplitude_decay', DEFAULTS.AMPLITUDE_DECAY),
            'octaves': self.user_config.get('octaves', DEFAULTS.OCTAVES),
            'smooth_octaves': self.user_config.get('smooth_octaves', DEFAULTS.SMOOTH_OCTAVES),
            'noise_offset': list(self.user_config.get('noise_offset', DEFAULTS.NOISE_OFFSET)),

            'horizontal_scale': self.user_config.get('horizontal_scale', DEFAULTS.HORIZONTAL_SCALE),
            'vertical_scale': self.user_config.get('vertical_scale', DEFAULTS.VERTICAL_SCALE),

            'shadow_octaves': self.user_config.get('shadow_octaves', DEFAULTS.SHADOW_OCTAVES),
            'shadow_max_steps': self.user_config.get('shadow_max_steps', DEFAULTS.SHADOW_MAX_STEPS),
            'shadow_step_length': self.user_config.get('shadow_step_length', DEFAULTS.SHADOW_STEP_LENGTH),
            'shadow_epsilon': self.user_config.get('shadow_epsilon', DEFAULTS.SHADOW_EPSILON),
            'shadow_march_start': self.user_config.get('shadow_march_start', DEFAULTS.SHADOW_MARCH_START),
            'shadow_march_end': self.user_config.get('shadow_march_end', DEFAULTS.SHADOW_MARCH_END),
            'shadow_darkness': self.user_config.get('shadow_darkness', DEFAULTS.SHADOW_DARKNESS),

            'light_direction': list(self.user_config.get('light_direction', DEFAULTS.LIGHT_DIRECTION)),
            'ambient_light': self.user_config.get('ambient_light', DEFAULTS.AMBIENT_LIGHT),

            'low_slope_color': list(self.user_config.get('low_slope_color', DEFAULTS.LOW_SLOPE_COLOR)),
            'high_slope_color': list(self.user_config.get('high_slope_color', DEFAULTS.HIGH_SLOPE_COLOR)),
            'slope_range': list(self.user_config.get('slope_range', DEFAULTS.SLOPE_RANGE)),
            'slope_normal_damping': self.user_config.get('slope_normal_damping', DEFAULTS.SLOPE_NORMAL_DAMPING),

            'fog_start': self.user_config.get('fog_start', DEFAULTS.FOG_START),
            'fog_end': self.user_config.get('fog_end', DEFAULTS.FOG_END),
            'fog_color': list(self.user_config.get('fog_color', DEFAULTS.FOG_COLOR)),
            'camera_position': list(self.user_config.get('camera_position', DEFAULTS.CAMERA_POSITION)),

            'tile_resolution': self.user_config.get('tile_resolution', DEFAULTS.TILE_RESOLUTION),
            'tile_size_units': self.user_config.get('tile_size_units', DEFAULTS.TILE_SIZE_UNITS),
            'world_width_tiles': self.user_config.get('world_width_tiles', DEFAULTS.DEFAULT_WORLD_WIDTH_TILES),
            'world_height_tiles': self.user_config.get('world_height_tiles', DEFAULTS.DEFAULT_WORLD_HEIGHT_TILES),
        }

        # --- Validate and Build the Immutable Noise Parameters ---
        self.octave_settings = build_octave_settings(
            lacunarity=self.settings['lacunarity'],
            base_amplitude=self.settings['base_amplitude'],
            amplitude_decay=self.settings['amplitude_decay'],
            rotation=self.settings['noise_rotation'],
            offset=self.settings['noise_offset'],
            octaves=self.settings['octaves'],
            smooth_octaves=self.settings['smooth_octaves'],
        )
        if self.octave_settings.smooth_octaves >= self.octave_settings.octaves:
            self.logger.warning(
                f"smooth_octaves ({self.octave_settings.smooth_octaves}) >= octaves "
                f"({self.octave_settings.octaves}); material blending will see a flat surface."
            )

        self._validate_settings()

        # --- Public Properties for easy access ---
        self.seed = self.settings['seed']
        self.horizontal_scale = float(self.settings['horizontal_scale'])
        self.vertical_scale = float(self.settings['vertical_scale'])
        # World-space slope per unit of noise-domain gradient.
        self.height_scale = self.vertical_scale / self.horizontal_scale
        self.light_direction = shading.normalize_direction(self.settings['light_direction'])
        self.world_width_units = self.settings['world_width_tiles'] * self.settings['tile_size_units']
        self.world_height_units = self.settings['world_height_tiles'] * self.settings['tile_size_units']

        # --- Initialize Noise ---
        if permutation_table is not None:
            self._p = permutation_table
            self.logger.debug("Initialized with injected permutation table.")
        else:
            self.logger.debug("No permutation table provided, generating new one from seed.")
            self._p = create_permutation_table(self.seed)

        # --- Expose the permutation table for baking ---
        self.permutation_table = self._p
        self.noise = PerlinNoise(self._p)

        self.logger.info(f"TerrainGenerator initialized with seed: {self.seed}")
        self.logger.info(
            f"Terrain: {self.octave_settings.octaves} octaves "
            f"(smooth gradient after octave {self.octave_settings.smooth_octaves}, "
            f"{self.settings['shadow_octaves']} for shadows), "
            f"{self.settings['world_width_tiles']}x{self.settings['world_height_tiles']} tiles "
            f"({self.world_width_units:.0f}x{self.world_height_units:.0f} units)"
        )

    def _validate_settings(self):
        """Fails fast on values that would only surface as garbage output later."""
        s = self.settings
        validate_octave_count(s['shadow_octaves'], "shadow_octaves")
        validate_octave_count(s['shadow_max_steps'], "shadow_max_steps")

        for key in ('horizontal_scale', 'shadow_step_length', 'tile_size_units'):
            if s[key] <= 0:
                raise InvalidConfiguration(f"{key} must be > 0, got {s[key]}")
        for key in ('tile_resolution', 'world_width_tiles', 'world_height_tiles'):
            if int(s[key]) != s[key] or s[key] <= 0:
                raise InvalidConfiguration(f"{key} must be a positive integer, got {s[key]}")

        if s['shadow_march_start'] < 0 or s['shadow_march_end'] <= s['shadow_march_start']:
            raise InvalidConfiguration(
                f"Shadow march range must satisfy 0 <= start < end, got "
                f"({s['shadow_march_start']}, {s['shadow_march_end']})"
            )
        if not 0.0 <= s['shadow_darkness'] <= 1.0:
            raise InvalidConfiguration(f"shadow_darkness must be in [0, 1], got {s['shadow_darkness']}")
        if not 0.0 <= s['ambient_light'] <= 1.0:
            raise InvalidConfiguration(f"ambient_light must be in [0, 1], got {s['ambient_light']}")

        if len(s['slope_range']) != 2:
            raise InvalidConfiguration(f"slope_range must have two components, got {s['slope_range']}")
        slope_low, slope_high = s['slope_range']
        if slope_low >= slope_high:
            raise InvalidConfiguration(f"slope_range must satisfy low < high, got {s['slope_range']}")
        if s['fog_start'] > s['fog_end']:
            raise InvalidConfiguration(f"fog_start must not exceed fog_end, got ({s['fog_start']}, {s['fog_end']})")

        for key in ('low_slope_color', 'high_slope_color', 'fog_color', 'camera_position', 'light_direction'):
            if len(s[key]) != 3:
                raise InvalidConfiguration(f"{key} must have three components, got {s[key]}")

    @property
    def max_height(self) -> float:
        """Upper bound on |height| in world units, assuming |noise| <= 1."""
        o = self.octave_settings
        decay_sum = (1.0 - o.amplitude_decay ** o.octaves) / (1.0 - o.amplitude_decay)
        return self.vertical_scale * o.base_amplitude * decay_sum

    def compute_fbm(self, x_coords, z_coords, octaves: int = None, smooth_octaves: int = None) -> FbmResult:
        """Fractal sum at noise-domain positions. See fbm.compute_fbm."""
        return compute_fbm(self.noise, x_coords, z_coords, self.octave_settings, octaves, smooth_octaves)

    def get_height(self, world_x: np.ndarray, world_z: np.ndarray, octaves: int = None) -> np.ndarray:
        """Terrain elevation in world units at world-space ground positions."""
        result = self.compute_fbm(
            np.asarray(world_x) / self.horizontal_scale,
            np.asarray(world_z) / self.horizontal_scale,
            octaves=octaves
        )
        return result.height * np.float32(self.vertical_scale)

    def ray_march_shadow(self, origins: np.ndarray, start: float = None, end: float = None) -> np.ndarray:
        """
        Shadow distances for world-space origins, marched towards the light.
        Returns end + 1 where nothing occludes the light.
        """
        if start is None:
            start = self.settings['shadow_march_start']
        if end is None:
            end = self.settings['shadow_march_end']
        return ray_march_shadow(
            self.noise, origins, start, end, self.octave_settings, self.light_direction,
            horizontal_scale=self.horizontal_scale,
            vertical_scale=self.vertical_scale,
            octaves=self.settings['shadow_octaves'],
            max_steps=self.settings['shadow_max_steps'],
            step_length=self.settings['shadow_step_length'],
            epsilon=self.settings['shadow_epsilon'],
        )

    def get_albedo(self, smooth_gradient: np.ndarray) -> np.ndarray:
        """Material color from the smooth gradient."""
        slope_low, slope_high = self.settings['slope_range']
        return color_maps.blend_slope_material(
            smooth_gradient,
            self.settings['low_slope_color'],
            self.settings['high_slope_color'],
            slope_low,
            slope_high,
            damping=self.settings['slope_normal_damping'],
            height_scale=self.height_scale,
        )

    def shade(self, world_x: np.ndarray, world_z: np.ndarray, with_shadows: bool = True) -> dict:
        """
        Runs the full per-position pipeline: height field, lighting normal,
        material, shadow and fog.

        Returns:
            dict: 'height' (world units), 'normals', 'albedo', 'shadow'
            (factor in [0, 1]) and 'shaded' (final float RGB).
        """
        world_x = np.asarray(world_x, dtype=np.float32)
        world_z = np.asarray(world_z, dtype=np.float32)

        fbm = self.compute_fbm(world_x / np.float32(self.horizontal_scale), world_z / np.float32(self.horizontal_scale))
        height = fbm.height * np.float32(self.vertical_scale)

        normals = shading.surface_normals(fbm.gradient, self.height_scale)
        albedo = self.get_albedo(fbm.smooth_gradient)
        light = shading.lambert(normals, self.light_direction, self.settings['ambient_light'])

        surface_points = np.stack([world_x, height, world_z], axis=-1)
        if with_shadows:
            end = self.settings['shadow_march_end']
            distances = self.ray_march_shadow(surface_points)
            shadow = shading.shadow_factor(distances, end, self.settings['shadow_darkness'])
        else:
            shadow = np.ones_like(height)

        lit = albedo * (light * shadow)[..., np.newaxis]

        camera = np.asarray(self.settings['camera_position'], dtype=np.float32)
        view_distances = np.linalg.norm(surface_points - camera, axis=-1)
        shaded = shading.apply_fog(
            lit, view_distances,
            self.settings['fog_start'], self.settings['fog_end'], self.settings['fog_color']
        )

        return {
            'height': height,
            'normals': normals,
            'albedo': albedo,
            'shadow': shadow,
            'shaded': shaded,
        }

    def get_coordinate_grid(self, world_x, world_z, width, height, resolution_w, resolution_h):
        """
        Generates a high-precision coordinate grid for an arbitrary rectangle.
        This is the single authoritative method for coordinate generation.
        """
        pixel_w = width / resolution_w
        pixel_h = height / resolution_h

        end_x = world_x + ((resolution_w - 1) * pixel_w)
        end_z = world_z + ((resolution_h - 1) * pixel_h)

        x_coords = np.linspace(world_x, end_x, resolution_w)
        z_coords = np.linspace(world_z, end_z, resolution_h)

        return np.meshgrid(x_coords, z_coords)

    def get_tile_grid(self, tx: int, tz: int, resolution: int = None):
        """Coordinate grid for one baked tile, rows along z and columns along x."""
        if resolution is None:
            resolution = self.settings['tile_resolution']
        size = self.settings['tile_size_units']
        return self.get_coordinate_grid(tx * size, tz * size, size, size, resolution, resolution)
