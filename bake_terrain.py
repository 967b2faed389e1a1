# bake_terrain.py

"""
================================================================================
OFFLINE TERRAIN BAKER SCRIPT
================================================================================
This script is a command-line tool for pre-rendering a terrain's visual data
to a directory of tile images ("baking"). Every tile is an independent grid
of sample positions, so tiles are spread over a pool of worker processes.

Usage:
    python bake_terrain.py --config path/to/your/config.json
================================================================================
"""
import os
import sys
import json
import logging
import argparse
import time
import hashlib
import collections
import multiprocessing
import numpy as np
from PIL import Image
from scipy.ndimage import zoom
from tqdm import tqdm

# Add project root to Python path to allow importing from terrain_generator
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from terrain_generator.generator import TerrainGenerator
from terrain_generator import color_maps
from terrain_generator import shading
from terrain_generator import config as DEFAULTS
from terrain_generator.errors import InvalidConfiguration

VIEW_MODES = ["shaded", "albedo", "height", "shadow"]


# --- Helper for Uniform Tile Compression ---
def save_tile_image(color_array: np.ndarray, directory: str, file_hash: str) -> str:
    """
    Saves a tile image using a tiered, lossless compression strategy with Pillow.
    The color array is (height, width, channels), as Pillow expects.
    """
    os.makedirs(directory, exist_ok=True)
    file_path = os.path.join(directory, f"{file_hash}.png")

    # Tier 1: Check for perfectly uniform color.
    if (color_array == color_array[0, 0]).all():
        # Create a 1x1 image with the uniform color.
        uniform_color = tuple(int(c) for c in color_array[0, 0])
        img = Image.new('RGB', (1, 1), uniform_color)
        img.save(file_path, 'PNG')
        return 'uniform'

    img = Image.fromarray(color_array)

    # Tier 2: Few enough colors for an exact palette. The palette is built
    # from the unique colors directly, so decoding gives back the same pixels.
    if img.getcolors(256):
        palette, indices = np.unique(color_array.reshape(-1, 3), axis=0, return_inverse=True)
        height, width = color_array.shape[:2]
        pal_img = Image.frombytes('P', (width, height), indices.astype(np.uint8).tobytes())
        pal_img.putpalette(palette.astype(np.uint8).flatten().tolist())
        pal_img.save(file_path, 'PNG')
        return 'palettized'

    # Tier 3: Fallback for high-color tiles (save as standard RGB PNG).
    img.save(file_path, 'PNG')
    return 'full'


def render_view(layers: dict, mode: str, max_height: float) -> np.ndarray:
    """Converts the shading layers of a tile into the uint8 RGB array for one view mode."""
    if mode == "shaded":
        return shading.to_rgb8(layers['shaded'])
    if mode == "albedo":
        return shading.to_rgb8(layers['albedo'])
    if mode == "height":
        return color_maps.get_height_color_array(layers['height'], max_height)
    if mode == "shadow":
        return color_maps.get_shadow_color_array(layers['shadow'])
    raise ValueError(f"Unknown view mode: '{mode}'")


# --- Global variables for worker processes ---
worker_generator = None
worker_tile_dirs = {}  # This will be populated by the initializer
worker_view_modes = []


def init_worker(config, tile_dirs, view_modes):
    """Initializes the global state for each worker process."""
    global worker_generator, worker_tile_dirs, worker_view_modes

    worker_logger = logging.getLogger(f"Worker-{os.getpid()}")
    worker_generator = TerrainGenerator(config=config, logger=worker_logger)
    worker_tile_dirs = tile_dirs
    worker_view_modes = view_modes


def process_tile(coords):
    """
    Processes and SAVES a single tile. Returns only minimal metadata.
    """
    tx, tz = coords

    wx_grid, wz_grid = worker_generator.get_tile_grid(tx, tz)
    needs_shadows = "shadow" in worker_view_modes or "shaded" in worker_view_modes
    layers = worker_generator.shade(wx_grid, wz_grid, with_shadows=needs_shadows)

    tile_results = {'tx': tx, 'tz': tz, 'hashes': {}, 'compression_types': {}}

    for mode in worker_view_modes:
        color_array = render_view(layers, mode, worker_generator.max_height)
        file_hash = hashlib.md5(color_array.tobytes()).hexdigest()
        compression_type = save_tile_image(color_array, worker_tile_dirs[mode], file_hash)

        tile_results['hashes'][mode] = file_hash
        tile_results['compression_types'][mode] = compression_type

    return tile_results


def render_overview(generator: TerrainGenerator, resolution: int, upscale: int) -> np.ndarray:
    """
    Renders the whole terrain at a low resolution and upscales it with
    linear interpolation, for a quick look before opening individual tiles.
    """
    wx_grid, wz_grid = generator.get_coordinate_grid(
        0.0, 0.0, generator.world_width_units, generator.world_height_units,
        resolution, resolution
    )
    shaded = generator.shade(wx_grid, wz_grid)['shaded']
    upscaled = zoom(shaded, (upscale, upscale, 1), order=1)
    return shading.to_rgb8(upscaled)


# --- Main Baking Function ---
def bake_terrain(config_path: str, output_dir: str = None, num_workers: int = None, view_modes: list = None) -> bool:
    """
    Loads a configuration, generates all terrain tiles, and saves them
    as PNG images to a structured output directory.

    Returns:
        bool: True if the bake completed, False if it was aborted.
    """
    logger = logging.getLogger("Baker")

    # 1. --- Load Configuration ---
    logger.info(f"Loading configuration from: {config_path}")
    try:
        with open(config_path, 'r') as f:
            config = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        logger.critical(f"Failed to load or parse config file: {e}")
        return False

    terrain_params = config.get('terrain_generation_parameters', {})

    # 2. --- Initialize a World Generator for main process info ---
    try:
        main_generator = TerrainGenerator(config=terrain_params, logger=logger)
    except InvalidConfiguration as e:
        logger.critical(f"Invalid terrain configuration: {e}")
        return False

    # 3. --- Prepare Output Directories ---
    if output_dir is None:
        output_dir = os.path.join("baked_terrain", f"seed_{main_generator.seed}")
    if view_modes is None:
        view_modes = list(VIEW_MODES)
    tile_dirs = {}
    for mode in view_modes:
        # Define the paths, but do not create the directories here.
        # The workers will handle directory creation on-demand and safely.
        tile_dirs[mode] = os.path.join(output_dir, mode, "tiles")

    # 4. --- Main Baking Loop (Parallelized) ---
    width_tiles = main_generator.settings['world_width_tiles']
    height_tiles = main_generator.settings['world_height_tiles']
    total_tiles = width_tiles * height_tiles

    logger.info(f"Starting bake for a {width_tiles}x{height_tiles} terrain ({total_tiles} tiles)...")

    manifest = {mode: {} for mode in view_modes}
    saved_hashes = {mode: set() for mode in view_modes}
    compression_stats = {mode: collections.Counter() for mode in view_modes}

    start_time = time.perf_counter()

    tasks = [(tx, tz) for tz in range(height_tiles) for tx in range(width_tiles)]

    if num_workers is None:
        num_workers = max(1, multiprocessing.cpu_count() - 1)
    logger.info(f"Using {num_workers} worker processes.")

    def collect(results_iterator):
        for result in tqdm(results_iterator, total=total_tiles, desc="Baking Tiles"):
            coord_key = f"{result['tx']},{result['tz']}"
            for mode in view_modes:
                file_hash = result['hashes'][mode]
                manifest[mode][coord_key] = file_hash

                if file_hash not in saved_hashes[mode]:
                    saved_hashes[mode].add(file_hash)
                    compression_stats[mode][result['compression_types'][mode]] += 1

    init_args = (main_generator.settings, tile_dirs, view_modes)
    if num_workers == 1:
        init_worker(*init_args)
        collect(map(process_tile, tasks))
    else:
        with multiprocessing.Pool(processes=num_workers, initializer=init_worker, initargs=init_args) as pool:
            collect(pool.imap_unordered(process_tile, tasks))

    # --- Overview Image ---
    os.makedirs(output_dir, exist_ok=True)
    logger.info("Rendering low-resolution overview...")
    overview = render_overview(main_generator, DEFAULTS.OVERVIEW_RESOLUTION, DEFAULTS.OVERVIEW_UPSCALE)
    Image.fromarray(overview).save(os.path.join(output_dir, "overview.png"), 'PNG')

    # --- Finalization ---
    final_manifest = {
        "world_dimensions_tiles": [width_tiles, height_tiles],
        "tile_resolution_pixels": main_generator.settings['tile_resolution'],
        "tile_size_units": main_generator.settings['tile_size_units'],
        "tile_map": manifest,
    }
    manifest_path = os.path.join(output_dir, "manifest.json")
    with open(manifest_path, 'w') as f:
        json.dump(final_manifest, f, indent=2)

    # Save the "birth certificate" generation_config.json
    gen_config_path = os.path.join(output_dir, "generation_config.json")
    with open(gen_config_path, 'w') as f:
        json.dump(main_generator.settings, f, indent=4)

    end_time = time.perf_counter()
    logger.info(f"Baking complete! Total time: {end_time - start_time:.2f} seconds.")
    logger.info("--- Deduplication & Compression Stats ---")
    for mode in view_modes:
        stats = compression_stats[mode]
        unique_count = len(saved_hashes[mode])
        logger.info(
            f"  - {mode.capitalize()}: {total_tiles} total -> {unique_count} unique tiles saved "
            f"({stats['uniform']} uniform, {stats['palettized']} palettized, {stats['full']} full)"
        )
    logger.info(f"Baked terrain and manifest.json saved to: {output_dir}")
    return True


# --- Command-Line Interface ---
def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Offline Terrain Baker for the layered-noise terrain generator.")
    parser.add_argument(
        "--config",
        type=str,
        required=True,
        help="Path to the JSON configuration file for the terrain to be baked."
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output directory. Defaults to baked_terrain/seed_<seed>."
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of worker processes. Defaults to one less than the CPU count."
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        stream=sys.stdout
    )
    ok = bake_terrain(args.config, output_dir=args.output, num_workers=args.workers)
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
