# fidelity_probe.py

"""
================================================================================
BAKE FIDELITY PROBE
================================================================================
Checks that a baked terrain package matches direct evaluation of the terrain
generator. Selected pixels of selected tiles are recomputed one position at a
time and compared against the baked PNGs, which verifies that splitting the
terrain into tiles (and across worker processes) does not change any result.

Usage:
    python fidelity_probe.py --bake-dir baked_terrain/seed_1337
================================================================================
"""
import os
import sys
import json
import logging
import argparse
import numpy as np
from PIL import Image

sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from terrain_generator.generator import TerrainGenerator
from bake_terrain import render_view


def run_probe_on_tile(logger, world_gen, bake_dir, target_tx, target_tz, manifest, mode="shaded", tolerance=1):
    """Helper function to run the fidelity probe on a single specified tile."""

    logger.info(f"--- Probing {mode} tile ({target_tx}, {target_tz}) ---")

    # --- 1. Load the specific baked tile using the manifest ---
    coord_key = f"{target_tx},{target_tz}"
    try:
        tile_hash = manifest["tile_map"][mode][coord_key]
        tile_path = os.path.join(bake_dir, mode, "tiles", f"{tile_hash}.png")
        # IMPORTANT: Palettized images must be converted back to RGB to get pixel data
        baked_pixels = np.array(Image.open(tile_path).convert('RGB'))
    except (KeyError, FileNotFoundError):
        logger.error(f"FAILURE: Could not find or load tile for coordinate ({target_tx}, {target_tz}) from manifest.")
        return False

    # --- 2. Define probe points and run comparison ---
    tile_res = manifest['tile_resolution_pixels']
    wx_grid, wz_grid = world_gen.get_tile_grid(target_tx, target_tz, tile_res)

    probe_points_local = [
        (0, 0), (tile_res - 1, 0), (0, tile_res - 1), (tile_res - 1, tile_res - 1),
        (tile_res // 2, tile_res // 2)
    ]

    tile_passed = True
    for px, py in probe_points_local:
        # Uniform tiles are stored as a single pixel.
        if baked_pixels.shape[:2] == (1, 1):
            baked_color = baked_pixels[0, 0]
        else:
            baked_color = baked_pixels[py, px]

        layers = world_gen.shade(wx_grid[py:py + 1, px:px + 1], wz_grid[py:py + 1, px:px + 1])
        live_color = render_view(layers, mode, world_gen.max_height)[0, 0]

        difference = int(np.max(np.abs(baked_color.astype(int) - live_color.astype(int))))
        result = "PASS" if difference <= tolerance else "FAIL"
        if result == "FAIL":
            tile_passed = False

        logger.info(
            f"  - Probing local pixel ({px}, {py}): Baked={tuple(int(c) for c in baked_color)}, "
            f"Live={tuple(int(c) for c in live_color)} -> {result}"
        )

    return tile_passed


def run_full_probe(bake_dir: str, logger: logging.Logger, tolerance: int = 1) -> bool:
    """Probes the corner and center tiles of every baked view mode."""
    # --- 1. Load Baked Terrain Manifest ---
    manifest_path = os.path.join(bake_dir, "manifest.json")
    logger.info(f"Loading manifest from '{manifest_path}'...")
    try:
        with open(manifest_path, 'r') as f:
            manifest = json.load(f)
    except FileNotFoundError:
        logger.critical(f"Manifest not found. Run bake_terrain.py first to create '{bake_dir}'.")
        return False

    # --- 2. Load the GENERATION config, for a perfect match ---
    gen_config_path = os.path.join(bake_dir, "generation_config.json")
    logger.info(f"Loading generation config from '{gen_config_path}'...")
    with open(gen_config_path, 'r') as f:
        terrain_params = json.load(f)

    world_gen = TerrainGenerator(config=terrain_params, logger=logger)

    # --- 3. Run Probe on a Set of Tiles ---
    width_tiles, height_tiles = manifest['world_dimensions_tiles']
    tiles_to_probe = sorted({
        (0, 0),
        (width_tiles - 1, height_tiles - 1),
        (width_tiles // 2, height_tiles // 2)
    })

    all_probes_passed = True
    for mode in manifest['tile_map']:
        for tx, tz in tiles_to_probe:
            if not run_probe_on_tile(logger, world_gen, bake_dir, tx, tz, manifest, mode, tolerance):
                all_probes_passed = False

    logger.info("--- Full Probe Complete ---")
    if all_probes_passed:
        logger.info("SUCCESS: All tested tiles are faithful to direct evaluation.")
    else:
        logger.error("FAILURE: Mismatch detected in one or more tiles.")
    return all_probes_passed


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Compare a baked terrain package against direct evaluation.")
    parser.add_argument("--bake-dir", type=str, required=True, help="Directory produced by bake_terrain.py.")
    parser.add_argument("--tolerance", type=int, default=1, help="Allowed per-channel difference (0-255).")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    logger = logging.getLogger("FidelityProbe")
    return 0 if run_full_probe(args.bake_dir, logger, args.tolerance) else 1


if __name__ == '__main__':
    sys.exit(main())
