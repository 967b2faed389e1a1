"""End-to-end tests for the offline baker and the fidelity probe."""

import json
import logging
import os

import numpy as np
import pytest
from PIL import Image

import bake_terrain
import fidelity_probe
from terrain_generator.errors import ThresholdOutOfRangeWarning


@pytest.fixture
def config_path(tmp_path, small_config):
    path = tmp_path / "terrain.json"
    path.write_text(json.dumps({'terrain_generation_parameters': small_config}))
    return str(path)


@pytest.fixture
def baked_dir(tmp_path, config_path):
    output_dir = str(tmp_path / "bake")
    assert bake_terrain.bake_terrain(config_path, output_dir=output_dir, num_workers=1)
    return output_dir


def test_bake_writes_manifest_and_tiles(baked_dir, small_config):
    with open(os.path.join(baked_dir, "manifest.json")) as f:
        manifest = json.load(f)

    assert manifest['world_dimensions_tiles'] == [2, 2]
    assert manifest['tile_resolution_pixels'] == small_config['tile_resolution']
    assert set(manifest['tile_map']) == set(bake_terrain.VIEW_MODES)
    for mode, tiles in manifest['tile_map'].items():
        assert set(tiles) == {"0,0", "1,0", "0,1", "1,1"}
        for tile_hash in tiles.values():
            assert os.path.exists(os.path.join(baked_dir, mode, "tiles", f"{tile_hash}.png"))


def test_bake_writes_generation_config_and_overview(baked_dir, small_config):
    with open(os.path.join(baked_dir, "generation_config.json")) as f:
        generation_config = json.load(f)

    assert generation_config['seed'] == small_config['seed']
    assert generation_config['octaves'] == small_config['octaves']

    overview = Image.open(os.path.join(baked_dir, "overview.png"))
    size = bake_terrain.DEFAULTS.OVERVIEW_RESOLUTION * bake_terrain.DEFAULTS.OVERVIEW_UPSCALE
    assert overview.size == (size, size)


def test_baked_tiles_match_direct_evaluation(baked_dir):
    logger = logging.getLogger("probe-tests")

    assert fidelity_probe.run_full_probe(baked_dir, logger)


def test_probe_cli_reports_success(baked_dir):
    assert fidelity_probe.main(["--bake-dir", baked_dir]) == 0


def test_probe_without_manifest_fails(tmp_path):
    assert not fidelity_probe.run_full_probe(str(tmp_path), logging.getLogger("probe-tests"))


def test_bake_with_missing_config_fails(tmp_path):
    assert not bake_terrain.bake_terrain(str(tmp_path / "missing.json"), output_dir=str(tmp_path / "out"))


def test_bake_with_invalid_config_fails(tmp_path, small_config):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({'terrain_generation_parameters': dict(small_config, lacunarity=-1.0)}))

    assert not bake_terrain.bake_terrain(str(path), output_dir=str(tmp_path / "out"), num_workers=1)
    assert not (tmp_path / "out").exists()


def test_bake_cli_exit_codes(tmp_path, config_path):
    assert bake_terrain.main(["--config", config_path, "--output", str(tmp_path / "cli"), "--workers", "1"]) == 0
    assert bake_terrain.main(["--config", str(tmp_path / "missing.json")]) == 1


def test_uniform_tile_is_stored_as_single_pixel(tmp_path):
    colors = np.full((8, 8, 3), 17, dtype=np.uint8)

    assert bake_terrain.save_tile_image(colors, str(tmp_path), "uniform") == 'uniform'
    assert Image.open(tmp_path / "uniform.png").size == (1, 1)


def test_few_color_tile_is_palettized_losslessly(tmp_path):
    colors = np.zeros((8, 8, 3), dtype=np.uint8)
    colors[::2] = (200, 10, 30)
    colors[:, ::3] = (1, 2, 3)

    assert bake_terrain.save_tile_image(colors, str(tmp_path), "few") == 'palettized'
    img = Image.open(tmp_path / "few.png")
    assert img.mode == 'P'
    np.testing.assert_array_equal(np.array(img.convert('RGB')), colors)


def test_many_color_tile_is_stored_in_full(tmp_path):
    colors = np.random.default_rng(0).integers(0, 256, (64, 64, 3), dtype=np.uint8)

    assert bake_terrain.save_tile_image(colors, str(tmp_path), "full") == 'full'
    np.testing.assert_array_equal(np.array(Image.open(tmp_path / "full.png")), colors)


def test_render_view_rejects_unknown_mode():
    with pytest.raises(ValueError):
        bake_terrain.render_view({}, "wireframe", 1.0)


def test_flat_terrain_height_view_is_mid_gray(small_config, logger):
    config = dict(small_config, octaves=0, smooth_octaves=0, shadow_octaves=0)
    with pytest.warns(ThresholdOutOfRangeWarning):
        generator = bake_terrain.TerrainGenerator(config=config, logger=logger)
    x, z = generator.get_tile_grid(0, 0)
    layers = generator.shade(x, z)

    assert generator.max_height == 0.0
    np.testing.assert_array_equal(bake_terrain.render_view(layers, "height", generator.max_height), 128)


def test_pooled_bake_matches_direct_evaluation(tmp_path, config_path):
    output_dir = str(tmp_path / "pooled")

    assert bake_terrain.bake_terrain(config_path, output_dir=output_dir, num_workers=2)
    assert fidelity_probe.run_full_probe(output_dir, logging.getLogger("probe-tests"), tolerance=0)
