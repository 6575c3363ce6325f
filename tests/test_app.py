"""Command line to config mapping and image loading."""

import numpy as np
import pygame
import pytest

import app
import config


@pytest.fixture(autouse=True)
def config_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "CONFIG_DIR", tmp_path / "configs")
    monkeypatch.setattr(config, "LAST_FILE", tmp_path / "configs" / "last.txt")
    monkeypatch.setattr(config, "_CONFIG_INDEX", set())


def test_image_argument_selects_bitmap_start():
    cfg = app.config_from_args(app.build_parser().parse_args(["--image", "pic.png", "--seed", "3"]))
    assert cfg["image"] == "pic.png"
    assert cfg["initial_state"] == "bitmap"
    assert cfg["seed"] == 3


def test_random_flag_and_size():
    args = app.build_parser().parse_args(["--image", "pic.png", "--random", "--width", "32", "--height", "16"])
    cfg = app.config_from_args(args)
    assert cfg["initial_state"] == "random"
    assert cfg["random_size"] == {"width": 32, "height": 16}


def test_load_bitmap_is_row_major(tmp_path):
    surf = pygame.Surface((3, 2))
    surf.fill((0, 0, 0))
    surf.set_at((2, 1), (10, 20, 30))
    path = tmp_path / "img.png"
    pygame.image.save(surf, str(path))
    bmp = app.load_bitmap(str(path))
    assert bmp.shape == (2, 3, 3)
    assert bmp.dtype == np.uint8
    assert bmp[1, 2].tolist() == [10, 20, 30]


def test_zero_sized_grid_exits_nonzero():
    cfg = {**config._default_config(), "random_size": {"width": 0, "height": 8}}
    assert app.run(cfg) == 1


def _save_last_slot():
    state = {
        "values": np.full((3, 4), 7.0),
        "flux": np.zeros((3, 4, 4)),
        "step_count": 5,
    }
    config.save_config(config._default_config(), 11, "kept", step_count=5, state=state)
    return config.get_config_path(11, "kept")


def test_resumes_last_slot_by_default():
    path = _save_last_slot()
    for argv in ([], ["--config", str(path)], ["--seed", "2"]):
        state = app.resume_state(app.build_parser().parse_args(argv))
        assert state is not None
        assert state["step_count"] == 5


def test_image_argument_starts_fresh():
    _save_last_slot()
    assert app.resume_state(app.build_parser().parse_args(["--image", "pic.png"])) is None


def test_other_config_starts_fresh(tmp_path):
    _save_last_slot()
    other = tmp_path / "other.json"
    other.write_text("{}")
    assert app.resume_state(app.build_parser().parse_args(["--config", str(other)])) is None


def test_no_last_slot_starts_fresh():
    assert app.resume_state(app.build_parser().parse_args([])) is None
