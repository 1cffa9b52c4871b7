import math

import numpy as np
import pytest

from camera import Camera
from camera_config import CameraConfig, load_config
from camera_errors import ConfigError


def test_defaults():
    config = CameraConfig()

    assert config.distance == 10.0
    assert config.fov_y == pytest.approx(math.pi / 4)
    assert (config.near, config.far) == (0.1, 100.0)
    assert config.up == (0.0, 1.0, 0.0)
    assert config.rotation_center == config.center == (0.0, 0.0, 0.0)
    assert config.zoom_about_cursor and not config.rotate_about_center


def test_vectors_are_normalized_to_float_triples():
    config = CameraConfig(center=[1, 2, 3], rotation_center=np.array([0, 1, 0]))

    assert config.center == (1.0, 2.0, 3.0)
    assert config.rotation_center == (0.0, 1.0, 0.0)


@pytest.mark.parametrize("options", [
    {"distance": 0.0},
    {"fov_y": math.pi},
    {"near": -1.0},
    {"near": 5.0, "far": 5.0},
    {"aspect_ratio": 0.0},
    {"pan_decay_time": -1.0},
    {"up": (0, 0, 0)},
    {"center": (1, 2)},
    {"center": "abc"},
])
def test_invalid_options_are_rejected(options):
    with pytest.raises(ConfigError):
        CameraConfig(**options)


def test_from_dict_unwraps_camera_section():
    config = CameraConfig.from_dict({"camera": {"distance": 20, "pan_decay_time": 0}})

    assert config.distance == 20
    assert config.pan_decay_time == 0


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(ConfigError, match="zoom_speed"):
        CameraConfig.from_dict({"distance": 5, "zoom_speed": 2})


def test_from_dict_rejects_non_mapping():
    with pytest.raises(ConfigError):
        CameraConfig.from_dict([1, 2, 3])


def test_load_config(tmp_path):
    path = tmp_path / "camera.yaml"
    path.write_text(
        "camera:\n"
        "  distance: 25\n"
        "  center: [0, 4, 0]\n"
        "  rotate_about_center: true\n"
    )

    config = load_config(path)

    assert config.distance == 25
    assert config.center == (0.0, 4.0, 0.0)
    assert config.rotate_about_center


def test_load_empty_config_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")

    assert load_config(path) == CameraConfig()


def test_load_config_errors(tmp_path):
    broken = tmp_path / "broken.yaml"
    broken.write_text("camera: [distance: 1\n")

    with pytest.raises(ConfigError, match="invalid YAML"):
        load_config(broken)
    with pytest.raises(ConfigError, match="cannot read"):
        load_config(tmp_path / "missing.yaml")


def test_camera_options_override_config():
    cam = Camera(CameraConfig(distance=20, theta=0.5), theta=1.0)

    assert cam.state.distance == 20
    assert cam.state.theta == 1.0


def test_camera_rejects_unknown_option():
    with pytest.raises(ConfigError):
        Camera(spin_speed=3)
