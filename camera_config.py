"""
Defaults, limits and constructor configuration for the orbit camera.

A configuration can be built in code (`CameraConfig(distance=20)`), from a
mapping (`CameraConfig.from_dict`) or from a YAML file (`load_config`):

    camera:
      distance: 20
      center: [0, 4, 0]
      pan_decay_time: 250
"""

import logging
import math
from dataclasses import dataclass, fields

import yaml

from camera_errors import ConfigError

log = logging.getLogger(__name__)

# Orbit defaults
DEFAULT_DISTANCE = 10.0
DEFAULT_FOV_Y = math.pi / 4
DEFAULT_NEAR = 0.1
DEFAULT_FAR = 100.0
DEFAULT_ASPECT_RATIO = 1.0
DEFAULT_UP = (0.0, 1.0, 0.0)
DEFAULT_CENTER = (0.0, 0.0, 0.0)

# Inertia half-lives (milliseconds)
DEFAULT_DECAY_TIME = 100.0

# Limits
POLE_EPSILON = 1e-4
MIN_PHI = -math.pi / 2 + POLE_EPSILON
MAX_PHI = math.pi / 2 - POLE_EPSILON
MIN_FOV_Y = 1e-4
MAX_FOV_Y = math.pi - 1e-4
MIN_DISTANCE = 1e-6
MIN_NEAR = 1e-6
MIN_DEPTH_RANGE = 1e-3

# Deltas at or below this magnitude count as "settled".
VIEW_CHANGE_EPSILON = 1e-4
# Absolute tolerance when diffing vector parameters between frames.
VECTOR_EPSILON = 1e-6


@dataclass
class CameraConfig:
    """
    Constructor options for `Camera`. Every field is optional.

    Angles are in radians, decay times are half-lives in milliseconds (0
    disables inertia for that channel). `rotation_center` defaults to
    `center`.
    """
    aspect_ratio: float = DEFAULT_ASPECT_RATIO
    zoom_about_cursor: bool = True
    rotate_about_center: bool = False
    enable_zoom: bool = True
    enable_pan: bool = True
    enable_pivot: bool = True
    enable_rotation: bool = True
    distance: float = DEFAULT_DISTANCE
    phi: float = 0.0
    theta: float = 0.0
    fov_y: float = DEFAULT_FOV_Y
    near: float = DEFAULT_NEAR
    far: float = DEFAULT_FAR
    pan_decay_time: float = DEFAULT_DECAY_TIME
    zoom_decay_time: float = DEFAULT_DECAY_TIME
    rotation_decay_time: float = DEFAULT_DECAY_TIME
    up: tuple = DEFAULT_UP
    center: tuple = DEFAULT_CENTER
    rotation_center: tuple = None

    def __post_init__(self):
        self.up = _as_triple("up", self.up)
        self.center = _as_triple("center", self.center)
        if self.rotation_center is None:
            self.rotation_center = self.center
        else:
            self.rotation_center = _as_triple("rotation_center", self.rotation_center)
        self.validate()

    def validate(self):
        """Raise ConfigError if any option is outside its valid range."""
        if not self.distance > 0:
            raise ConfigError(f"distance must be positive, got {self.distance}")
        if not 0 < self.fov_y < math.pi:
            raise ConfigError(f"fov_y must be in (0, pi), got {self.fov_y}")
        if not self.near > 0:
            raise ConfigError(f"near must be positive, got {self.near}")
        if not self.far > self.near:
            raise ConfigError(f"far ({self.far}) must be greater than near ({self.near})")
        if not self.aspect_ratio > 0:
            raise ConfigError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        for name in ("pan_decay_time", "zoom_decay_time", "rotation_decay_time"):
            if not getattr(self, name) >= 0:
                raise ConfigError(f"{name} must be >= 0, got {getattr(self, name)}")
        if not any(self.up):
            raise ConfigError("up must be a non-zero vector")

    @classmethod
    def from_dict(cls, data):
        """
        Build a config from a plain mapping, e.g. parsed YAML.

        A top-level `camera` key is unwrapped if present. Unknown keys are
        rejected so typos don't silently fall back to defaults.
        """
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(f"camera config must be a mapping, got {type(data).__name__}")
        if "camera" in data and isinstance(data["camera"], dict):
            data = data["camera"]
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown camera option(s): {', '.join(unknown)}")
        try:
            return cls(**data)
        except TypeError as e:
            raise ConfigError(str(e)) from e


def load_config(path):
    """Read a YAML camera config file into a CameraConfig."""
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"cannot read camera config {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e
    log.debug("Loaded camera config from %s", path)
    return CameraConfig.from_dict(data)


def _as_triple(name, value):
    try:
        triple = tuple(float(v) for v in value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be a sequence of 3 numbers, got {value!r}") from e
    if len(triple) != 3:
        raise ConfigError(f"{name} must have 3 components, got {len(triple)}")
    return triple
