from dataclasses import dataclass, field, fields

import numpy as np

from camera_config import (
    DEFAULT_ASPECT_RATIO,
    DEFAULT_CENTER,
    DEFAULT_DECAY_TIME,
    DEFAULT_DISTANCE,
    DEFAULT_FAR,
    DEFAULT_FOV_Y,
    DEFAULT_NEAR,
    DEFAULT_UP,
    VIEW_CHANGE_EPSILON,
)
from camera_errors import InvalidPatchError
from view_math import vec3

# Motion deltas. A patch adds to these instead of replacing them.
DELTA_FIELDS = ("zoom", "pan_x", "pan_y", "pan_z", "d_theta", "d_phi", "yaw", "pitch")
VECTOR_FIELDS = ("up", "center", "rotation_center")


@dataclass
class ViewDelta:
    """One frame's worth of motion fed to the view update engine."""
    zoom: float = 0.0
    pan_x: float = 0.0
    pan_y: float = 0.0
    pan_z: float = 0.0
    d_theta: float = 0.0
    d_phi: float = 0.0
    yaw: float = 0.0
    pitch: float = 0.0
    mouse_x: float = 0.0
    mouse_y: float = 0.0


@dataclass(eq=False)
class CameraState:
    """
    Full parameter set of an orbit camera.

    Every field may be read or assigned between frames. Orbit parameters
    (`distance`, `phi`, `theta`, `fov_y`, `near`, `far`, `up`, `center`,
    `aspect_ratio`) written directly are picked up by the next
    `Camera.update` as if the equivalent interaction had happened. The
    transient deltas hold the residual motion that decays between frames.

    Attributes:
        distance (float): Eye distance from `center`. Always > 0.
        phi (float): Elevation in radians, kept away from the poles.
        theta (float): Azimuth in radians, unbounded.
        fov_y (float): Vertical field of view in radians.
        near (float): Near clip plane.
        far (float): Far clip plane.
        up (np.ndarray): Up vector. Shape (3,).
        center (np.ndarray): Look-at target in world space. Shape (3,).
        rotation_center (np.ndarray): Pivot for rotate(). Shape (3,).
        aspect_ratio (float): Viewport width / height.
        zoom_about_cursor (bool): Keep the point under the zoom anchor fixed.
        rotate_about_center (bool): Keep `rotation_center` glued to `center`.
        mouse_x, mouse_y (float): Zoom anchor in normalized device coordinates.
    """
    distance: float = DEFAULT_DISTANCE
    phi: float = 0.0
    theta: float = 0.0
    fov_y: float = DEFAULT_FOV_Y
    near: float = DEFAULT_NEAR
    far: float = DEFAULT_FAR
    up: np.ndarray = field(default_factory=lambda: vec3(DEFAULT_UP))
    center: np.ndarray = field(default_factory=lambda: vec3(DEFAULT_CENTER))
    rotation_center: np.ndarray = None
    aspect_ratio: float = DEFAULT_ASPECT_RATIO

    zoom_about_cursor: bool = True
    rotate_about_center: bool = False
    enable_zoom: bool = True
    enable_pan: bool = True
    enable_pivot: bool = True
    enable_rotation: bool = True

    pan_decay_time: float = DEFAULT_DECAY_TIME
    zoom_decay_time: float = DEFAULT_DECAY_TIME
    rotation_decay_time: float = DEFAULT_DECAY_TIME

    zoom: float = 0.0
    pan_x: float = 0.0
    pan_y: float = 0.0
    pan_z: float = 0.0
    d_theta: float = 0.0
    d_phi: float = 0.0
    yaw: float = 0.0
    pitch: float = 0.0
    mouse_x: float = 0.0
    mouse_y: float = 0.0

    def __post_init__(self):
        self.up = vec3(self.up)
        self.center = vec3(self.center)
        if self.rotation_center is None:
            self.rotation_center = self.center.copy()
        else:
            self.rotation_center = vec3(self.rotation_center)

    @classmethod
    def from_config(cls, config):
        """Initial state for a CameraConfig."""
        return cls(
            distance=float(config.distance),
            phi=float(config.phi),
            theta=float(config.theta),
            fov_y=float(config.fov_y),
            near=float(config.near),
            far=float(config.far),
            up=config.up,
            center=config.center,
            rotation_center=config.rotation_center,
            aspect_ratio=float(config.aspect_ratio),
            zoom_about_cursor=bool(config.zoom_about_cursor),
            rotate_about_center=bool(config.rotate_about_center),
            enable_zoom=bool(config.enable_zoom),
            enable_pan=bool(config.enable_pan),
            enable_pivot=bool(config.enable_pivot),
            enable_rotation=bool(config.enable_rotation),
            pan_decay_time=float(config.pan_decay_time),
            zoom_decay_time=float(config.zoom_decay_time),
            rotation_decay_time=float(config.rotation_decay_time),
        )

    def delta(self):
        """The state's current motion deltas as a ViewDelta."""
        return ViewDelta(
            zoom=self.zoom,
            pan_x=self.pan_x,
            pan_y=self.pan_y,
            pan_z=self.pan_z,
            d_theta=self.d_theta,
            d_phi=self.d_phi,
            yaw=self.yaw,
            pitch=self.pitch,
            mouse_x=self.mouse_x,
            mouse_y=self.mouse_y,
        )

    def is_moving(self, epsilon=VIEW_CHANGE_EPSILON):
        """True if any motion delta is large enough to be worth applying."""
        return max(abs(getattr(self, name)) for name in DELTA_FIELDS) > epsilon

    def halt(self):
        """Drop all residual motion."""
        for name in DELTA_FIELDS:
            setattr(self, name, 0.0)

    def merge(self, patch):
        """
        Apply a partial update of state fields.

        Plain parameters are overwritten. Motion deltas named in the patch are
        added on top of the motion already present, so a programmatic nudge
        composes with whatever the user is doing in the same frame.

        Args:
            patch (dict): Field name -> new value.

        Raises:
            InvalidPatchError: If the patch names an unknown field. Nothing is
                written in that case.
        """
        unknown = sorted(set(patch) - _FIELD_NAMES)
        if unknown:
            raise InvalidPatchError(f"unknown camera state field(s): {', '.join(unknown)}")

        cached = {name: getattr(self, name) for name in DELTA_FIELDS}
        for name, value in patch.items():
            if name in VECTOR_FIELDS:
                value = vec3(value)
            setattr(self, name, value)
        for name in DELTA_FIELDS:
            if name in patch:
                setattr(self, name, getattr(self, name) + cached[name])


_FIELD_NAMES = frozenset(f.name for f in fields(CameraState))
