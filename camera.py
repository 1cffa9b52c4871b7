import logging
import math
import time
from dataclasses import asdict, dataclass

import numpy as np

import view_math
from camera_config import (
    DEFAULT_UP,
    MAX_FOV_Y,
    MAX_PHI,
    MIN_DEPTH_RANGE,
    MIN_DISTANCE,
    MIN_FOV_Y,
    MIN_NEAR,
    MIN_PHI,
    CameraConfig,
)
from camera_errors import DegenerateProjectionError, SingularMatrixError, SingularViewMatrixError
from camera_state import VECTOR_FIELDS, CameraState
from change_detector import ChangeDetector
from interaction import InteractionAccumulator

log = logging.getLogger(__name__)

# Tried in order when the configured up vector is parallel to the view axis.
FALLBACK_UPS = (DEFAULT_UP, (0.0, 0.0, 1.0))


@dataclass(frozen=True, eq=False)
class CameraFrame:
    """
    Read-only result of `Camera.update`.

    Matrices use the pyrr layout (row vectors, translation in the last row);
    `view.flatten()` is ready for a column-major uniform buffer. The arrays are
    not writeable and are never modified after being handed out.
    """
    view: np.ndarray
    projection: np.ndarray
    view_inverse: np.ndarray
    projection_inverse: np.ndarray
    eye: np.ndarray
    center: np.ndarray
    up: np.ndarray
    distance: float
    phi: float
    theta: float
    fov_y: float
    near: float
    far: float
    aspect_ratio: float
    dirty: bool


def clamp_phi(phi):
    """Keep the elevation away from the poles, where look-at degenerates."""
    return min(MAX_PHI, max(MIN_PHI, phi))


def decay_factor(dt, half_life):
    """
    Share of a motion delta left after `dt` milliseconds.

    `half_life` is in milliseconds; 0 (or less) means no inertia at all.
    This is an exact half-life, `0.5 ** (dt / half_life)`, so a delta is
    halved after exactly `half_life` ms. The `exp(-dt / T / ln 2)` form used
    by some orbit controllers decays slightly slower and never hits one half.
    """
    if half_life <= 0:
        return 0.0
    return 0.5 ** (max(dt, 0.0) / half_life)


def _frozen(array):
    array.flags.writeable = False
    return array


class Camera:
    """
    Orbit camera controller with inertia.

    The camera orbits `state.center` at `state.distance`, with elevation
    `state.phi` and azimuth `state.theta`. Input handlers call `pan`, `zoom`,
    `pivot` and `rotate` as often as events arrive; those only accumulate.
    The render loop calls `update` once per frame, which folds the
    accumulated input into the state, applies it, lets the residual motion
    decay over time and recomputes the matrices when something moved.

    Parameters in `state` may also be assigned directly between frames
    (`camera.state.distance = 5`). The next update converts such edits into
    the equivalent interaction, so they get the same center adjustment and
    clamping as user input.

    Attributes:
        config (CameraConfig): Options the camera was built with.
        state (CameraState): Live, externally writable parameters and deltas.
        interactions (InteractionAccumulator): Input collected since the last update.
    """

    def __init__(self, config=None, **options):
        """
        Initialize the camera.

        Args:
            config (CameraConfig, optional): Base configuration. Defaults to
                CameraConfig().
            **options: Individual CameraConfig fields, overriding `config`.

        Raises:
            ConfigError: If an option is unknown or out of range.
        """
        if config is None:
            config = CameraConfig.from_dict(options)
        elif options:
            config = CameraConfig.from_dict({**asdict(config), **options})
        self.config = config
        self.state = CameraState.from_config(config)
        self.interactions = InteractionAccumulator()

        self._last_time = None
        self._dirty = True
        self._tainted = True
        self._valid_up = self.state.up.copy()
        self._valid_aspect_ratio = self.state.aspect_ratio

        self._eye = _frozen(np.zeros(3))
        self._view = _frozen(view_math.identity())
        self._view_inverse = self._view
        self._projection = _frozen(view_math.identity())
        self._projection_inverse = self._projection

        self._compute_matrices()
        self._changes = ChangeDetector(self.state)

    @property
    def view(self):
        return self._view

    @property
    def projection(self):
        return self._projection

    @property
    def view_inverse(self):
        return self._view_inverse

    @property
    def projection_inverse(self):
        return self._projection_inverse

    @property
    def eye(self):
        return self._eye

    @property
    def dirty(self):
        """True if the matrices changed in the last update or since it."""
        return self._dirty

    def frame(self):
        """Snapshot of the current outputs without running an update."""
        state = self.state
        return CameraFrame(
            view=self._view,
            projection=self._projection,
            view_inverse=self._view_inverse,
            projection_inverse=self._projection_inverse,
            eye=self._eye,
            center=_frozen(state.center.copy()),
            up=_frozen(state.up.copy()),
            distance=state.distance,
            phi=state.phi,
            theta=state.theta,
            fov_y=state.fov_y,
            near=state.near,
            far=state.far,
            aspect_ratio=state.aspect_ratio,
            dirty=self._dirty,
        )

    def pan(self, dx, dy):
        """
        Slide the view parallel to the screen.

        Args:
            dx (float): Horizontal delta as a fraction of the viewport width.
            dy (float): Vertical delta as a fraction of the viewport height.
        """
        state = self.state
        if not state.enable_pan:
            log.debug("Pan disabled, ignoring (%g, %g)", dx, dy)
            return
        extent = 2.0 * state.distance * math.tan(state.fov_y * 0.5)
        self.interactions.add(pan_x=dx * extent * state.aspect_ratio, pan_y=dy * extent)

    def zoom(self, mouse_x, mouse_y, delta):
        """
        Scale the orbit distance by (1 + delta), anchored at a screen point.

        With `zoom_about_cursor` the world point under (mouse_x, mouse_y)
        stays put. Several zooms in one frame add up; the anchor of the
        last one is used.

        Args:
            mouse_x (float): Anchor x in normalized device coordinates.
            mouse_y (float): Anchor y in normalized device coordinates.
            delta (float): Relative distance change; positive zooms out.
        """
        if not self.state.enable_zoom:
            log.debug("Zoom disabled, ignoring %g", delta)
            return
        self.interactions.add(anchor=(mouse_x, mouse_y), zoom=delta)

    def pivot(self, yaw, pitch):
        """Turn the view direction about the eye instead of about the center."""
        state = self.state
        if not state.enable_pivot:
            log.debug("Pivot disabled, ignoring (%g, %g)", yaw, pitch)
            return
        self.interactions.add(yaw=yaw * state.fov_y * state.aspect_ratio, pitch=pitch * state.fov_y)

    def rotate(self, d_theta, d_phi):
        """Orbit about `rotation_center`. Angles in radians, applied as given."""
        if not self.state.enable_rotation:
            log.debug("Rotation disabled, ignoring (%g, %g)", d_theta, d_phi)
            return
        self.interactions.add(d_theta=d_theta, d_phi=d_phi)

    def resize(self, aspect_ratio):
        """Set a new viewport aspect ratio and rebuild the projection right away."""
        if not (math.isfinite(aspect_ratio) and aspect_ratio > 0):
            log.warning("Ignoring invalid aspect ratio %r", aspect_ratio)
            return
        self.state.aspect_ratio = float(aspect_ratio)
        self._valid_aspect_ratio = self.state.aspect_ratio
        self._compute_projection()
        self._changes.acknowledge(self.state, "aspect_ratio")
        self.taint()

    def taint(self):
        """Report the next update as dirty even if nothing moves."""
        self._dirty = True
        self._tainted = True

    def set_fov_y(self, fov_y, keep_extent=True):
        """
        Change the vertical field of view.

        Args:
            fov_y (float): New field of view in radians, clamped to (0, pi).
            keep_extent (bool): Also rescale `distance` so the visible height
                at the center stays the same. Defaults to True.
        """
        state = self.state
        fov_y = min(MAX_FOV_Y, max(MIN_FOV_Y, fov_y))
        if keep_extent:
            extent = state.distance * math.tan(state.fov_y * 0.5)
            state.distance = extent / math.tan(fov_y * 0.5)
        state.fov_y = fov_y

    def update(self, now=None, patch=None):
        """
        Advance the camera by one frame.

        Steps, in order:
        1. Move the input accumulated since the last call into the state.
        2. Merge `patch`; motion deltas in it add to the current motion.
        3. Turn direct parameter edits into an equivalent delta and apply it.
        4. Apply the state's motion if it is above the settle threshold,
           otherwise zero it.
        5. Decay the remaining motion by the time elapsed since the last call.
        6. Snapshot the parameters for the next call's edit detection.

        Args:
            now (float, optional): Frame timestamp in milliseconds. Defaults
                to a monotonic clock.
            patch (dict, optional): CameraState field name -> value.

        Returns:
            CameraFrame: The matrices and parameters after this frame.

        Raises:
            InvalidPatchError: If `patch` names an unknown field.
        """
        if now is None:
            now = time.monotonic() * 1000.0
        state = self.state
        self._dirty = self._tainted
        self._tainted = False

        deltas, anchor = self.interactions.drain()
        for name, amount in deltas.items():
            setattr(state, name, amount)
        if anchor is not None:
            state.mouse_x, state.mouse_y = anchor

        if patch:
            state.merge(patch)
        self._coerce_vectors()

        if self._changes.has_changed(state):
            self._apply_view_change(self._changes.reconcile(state))

        if state.is_moving():
            self._apply_view_change(state.delta())
        else:
            state.halt()

        if self._last_time is not None:
            self._decay(now - self._last_time)
        self._last_time = now

        self._changes.capture(state)
        return self.frame()

    def _coerce_vectors(self):
        """Turn vectors assigned as lists or tuples back into float arrays."""
        state = self.state
        for name in VECTOR_FIELDS:
            value = getattr(state, name)
            if isinstance(value, np.ndarray) and value.dtype == np.float64 and value.shape == (3,):
                continue
            try:
                setattr(state, name, view_math.vec3(value))
            except (TypeError, ValueError) as e:
                previous = self._valid_up if name == "up" else self._changes.snapshot.center
                log.warning("Ignoring invalid %s %r (%s); keeping %s", name, value, e, previous.tolist())
                setattr(state, name, previous.copy())

    def _decay(self, dt):
        state = self.state
        pan = decay_factor(dt, state.pan_decay_time)
        zoom = decay_factor(dt, state.zoom_decay_time)
        rotation = decay_factor(dt, state.rotation_decay_time)
        state.zoom *= zoom
        state.pan_x *= pan
        state.pan_y *= pan
        state.pan_z *= pan
        state.d_theta *= rotation
        state.d_phi *= rotation
        state.yaw *= rotation
        state.pitch *= rotation

    def _apply_view_change(self, delta):
        """
        Apply one ViewDelta to the orbit parameters and rebuild the matrices.

        Zoom and pan are applied to `center` in the current view space, where
        a zoom about the cursor is a plain scale about the anchor point. The
        eye is never moved directly; it is re-derived from center, distance
        and angles afterwards.
        """
        state = self.state

        zoom = delta.zoom
        min_zoom = MIN_DISTANCE / state.distance - 1.0
        if zoom < min_zoom:
            log.warning("Zoom %g would collapse the orbit distance %g; clamping to %g",
                        zoom, state.distance, min_zoom)
            zoom = min_zoom
            if state.zoom < 0.0:
                # distance is at the floor; further zoom-in would only clamp again
                state.zoom = 0.0
        scale = 1.0 + zoom

        anchor_x = anchor_y = 0.0
        if state.zoom_about_cursor:
            extent = state.distance * math.tan(state.fov_y * 0.5)
            anchor_x = delta.mouse_x * state.aspect_ratio * extent
            anchor_y = delta.mouse_y * extent
        d_view = view_math.scale_about(anchor_x, anchor_y, scale)
        d_view[3, 0] += delta.pan_x
        d_view[3, 1] += delta.pan_y
        d_view[3, 2] += delta.pan_z

        center = view_math.transform_point(self._view, state.center)
        center = view_math.transform_point(d_view, center)
        center = view_math.transform_point(self._view_inverse, center)

        if state.rotate_about_center:
            state.rotation_center = center.copy()

        state.distance *= scale

        old_theta = state.theta
        state.theta += delta.d_theta
        prev_phi = state.phi
        state.phi = clamp_phi(state.phi + delta.d_phi)
        d_phi = state.phi - prev_phi

        if delta.d_theta != 0.0 or d_phi != 0.0:
            # undo the old azimuth, tilt, reapply the new azimuth
            pivot = state.rotation_center
            center = view_math.rotate_about_axis(center, pivot, view_math.Y_AXIS, old_theta)
            center = view_math.rotate_about_axis(center, pivot, view_math.X_AXIS, -d_phi)
            center = view_math.rotate_about_axis(center, pivot, view_math.Y_AXIS, -state.theta)

        if delta.yaw != 0.0 or delta.pitch != 0.0:
            # Move the target around the eye instead of rotating the eye.
            right, up, back = view_math.view_basis(self._view)
            half_yaw = 0.5 * delta.yaw
            half_pitch = 0.5 * delta.pitch
            d = state.distance
            center = view_math.scale_and_add(center, right, math.sin(half_yaw) * d)
            center = view_math.scale_and_add(center, up, math.sin(half_pitch) * d)
            center = view_math.scale_and_add(
                center, back, (2.0 - math.cos(half_yaw) - math.cos(half_pitch)) * d
            )
            state.phi = clamp_phi(state.phi - half_pitch)
            state.theta += half_yaw

        state.center = center
        self._compute_matrices()
        self._dirty = True

    def _compute_matrices(self):
        state = self.state
        self._enforce_limits()
        eye = view_math.orbit_eye(state.center, state.distance, state.phi, state.theta)
        self._eye = _frozen(eye)
        self._view = _frozen(self._look_at(eye))
        self._view_inverse = _frozen(self._invert(self._view, self._view_inverse, "view"))
        self._compute_projection()

    def _compute_projection(self):
        state = self.state
        try:
            projection = view_math.perspective(state.fov_y, state.aspect_ratio, state.near, state.far)
        except DegenerateProjectionError as e:
            log.warning("%s; keeping the previous projection", e)
            return
        self._projection = _frozen(projection)
        self._projection_inverse = _frozen(
            self._invert(projection, self._projection_inverse, "projection")
        )

    def _look_at(self, eye):
        state = self.state
        candidates = [state.up, self._valid_up] + [view_math.vec3(up) for up in FALLBACK_UPS]
        error = None
        for up in candidates:
            try:
                view = view_math.look_at(eye, state.center, up)
            except SingularViewMatrixError as e:
                error = error or e
                continue
            if up is not state.up:
                log.warning("%s; falling back to up=%s", error, up.tolist())
                state.up = up.copy()
            self._valid_up = state.up.copy()
            return view
        log.warning("%s; keeping the previous view matrix", error)
        return self._view

    def _invert(self, m, previous, name):
        try:
            return view_math.invert(m)
        except SingularMatrixError as e:
            log.warning("Cannot invert the %s matrix (%s); keeping the previous inverse", name, e)
            return previous

    def _enforce_limits(self):
        """Clamp parameters that would make the matrices degenerate."""
        state = self.state
        if not state.distance >= MIN_DISTANCE:
            log.warning("Orbit distance %r is below the minimum; clamping to %g", state.distance, MIN_DISTANCE)
            state.distance = MIN_DISTANCE
        state.phi = clamp_phi(state.phi)
        if not MIN_FOV_Y <= state.fov_y <= MAX_FOV_Y:
            fov_y = min(MAX_FOV_Y, max(MIN_FOV_Y, state.fov_y))
            log.warning("fov_y %r outside (0, pi); clamping to %g", state.fov_y, fov_y)
            state.fov_y = fov_y
        if not state.near >= MIN_NEAR:
            log.warning("near %r is not positive; clamping to %g", state.near, MIN_NEAR)
            state.near = MIN_NEAR
        if not state.far >= state.near + MIN_DEPTH_RANGE:
            far = state.near + MIN_DEPTH_RANGE
            log.warning("far %r is not beyond near %g; clamping to %g", state.far, state.near, far)
            state.far = far
        if math.isfinite(state.aspect_ratio) and state.aspect_ratio > 0:
            self._valid_aspect_ratio = state.aspect_ratio
        else:
            log.warning("Invalid aspect ratio %r; keeping %g", state.aspect_ratio, self._valid_aspect_ratio)
            state.aspect_ratio = self._valid_aspect_ratio
