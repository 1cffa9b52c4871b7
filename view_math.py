"""
Matrix and vector helpers for the orbit camera.

Matrices follow the pyrr convention: 4x4 numpy arrays applied to row vectors
(`p @ M`), translation in the last row. Flattened, that is the column-major
layout OpenGL/WebGPU uniforms expect, so `view.flat[12]` is the x translation.
"""

import math

import numpy as np
import pyrr

from camera_errors import (
    DegenerateProjectionError,
    NonPositiveDistanceError,
    SingularMatrixError,
    SingularViewMatrixError,
)

X_AXIS = np.array([1.0, 0.0, 0.0])
Y_AXIS = np.array([0.0, 1.0, 0.0])

# Smallest |forward x up| accepted by look_at.
PARALLEL_EPSILON = 1e-9


def vec3(values):
    """Copy anything vector-like into a fresh float64 array of shape (3,)."""
    v = np.array(values, dtype=np.float64).reshape(-1)
    if v.shape != (3,):
        raise ValueError(f"expected 3 components, got {v.shape[0]}")
    return v


def identity():
    return pyrr.matrix44.create_identity(dtype=np.float64)


def translation(x, y, z):
    return pyrr.matrix44.create_from_translation([x, y, z], dtype=np.float64)


def scaling(sx, sy, sz):
    return pyrr.matrix44.create_from_scale([sx, sy, sz], dtype=np.float64)


def multiply(a, b):
    """Compose two transforms: the result applies `a` first, then `b`."""
    return pyrr.matrix44.multiply(a, b)


def invert(m):
    """Invert a 4x4 matrix, raising SingularMatrixError instead of LinAlgError."""
    try:
        inv = pyrr.matrix44.inverse(m)
    except np.linalg.LinAlgError as e:
        raise SingularMatrixError(f"matrix is not invertible: {e}") from e
    if not np.all(np.isfinite(inv)):
        raise SingularMatrixError("matrix inverse is not finite")
    return inv


def transform_point(m, p):
    """Apply a 4x4 transform to a point (w=1), with perspective division."""
    return np.asarray(pyrr.matrix44.apply_to_vector(m, np.asarray(p, dtype=np.float64)),
                      dtype=np.float64)


def add(a, b):
    return np.asarray(a, dtype=np.float64) + np.asarray(b, dtype=np.float64)


def scale_and_add(a, b, s):
    """Return a + b * s."""
    return np.asarray(a, dtype=np.float64) + np.asarray(b, dtype=np.float64) * s


def normalize(v):
    """Unit vector along v; the zero vector is returned unchanged."""
    v = np.asarray(v, dtype=np.float64)
    n = np.linalg.norm(v)
    if n == 0.0:
        return v.copy()
    return pyrr.vector.normalize(v)


def vectors_equal(a, b, epsilon=1e-6):
    """Component-wise equality within an absolute epsilon."""
    return bool(np.all(np.abs(np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)) <= epsilon))


def rotate_about_axis(point, pivot, axis, angle):
    """
    Rotate `point` by `angle` radians about the line through `pivot` along `axis`.

    Uses the same handedness as gl-matrix's rotateX/rotateY: rotating (0, 0, 1)
    about +Y by a positive angle moves it towards +X.
    """
    pivot = np.asarray(pivot, dtype=np.float64)
    offset = np.asarray(point, dtype=np.float64) - pivot
    k = normalize(axis)
    c = math.cos(angle)
    s = math.sin(angle)
    # Rodrigues
    rotated = offset * c + np.cross(k, offset) * s + k * np.dot(k, offset) * (1.0 - c)
    return pivot + rotated


def orbit_eye(center, distance, phi, theta):
    """
    Eye position for an orbit of `distance` around `center`.

    phi is the elevation (rotation about X), theta the azimuth (about Y); at
    phi = theta = 0 the eye sits on +Z looking down -Z.
    """
    if not distance > 0.0:
        raise NonPositiveDistanceError(f"orbit distance must be positive, got {distance}")
    origin = np.zeros(3)
    eye = np.array([0.0, 0.0, distance])
    eye = rotate_about_axis(eye, origin, X_AXIS, -phi)
    eye = rotate_about_axis(eye, origin, Y_AXIS, -theta)
    return eye + np.asarray(center, dtype=np.float64)


def look_at(eye, center, up):
    """Right-handed look-at view matrix; raises SingularViewMatrixError if degenerate."""
    eye = np.asarray(eye, dtype=np.float64)
    center = np.asarray(center, dtype=np.float64)
    up = np.asarray(up, dtype=np.float64)
    forward = center - eye
    if np.linalg.norm(forward) == 0.0:
        raise SingularViewMatrixError("eye and center coincide")
    side = np.cross(normalize(forward), up)
    if not np.linalg.norm(side) > PARALLEL_EPSILON:
        raise SingularViewMatrixError(f"up vector {up} is parallel to the viewing axis")
    return pyrr.matrix44.create_look_at(eye, center, up, dtype=np.float64)


def perspective(fov_y, aspect, near, far):
    """Symmetric perspective projection. fov_y is in radians."""
    if not 0.0 < fov_y < math.pi:
        raise DegenerateProjectionError(f"fov_y must be in (0, pi), got {fov_y}")
    if not aspect > 0.0:
        raise DegenerateProjectionError(f"aspect ratio must be positive, got {aspect}")
    if not 0.0 < near < far:
        raise DegenerateProjectionError(f"need 0 < near < far, got near={near} far={far}")
    # pyrr takes the vertical field of view in degrees
    return pyrr.matrix44.create_perspective_projection_matrix(
        math.degrees(fov_y), aspect, near, far, dtype=np.float64
    )


def view_basis(view):
    """
    Unit right, up and back vectors of a view matrix, in world space.

    Read from the matrix columns rather than recomputed from angles, so they
    match exactly what was rendered. `back` points from the center to the eye.
    """
    right = normalize(view[:3, 0])
    up = normalize(view[:3, 1])
    back = normalize(view[:3, 2])
    return right, up, back


def scale_about(anchor_x, anchor_y, factor):
    """Scale x and y by `factor` about (anchor_x, anchor_y); z is untouched."""
    m = translation(-anchor_x, -anchor_y, 0.0)
    m = multiply(m, scaling(factor, factor, 1.0))
    return multiply(m, translation(anchor_x, anchor_y, 0.0))
