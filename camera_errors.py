"""
Error kinds raised by the orbit camera.

Only configuration problems are meant to reach the caller. The geometric
errors are raised by `view_math` and recovered inside `Camera` by clamping or
falling back to the last valid value, because they surface inside a per-frame
render loop.
"""


class CameraError(Exception):
    """Base class for every camera error."""


class ConfigError(CameraError, ValueError):
    """Invalid constructor configuration or unreadable config file."""


class InvalidPatchError(CameraError, KeyError):
    """An update patch names a field the state does not have."""


class DegenerateProjectionError(CameraError):
    """fov_y, aspect ratio, near or far out of their valid range."""


class SingularViewMatrixError(CameraError):
    """The up vector is parallel to the eye-center axis."""


class SingularMatrixError(CameraError):
    """A matrix could not be inverted."""


class NonPositiveDistanceError(CameraError):
    """The orbit distance dropped to zero or below."""
