"""
Detection of orbit parameters assigned directly between frames.

A caller may write `state.distance = 5` instead of zooming. The detector
compares the state against a snapshot taken at the end of the previous
update and turns any difference into the delta that would have produced it,
so the engine treats passive edits and interactive ones the same way.
"""

import logging
from dataclasses import dataclass, replace

import numpy as np

from camera_config import VECTOR_EPSILON
from camera_state import ViewDelta
from view_math import vectors_equal

log = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class StateSnapshot:
    up: np.ndarray
    center: np.ndarray
    near: float
    far: float
    distance: float
    phi: float
    theta: float
    fov_y: float
    aspect_ratio: float

    @classmethod
    def capture(cls, state):
        return cls(
            up=state.up.copy(),
            center=state.center.copy(),
            near=state.near,
            far=state.far,
            distance=state.distance,
            phi=state.phi,
            theta=state.theta,
            fov_y=state.fov_y,
            aspect_ratio=state.aspect_ratio,
        )


class ChangeDetector:
    """Diffs a CameraState against the snapshot of the previous update."""

    def __init__(self, state=None):
        self.snapshot = StateSnapshot.capture(state) if state is not None else None

    def capture(self, state):
        self.snapshot = StateSnapshot.capture(state)

    def acknowledge(self, state, *names):
        """Copy fields the controller already applied into the snapshot."""
        self.snapshot = replace(self.snapshot, **{name: getattr(state, name) for name in names})

    def changed_fields(self, state):
        """Names of the parameters that differ from the snapshot."""
        prev = self.snapshot
        if prev is None:
            return []
        changed = []
        if not vectors_equal(state.up, prev.up, VECTOR_EPSILON):
            changed.append("up")
        if not vectors_equal(state.center, prev.center, VECTOR_EPSILON):
            changed.append("center")
        for name in ("near", "far", "phi", "theta", "distance", "fov_y", "aspect_ratio"):
            if getattr(state, name) != getattr(prev, name):
                changed.append(name)
        return changed

    def has_changed(self, state):
        return bool(self.changed_fields(state))

    def reconcile(self, state):
        """
        Convert passive edits into an equivalent delta.

        The angles and distance are rolled back to the snapshot and the
        difference is returned as a ViewDelta (zoom anchored at the screen
        center, no pan or pivot). Applying it reproduces the edit.

        Args:
            state (CameraState): State to reconcile, modified in place.

        Returns:
            ViewDelta: The synthetic delta.
        """
        prev = self.snapshot
        log.debug("Reconciling passive edits: %s", ", ".join(self.changed_fields(state)))
        delta = ViewDelta(
            d_phi=state.phi - prev.phi,
            d_theta=state.theta - prev.theta,
            zoom=state.distance / prev.distance - 1.0,
        )
        state.phi = prev.phi
        state.theta = prev.theta
        state.distance = prev.distance
        return delta
