import numpy as np
import pytest

from camera_config import CameraConfig
from camera_errors import InvalidPatchError
from camera_state import CameraState, ViewDelta
from change_detector import ChangeDetector


@pytest.fixture
def state():
    return CameraState.from_config(CameraConfig())


def test_unchanged_state(state):
    detector = ChangeDetector(state)
    assert not detector.has_changed(state)
    assert detector.changed_fields(state) == []


def test_scalar_and_vector_edits_are_reported(state):
    detector = ChangeDetector(state)
    state.near = 0.5
    state.center = np.array([0.0, 1.0, 0.0])

    assert detector.changed_fields(state) == ["center", "near"]


def test_vector_noise_below_epsilon_is_ignored(state):
    detector = ChangeDetector(state)
    state.center = state.center + 1e-8
    state.up = state.up - 1e-8

    assert not detector.has_changed(state)


def test_reconcile_turns_edits_into_delta(state):
    detector = ChangeDetector(state)
    state.distance = 25.0
    state.phi = 0.2
    state.theta = -0.5

    delta = detector.reconcile(state)

    assert delta == ViewDelta(zoom=1.5, d_phi=0.2, d_theta=-0.5)
    assert (state.distance, state.phi, state.theta) == (10.0, 0.0, 0.0)


def test_capture_takes_copies(state):
    detector = ChangeDetector(state)
    state.center[0] = 4.0

    assert detector.has_changed(state)
    detector.capture(state)
    assert not detector.has_changed(state)


def test_acknowledge_updates_single_field(state):
    detector = ChangeDetector(state)
    state.aspect_ratio = 2.0
    state.far = 50.0

    detector.acknowledge(state, "aspect_ratio")

    assert detector.changed_fields(state) == ["far"]


# ----------------------------------------------------------------------
# CameraState
# ----------------------------------------------------------------------

def test_rotation_center_defaults_to_copy_of_center():
    state = CameraState.from_config(CameraConfig(center=(1, 2, 3)))

    np.testing.assert_array_equal(state.rotation_center, [1, 2, 3])
    state.center[0] = 9.0
    assert state.rotation_center[0] == 1.0


def test_merge_adds_deltas_and_overwrites_parameters(state):
    state.pan_x = 1.0
    state.d_phi = 0.25

    state.merge({"pan_x": 0.5, "distance": 3.0, "center": [1, 2, 3]})

    assert state.pan_x == 1.5
    assert state.d_phi == 0.25
    assert state.distance == 3.0
    assert state.center.dtype == np.float64
    np.testing.assert_array_equal(state.center, [1, 2, 3])


def test_merge_rejects_unknown_fields_without_writing(state):
    with pytest.raises(InvalidPatchError):
        state.merge({"distance": 3.0, "dirty": True})
    assert state.distance == 10.0


def test_is_moving_and_halt(state):
    assert not state.is_moving()
    state.yaw = 5e-5
    assert not state.is_moving()
    state.pitch = -2e-4
    assert state.is_moving()

    state.halt()

    assert not state.is_moving()
    assert state.pitch == 0.0
