"""Shared fixtures for the orbit camera tests."""

import pytest

from camera import Camera


@pytest.fixture
def make_camera():
    """Factory for cameras that already ran their first update at t=0."""
    def _make(**options):
        cam = Camera(**options)
        cam.update(0.0)
        return cam
    return _make


@pytest.fixture
def camera(make_camera):
    return make_camera()

