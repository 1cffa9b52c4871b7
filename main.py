"""
Headless replay driver for the orbit camera.

Builds a Camera (optionally from a YAML config), gives it a rotate and zoom
impulse on the first frame and steps it at a fixed frame rate, printing one
line per frame. Useful for checking how the inertia settings behave without
a renderer attached.

Like an interactive viewer would, every frame passes a patch that keeps the
clip planes proportional to the orbit distance.
"""

import argparse
import logging
import sys

from camera import Camera
from camera_config import CameraConfig, load_config
from camera_errors import ConfigError

log = logging.getLogger(__name__)


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Replay a scripted orbit camera interaction.")
    ap.add_argument("--config", help="Path to a YAML camera config file")
    ap.add_argument("--frames", type=int, default=30, help="Number of frames to simulate")
    ap.add_argument("--fps", type=float, default=60.0, help="Simulated frame rate")
    ap.add_argument("--spin", type=float, default=0.1, help="Azimuth impulse on the first frame (radians)")
    ap.add_argument("--zoom", type=float, default=0.0, help="Zoom impulse on the first frame")
    ap.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return ap.parse_args(argv)


def clip_planes(distance):
    """Near/far patch that scales with the orbit distance."""
    return {"near": distance * 0.01, "far": distance * 2 + 200}


def run(camera, frames, fps, spin=0.0, zoom=0.0):
    """
    Step `camera` for `frames` frames at `fps`.

    Returns:
        list: One CameraFrame per simulated frame.
    """
    frame_ms = 1000.0 / fps
    results = []
    for i in range(frames):
        if i == 0:
            camera.rotate(spin, 0.0)
            if zoom:
                camera.zoom(0.0, 0.0, zoom)
        results.append(camera.update(i * frame_ms, clip_planes(camera.state.distance)))
    return results


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.fps <= 0 or args.frames < 0:
        print("--fps must be positive and --frames non-negative", file=sys.stderr)
        return 2

    try:
        config = load_config(args.config) if args.config else CameraConfig()
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 1

    camera = Camera(config)
    log.debug("Replaying %d frames at %g fps", args.frames, args.fps)
    for i, frame in enumerate(run(camera, args.frames, args.fps, args.spin, args.zoom)):
        eye = ", ".join(f"{c:.4f}" for c in frame.eye)
        print(f"frame {i:4d} dirty={'yes' if frame.dirty else 'no '} eye=({eye})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
