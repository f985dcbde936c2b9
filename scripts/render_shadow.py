"""Black-hole shadow map: trace a pinhole-camera grid of rays.

Traces one ray per pixel from a camera on the x-axis looking at the hole
and records each ray's terminal status.  Captured rays form the shadow;
the map is saved as ``shadow_a<spin>.npz`` plus a PNG with the statuses
color-coded.

Usage
-----
Render a 32x32 map around a non-rotating hole::

    python scripts/render_shadow.py

Render a near-extremal Kerr hole at higher resolution::

    python scripts/render_shadow.py --spin 0.95 --resolution 64

Force recomputation::

    python scripts/render_shadow.py --force

Show help::

    python scripts/render_shadow.py --help
"""
from __future__ import annotations

import argparse
import logging
import os
import time

import numpy as np

# Non-interactive backend (before any other matplotlib import)
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from kerrtrace.geodesics import RayStatus, TraceConfig, trace_rays
from kerrtrace.spacetime import BlackHole

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

RESULTS_DIR = "results/"

CAMERA_DISTANCE = 30.0
FIELD_OF_VIEW = 0.5  # radians, full width
INITIAL_STEP = 0.05
MAX_STEPS = 4000

STATUS_CODES = {
    RayStatus.CAPTURED: 0,
    RayStatus.ESCAPED: 1,
    RayStatus.MAX_STEPS_REACHED: 2,
    RayStatus.DIVERGED: 3,
    RayStatus.TRACING: 4,
}


def _ensure_dir(path: str) -> None:
    """Create directory if it does not exist."""
    os.makedirs(path, exist_ok=True)


# ---------------------------------------------------------------------------
# Camera
# ---------------------------------------------------------------------------


def pinhole_rays(resolution: int) -> tuple[np.ndarray, np.ndarray]:
    """Origins and unit directions of a square pinhole camera.

    The camera sits at (CAMERA_DISTANCE, 0, 0) looking toward -x, with
    image-plane y to the left and z up.
    """
    half = np.tan(FIELD_OF_VIEW / 2.0)
    u = np.linspace(-half, half, resolution)
    uu, vv = np.meshgrid(u, u[::-1])

    directions = np.stack([-np.ones_like(uu), uu, vv], axis=-1).reshape(-1, 3)
    directions /= np.linalg.norm(directions, axis=1, keepdims=True)
    origins = np.tile([CAMERA_DISTANCE, 0.0, 0.0], (directions.shape[0], 1))
    return origins, directions


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render(spin: float, resolution: int, force: bool) -> str:
    """Trace the grid and save the status map.  Returns the .npz path."""
    _ensure_dir(RESULTS_DIR)
    cache_path = os.path.join(RESULTS_DIR, f"shadow_a{spin:.2f}_n{resolution}.npz")
    if os.path.exists(cache_path) and not force:
        print(f"  [CACHED] {cache_path} exists, skipping.")
        return cache_path

    black_hole = BlackHole(mass=1.0, spin=spin)
    config = TraceConfig(
        initial_step=INITIAL_STEP,
        max_steps=MAX_STEPS,
        normalize_momentum=True,
    )
    print(f"  Black hole: M=1, a={spin}, r_+={float(black_hole.outer_horizon):.4f}")

    origins, directions = pinhole_rays(resolution)
    print(f"  Tracing {origins.shape[0]} rays ({resolution}x{resolution})...")
    t0 = time.time()
    results = trace_rays(origins, directions, black_hole, config)
    t_trace = time.time() - t0
    print(f"    Tracing time: {t_trace:.1f}s")

    status = np.array([STATUS_CODES[res.status] for res in results])
    steps = np.array([res.step_count for res in results])
    status_map = status.reshape(resolution, resolution)

    np.savez(
        cache_path,
        status=status_map,
        steps=steps.reshape(resolution, resolution),
        spin=spin,
        camera_distance=CAMERA_DISTANCE,
        field_of_view=FIELD_OF_VIEW,
    )
    print(f"  Saved: {cache_path}")

    for ray_status, code in STATUS_CODES.items():
        count = int(np.sum(status == code))
        if count:
            print(f"    {ray_status.value:>18s}: {count}")

    fig, ax = plt.subplots(figsize=(5, 5))
    ax.imshow(status_map, cmap="viridis", vmin=0, vmax=len(STATUS_CODES) - 1)
    ax.set_title(f"Ray status, a = {spin}")
    ax.set_xticks([])
    ax.set_yticks([])
    png_path = cache_path.replace(".npz", ".png")
    fig.savefig(png_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    print(f"  Saved: {png_path}")

    return cache_path


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Render a black-hole shadow status map."
    )
    parser.add_argument("--spin", type=float, default=0.0, help="Spin a (M = 1)")
    parser.add_argument(
        "--resolution", type=int, default=32, help="Pixels per image side"
    )
    parser.add_argument(
        "--force", action="store_true", help="Recompute even if cached"
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Log per-ray termination"
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    print(f"\n{'=' * 50}")
    print(f"Shadow map: a = {args.spin}, {args.resolution}x{args.resolution}")
    print(f"{'=' * 50}")
    render(args.spin, args.resolution, args.force)


if __name__ == "__main__":
    main()
