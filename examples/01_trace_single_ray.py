
"""Single-ray tracing around Schwarzschild and Kerr black holes.

Demonstrates kerrtrace basics: black-hole radii, the ray session state
machine, and both geodesic models.

Verifies:
- Schwarzschild ISCO at 6M and horizon at 2M
- A radially infalling ray is captured
- An outgoing ray around a spinning hole escapes
"""

from kerrtrace.geodesics import RayStatus, TraceConfig, trace_ray
from kerrtrace.spacetime import BlackHole

schwarzschild = BlackHole(mass=1.0, spin=0.0)
kerr = BlackHole(mass=1.0, spin=0.9)

print("Black hole radii")
print("=" * 40)
for label, bh in [("Schwarzschild", schwarzschild), ("Kerr a=0.9", kerr)]:
    print(f"{label}:")
    print(f"  outer horizon:         {bh.outer_horizon:.4f}")
    print(f"  inner horizon:         {bh.inner_horizon:.4f}")
    print(f"  ergosphere (equator):  {bh.ergosphere_radius(3.141592653589793 / 2):.4f}")
    print(f"  ISCO (prograde):       {bh.isco_radius():.4f}")

# Radial infall: fixed-step RK4 on the approximate Schwarzschild model
infall = trace_ray(
    [10.0, 0.0, 0.0], [-1.0, 0.0, 0.0], schwarzschild, TraceConfig(initial_step=0.05)
)
print(f"\nInfalling ray: {infall.status.value} after {infall.step_count} steps "
      f"at r = {float(infall.state.radius()):.4f}")

# Outgoing ray: adaptive RKF45 on the Kerr conserved-quantity model
outgoing = trace_ray([10.0, 0.0, 0.5], [0.0, 1.0, 0.2], kerr, record=True)
print(f"Outgoing ray:  {outgoing.status.value} after {outgoing.step_count} steps "
      f"at r = {float(outgoing.state.radius()):.4f}")
print(f"  recorded {outgoing.positions.shape[0]} trajectory points")

assert abs(float(schwarzschild.isco_radius()) - 6.0) < 1e-10
assert abs(float(schwarzschild.outer_horizon) - 2.0) < 1e-10
assert infall.status is RayStatus.CAPTURED
assert outgoing.status is RayStatus.ESCAPED

print("\nSingle-ray example complete!")
