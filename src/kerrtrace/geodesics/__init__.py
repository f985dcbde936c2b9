"""Photon geodesic integration around Schwarzschild and Kerr black holes.

Provides the spacetime state type, constants of motion, the two photon
vector fields (approximate Schwarzschild, Kerr conserved-quantity), the
RK4 and adaptive RKF45 steppers, camera-ray initial conditions, the ray
session state machine with its trace drivers, Diffrax reference
trajectories, and trajectory diagnostics.
"""
from __future__ import annotations

from .conserved import ConservedQuantities, conserved_quantities
from .derivatives import (
    KerrArgs,
    kerr_vector_field,
    polar_potential,
    radial_potential,
    schwarzschild_vector_field,
)
from .initial_conditions import camera_to_spacetime, normalize_null_momentum
from .integrator import IntegratorConfig, StepResult, rk4_step, rkf45_step
from .observables import (
    monitor_conserved_quantities,
    monitor_null_norm,
    null_norm,
)
from .reference import (
    ReferenceResult,
    capture_event,
    escape_event,
    integrate_reference,
    make_termination_event,
)
from .session import (
    GeodesicModel,
    KerrModel,
    RaySession,
    RayStatus,
    SchwarzschildModel,
    TraceConfig,
    TraceResult,
    run_session,
    select_model,
    trace_ray,
    trace_rays,
)
from .state import GeodesicState

__all__ = [
    # State and constants of motion
    "ConservedQuantities",
    "GeodesicState",
    "conserved_quantities",
    # Vector fields
    "KerrArgs",
    "kerr_vector_field",
    "polar_potential",
    "radial_potential",
    "schwarzschild_vector_field",
    # Integrators
    "IntegratorConfig",
    "StepResult",
    "rk4_step",
    "rkf45_step",
    # Initial conditions
    "camera_to_spacetime",
    "normalize_null_momentum",
    # Sessions
    "GeodesicModel",
    "KerrModel",
    "RaySession",
    "RayStatus",
    "SchwarzschildModel",
    "TraceConfig",
    "TraceResult",
    "run_session",
    "select_model",
    "trace_ray",
    "trace_rays",
    # Diffrax reference
    "ReferenceResult",
    "capture_event",
    "escape_event",
    "integrate_reference",
    "make_termination_event",
    # Diagnostics
    "monitor_conserved_quantities",
    "monitor_null_norm",
    "null_norm",
]
