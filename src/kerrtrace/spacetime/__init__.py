"""Black-hole parameters and spacetime metric coefficients."""

from .black_hole import BlackHole, default_black_hole
from .metric import (
    SymbolicMetric,
    delta,
    g_phi_phi,
    g_rr,
    g_theta_theta,
    g_tt,
    is_inside_event_horizon,
    kerr_components,
    kerr_symbolic,
    metric_components,
    schwarzschild_components,
    sigma,
    symbolic_metric_to_jax,
    time_dilation_factor,
)

__all__ = [
    "BlackHole",
    "SymbolicMetric",
    "default_black_hole",
    "delta",
    "g_phi_phi",
    "g_rr",
    "g_theta_theta",
    "g_tt",
    "is_inside_event_horizon",
    "kerr_components",
    "kerr_symbolic",
    "metric_components",
    "schwarzschild_components",
    "sigma",
    "symbolic_metric_to_jax",
    "time_dilation_factor",
]
