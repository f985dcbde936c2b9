"""Shared test fixtures for the kerrtrace test suite.

Float64 enforcement is verified at import time.  Every test that touches
JAX arrays relies on double precision for its tolerances.
"""

import jax.numpy as jnp
import pytest

import kerrtrace  # noqa: F401  (enables float64)
from kerrtrace.geodesics import IntegratorConfig, TraceConfig
from kerrtrace.spacetime import BlackHole

# ---------------------------------------------------------------------------
# Float64 enforcement check fails LOUD if x64 is not enabled
# ---------------------------------------------------------------------------
_probe = jnp.array(1.0)
assert _probe.dtype == jnp.float64, (
    f"JAX float64 not enabled!  Got dtype={_probe.dtype}.  "
    "Ensure kerrtrace is imported before any JAX arrays are created."
)


# ---------------------------------------------------------------------------
# Black hole fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def schwarzschild_hole() -> BlackHole:
    """Non-rotating unit-mass hole at the origin."""
    return BlackHole(mass=1.0, spin=0.0)


@pytest.fixture
def kerr_hole() -> BlackHole:
    """Moderately rotating unit-mass hole (a = 0.5)."""
    return BlackHole(mass=1.0, spin=0.5)


# ---------------------------------------------------------------------------
# State fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def equatorial_position() -> jnp.ndarray:
    """(t, r, theta, phi) on the equator at r = 10."""
    return jnp.array([0.0, 10.0, jnp.pi / 2, 0.0])


@pytest.fixture
def seed_momentum() -> jnp.ndarray:
    """(p_t, p_r, p_theta, p_phi) used for conserved-quantity checks."""
    return jnp.array([-1.0, 0.1, 0.0, 0.2])


# ---------------------------------------------------------------------------
# Configuration fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def default_integrator() -> IntegratorConfig:
    return IntegratorConfig()


@pytest.fixture
def short_trace() -> TraceConfig:
    """Small step budget for fast session tests."""
    return TraceConfig(max_steps=50)
