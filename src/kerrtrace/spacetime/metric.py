"""Spacetime metric coefficients for Schwarzschild and Kerr black holes.

Coordinates are Schwarzschild / Boyer-Lindquist ``(t, r, theta, phi)`` with
signature (-+++).  The scalar coefficient functions (``g_tt`` through
``delta``) are pure ``jax.numpy`` expressions that broadcast over array
inputs.  The tensor builders (``schwarzschild_components``,
``kerr_components``, ``metric_components``) assemble a single 4x4 tensor at
one point; use ``jax.vmap`` to evaluate them along a trajectory.  The
symbolic form (SymPy) is kept for inspection and cross-validation.

The Schwarzschild ``g_rr`` diverges at r = 2M and is not guarded: callers
must not step across the horizon with it.
"""

from __future__ import annotations

from functools import cached_property
from typing import Callable

import jax.numpy as jnp
import sympy as sp
from jaxtyping import Array, ArrayLike, Float
from sympy import lambdify

from .black_hole import BlackHole


# ---------------------------------------------------------------------------
# Schwarzschild coefficients
# ---------------------------------------------------------------------------


def g_tt(mass: float | ArrayLike, r: float | ArrayLike) -> Float[Array, "..."]:
    """Time-time component -(1 - 2M/r)."""
    return -(1.0 - 2.0 * mass / jnp.asarray(r, dtype=jnp.float64))


def g_rr(mass: float | ArrayLike, r: float | ArrayLike) -> Float[Array, "..."]:
    """Radial component 1 / (1 - 2M/r).  Infinite at r = 2M."""
    return 1.0 / (1.0 - 2.0 * mass / jnp.asarray(r, dtype=jnp.float64))


def g_theta_theta(r: float | ArrayLike) -> Float[Array, "..."]:
    """Polar component r^2."""
    r = jnp.asarray(r, dtype=jnp.float64)
    return r * r


def g_phi_phi(r: float | ArrayLike, theta: float | ArrayLike) -> Float[Array, "..."]:
    """Azimuthal component r^2 sin^2(theta)."""
    r = jnp.asarray(r, dtype=jnp.float64)
    return r * r * jnp.sin(theta) ** 2


def is_inside_event_horizon(mass: float | ArrayLike, r: float | ArrayLike) -> Array:
    """True where r <= 2M."""
    return jnp.asarray(r) <= 2.0 * jnp.asarray(mass)


def time_dilation_factor(
    mass: float | ArrayLike, r: float | ArrayLike
) -> Float[Array, "..."]:
    """Proper-time rate sqrt(1 - 2M/r) of a static observer at radius *r*.

    Zero at and inside the horizon, strictly increasing for r > 2M and
    tending to 1 as r -> infinity.
    """
    r = jnp.asarray(r, dtype=jnp.float64)
    lapse_sq = jnp.maximum(1.0 - 2.0 * mass / r, 0.0)
    return jnp.where(is_inside_event_horizon(mass, r), 0.0, jnp.sqrt(lapse_sq))


def schwarzschild_components(
    r: float | ArrayLike,
    theta: float | ArrayLike,
    mass: float | ArrayLike,
) -> Float[Array, "4 4"]:
    """Diagonal Schwarzschild metric tensor g_ab at a single point."""
    return jnp.diag(
        jnp.stack([
            g_tt(mass, r),
            g_rr(mass, r),
            g_theta_theta(r),
            g_phi_phi(r, theta),
        ])
    )


# ---------------------------------------------------------------------------
# Kerr (Boyer-Lindquist) coefficients
# ---------------------------------------------------------------------------


def sigma(r: ArrayLike, theta: ArrayLike, spin: ArrayLike) -> Float[Array, "..."]:
    """Sigma = r^2 + a^2 cos^2(theta)."""
    return r**2 + spin**2 * jnp.cos(theta) ** 2


def delta(r: ArrayLike, mass: ArrayLike, spin: ArrayLike) -> Float[Array, "..."]:
    """Delta = r^2 - 2Mr + a^2.  Vanishes on both horizons."""
    return r**2 - 2.0 * mass * r + spin**2


def kerr_components(
    r: float | ArrayLike,
    theta: float | ArrayLike,
    mass: float | ArrayLike,
    spin: float | ArrayLike,
) -> Float[Array, "4 4"]:
    """Kerr metric tensor g_ab in Boyer-Lindquist coordinates.

    The cross terms g_tr and g_rphi are identically zero in this chart and
    g_tphi = -2Mar sin^2(theta) / Sigma vanishes with the spin, so the
    tensor reduces to :func:`schwarzschild_components` at a = 0.
    """
    r = jnp.asarray(r, dtype=jnp.float64)
    sin2 = jnp.sin(theta) ** 2
    sig = sigma(r, theta, spin)
    dlt = delta(r, mass, spin)

    gtt = -(1.0 - 2.0 * mass * r / sig)
    gtr = jnp.zeros_like(r)
    gtphi = -2.0 * mass * spin * r * sin2 / sig
    grr = sig / dlt
    grphi = jnp.zeros_like(r)
    gthth = sig
    gphph = (r**2 + spin**2 + 2.0 * mass * spin**2 * r * sin2 / sig) * sin2

    g = jnp.zeros((4, 4))
    g = g.at[0, 0].set(gtt)
    g = g.at[0, 1].set(gtr)
    g = g.at[1, 0].set(gtr)
    g = g.at[0, 3].set(gtphi)
    g = g.at[3, 0].set(gtphi)
    g = g.at[1, 1].set(grr)
    g = g.at[1, 3].set(grphi)
    g = g.at[3, 1].set(grphi)
    g = g.at[2, 2].set(gthth)
    g = g.at[3, 3].set(gphph)
    return g


def metric_components(
    r: float | ArrayLike,
    theta: float | ArrayLike,
    black_hole: BlackHole,
) -> Float[Array, "4 4"]:
    """Symmetric 4x4 metric tensor of *black_hole* at ``(r, theta)``."""
    return kerr_components(r, theta, black_hole.mass, black_hole.spin)


# ---------------------------------------------------------------------------
# Symbolic form
# ---------------------------------------------------------------------------


class SymbolicMetric:
    """A metric tensor as SymPy expressions in four coordinates.

    Parameters
    ----------
    coords : list[sp.Symbol]
        Coordinate symbols in ``(t, r, theta, phi)`` order.
    g_matrix : sp.Matrix
        Covariant components g_ab, shape (4, 4).
    params : list[sp.Symbol] or None
        Physical parameters the components depend on, e.g. ``[M, a]``.

    Raises
    ------
    ValueError
        On a coordinate list that is not four symbols long, or a matrix
        that is not 4x4.
    """

    def __init__(
        self,
        coords: list[sp.Symbol],
        g_matrix: sp.Matrix,
        params: list[sp.Symbol] | None = None,
    ) -> None:
        if len(coords) != 4:
            raise ValueError(f"Need 4 coordinates (t, r, theta, phi), got {len(coords)}")
        if g_matrix.shape != (4, 4):
            raise ValueError(f"Metric must be 4x4, got shape {g_matrix.shape}")
        self.coords = list(coords)
        self.params = list(params or [])
        self.g = g_matrix

    @property
    def symbols(self) -> list[sp.Symbol]:
        """Coordinates followed by parameters, the lambdify argument order."""
        return self.coords + self.params

    @cached_property
    def g_inv(self) -> sp.Matrix:
        """Contravariant components g^ab, inverted once on first access."""
        return self.g.inv()


def kerr_symbolic() -> SymbolicMetric:
    """Symbolic Kerr metric in Boyer-Lindquist coordinates, parameters (M, a)."""
    t, r, theta, phi = sp.symbols("t r theta phi", real=True)
    M = sp.Symbol("M", positive=True)
    a = sp.Symbol("a", real=True)

    Sigma = r**2 + a**2 * sp.cos(theta) ** 2
    Delta = r**2 - 2 * M * r + a**2
    sin2 = sp.sin(theta) ** 2
    gtphi = -2 * M * a * r * sin2 / Sigma

    g = sp.Matrix([
        [-(1 - 2 * M * r / Sigma), 0, 0, gtphi],
        [0, Sigma / Delta, 0, 0],
        [0, 0, Sigma, 0],
        [gtphi, 0, 0, (r**2 + a**2 + 2 * M * a**2 * r * sin2 / Sigma) * sin2],
    ])
    return SymbolicMetric([t, r, theta, phi], g, params=[M, a])


def symbolic_metric_to_jax(
    symbolic_metric: SymbolicMetric,
) -> Callable[..., Float[Array, "4 4"]]:
    """Convert a SymPy metric to a JAX function ``f(coords, *params)``.

    Uses ``sympy.lambdify`` with ``modules='jax'``; *params* are passed in
    the order of ``symbolic_metric.params``.
    """
    f_raw = lambdify(
        symbolic_metric.symbols,
        symbolic_metric.g,
        modules="jax",
    )

    def f_wrapped(coords: Float[Array, "4"], *params: float) -> Float[Array, "4 4"]:
        return jnp.asarray(f_raw(*coords, *params), dtype=jnp.float64)

    return f_wrapped
