"""Right-hand sides of the photon equations of motion.

Both vector fields follow the ``f(lam, y, args) -> dy/dlam`` convention on
the flat state vector y = [x^mu (4,), p^mu (4,)]:

- :func:`schwarzschild_vector_field` is an approximate Christoffel model:
  dx/dlam = p, and only the radial momentum is updated.  The polar and
  azimuthal momenta are left unadjusted.  Paired with fixed-step RK4.
- :func:`kerr_vector_field` integrates the first-order Carter equations
  from the constants of motion (E, L_z, Q).  Momenta are held fixed since
  the constants carry the dynamics.  Paired with adaptive RKF45.
"""
from __future__ import annotations

from typing import NamedTuple

import jax.numpy as jnp
from jaxtyping import Array, Float

from ..spacetime.black_hole import BlackHole
from ..spacetime.metric import delta, sigma
from .conserved import ConservedQuantities


class KerrArgs(NamedTuple):
    """Arguments pytree for :func:`kerr_vector_field`.

    Attributes
    ----------
    black_hole : BlackHole
        Mass and spin.
    conserved : ConservedQuantities
        (E, L_z, Q) of the ray.
    radial_sign : float
        Branch of the radial root, +1 or -1.
    polar_sign : float
        Branch of the polar root, +1 or -1.
    """

    black_hole: BlackHole
    conserved: ConservedQuantities
    radial_sign: float = 1.0
    polar_sign: float = 1.0


# ---------------------------------------------------------------------------
# Schwarzschild (approximate) model
# ---------------------------------------------------------------------------


def schwarzschild_vector_field(
    lam: Float[Array, ""],
    y: Float[Array, "8"],
    args: BlackHole,
) -> Float[Array, "8"]:
    """Approximate geodesic rates for a non-rotating hole.

    With r_s = 2M, the radial momentum rate is

    .. math::

        \\dot p_r = -\\frac{r_s/r}{2r^2} p_t^2
                   + \\frac{(r_s/r)(1 - r_s/r)}{2r^2} p_r^2
                   + r (1 - r_s/r)(p_\\theta^2 + \\sin^2\\theta\\, p_\\phi^2)

    for r > r_s and zero otherwise.  All other momentum rates are zero.

    Parameters
    ----------
    lam : Float[Array, ""]
        Affine parameter (unused; the field is autonomous).
    y : Float[Array, "8"]
        State vector [x^mu, p^mu].
    args : BlackHole
        Supplies the mass.

    Returns
    -------
    Float[Array, "8"]
        [p^mu, dp^mu/dlam].
    """
    r = y[1]
    theta = y[2]
    p = y[4:]

    rs = args.schwarzschild_radius
    rs_over_r = rs / r
    dpr = (
        -rs_over_r / (2.0 * r * r) * p[0] ** 2
        + rs_over_r * (1.0 - rs_over_r) / (2.0 * r * r) * p[1] ** 2
        + r * (1.0 - rs_over_r) * (p[2] ** 2 + jnp.sin(theta) ** 2 * p[3] ** 2)
    )
    dpr = jnp.where(r > rs, dpr, 0.0)

    dp = jnp.zeros(4).at[1].set(dpr)
    return jnp.concatenate([p, dp])


# ---------------------------------------------------------------------------
# Kerr (conserved-quantity) model
# ---------------------------------------------------------------------------


def radial_potential(
    r: Float[Array, ""],
    black_hole: BlackHole,
    conserved: ConservedQuantities,
) -> Float[Array, ""]:
    """R(r) = [E(r^2 + a^2) - a L_z]^2 - Delta [(L_z - a E)^2 + Q]."""
    a = black_hole.spin
    e, lz, q = conserved
    p_r = e * (r**2 + a**2) - a * lz
    return p_r**2 - delta(r, black_hole.mass, a) * ((lz - a * e) ** 2 + q)


def polar_potential(
    theta: Float[Array, ""],
    black_hole: BlackHole,
    conserved: ConservedQuantities,
) -> Float[Array, ""]:
    """Theta(theta) = Q - cos^2(theta) [a^2 (1 - E^2) + L_z^2 / sin^2(theta)]."""
    a = black_hole.spin
    e, lz, q = conserved
    return q - jnp.cos(theta) ** 2 * (
        a**2 * (1.0 - e**2) + lz**2 / jnp.sin(theta) ** 2
    )


def kerr_vector_field(
    lam: Float[Array, ""],
    y: Float[Array, "8"],
    args: KerrArgs,
) -> Float[Array, "8"]:
    """Carter's first-order equations for a photon in Kerr spacetime.

    .. math::

        \\Sigma \\dot r &= \\pm\\sqrt{\\max(R, 0)} \\\\
        \\Sigma \\dot\\theta &= \\pm\\sqrt{\\max(\\Theta, 0)} \\\\
        \\Sigma \\dot t &= \\frac{r^2 + a^2}{\\Delta} P
                          - a (a E \\sin^2\\theta - L_z) \\\\
        \\Sigma \\dot\\phi &= \\frac{a}{\\Delta} P
                           - (a E - L_z / \\sin^2\\theta)

    with P = E(r^2 + a^2) - a L_z.  Negative potentials (past a turning
    point) clamp the rate to zero; the root branch is the fixed sign carried
    in *args*, it does not flip at turning points.

    Parameters
    ----------
    lam : Float[Array, ""]
        Affine parameter (unused).
    y : Float[Array, "8"]
        State vector [x^mu, p^mu].
    args : KerrArgs
        Black hole, constants of motion and root branches.

    Returns
    -------
    Float[Array, "8"]
        [dx^mu/dlam, 0, 0, 0, 0].
    """
    bh = args.black_hole
    e, lz, _ = args.conserved
    a = bh.spin
    r = y[1]
    theta = y[2]

    sin2 = jnp.sin(theta) ** 2
    sig = sigma(r, theta, a)
    dlt = delta(r, bh.mass, a)
    p_r = e * (r**2 + a**2) - a * lz

    big_r = radial_potential(r, bh, args.conserved)
    big_theta = polar_potential(theta, bh, args.conserved)

    dr = args.radial_sign * jnp.sqrt(jnp.maximum(big_r, 0.0)) / sig
    dtheta = args.polar_sign * jnp.sqrt(jnp.maximum(big_theta, 0.0)) / sig
    dt = ((r**2 + a**2) / dlt * p_r - a * (a * e * sin2 - lz)) / sig
    dphi = (a / dlt * p_r - (a * e - lz / sin2)) / sig

    dx = jnp.stack([dt, dr, dtheta, dphi])
    return jnp.concatenate([dx, jnp.zeros(4)])
